"""
Session authority tests.

Verifies:
- Passwords are bcrypt hashed, salted and checked
- Login outcomes: invalid_credentials, session_active, success
- A new login invalidates every token issued before it
- Logout clears the session
- Tokens are stored hashed
"""

import pytest

from raffle.extensions import db
from raffle.models import Seller, SellerSession
from raffle.services import auth_service, session_service
from raffle.services.auth_service import (
    LOGIN_INVALID_CREDENTIALS,
    LOGIN_SESSION_ACTIVE,
    LOGIN_SUCCESS,
    PasswordValidationError,
)
from raffle.services.session_service import SessionConflictError
from tests.conftest import SELLER_PASSWORD


class TestPasswords:

    def test_hash_is_salted_and_verifiable(self, app):
        first = auth_service.hash_password("Secreto123")
        second = auth_service.hash_password("Secreto123")

        assert first != second
        assert first.startswith("$2")
        assert auth_service.verify_password("Secreto123", first)
        assert not auth_service.verify_password("Secreto124", first)

    @pytest.mark.parametrize(
        "password",
        [
            "short1",
            "onlyletters",
            "12345678",
            "a1" * 40,
        ],
    )
    def test_rejects_weak_passwords(self, app, password):
        with pytest.raises(PasswordValidationError):
            auth_service.hash_password(password)

    def test_verify_rejects_malformed_hash(self, app):
        assert not auth_service.verify_password("Secreto123", "plaintext")


class TestCreateSeller:

    def test_creates_seller_with_hashed_password(self, db_session):
        seller = auth_service.create_seller("María Pérez", "maria", SELLER_PASSWORD)

        assert seller.id is not None
        assert seller.role == "seller"
        assert seller.password_hash != SELLER_PASSWORD
        assert "password_hash" not in seller.to_dict()

    def test_rejects_duplicate_name_or_username(self, seller):
        with pytest.raises(ValueError):
            auth_service.create_seller("María Pérez", "other", SELLER_PASSWORD)
        with pytest.raises(ValueError):
            auth_service.create_seller("Other", "maria", SELLER_PASSWORD)

    def test_rejects_unknown_role(self, db_session):
        with pytest.raises(ValueError):
            auth_service.create_seller("X Y", "xy", SELLER_PASSWORD, role="superuser")

    def test_rejects_blank_name(self, db_session):
        with pytest.raises(ValueError):
            auth_service.create_seller("  ", "xy", SELLER_PASSWORD)


class TestValidateCredentials:

    def test_success_opens_session(self, seller):
        result = auth_service.validate_credentials("María Pérez", SELLER_PASSWORD)

        assert result.status == LOGIN_SUCCESS
        assert result.seller.id == seller.id
        assert len(result.token) == 64
        assert session_service.verify_session(seller.id, result.token)

    def test_username_also_works(self, seller):
        assert auth_service.validate_credentials("maria", SELLER_PASSWORD).status == LOGIN_SUCCESS

    def test_wrong_password(self, seller):
        result = auth_service.validate_credentials("maria", "Wrong12345")
        assert result.status == LOGIN_INVALID_CREDENTIALS
        assert result.seller is None
        assert not session_service.has_active_session(seller.id)

    def test_unknown_name(self, seller):
        result = auth_service.validate_credentials("nobody", SELLER_PASSWORD)
        assert result.status == LOGIN_INVALID_CREDENTIALS

    def test_second_login_reports_active_session_without_changing_it(self, seller, seller_token):
        result = auth_service.validate_credentials("maria", SELLER_PASSWORD)

        assert result.status == LOGIN_SESSION_ACTIVE
        assert result.seller.id == seller.id
        assert result.token is None
        assert "token" not in result.to_dict()
        assert session_service.verify_session(seller.id, seller_token)

    def test_wrong_password_with_active_session_is_invalid(self, seller, seller_token):
        result = auth_service.validate_credentials("maria", "Wrong12345")
        assert result.status == LOGIN_INVALID_CREDENTIALS


class TestSingleActiveSession:

    def test_confirmed_login_elsewhere_invalidates_previous_token(self, seller):
        # Device 1 logs in
        first = auth_service.validate_credentials("maria", SELLER_PASSWORD)
        assert first.status == LOGIN_SUCCESS
        t1 = first.token

        # Device 2 logs in and is asked to confirm
        second = auth_service.validate_credentials("maria", SELLER_PASSWORD)
        assert second.status == LOGIN_SESSION_ACTIVE

        # Device 2 confirms
        forced = auth_service.force_login(second.seller.id)
        t2 = forced.token

        assert t1 != t2
        assert not session_service.verify_session(seller.id, t1)
        assert session_service.verify_session(seller.id, t2)
        assert db.session.query(SellerSession).filter_by(seller_id=seller.id).count() == 1

    def test_force_login_from_logged_out(self, seller):
        result = auth_service.force_login(seller.id)
        assert result.status == LOGIN_SUCCESS
        assert session_service.verify_session(seller.id, result.token)

    def test_force_login_unknown_seller(self, db_session):
        with pytest.raises(ValueError):
            auth_service.force_login(12345)

    def test_sessions_are_per_seller(self, seller, seller_token, other_seller, other_seller_token):
        assert session_service.verify_session(seller.id, seller_token)
        assert session_service.verify_session(other_seller.id, other_seller_token)
        assert not session_service.verify_session(seller.id, other_seller_token)

        auth_service.force_login(other_seller.id)
        assert session_service.verify_session(seller.id, seller_token)

    def test_open_session_refuses_when_logged_in(self, seller, seller_token):
        with pytest.raises(SessionConflictError):
            session_service.open_session(seller.id)


class TestLogout:

    def test_logout_clears_session(self, seller, seller_token):
        assert auth_service.logout(seller.id) is True
        assert not session_service.verify_session(seller.id, seller_token)
        assert session_service.resolve_session(seller_token) is None

        # Logged out again: next login succeeds without confirmation
        assert auth_service.logout(seller.id) is False
        assert auth_service.validate_credentials("maria", SELLER_PASSWORD).status == LOGIN_SUCCESS


class TestTokens:

    def test_only_hash_is_stored(self, seller, seller_token):
        stored = db.session.query(SellerSession).filter_by(seller_id=seller.id).one()
        assert stored.token_hash != seller_token
        assert stored.token_hash == session_service.hash_token(seller_token)

    def test_resolve_session_maps_token_to_seller(self, seller, seller_token):
        context = session_service.resolve_session(seller_token)
        assert context.seller.id == seller.id

    @pytest.mark.parametrize("token", [None, "", "not-a-token"])
    def test_verify_rejects_bad_tokens(self, seller, seller_token, token):
        assert not session_service.verify_session(seller.id, token)
        assert session_service.resolve_session(token) is None

    def test_verify_is_false_for_logged_out_seller(self, seller):
        assert not session_service.verify_session(seller.id, "a" * 64)
        assert db.session.get(Seller, seller.id) is not None
