"""
CLI command tests (flask system / sellers / prizes).
"""

from raffle.extensions import db
from raffle.models import Prize, Seller
from raffle.services import auth_service, session_service, ticket_service
from tests.conftest import SELLER_PASSWORD, buyer


class TestSystemCommands:

    def test_init_creates_prizes_and_admin(self, cli_runner, db_session):
        result = cli_runner.invoke(args=[
            "system", "init",
            "--admin-name", "Admin",
            "--admin-username", "admin",
            "--admin-password", "Admin12345",
        ])

        assert result.exit_code == 0, result.output
        assert "Created admin" in result.output
        assert db.session.query(Prize).count() == 3

        admin = db.session.query(Seller).filter_by(username="admin").one()
        assert admin.role == "admin"

    def test_init_is_idempotent(self, cli_runner, db_session):
        args = ["system", "init", "--admin-username", "admin", "--admin-password", "Admin12345"]
        cli_runner.invoke(args=args)
        result = cli_runner.invoke(args=args)

        assert result.exit_code == 0, result.output
        assert "Admin already exists" in result.output
        assert db.session.query(Seller).count() == 1
        assert db.session.query(Prize).count() == 3

    def test_init_admin_requires_password(self, cli_runner, db_session):
        result = cli_runner.invoke(args=["system", "init", "--admin-username", "admin"])
        assert result.exit_code != 0

    def test_reset_requires_confirmation(self, cli_runner, db_session):
        result = cli_runner.invoke(args=["system", "reset-db"])
        assert result.exit_code != 0


class TestSellerCommands:

    def test_create_seller(self, cli_runner, db_session):
        result = cli_runner.invoke(args=[
            "sellers", "create",
            "--name", "Juana Soto",
            "--username", "juana",
            "--password", "Secreto123",
        ])

        assert result.exit_code == 0, result.output
        seller = db.session.query(Seller).filter_by(username="juana").one()
        assert seller.role == "seller"
        assert seller.password_hash != "Secreto123"

    def test_create_rejects_weak_password(self, cli_runner, db_session):
        result = cli_runner.invoke(args=[
            "sellers", "create",
            "--name", "Juana Soto",
            "--username", "juana",
            "--password", "short",
        ])

        assert result.exit_code != 0
        assert db.session.query(Seller).count() == 0

    def test_create_rejects_duplicate_name(self, cli_runner, seller):
        result = cli_runner.invoke(args=[
            "sellers", "create",
            "--name", "María Pérez",
            "--username", "maria2",
            "--password", "Secreto123",
        ])
        assert result.exit_code != 0

    def test_list_shows_session_state(self, cli_runner, seller, seller_token):
        result = cli_runner.invoke(args=["sellers", "list"])

        assert result.exit_code == 0, result.output
        assert "maria" in result.output
        assert "logged-in" in result.output

    def test_logout(self, cli_runner, seller, seller_token):
        seller_id = seller.id

        result = cli_runner.invoke(args=["sellers", "logout", str(seller_id)])

        assert result.exit_code == 0, result.output
        assert not session_service.has_active_session(seller_id)
        assert auth_service.validate_credentials("maria", SELLER_PASSWORD).status == "success"

    def test_logout_unknown_seller(self, cli_runner, db_session):
        result = cli_runner.invoke(args=["sellers", "logout", "999"])
        assert result.exit_code != 0


class TestPrizeCommands:

    def test_set_winner(self, cli_runner, seller, seller_token):
        ticket_service.issue_ticket(seller.id, seller_token, numbers=[417, 1, 2, 3], **buyer())
        cli_runner.invoke(args=["prizes", "list"])
        prize_id = db.session.query(Prize).filter_by(prize_order=1).one().id

        result = cli_runner.invoke(args=["prizes", "set-winner", str(prize_id), "417"])

        assert result.exit_code == 0, result.output
        assert "(won)" in result.output

        result = cli_runner.invoke(args=["prizes", "list"])
        assert "buyer=Ana González" in result.output

    def test_clear_winner(self, cli_runner, db_session):
        cli_runner.invoke(args=["prizes", "list"])
        prize_id = db.session.query(Prize).filter_by(prize_order=1).one().id

        cli_runner.invoke(args=["prizes", "set-winner", str(prize_id), "12"])
        result = cli_runner.invoke(args=["prizes", "set-winner", str(prize_id), "none"])

        assert result.exit_code == 0, result.output
        assert "(not_drawn)" in result.output

    def test_set_winner_out_of_range(self, cli_runner, db_session):
        cli_runner.invoke(args=["prizes", "list"])
        prize_id = db.session.query(Prize).filter_by(prize_order=1).one().id

        result = cli_runner.invoke(args=["prizes", "set-winner", str(prize_id), "1000"])
        assert result.exit_code != 0
