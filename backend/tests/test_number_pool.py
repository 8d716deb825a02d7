"""
Number pool tests.

Verifies:
- Requested quads are validated (count, range, distinctness, type)
- Sampling never returns used or repeated numbers
- Sampling gives up when the pool or the attempt budget runs out
- The used set is read from persisted tickets
"""

import random

import pytest

from raffle.services import number_pool, ticket_service
from raffle.services.number_pool import PoolExhaustedError, TicketValidationError
from tests.conftest import buyer


class _ConstantRandom:
    """rng stub that always draws the same number."""

    def __init__(self, value):
        self.value = value

    def randint(self, a, b):
        return self.value


class TestValidateNumbers:

    def test_accepts_four_distinct_numbers(self):
        assert number_pool.validate_numbers([0, 417, 58, 999]) == [0, 417, 58, 999]

    def test_accepts_tuple(self):
        assert number_pool.validate_numbers((1, 2, 3, 4)) == [1, 2, 3, 4]

    @pytest.mark.parametrize(
        "numbers",
        [
            [1, 2, 3],
            [1, 2, 3, 4, 5],
            [],
        ],
    )
    def test_rejects_wrong_count(self, numbers):
        with pytest.raises(TicketValidationError):
            number_pool.validate_numbers(numbers)

    @pytest.mark.parametrize(
        "numbers",
        [
            [1, 2, 3, 1000],
            [-1, 2, 3, 4],
            [1, 2, 3, "4"],
            [1, 2, 3, 4.0],
            [True, 2, 3, 4],
            [1, 2, 3, None],
        ],
    )
    def test_rejects_out_of_range_or_non_integers(self, numbers):
        with pytest.raises(TicketValidationError):
            number_pool.validate_numbers(numbers)

    def test_rejects_repeated_numbers(self):
        with pytest.raises(TicketValidationError):
            number_pool.validate_numbers([7, 7, 8, 9])

    def test_rejects_non_list(self):
        with pytest.raises(TicketValidationError):
            number_pool.validate_numbers("1,2,3,4")


class TestSampleUnusedQuad:

    def test_returns_four_distinct_free_numbers(self):
        used = set(range(0, 990))
        rng = random.Random(1234)

        for _ in range(50):
            quad = number_pool.sample_unused_quad(used, rng=rng)
            assert len(quad) == 4
            assert len(set(quad)) == 4
            assert not set(quad) & used
            assert all(990 <= n <= 999 for n in quad)

    def test_takes_the_last_four_free_numbers(self):
        used = set(range(0, 996))
        quad = number_pool.sample_unused_quad(used, rng=random.Random(7), max_attempts=100_000)
        assert sorted(quad) == [996, 997, 998, 999]

    def test_fails_fast_when_fewer_than_four_free(self):
        used = set(range(0, 997))
        with pytest.raises(PoolExhaustedError) as exc_info:
            number_pool.sample_unused_quad(used)
        assert exc_info.value.details["free"] == 3

    def test_gives_up_after_attempt_budget(self):
        # 0 is used and the stub only ever draws 0
        with pytest.raises(PoolExhaustedError) as exc_info:
            number_pool.sample_unused_quad({0}, rng=_ConstantRandom(0), max_attempts=25)
        assert exc_info.value.details["attempts"] == 25

    def test_repeated_draw_of_same_free_number_is_rejected(self):
        # Always drawing 5 can never make a quad of distinct numbers
        with pytest.raises(PoolExhaustedError):
            number_pool.sample_unused_quad(set(), rng=_ConstantRandom(5), max_attempts=10)

    def test_ignores_out_of_pool_entries_in_used_set(self):
        quad = number_pool.sample_unused_quad({-5, 1500}, rng=random.Random(3))
        assert len(set(quad)) == 4


class TestUsedNumbers:

    def test_empty_pool(self, db_session):
        assert number_pool.get_used_numbers() == set()
        assert not number_pool.is_used(417)

    def test_reflects_issued_tickets(self, seller, seller_token):
        ticket_service.issue_ticket(seller.id, seller_token, numbers=[417, 1, 2, 3], **buyer())

        assert number_pool.get_used_numbers() == {1, 2, 3, 417}
        assert number_pool.is_used(417)
        assert not number_pool.is_used(418)

    def test_read_is_idempotent(self, seller, seller_token):
        ticket_service.issue_ticket(seller.id, seller_token, numbers=[10, 20, 30, 40], **buyer())

        first = number_pool.get_used_numbers()
        assert number_pool.get_used_numbers() == first
        assert number_pool.get_used_numbers() == first
