"""
compute_duration_days / coerce_duration_input。
"""
from datetime import date, datetime, timezone as dt_timezone

import pytest

from medications.lifecycle.manager import coerce_duration_input, compute_duration_days


def _utc(*args):
    return datetime(*args, tzinfo=dt_timezone.utc)


class TestComputeDurationDays:

    def test_open_ended_counts_to_now(self):
        assert compute_duration_days(date(2024, 1, 1), now=_utc(2024, 1, 11)) == 10

    def test_start_after_now_is_zero(self):
        assert compute_duration_days(date(2024, 2, 1), now=_utc(2024, 1, 11)) == 0

    def test_end_date_wins_over_now(self):
        assert compute_duration_days(date(2024, 1, 1), date(2024, 1, 31), now=_utc(2030, 1, 1)) == 30

    def test_partial_day_rounds_up(self):
        assert compute_duration_days(date(2024, 1, 1), now=_utc(2024, 1, 11, 6, 0)) == 11

    def test_same_day_is_zero(self):
        assert compute_duration_days(date(2024, 1, 1), date(2024, 1, 1)) == 0

    def test_end_before_start_is_zero(self):
        assert compute_duration_days(date(2024, 1, 10), date(2024, 1, 1)) == 0

    def test_naive_now_treated_as_utc(self):
        assert compute_duration_days(date(2024, 1, 1), now=datetime(2024, 1, 3)) == 2

    def test_now_as_plain_date(self):
        assert compute_duration_days(date(2024, 1, 1), now=date(2024, 1, 4)) == 3


class TestCoerceDurationInput:

    @pytest.mark.parametrize('raw, expected', [
        (7, 7),
        ('14', 14),
        (' 21 ', 21),
        ('12abc', 12),
        ('abc', 0),
        ('', 0),
        (None, 0),
        (-3, 0),
        ('-5', 0),
        (9.8, 9),
        (float('nan'), 0),
        (True, 0),
        ('99999999999999999999999', 2147483647),
        (10 ** 12, 2147483647),
    ])
    def test_coercion(self, raw, expected):
        assert coerce_duration_input(raw) == expected
