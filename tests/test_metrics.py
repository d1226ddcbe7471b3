"""Tests for worklog.metrics."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from worklog.client import WorkSession
from worklog.metrics import duration_between, elapsed_seconds, hours_of, total_hours

T0 = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


def _session(check_out=None, total=None, check_in=T0) -> WorkSession:
    return WorkSession(id=1, user_id="u", check_in=check_in, check_out=check_out, total_hours=total)


# ---- hours_of ----


@pytest.mark.parametrize("minutes", [1, 45, 90, 510, 60 * 30])
def test_hours_from_timestamps(minutes):
    s = _session(check_out=T0 + timedelta(minutes=minutes))
    assert hours_of(s) == pytest.approx(minutes / 60)


def test_working_day_is_eight_and_a_half_hours():
    s = _session(check_out=datetime(2025, 1, 1, 17, 30, tzinfo=timezone.utc))
    assert hours_of(s) == pytest.approx(8.5)


@pytest.mark.parametrize("total", [0.0, 2.25, 100.0, -1.5])
def test_stored_total_wins(total):
    s = _session(check_out=T0 + timedelta(hours=3), total=total)
    assert hours_of(s) == total


def test_stored_total_on_open_session():
    assert hours_of(_session(total=1.75)) == 1.75


def test_open_session_without_total_is_zero():
    assert hours_of(_session()) == 0


def test_checkout_before_checkin_is_zero():
    s = _session(check_out=T0 - timedelta(hours=1))
    assert hours_of(s) == 0


def test_total_hours_sums_mixed_sessions():
    sessions = [
        _session(total=2.0),
        _session(check_out=T0 + timedelta(minutes=30)),
        _session(),
    ]
    assert total_hours(sessions) == pytest.approx(2.5)


def test_total_hours_empty():
    assert total_hours([]) == 0


# ---- duration_between ----


def test_duration_between_across_offsets():
    start = datetime(2025, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=1)))
    end = datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert duration_between(start, end) == pytest.approx(1.0)


# ---- elapsed_seconds ----


def test_elapsed_floors_partial_seconds():
    now = T0 + timedelta(seconds=61, milliseconds=999)
    assert elapsed_seconds(_session(), now) == 61


def test_elapsed_at_anchor_is_zero():
    assert elapsed_seconds(_session(), T0) == 0


def test_elapsed_never_negative():
    assert elapsed_seconds(_session(), T0 - timedelta(seconds=10)) == 0
