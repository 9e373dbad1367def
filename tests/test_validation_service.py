"""
Validation engine: reasonableness, duplicate instants and ClockIn/ClockOut alternation.
"""
from datetime import timedelta

import pytest

from timecard.core.exceptions import ValidationError, ValidationReason
from timecard.services.validation_service import (
    ReasonablenessPolicy,
    check_alternation,
    merged_sequence,
    validate_event,
)
from tests.conftest import IN, JST, NOW, OUT, TODAY, YESTERDAY, at


def _validate(existing, kind, instant, day, **kwargs):
    kwargs.setdefault("now", NOW)
    kwargs.setdefault("policy", ReasonablenessPolicy())
    kwargs.setdefault("utc_offset", JST)
    validate_event(existing, kind, instant, day, **kwargs)


def _reason(exc_info):
    return exc_info.value.reason


class TestReasonableness:
    def test_accepts_earlier_time_today(self):
        _validate([], IN, at(TODAY, "09:00"), TODAY)

    def test_accepts_exactly_now(self):
        _validate([], IN, NOW, TODAY)

    def test_rejects_future_date(self):
        tomorrow = TODAY + timedelta(days=1)
        with pytest.raises(ValidationError) as exc:
            _validate([], IN, at(tomorrow, "09:00"), tomorrow)
        assert _reason(exc) is ValidationReason.FUTURE_DATE
        assert exc.value.details == {"reason": "future_date"}

    def test_rejects_later_time_today(self):
        with pytest.raises(ValidationError) as exc:
            _validate([], IN, at(TODAY, "12:01"), TODAY)
        assert _reason(exc) is ValidationReason.FUTURE_TIME_TODAY
        assert "12:00" in exc.value.message

    def test_later_time_on_past_day_is_fine(self):
        _validate([], IN, at(YESTERDAY, "23:00"), YESTERDAY)

    def test_max_past_days_is_inclusive(self):
        oldest = TODAY - timedelta(days=7)
        _validate([], IN, at(oldest, "09:00"), oldest)

        too_old = TODAY - timedelta(days=8)
        with pytest.raises(ValidationError) as exc:
            _validate([], IN, at(too_old, "09:00"), too_old)
        assert _reason(exc) is ValidationReason.TOO_FAR_IN_PAST
        assert exc.value.message == "Cannot record more than 7 days in the past"

    def test_late_night_window_off_by_default(self):
        _validate([], IN, at(YESTERDAY, "03:00"), YESTERDAY)

    def test_late_night_window_when_enabled(self):
        policy = ReasonablenessPolicy(reject_late_night=True)
        with pytest.raises(ValidationError) as exc:
            _validate([], IN, at(YESTERDAY, "02:00"), YESTERDAY, policy=policy)
        assert _reason(exc) is ValidationReason.IMPLAUSIBLE_HOUR
        assert exc.value.message == "Times between 02:00 and 05:00 are not accepted"

        # end hour is exclusive
        _validate([], IN, at(YESTERDAY, "05:00"), YESTERDAY, policy=policy)
        _validate([], IN, at(YESTERDAY, "01:59"), YESTERDAY, policy=policy)

    def test_late_night_exemption(self):
        policy = ReasonablenessPolicy(reject_late_night=True)
        _validate([], IN, at(YESTERDAY, "03:00"), YESTERDAY, policy=policy, exempt_late_night=True)

    def test_reasonableness_runs_before_ordering(self):
        too_old = TODAY - timedelta(days=30)
        with pytest.raises(ValidationError) as exc:
            _validate([], OUT, at(too_old, "09:00"), too_old)
        assert _reason(exc) is ValidationReason.TOO_FAR_IN_PAST


class TestDuplicateInstant:
    def test_rejects_same_instant_regardless_of_kind(self, make_events):
        existing = make_events(YESTERDAY, [("09:00", IN)])
        with pytest.raises(ValidationError) as exc:
            _validate(existing, OUT, at(YESTERDAY, "09:00"), YESTERDAY)
        assert _reason(exc) is ValidationReason.DUPLICATE_INSTANT
        assert exc.value.message == "A record already exists at 09:00:00"

    def test_duplicate_checked_before_alternation(self, make_events):
        existing = make_events(YESTERDAY, [("09:00", IN)])
        with pytest.raises(ValidationError) as exc:
            _validate(existing, IN, at(YESTERDAY, "09:00"), YESTERDAY)
        assert _reason(exc) is ValidationReason.DUPLICATE_INSTANT

    def test_edited_event_does_not_collide_with_itself(self, make_events):
        existing = make_events(YESTERDAY, [("09:00", IN), ("18:00", OUT)])
        _validate(existing, IN, at(YESTERDAY, "09:00"), YESTERDAY, exclude_event_id=1)


class TestAlternation:
    def test_first_event_must_be_clock_in(self):
        with pytest.raises(ValidationError) as exc:
            _validate([], OUT, at(YESTERDAY, "18:00"), YESTERDAY)
        assert _reason(exc) is ValidationReason.BROKEN_ALTERNATION
        assert exc.value.position == 1
        assert exc.value.details == {"reason": "broken_alternation", "position": 1}
        assert exc.value.message == "Invalid order: position 1 is a ClockOut with no preceding ClockIn"

    def test_double_clock_in_reports_second_position(self, make_events):
        existing = make_events(YESTERDAY, [("09:00", IN)])
        with pytest.raises(ValidationError) as exc:
            _validate(existing, IN, at(YESTERDAY, "10:00"), YESTERDAY)
        assert exc.value.position == 2
        assert "ClockIn immediately after another ClockIn" in exc.value.message

    def test_full_day_builds_up_in_order(self, make_events):
        entries = [("09:00", IN), ("12:00", OUT), ("13:00", IN)]
        existing = make_events(YESTERDAY, entries)
        _validate(existing, OUT, at(YESTERDAY, "18:00"), YESTERDAY)

    def test_insertion_in_the_middle_is_checked_against_whole_day(self, make_events):
        existing = make_events(YESTERDAY, [("09:00", IN), ("18:00", OUT)])
        # 09:00 IN, 12:00 OUT, 18:00 OUT
        with pytest.raises(ValidationError) as exc:
            _validate(existing, OUT, at(YESTERDAY, "12:00"), YESTERDAY)
        assert exc.value.position == 3

    def test_back_dated_pair_before_existing_day(self, make_events):
        existing = make_events(YESTERDAY, [("13:00", IN), ("18:00", OUT)])
        _validate(existing, IN, at(YESTERDAY, "08:00"), YESTERDAY)
        with pytest.raises(ValidationError) as exc:
            _validate(existing, OUT, at(YESTERDAY, "08:00"), YESTERDAY)
        assert exc.value.position == 1

    def test_edit_moving_clock_out_before_its_clock_in(self, make_events):
        existing = make_events(YESTERDAY, [("09:00", IN), ("12:00", OUT), ("13:00", IN), ("18:00", OUT)])
        with pytest.raises(ValidationError) as exc:
            _validate(existing, OUT, at(YESTERDAY, "08:00"), YESTERDAY, exclude_event_id=2)
        assert _reason(exc) is ValidationReason.BROKEN_ALTERNATION
        assert exc.value.position == 1

    def test_edit_within_its_own_slot_is_accepted(self, make_events):
        existing = make_events(YESTERDAY, [("09:00", IN), ("12:00", OUT), ("13:00", IN), ("18:00", OUT)])
        _validate(existing, OUT, at(YESTERDAY, "12:30"), YESTERDAY, exclude_event_id=2)

    def test_existing_broken_day_is_reported_even_for_a_fine_candidate(self, make_events):
        existing = make_events(YESTERDAY, [("09:00", IN), ("10:00", IN)])
        with pytest.raises(ValidationError) as exc:
            check_alternation(existing, OUT, at(YESTERDAY, "18:00"))
        assert exc.value.position == 2


def test_merged_sequence_places_candidate_after_equal_instants(make_events):
    existing = make_events(YESTERDAY, [("09:00", IN), ("18:00", OUT)])
    timeline = merged_sequence(existing, IN, at(YESTERDAY, "09:00"))
    assert [kind for _, kind in timeline] == [IN, IN, OUT]

    timeline = merged_sequence(existing, OUT, at(YESTERDAY, "12:00"), exclude_event_id=2)
    assert [kind for _, kind in timeline] == [IN, OUT]
