"""Tests for fixed-time anchor placement."""

from collections.abc import Callable
from datetime import date

import pytest

from dayplan.exceptions import SchedulingInvariantError
from dayplan.models import MINUTES_PER_DAY, SleepWindow, parse_time
from dayplan.scheduler import AnchorPlacer, Occurrence

MakeOccurrence = Callable[..., Occurrence]


class TestAnchorPlacer:
    """Anchors land exactly at their declared time."""

    def test_places_at_default_time(self, make_occurrence: MakeOccurrence) -> None:
        standup_occ = make_occurrence("standup", at="09:15", duration=15)
        anchors = AnchorPlacer().place_anchors([standup_occ])

        (standup,) = anchors
        assert standup.scheduled_time == parse_time("09:15")
        assert standup.effective_duration_minutes == 15
        assert standup.is_anchor

    def test_overlapping_anchors_are_kept(self, make_occurrence: MakeOccurrence) -> None:
        anchors = AnchorPlacer().place_anchors(
            [
                make_occurrence("dentist", at="10:00", duration=60),
                make_occurrence("call", at="10:30", duration=30),
            ]
        )

        assert [(a.id, a.scheduled_time) for a in anchors] == [
            ("dentist", parse_time("10:00")),
            ("call", parse_time("10:30")),
        ]

    def test_returned_in_time_order(self, make_occurrence: MakeOccurrence) -> None:
        anchors = AnchorPlacer().place_anchors(
            [
                make_occurrence("dinner", at="19:00"),
                make_occurrence("breakfast", at="07:00"),
                make_occurrence("lunch", at="12:30"),
            ]
        )

        assert [a.id for a in anchors] == ["breakfast", "lunch", "dinner"]

    def test_pinned_time_wins_over_default(self, make_occurrence: MakeOccurrence) -> None:
        base = make_occurrence("gym", at="07:00")
        pinned = Occurrence(base.definition, base.date, pinned_time=parse_time("18:00"))

        (gym,) = AnchorPlacer().place_anchors([pinned])

        assert gym.scheduled_time == parse_time("18:00")

    def test_occurrence_without_time_is_a_defect(self, make_occurrence: MakeOccurrence) -> None:
        flexible = make_occurrence("reading")

        with pytest.raises(SchedulingInvariantError):
            AnchorPlacer().place_anchors([flexible])

    def test_after_midnight_anchor_moves_to_next_day_side(
        self, make_occurrence: MakeOccurrence
    ) -> None:
        anchors = AnchorPlacer().place_anchors(
            [
                make_occurrence("night_call", at="00:15"),
                make_occurrence("dinner", at="23:00"),
                make_occurrence("errand", at="10:00"),
            ],
            SleepWindow.parse("18:00", "02:00"),
        )

        assert [(a.id, a.scheduled_time) for a in anchors] == [
            ("errand", parse_time("10:00")),
            ("dinner", parse_time("23:00")),
            ("night_call", MINUTES_PER_DAY + parse_time("00:15")),
        ]

    def test_same_day_window_keeps_raw_times(self, make_occurrence: MakeOccurrence) -> None:
        (early,) = AnchorPlacer().place_anchors(
            [make_occurrence("early", at="00:15")], SleepWindow.parse("06:00", "23:00")
        )

        assert early.scheduled_time == parse_time("00:15")

    def test_duration_override_applies(self, make_occurrence: MakeOccurrence) -> None:
        base = make_occurrence("meeting", at="14:00", duration=60)
        shortened = Occurrence(base.definition, date(2025, 1, 6), duration_override=25)

        (meeting,) = AnchorPlacer().place_anchors([shortened])

        assert meeting.end_time == parse_time("14:25")
