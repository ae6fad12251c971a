"""
Tests for the status transition policy.

The default policy is permissive; an allow-list narrows it without any
change to the lifecycle manager.
"""

import pytest

from tripdesk.domain.entities import Place, StatusTriple
from tripdesk.domain.enums import PlaceKind
from tripdesk.domain.errors import InvalidState, InvalidStateTransition
from tripdesk.domain.transitions import PERMISSIVE, TransitionPolicy


class TestPermissivePolicy:
    @pytest.mark.parametrize(
        "current, new",
        [
            ("Planned", "Active"),
            ("Completed", "Planned"),
            ("Breakdown", "Active"),
            ("Cancelled", "Completed"),
        ],
    )
    def test_any_move_allowed(self, current, new):
        assert PERMISSIVE.is_allowed(current, new)
        PERMISSIVE.check(current, new)


class TestAllowList:
    policy = TransitionPolicy(
        {
            "Planned": {"Active", "Cancelled"},
            "Active": {"Breakdown", "Completed"},
            "Breakdown": {"Active"},
        }
    )

    def test_listed_move(self):
        assert self.policy.is_allowed("Planned", "Active")

    def test_unlisted_move(self):
        assert not self.policy.is_allowed("Completed", "Planned")

    def test_same_status_always_allowed(self):
        assert self.policy.is_allowed("Completed", "Completed")

    def test_check_raises(self):
        with pytest.raises(InvalidStateTransition, match="Cannot transition from Planned to Completed"):
            self.policy.check("Planned", "Completed")

    def test_transition_error_is_invalid_state(self):
        assert issubclass(InvalidStateTransition, InvalidState)


class TestStatusTriple:
    def test_normalize_absent_values(self):
        assert StatusTriple.normalize("Active") == StatusTriple("Active", "", None)

    def test_normalize_blank_breakdown(self):
        assert StatusTriple.normalize("Breakdown", None, "").breakdown_issue is None

    def test_breakdown_text_distinguishes_triples(self):
        assert StatusTriple("Breakdown", "", "Flat tyre") != StatusTriple(
            "Breakdown", "", "Engine"
        )


class TestPlace:
    def test_location_display(self):
        place = Place(PlaceKind.LOCATION, 7, "Lobby A")
        assert place.display_name == "Lobby A"
        assert place.legacy_id == 7

    def test_event_display(self):
        place = Place(PlaceKind.EVENT, 7, "Opening Ceremony")
        assert place.display_name == "Opening Ceremony (Event)"
        assert place.legacy_id == -7
