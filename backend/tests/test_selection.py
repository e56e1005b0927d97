"""
Selection Tests
Selection set toggling, discount toggling and the booking draft
"""

import pytest

from buzybees.models.discount import Discount, DiscountSelection
from buzybees.models.selection import BookingDraft, SelectionSet


class TestSelectionSet:
    """Tests for SelectionSet toggling"""

    def test_new_selection_is_empty(self):
        selection = SelectionSet()
        assert selection.is_empty()
        assert len(selection) == 0
        assert selection.as_dict() == {}

    def test_toggle_adds_item(self):
        selection = SelectionSet()
        assert selection.toggle_item("Manicure", "base") is True
        assert selection.contains("Manicure", "base")
        assert selection.as_dict() == {"Manicure": ["base"]}

    def test_toggle_twice_removes_service_key(self):
        """Untoggling the last key drops the service name entirely"""
        selection = SelectionSet()
        selection.toggle_item("Manicure", "base")
        assert selection.toggle_item("Manicure", "base") is False
        assert selection.is_empty()
        assert "Manicure" not in selection.service_names()

    def test_untoggle_restores_prior_state(self):
        selection = SelectionSet.from_mapping({"Manicure": ["base", "opt_gel"]})
        before = selection.copy()

        selection.toggle_item("Haircut", "opt_wash")
        selection.toggle_item("Haircut", "opt_wash")

        assert selection == before
        assert selection.service_names() == ["Manicure"]

    def test_base_and_options_can_coexist(self):
        """Checkbox semantics: base plus several options of one service"""
        selection = SelectionSet()
        selection.toggle_item("Manicure", "base")
        selection.toggle_item("Manicure", "opt_gel")
        selection.toggle_item("Manicure", "opt_art")
        assert selection.as_dict() == {"Manicure": ["base", "opt_art", "opt_gel"]}
        assert len(selection) == 3

    def test_items_sorted(self):
        selection = SelectionSet.from_mapping({"Manicure": ["opt_gel", "base"], "Haircut": ["base"]})
        assert list(selection.items()) == [
            ("Haircut", "base"),
            ("Manicure", "base"),
            ("Manicure", "opt_gel"),
        ]

    def test_from_mapping_skips_empty_services(self):
        selection = SelectionSet.from_mapping({"Manicure": [], "Haircut": ["base"]})
        assert selection.service_names() == ["Haircut"]

    def test_copy_is_independent(self):
        selection = SelectionSet.from_mapping({"Manicure": ["base"]})
        clone = selection.copy()
        clone.toggle_item("Manicure", "opt_gel")
        assert not selection.contains("Manicure", "opt_gel")
        assert selection != clone


class TestDiscountSelection:
    """Tests for single active discount toggling"""

    def test_apply_twice_is_noop(self):
        d = Discount(discount_id="dsc_1", title="Ten", percentage=10)
        selection = DiscountSelection()

        assert selection.apply(d) == d
        assert selection.apply(d) is None
        assert selection.active is None

    def test_apply_other_replaces(self):
        d1 = Discount(discount_id="dsc_1", title="Ten", percentage=10)
        d2 = Discount(discount_id="dsc_2", title="Twenty", percentage=20)
        selection = DiscountSelection()

        selection.apply(d1)
        selection.apply(d2)
        assert selection.active == d2

    def test_clear(self):
        selection = DiscountSelection(Discount(title="Ten", percentage=10))
        selection.clear()
        assert selection.active is None


class TestBookingDraft:
    """Tests for the in-progress booking composition"""

    def test_draft_starts_empty(self):
        draft = BookingDraft()
        assert draft.is_empty()
        assert draft.staff_id is None
        assert draft.discount.active is None

    def test_draft_tracks_selection_and_staff(self):
        draft = BookingDraft()
        draft.toggle_item("Haircut", "base")
        draft.select_staff("stf_a")

        assert not draft.is_empty()
        assert draft.selection.as_dict() == {"Haircut": ["base"]}
        assert draft.staff_id == "stf_a"

    @pytest.mark.parametrize("times,expected_active", [(1, True), (2, False), (3, True)])
    def test_draft_discount_toggle(self, times, expected_active):
        d = Discount(discount_id="dsc_1", title="Ten", percentage=10)
        draft = BookingDraft()
        for _ in range(times):
            draft.apply_discount(d)
        assert (draft.discount.active is not None) is expected_active
