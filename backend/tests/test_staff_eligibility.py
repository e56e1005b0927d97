"""
Staff Eligibility Tests
Union-based filtering of the roster by service assignments
"""

from buzybees.models.selection import SelectionSet
from buzybees.models.staff import ANY_STAFF_ID, StaffMember, any_available_staff, build_roster
from buzybees.services.staff_eligibility import eligible_staff


def ids(members):
    return [m.staff_id for m in members]


class TestRoster:
    """Tests for roster construction"""

    def test_sentinel_first(self, roster):
        built = build_roster(roster)
        assert ids(built) == [ANY_STAFF_ID, "stf_a", "stf_b"]
        assert built[0].is_any
        assert built[0].name == "Any Available"
        assert built[0].specialties == ["All Services"]

    def test_fetched_sentinel_replaced(self, roster):
        fetched = [StaffMember(staff_id=ANY_STAFF_ID, name="Stale"), *roster]
        built = build_roster(fetched)
        assert ids(built) == [ANY_STAFF_ID, "stf_a", "stf_b"]
        assert built[0].name == "Any Available"


class TestEligibleStaff:
    """Tests for eligible_staff"""

    def test_union_across_services(self, roster, catalog):
        selection = SelectionSet.from_mapping({"Haircut": ["base"], "Manicure": ["base"]})
        result = eligible_staff(selection, build_roster(roster), catalog.staff_assignments())
        assert ids(result) == [ANY_STAFF_ID, "stf_a", "stf_b"]

    def test_single_service_filters(self, roster, catalog):
        selection = SelectionSet.from_mapping({"Haircut": ["base"]})
        result = eligible_staff(selection, build_roster(roster), catalog.staff_assignments())
        assert ids(result) == [ANY_STAFF_ID, "stf_a"]

    def test_empty_selection_returns_everyone(self, roster, catalog):
        result = eligible_staff(SelectionSet(), build_roster(roster), catalog.staff_assignments())
        assert ids(result) == [ANY_STAFF_ID, "stf_a", "stf_b"]

    def test_no_assignments_configured_returns_everyone(self, roster, catalog):
        selection = SelectionSet.from_mapping({"Massage": ["base"]})
        result = eligible_staff(selection, build_roster(roster), catalog.staff_assignments())
        assert ids(result) == [ANY_STAFF_ID, "stf_a", "stf_b"]

    def test_unassigned_service_adds_nobody(self, roster, catalog):
        selection = SelectionSet.from_mapping({"Massage": ["base"], "Manicure": ["base"]})
        result = eligible_staff(selection, build_roster(roster), catalog.staff_assignments())
        assert ids(result) == [ANY_STAFF_ID, "stf_b"]

    def test_sentinel_kept_when_nobody_matches(self, roster):
        selection = SelectionSet.from_mapping({"Haircut": ["base"]})
        result = eligible_staff(selection, build_roster(roster), {"Haircut": ["stf_gone"]})
        assert ids(result) == [ANY_STAFF_ID]

    def test_sentinel_added_when_missing_from_roster(self, roster):
        result = eligible_staff(SelectionSet(), roster, {})
        assert result[0].staff_id == ANY_STAFF_ID
        assert ids(result[1:]) == ["stf_a", "stf_b"]

    def test_sentinel_moved_to_front(self, roster):
        result = eligible_staff(SelectionSet(), [*roster, any_available_staff()], {})
        assert ids(result) == [ANY_STAFF_ID, "stf_a", "stf_b"]

    def test_missing_assignment_entries(self, roster):
        """Services absent from the assignment map count as unassigned"""
        selection = SelectionSet.from_mapping({"Haircut": ["base"]})
        result = eligible_staff(selection, build_roster(roster), {"Haircut": None})
        assert ids(result) == [ANY_STAFF_ID, "stf_a", "stf_b"]
