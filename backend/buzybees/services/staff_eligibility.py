"""
Staff Eligibility
Which roster members can be picked for the current selection
"""

import logging
from typing import Iterable, Mapping, Optional, Sequence

from buzybees.models.selection import SelectionSet
from buzybees.models.staff import StaffMember, any_available_staff

logger = logging.getLogger(__name__)


def eligible_staff(
    selection: SelectionSet,
    roster: Iterable[StaffMember],
    catalog_assignments: Mapping[str, Optional[Sequence[str]]]
) -> list[StaffMember]:
    """
    Filter the roster by the staff assigned to the selected services

    Assigned staff are unioned across the selected services. Services
    without explicit assignments add nobody; if none of the selected
    services has any, the whole roster is eligible. The "Any Available"
    sentinel is always returned first.
    """
    sentinel = None
    members = []
    for member in roster:
        if member.is_any:
            sentinel = sentinel or member
        else:
            members.append(member)
    sentinel = sentinel or any_available_staff()

    if selection.is_empty():
        return [sentinel] + members

    eligible_ids: set[str] = set()
    for service_name in selection.service_names():
        eligible_ids.update(str(i) for i in (catalog_assignments.get(service_name) or ()))

    if not eligible_ids:
        return [sentinel] + members

    filtered = [m for m in members if m.staff_id in eligible_ids]
    logger.debug(
        f"Eligible staff for {selection.service_names()}: "
        f"{[m.staff_id for m in filtered]}"
    )
    return [sentinel] + filtered
