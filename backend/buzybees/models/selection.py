"""
Selection Models
Consumer-side composition of a booking before it is confirmed
"""

from typing import Iterator, Mapping, Iterable, Optional

from buzybees.models.discount import Discount, DiscountSelection


class SelectionSet:
    """
    Service name -> chosen item keys

    An item key is either BASE_ITEM_KEY or a ServiceOption id. A service
    name is only present while at least one of its keys is selected.
    """

    def __init__(self):
        self._items: dict[str, set[str]] = {}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> "SelectionSet":
        selection = cls()
        for service_name, keys in mapping.items():
            keys = set(keys)
            if keys:
                selection._items[service_name] = keys
        return selection

    def toggle_item(self, service_name: str, item_key: str) -> bool:
        """Flip one key; returns True if it is now selected"""
        keys = self._items.setdefault(service_name, set())
        if item_key in keys:
            keys.discard(item_key)
            if not keys:
                del self._items[service_name]
            return False
        keys.add(item_key)
        return True

    def is_empty(self) -> bool:
        return not self._items

    def contains(self, service_name: str, item_key: str) -> bool:
        return item_key in self._items.get(service_name, ())

    def service_names(self) -> list[str]:
        return sorted(self._items)

    def items(self) -> Iterator[tuple[str, str]]:
        """Every selected (service name, item key) pair in a stable order"""
        for service_name in sorted(self._items):
            for item_key in sorted(self._items[service_name]):
                yield service_name, item_key

    def as_dict(self) -> dict[str, list[str]]:
        """Frozen plain copy, as stored on a booking"""
        return {name: sorted(keys) for name, keys in sorted(self._items.items())}

    def copy(self) -> "SelectionSet":
        return SelectionSet.from_mapping(self._items)

    def __len__(self) -> int:
        return sum(len(keys) for keys in self._items.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SelectionSet):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"SelectionSet({self.as_dict()!r})"


class BookingDraft:
    """Explicit in-progress booking composition held by the host"""

    def __init__(
        self,
        selection: Optional[SelectionSet] = None,
        discount: Optional[DiscountSelection] = None,
        staff_id: Optional[str] = None
    ):
        self.selection = selection or SelectionSet()
        self.discount = discount or DiscountSelection()
        self.staff_id = staff_id

    def toggle_item(self, service_name: str, item_key: str) -> bool:
        return self.selection.toggle_item(service_name, item_key)

    def apply_discount(self, discount: Discount) -> Optional[Discount]:
        return self.discount.apply(discount)

    def select_staff(self, staff_id: Optional[str]) -> None:
        self.staff_id = staff_id

    def is_empty(self) -> bool:
        return self.selection.is_empty()
