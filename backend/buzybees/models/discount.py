"""
Discount Model
Percentage discount offered by a provider
"""

from typing import Optional
from pydantic import BaseModel, Field

from buzybees.models.common import generate_id


class Discount(BaseModel):
    """Whole-booking percentage discount"""
    discount_id: str = Field(default_factory=lambda: generate_id("dsc"))
    title: str
    percentage: float  # 0-100, checked by the pricing layer
    description: Optional[str] = None


class DiscountSelection:
    """
    At most one active discount per booking composition

    Applying the active discount again switches it off; applying a
    different one replaces it.
    """

    def __init__(self, active: Optional[Discount] = None):
        self._active = active

    @property
    def active(self) -> Optional[Discount]:
        return self._active

    def apply(self, discount: Discount) -> Optional[Discount]:
        """Toggle the discount and return whichever is now active"""
        if self._active is not None and self._active.discount_id == discount.discount_id:
            self._active = None
        else:
            self._active = discount
        return self._active

    def clear(self) -> None:
        self._active = None
