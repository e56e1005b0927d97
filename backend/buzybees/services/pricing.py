"""
Pricing Service
Turns a selection and an optional discount into a price breakdown
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from buzybees.models.booking import BookedItem, PriceBreakdown
from buzybees.models.catalog import BASE_ITEM_KEY, ServiceCatalog
from buzybees.models.discount import Discount
from buzybees.models.selection import SelectionSet
from buzybees.utils.exceptions import CatalogMismatchError, ValidationError

# Applied after discount, never before
TAX_RATE = Decimal("0.15")


def round_half_up(value: Decimal) -> int:
    """Round to the nearest whole currency unit, .5 going up"""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def validate_discount(discount: Discount) -> None:
    """Refuse percentages outside 0-100"""
    if not 0 <= discount.percentage <= 100:
        raise ValidationError(
            f"Discount percentage must be between 0 and 100, got {discount.percentage}",
            field="percentage"
        )


def booked_items(selection: SelectionSet, catalog: ServiceCatalog) -> list[BookedItem]:
    """
    Resolve every selected (service, item key) pair against the catalog

    Raises CatalogMismatchError for any service or option the catalog
    does not offer.
    """
    items = []
    for service_name, item_key in selection.items():
        service = catalog.get_service(service_name)
        if service is None:
            raise CatalogMismatchError(service_name)

        if item_key == BASE_ITEM_KEY:
            items.append(BookedItem(
                service_name=service.name,
                item_key=item_key,
                name=service.name,
                price=service.base_price,
                duration_minutes=service.base_duration_minutes
            ))
            continue

        option = catalog.get_option(service_name, item_key)
        if option is None:
            raise CatalogMismatchError(service_name, item_key)
        items.append(BookedItem(
            service_name=service.name,
            item_key=item_key,
            name=f"{service.name} - {option.name}",
            price=option.price,
            duration_minutes=option.duration_minutes
        ))
    return items


def breakdown_for_subtotal(subtotal: int, discount: Optional[Discount] = None) -> PriceBreakdown:
    """Apply discount then tax to an already summed subtotal"""
    discount_amount = 0
    if discount is not None:
        validate_discount(discount)
        discount_amount = round_half_up(
            Decimal(subtotal) * Decimal(str(discount.percentage)) / Decimal(100)
        )

    discounted_subtotal = subtotal - discount_amount
    tax_amount = round_half_up(Decimal(discounted_subtotal) * TAX_RATE)

    return PriceBreakdown(
        subtotal=subtotal,
        discount_amount=discount_amount,
        discounted_subtotal=discounted_subtotal,
        tax_amount=tax_amount,
        final_total=discounted_subtotal + tax_amount,
        has_discount=discount is not None
    )


def compute_breakdown(
    selection: SelectionSet,
    catalog: ServiceCatalog,
    discount: Optional[Discount] = None
) -> PriceBreakdown:
    """Price a selection; every selected item contributes independently"""
    subtotal = sum(item.price for item in booked_items(selection, catalog))
    return breakdown_for_subtotal(subtotal, discount)


def total_duration(selection: SelectionSet, catalog: ServiceCatalog) -> int:
    """Sum of durations of every selected item, in minutes"""
    return sum(item.duration_minutes for item in booked_items(selection, catalog))
