"""
Invoice Model
Invoice content generated from a completed booking
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from buzybees.models.booking import CustomerInfo
from buzybees.models.common import utc_now


class InvoiceLine(BaseModel):
    """Invoice line item"""
    description: str
    amount: int
    duration_minutes: int = 0


class Invoice(BaseModel):
    """Invoice for one booking"""
    invoice_number: str
    booking_id: str
    provider_id: str
    customer: CustomerInfo
    currency: str
    lines: list[InvoiceLine] = Field(default_factory=list)

    subtotal: int
    discount_amount: int = 0
    tax_amount: int
    total: int

    service_date: Optional[str] = None  # YYYY-MM-DD
    issued_at: datetime = Field(default_factory=utc_now)

    def render_text(self) -> str:
        """Plain-text body used for email delivery"""
        rows = [f"Invoice {self.invoice_number}", f"Billed to: {self.customer.name}"]
        if self.service_date:
            rows.append(f"Service date: {self.service_date}")
        rows.append("")
        for line in self.lines:
            rows.append(f"{line.description}: {line.amount} {self.currency}")
        rows.append("")
        rows.append(f"Subtotal: {self.subtotal} {self.currency}")
        if self.discount_amount:
            rows.append(f"Discount: -{self.discount_amount} {self.currency}")
        rows.append(f"Tax: {self.tax_amount} {self.currency}")
        rows.append(f"Total: {self.total} {self.currency}")
        return "\n".join(rows)
