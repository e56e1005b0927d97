"""
Invoice Service
Invoice generation, dispatch tracking and SendGrid delivery
"""

import html
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional
import httpx

from buzybees.config import get_settings
from buzybees.models.booking import Booking
from buzybees.models.invoice import Invoice, InvoiceLine
from buzybees.utils.exceptions import ExternalStoreError, ValidationError

logger = logging.getLogger(__name__)


class InvoiceDispatchRecord:
    """
    Booking ids whose invoice has been sent at least once

    Membership only ever grows.
    """

    def __init__(self, booking_ids: Iterable[str] = ()):
        self._ids: set[str] = set(booking_ids)

    def add(self, booking_id: str) -> bool:
        """Record a send; returns True on the first send for this booking"""
        is_new = booking_id not in self._ids
        self._ids.add(booking_id)
        return is_new

    def merge(self, booking_ids: Iterable[str]) -> None:
        self._ids.update(booking_ids)

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    def __contains__(self, booking_id: object) -> bool:
        return booking_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)


def invoice_number_for(booking_id: str) -> str:
    """INV- followed by the random part of the booking id"""
    return f"INV-{booking_id.split('_')[-1].upper()}"


def generate_invoice(booking: Booking, currency: Optional[str] = None) -> Invoice:
    """Build invoice content from a booking's frozen items and price"""
    return Invoice(
        invoice_number=invoice_number_for(booking.booking_id),
        booking_id=booking.booking_id,
        provider_id=booking.provider_id,
        customer=booking.customer,
        currency=currency or get_settings().CURRENCY,
        lines=[
            InvoiceLine(
                description=item.name,
                amount=item.price,
                duration_minutes=item.duration_minutes
            )
            for item in booking.items
        ],
        subtotal=booking.price.subtotal,
        discount_amount=booking.price.discount_amount,
        tax_amount=booking.price.tax_amount,
        total=booking.price.final_total,
        service_date=booking.booking_date.isoformat() if booking.booking_date else None
    )


class InvoiceDelivery(ABC):
    """Delivers invoice content to the customer"""

    @abstractmethod
    async def deliver(self, invoice: Invoice) -> None:
        """Send the invoice; raise ExternalStoreError if it did not go out"""
        raise NotImplementedError


class EmailInvoiceDelivery(InvoiceDelivery):
    """SendGrid email delivery"""

    SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"

    def __init__(self, api_key: Optional[str] = None):
        settings = get_settings()
        self.api_key = api_key or settings.SENDGRID_API_KEY
        self.from_email = settings.SENDGRID_FROM_EMAIL
        self.from_name = settings.SENDGRID_FROM_NAME

    @property
    def is_configured(self) -> bool:
        """Check if SendGrid is configured"""
        return bool(self.api_key)

    def build_payload(self, invoice: Invoice) -> dict:
        text = invoice.render_text()
        html_body = "<br>".join(html.escape(line) for line in text.splitlines())
        return {
            "personalizations": [{
                "to": [{"email": invoice.customer.email, "name": invoice.customer.name}]
            }],
            "from": {
                "email": self.from_email,
                "name": self.from_name
            },
            "subject": f"Your invoice {invoice.invoice_number}",
            "content": [
                {"type": "text/plain", "value": text},
                {"type": "text/html", "value": html_body}
            ]
        }

    async def deliver(self, invoice: Invoice) -> None:
        if not invoice.customer.email:
            raise ValidationError(
                f"Booking {invoice.booking_id} has no customer email to send the invoice to",
                field="customer.email"
            )
        if not self.is_configured:
            logger.warning("SendGrid not configured, invoice not delivered")
            raise ExternalStoreError("deliver_invoice", "Email service not configured")

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.SENDGRID_URL,
                    json=self.build_payload(invoice),
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json"
                    },
                    timeout=30.0
                )
        except httpx.HTTPError as e:
            logger.error(f"SendGrid request failed: {e}")
            raise ExternalStoreError("deliver_invoice", "Email request failed") from e

        if response.status_code not in (200, 201, 202):
            try:
                errors = response.json().get("errors", [])
                error_msg = errors[0].get("message") if errors else "Unknown error"
            except ValueError:
                error_msg = f"HTTP {response.status_code}"
            logger.error(f"SendGrid error: {error_msg}")
            raise ExternalStoreError("deliver_invoice", f"Email delivery failed: {error_msg}")

        logger.info(
            f"Invoice {invoice.invoice_number} emailed: {response.headers.get('X-Message-Id')}"
        )
