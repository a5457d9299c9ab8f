"""Pydantic schemas for partner invoices."""

from datetime import date, datetime
from typing import List, Optional
import uuid

from pydantic import Field, model_validator

from hcp.schemas.base import CamelSchema, RecordSchema
from hcp.schemas.enums import Currency, InvoiceStatus


def _round_money(value: float) -> float:
    return round(value, 2)


class InvoiceLineItem(CamelSchema):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    description: str = ""
    quantity: float = 0
    unit_price: float = 0
    total: float = 0


class Invoice(RecordSchema):
    """
    Invoice issued by HQ to a partner community.

    When line items are present the line totals, subtotal, tax amount and
    total are derived from them; an invoice without items keeps the amounts
    it was given.
    """
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    invoice_number: str = ""
    partner_code: str = ""
    billing_period: str = ""  # e.g. "2024-10"
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    currency: Currency = Currency.USD
    items: List[InvoiceLineItem] = Field(default_factory=list)
    subtotal: float = 0
    tax_rate: float = 0  # Percentage
    tax_amount: float = 0
    total_amount: float = 0
    status: InvoiceStatus = InvoiceStatus.DRAFT
    notes: str = ""
    public_memo: str = ""
    paid_at: Optional[datetime] = None
    transaction_reference: Optional[str] = None

    @model_validator(mode='after')
    def compute_totals(self) -> 'Invoice':
        if not self.items:
            return self
        subtotal = 0.0
        for item in self.items:
            item.total = _round_money(item.quantity * item.unit_price)
            subtotal += item.total
        self.subtotal = _round_money(subtotal)
        self.tax_amount = _round_money(self.subtotal * self.tax_rate / 100)
        self.total_amount = _round_money(self.subtotal + self.tax_amount)
        return self


class DraftInvoiceRequest(CamelSchema):
    """Body of a billing run for one partner and period."""
    partner_code: str = Field(..., min_length=1)
    billing_period: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
