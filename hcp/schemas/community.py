"""
Pydantic schemas for partner communities.

This module defines the records scoped to (or describing) a partner code:
- Agreements (contract and payment terms)
- Community events
- Outreach campaigns
- Registry entries (the official list of partner codes)
"""

from datetime import date, datetime
from typing import List, Optional
import datetime as dt
import uuid

from pydantic import Field

from hcp.schemas.base import RecordSchema
from hcp.schemas.enums import (
    BillingCycle,
    CampaignStatus,
    Currency,
    EventFormat,
    PaymentMethod,
    PaymentModel,
    PaymentTerms,
)


def _new_id() -> str:
    return uuid.uuid4().hex


class CommunityAgreement(RecordSchema):
    """Commercial agreement between HQ and a partner community."""
    id: str = Field(default_factory=_new_id)
    partner_code: str = ""
    partner_name: str = ""
    contact_name: str = ""
    contact_email: str = ""
    assigned_admin_id: Optional[str] = None
    billing_address: str = ""
    tax_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True
    payment_model: PaymentModel = PaymentModel.PER_CERTIFICATION
    unit_price: float = 0  # Price per certification, or the fixed amount
    currency: Currency = Currency.USD
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    preferred_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    payment_terms: PaymentTerms = PaymentTerms.NET_30
    wallet_address: Optional[str] = None
    bank_details: Optional[str] = None
    description: str = ""
    documents: List[str] = Field(default_factory=list)
    last_updated: Optional[datetime] = None

    def covers(self, day: date) -> bool:
        """Whether `day` falls inside the agreement's validity window."""
        if self.start_date and day < self.start_date:
            return False
        if self.end_date and day > self.end_date:
            return False
        return True


class CommunityEvent(RecordSchema):
    id: str = Field(default_factory=_new_id)
    title: str = ""
    objective: str = ""
    date: Optional[dt.date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    format: EventFormat = EventFormat.ONLINE
    meeting_link: Optional[str] = None
    location: str = ""
    partner_code: str = ""
    facilitators: List[str] = Field(default_factory=list)
    invited_count: int = 0
    rsvped_count: int = 0
    checked_in_count: int = 0


class OutreachCampaign(RecordSchema):
    id: str = Field(default_factory=_new_id)
    name: str = ""
    audience_size: int = 0
    sent_count: int = 0
    status: CampaignStatus = CampaignStatus.DRAFT
    sent_at: Optional[datetime] = None
    template_id: str = ""


class CommunityMasterRecord(RecordSchema):
    """Registry entry: the canonical partner code and its community."""
    code: str
    name: str = ""
    region: str = ""
    manager_email: Optional[str] = None
