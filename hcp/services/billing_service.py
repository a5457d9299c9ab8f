"""
Billing runs: draft a partner's invoice for one month from its active agreement.

Per-certification agreements bill one unit per developer of the partner who
passed (and was not flagged suspicious) with a completion date inside the
billing period. Fixed-recurring agreements bill a single unit.
"""
from datetime import date, timedelta
from typing import List, Optional
import logging

from hcp.config import Settings
from hcp.core.errors import Conflict, NotFound
from hcp.repositories import Repositories
from hcp.schemas.developer import DeveloperRecord
from hcp.schemas.enums import Grade, InvoiceStatus, PaymentModel
from hcp.schemas.invoice import Invoice, InvoiceLineItem


logger = logging.getLogger(__name__)


def is_billable(developer: DeveloperRecord, billing_period: str) -> bool:
    if developer.final_grade != Grade.PASS or developer.is_suspicious:
        return False
    if developer.completed_at is None:
        return False
    return developer.completed_at.strftime("%Y-%m") == billing_period


class BillingService:
    def __init__(self, repos: Repositories, config: Settings):
        self.repos = repos
        self.config = config

    async def billable_developers(self, partner_code: str, billing_period: str) -> List[DeveloperRecord]:
        developers = await self.repos.developers.get_all(partner_code)
        return [d for d in developers if is_billable(d, billing_period)]

    async def draft_invoice(
        self,
        partner_code: str,
        billing_period: str,
        actor_id: str = "system",
        issue_date: Optional[date] = None,
    ) -> Invoice:
        """
        Create a Draft invoice for `partner_code` covering `billing_period` (YYYY-MM).

        Raises:
            NotFound: the partner has no active agreement
            Conflict: a non-void invoice already exists for the period
        """
        agreement = await self.repos.agreements.get_active(partner_code)
        if agreement is None:
            raise NotFound(f"No active agreement for partner {partner_code}")

        for existing in await self.repos.invoices.find_for_period(partner_code, billing_period):
            if existing.status != InvoiceStatus.VOID:
                raise Conflict(f"Invoice {existing.invoice_number} already covers {partner_code} {billing_period}")

        if agreement.payment_model == PaymentModel.PER_CERTIFICATION:
            quantity = len(await self.billable_developers(partner_code, billing_period))
            description = f"Certifications completed in {billing_period}"
        else:
            quantity = 1
            description = f"{agreement.billing_cycle.value} fee for {billing_period}"

        issue_date = issue_date or date.today()
        invoice = Invoice(
            invoice_number=await self.repos.invoices.next_invoice_number(issue_date.year),
            partner_code=partner_code,
            billing_period=billing_period,
            issue_date=issue_date,
            due_date=issue_date + timedelta(days=agreement.payment_terms.days),
            currency=agreement.currency,
            items=[InvoiceLineItem(
                description=description,
                quantity=quantity,
                unit_price=agreement.unit_price,
            )],
            tax_rate=self.config.DEFAULT_TAX_RATE,
        )
        logger.info(f"Drafting {invoice.invoice_number} for {partner_code} {billing_period}: {quantity} unit(s)")
        return await self.repos.invoices.create(invoice, actor_id)
