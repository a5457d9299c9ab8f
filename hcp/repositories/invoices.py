from typing import List

from hcp.repositories.base import CollectionRepository
from hcp.schemas.enums import AuditAction, EntityType
from hcp.schemas.invoice import Invoice


class InvoiceRepository(CollectionRepository[Invoice]):
    """Partner invoices, newest first. Totals are derived from line items."""

    collection = "invoices"
    entity_type = EntityType.INVOICE
    schema = Invoice
    create_action = AuditAction.INVOICE_CREATED
    prepend_on_create = True
    deletable = True

    def describe_create(self, record: Invoice) -> str:
        return f"Created invoice {record.invoice_number or record.id} for {record.partner_code}"

    def describe_update(self, record: Invoice) -> str:
        return f"Updated invoice {record.invoice_number or record.id} ({record.status.value})"

    def describe_delete(self, record: Invoice) -> str:
        return f"Deleted invoice {record.invoice_number or record.id}"

    async def next_invoice_number(self, year: int) -> str:
        """Next sequential number of the form INV-YYYY-NNN."""
        prefix = f"INV-{year}-"
        highest = 0
        for invoice in await self.get_all():
            number = invoice.invoice_number or ""
            if number.startswith(prefix) and number[len(prefix):].isdigit():
                highest = max(highest, int(number[len(prefix):]))
        return f"{prefix}{highest + 1:03d}"

    async def find_for_period(self, partner_code: str, billing_period: str) -> List[Invoice]:
        """Every invoice of `partner_code` covering `billing_period`, newest first."""
        return [i for i in await self.get_all(partner_code) if i.billing_period == billing_period]
