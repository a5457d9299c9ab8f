from fastapi import APIRouter

from hcp.api.deps import AppSettings, CurrentActor, Repos, Scope
from hcp.schemas.invoice import DraftInvoiceRequest
from hcp.services.billing_service import BillingService


router = APIRouter(tags=["Billing"])


@router.post("/invoices")
async def draft_invoice(
    data: DraftInvoiceRequest,
    repos: Repos,
    config: AppSettings,
    scope: Scope,
    actor: CurrentActor,
):
    """
    Draft the invoice for one partner and billing period (YYYY-MM) from the
    partner's active agreement.
    """
    scope.require_access(data.partner_code)
    invoice = await BillingService(repos, config).draft_invoice(
        data.partner_code,
        data.billing_period,
        actor_id=actor.id,
    )
    return repos.invoices.public(invoice)
