"""Billing routes: checkout, customer portal and the Stripe webhook."""

from fastapi import APIRouter, Depends, Header, Request

from hpc_club.api.deps import current_user, get_billing
from hpc_club.models.user import User
from hpc_club.services.billing import BillingService

router = APIRouter(prefix="/api/billing")


@router.post("/checkout")
async def create_checkout(
    user: User = Depends(current_user),
    billing: BillingService = Depends(get_billing),
) -> dict:
    return {"url": billing.create_checkout_session(user)}


@router.post("/portal")
async def create_portal(
    user: User = Depends(current_user),
    billing: BillingService = Depends(get_billing),
) -> dict:
    return {"url": billing.create_portal_session(user)}


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
    billing: BillingService = Depends(get_billing),
) -> dict:
    payload = await request.body()
    event_type = await billing.handle_webhook(payload, stripe_signature)
    return {"received": True, "type": event_type}
