"""Stripe checkout/portal sessions and the subscription webhook."""

import json

import stripe
import structlog

from hpc_club.config import Settings
from hpc_club.exceptions import PaymentError
from hpc_club.identity.service import IdentityService
from hpc_club.models.user import SubscriptionTier, User

logger = structlog.get_logger()

CHECKOUT_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"


class BillingService:
    """Creates payment-provider sessions and applies webhook events to accounts.

    Args:
        identity: Identity service, used to read and update subscription state.
        settings: Stripe keys, price and redirect URLs.
    """

    def __init__(self, identity: IdentityService, settings: Settings):
        self.identity = identity
        self.settings = settings

    def _require_key(self) -> str:
        if not self.settings.stripe_secret_key:
            raise PaymentError("Pagamentos não configurados.")
        return self.settings.stripe_secret_key

    def _get_or_create_customer(self, user: User, api_key: str) -> str:
        """Linked customer id, creating and linking one on first checkout."""
        record = self.identity.get_record(user.id)
        if record.stripe_customer_id:
            return record.stripe_customer_id
        customer = stripe.Customer.create(
            email=user.email,
            name=user.name,
            metadata={"hpc_user_id": user.id},
            api_key=api_key,
        )
        self.identity.link_customer(user.id, customer["id"])
        logger.info("stripe_customer_created", user_id=user.id, customer_id=customer["id"])
        return customer["id"]

    def create_checkout_session(self, user: User) -> str:
        """Start a Pro subscription checkout. Returns the redirect URL."""
        api_key = self._require_key()
        if not self.settings.stripe_price_pro:
            raise PaymentError("Plano Pro não configurado.")
        try:
            customer_id = self._get_or_create_customer(user, api_key)
            session = stripe.checkout.Session.create(
                mode="subscription",
                customer=customer_id,
                client_reference_id=user.id,
                line_items=[{"price": self.settings.stripe_price_pro, "quantity": 1}],
                success_url=self.settings.checkout_success_url,
                cancel_url=self.settings.checkout_cancel_url,
                allow_promotion_codes=True,
                api_key=api_key,
            )
        except stripe.StripeError as e:
            logger.error("stripe_checkout_failed", user_id=user.id, error=str(e))
            raise PaymentError("Falha ao iniciar o pagamento.")
        url = session["url"]
        if not url:
            raise PaymentError("O provedor de pagamento não retornou a URL de checkout.")
        logger.info("checkout_session_created", user_id=user.id)
        return url

    def create_portal_session(self, user: User) -> str:
        """Billing-portal URL for managing an existing subscription."""
        api_key = self._require_key()
        customer_id = self.identity.get_record(user.id).stripe_customer_id
        try:
            if not customer_id:
                logger.info("stripe_customer_lookup_by_email", user_id=user.id)
                customers = stripe.Customer.list(email=user.email, limit=1, api_key=api_key)
                if not customers.data:
                    raise PaymentError(
                        "Assinatura não encontrada. Por favor, entre em contato com o suporte."
                    )
                customer_id = customers.data[0]["id"]
            session = stripe.billing_portal.Session.create(
                customer=customer_id,
                return_url=self.settings.portal_return_url,
                api_key=api_key,
            )
        except stripe.StripeError as e:
            logger.error("stripe_portal_failed", user_id=user.id, error=str(e))
            raise PaymentError("Falha ao abrir o portal de assinatura.")
        return session["url"]

    async def handle_webhook(self, payload: bytes, signature: str | None) -> str:
        """Verify and apply a webhook event. Returns the event type."""
        if not signature or not self.settings.stripe_webhook_secret:
            raise PaymentError("Webhook Error: Missing signature or secret")
        try:
            stripe.Webhook.construct_event(payload, signature, self.settings.stripe_webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("stripe_webhook_rejected", error=str(e))
            raise PaymentError(f"Webhook Error: {e}")

        event = json.loads(payload)
        event_type = event.get("type", "")
        obj = (event.get("data") or {}).get("object") or {}

        if event_type == CHECKOUT_COMPLETED:
            user_id = obj.get("client_reference_id")
            if not user_id:
                logger.warning("checkout_without_reference", event_id=event.get("id"))
                return event_type
            await self.identity.set_subscription_tier(
                user_id, SubscriptionTier.PRO, stripe_customer_id=obj.get("customer")
            )
            logger.info("payment_succeeded", user_id=user_id)
        elif event_type == SUBSCRIPTION_DELETED:
            customer_id = obj.get("customer") or ""
            record = self.identity.find_by_customer(customer_id) if customer_id else None
            if record is None:
                logger.warning("unlinked_customer", customer_id=customer_id)
                return event_type
            await self.identity.set_subscription_tier(record.id, SubscriptionTier.FREE)
        else:
            logger.debug("stripe_event_ignored", event_type=event_type)
        return event_type
