"""Tests for Stripe checkout, portal and webhook handling."""

import hashlib
import hmac
import json
import time
from unittest.mock import MagicMock, patch

import pytest
import stripe

from hpc_club.exceptions import PaymentError
from hpc_club.models.auth import RegisterForm
from hpc_club.models.user import SubscriptionTier
from hpc_club.services.billing import BillingService


def sign(payload: bytes, secret: str = "whsec_test") -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def event(event_type: str, obj: dict) -> bytes:
    return json.dumps({
        "id": "evt_1",
        "object": "event",
        "type": event_type,
        "data": {"object": obj},
    }).encode()


@pytest.fixture
def billing(identity, settings):
    return BillingService(identity, settings)


@pytest.fixture
async def user(identity):
    user, _ = await identity.sign_up(RegisterForm(name="Ana", email="ana@example.com", password="secret1"))
    return user


class TestCheckout:
    async def test_creates_customer_and_session(self, billing, user):
        with patch("stripe.Customer.create", return_value={"id": "cus_1"}) as create_customer, \
                patch("stripe.checkout.Session.create",
                      return_value={"url": "https://checkout.stripe.com/s"}) as create_session:
            url = billing.create_checkout_session(user)

        assert url == "https://checkout.stripe.com/s"
        assert create_customer.call_args.kwargs["email"] == "ana@example.com"
        kwargs = create_session.call_args.kwargs
        assert kwargs["mode"] == "subscription"
        assert kwargs["customer"] == "cus_1"
        assert kwargs["client_reference_id"] == user.id
        assert kwargs["line_items"] == [{"price": "price_pro", "quantity": 1}]
        assert kwargs["api_key"] == "sk_test_123"

    async def test_reuses_linked_customer(self, billing, identity, user):
        await identity.set_subscription_tier(user.id, SubscriptionTier.FREE, "cus_existing")
        with patch("stripe.Customer.create") as create_customer, \
                patch("stripe.checkout.Session.create", return_value={"url": "u"}) as create_session:
            billing.create_checkout_session(user)
        create_customer.assert_not_called()
        assert create_session.call_args.kwargs["customer"] == "cus_existing"

    async def test_stripe_failure(self, billing, identity, user):
        await identity.set_subscription_tier(user.id, SubscriptionTier.FREE, "cus_1")
        with patch("stripe.checkout.Session.create", side_effect=stripe.StripeError("down")):
            with pytest.raises(PaymentError):
                billing.create_checkout_session(user)

    async def test_customer_create_failure(self, billing, user):
        with patch("stripe.Customer.create", side_effect=stripe.StripeError("down")), \
                patch("stripe.checkout.Session.create") as create_session:
            with pytest.raises(PaymentError) as exc:
                billing.create_checkout_session(user)
        assert exc.value.message == "Falha ao iniciar o pagamento."
        create_session.assert_not_called()

    async def test_customer_linked_once(self, billing, identity, user):
        with patch("stripe.Customer.create", return_value={"id": "cus_1"}) as create_customer, \
                patch("stripe.checkout.Session.create", return_value={"url": "u"}) as create_session:
            billing.create_checkout_session(user)
            billing.create_checkout_session(user)

        assert create_customer.call_count == 1
        assert create_session.call_args.kwargs["customer"] == "cus_1"
        record = identity.get_record(user.id)
        assert record.stripe_customer_id == "cus_1"
        assert record.subscription_tier == SubscriptionTier.FREE

    async def test_not_configured(self, identity, settings, user):
        billing = BillingService(identity, settings.model_copy(update={"stripe_secret_key": ""}))
        with pytest.raises(PaymentError) as exc:
            billing.create_checkout_session(user)
        assert exc.value.message == "Pagamentos não configurados."


class TestPortal:
    async def test_looks_up_customer_by_email(self, billing, user):
        with patch("stripe.Customer.list", return_value=MagicMock(data=[{"id": "cus_9"}])) as lookup, \
                patch("stripe.billing_portal.Session.create",
                      return_value={"url": "https://billing.stripe.com/p"}) as create_portal:
            url = billing.create_portal_session(user)
        assert url == "https://billing.stripe.com/p"
        assert lookup.call_args.kwargs["email"] == "ana@example.com"
        assert create_portal.call_args.kwargs["customer"] == "cus_9"

    async def test_no_customer(self, billing, user):
        with patch("stripe.Customer.list", return_value=MagicMock(data=[])):
            with pytest.raises(PaymentError) as exc:
                billing.create_portal_session(user)
        assert "Assinatura não encontrada" in exc.value.message

    async def test_customer_lookup_failure(self, billing, user):
        with patch("stripe.Customer.list", side_effect=stripe.StripeError("down")), \
                patch("stripe.billing_portal.Session.create") as create_portal:
            with pytest.raises(PaymentError) as exc:
                billing.create_portal_session(user)
        assert exc.value.message == "Falha ao abrir o portal de assinatura."
        create_portal.assert_not_called()


class TestWebhook:
    async def test_checkout_completed_upgrades(self, billing, identity, user):
        payload = event("checkout.session.completed", {
            "object": "checkout.session", "client_reference_id": user.id, "customer": "cus_1",
        })
        assert await billing.handle_webhook(payload, sign(payload)) == "checkout.session.completed"
        record = identity.get_record(user.id)
        assert record.subscription_tier == SubscriptionTier.PRO
        assert record.stripe_customer_id == "cus_1"

    async def test_subscription_deleted_downgrades(self, billing, identity, user):
        await identity.set_subscription_tier(user.id, SubscriptionTier.PRO, "cus_1")
        payload = event("customer.subscription.deleted", {"object": "subscription", "customer": "cus_1"})
        await billing.handle_webhook(payload, sign(payload))
        assert identity.get_record(user.id).subscription_tier == SubscriptionTier.FREE

    async def test_unknown_customer_is_ignored(self, billing):
        payload = event("customer.subscription.deleted", {"object": "subscription", "customer": "cus_x"})
        assert await billing.handle_webhook(payload, sign(payload)) == "customer.subscription.deleted"

    async def test_other_events_ignored(self, billing, identity, user):
        payload = event("invoice.paid", {"object": "invoice"})
        assert await billing.handle_webhook(payload, sign(payload)) == "invoice.paid"
        assert identity.get_record(user.id).subscription_tier == SubscriptionTier.FREE

    async def test_bad_signature(self, billing):
        payload = event("checkout.session.completed", {"object": "checkout.session"})
        with pytest.raises(PaymentError):
            await billing.handle_webhook(payload, sign(payload, "whsec_other"))

    async def test_missing_signature(self, billing):
        with pytest.raises(PaymentError) as exc:
            await billing.handle_webhook(b"{}", None)
        assert exc.value.message == "Webhook Error: Missing signature or secret"
