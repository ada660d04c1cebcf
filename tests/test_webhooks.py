"""
POST /webhooks/billing

Payloads are signed locally with the test webhook secret so the real
stripe.Webhook.construct_event verification path runs.
"""
import time

import pytest

from domain.models import db, Order, Subscription, WebhookEvent
from auth.entitlements import resolve_active_plan
from utils.time_utils import from_unix

from app import create_app
from conftest import TestConfig, make_order, signed_webhook

NOW = int(time.time())
PERIOD_START = NOW - 3600
PERIOD_END = NOW + 30 * 24 * 3600


def _event(event_type, obj, event_id="evt_1"):
    return {"id": event_id, "object": "event", "type": event_type, "data": {"object": obj}}


def _subscription(sub_id="sub_1", customer="cus_1", status="active", interval="month", metadata=None, **extra):
    obj = {
        "id": sub_id,
        "object": "subscription",
        "customer": customer,
        "status": status,
        "current_period_start": PERIOD_START,
        "current_period_end": PERIOD_END,
        "cancel_at_period_end": False,
        "canceled_at": None,
        "metadata": metadata or {},
        "items": {"object": "list", "data": [{"id": "si_1", "price": {"recurring": {"interval": interval}}}]},
    }
    obj.update(extra)
    return obj


def _send(client, event):
    payload, headers = signed_webhook(event)
    return client.post("/webhooks/billing", data=payload, headers=headers)


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

class TestVerification:

    def test_missing_signature_is_400(self, client, app):
        resp = client.post("/webhooks/billing", json=_event("customer.subscription.created", _subscription()))
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Signature required"}
        assert Subscription.query.count() == 0

    def test_bad_signature_is_400(self, client, app):
        payload, _ = signed_webhook(_event("customer.subscription.created", _subscription()))
        resp = client.post(
            "/webhooks/billing",
            data=payload,
            headers={"Stripe-Signature": f"t={NOW},v1=deadbeef"},
        )
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Invalid signature"}
        assert Subscription.query.count() == 0

    def test_wrong_secret_is_400(self, client, app):
        payload, headers = signed_webhook(_event("customer.subscription.created", _subscription()), secret="whsec_other")
        resp = client.post("/webhooks/billing", data=payload, headers=headers)
        assert resp.status_code == 400

    def test_missing_secret_config_is_400(self, client, app, clients):
        clients.billing.webhook_secret = ""
        resp = _send(client, _event("customer.subscription.created", _subscription()))
        assert resp.status_code == 400

    def test_unsupported_event_acknowledged(self, client, app):
        resp = _send(client, _event("customer.created", {"id": "cus_1"}))
        assert resp.status_code == 200
        assert resp.get_json() == {"received": True}
        assert WebhookEvent.query.count() == 0


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------

class TestCheckoutCompleted:

    def test_order_marked_paid(self, client, app):
        order = make_order("user-1")
        resp = _send(client, _event("checkout.session.completed", {
            "id": "cs_test_1",
            "object": "checkout.session",
            "client_reference_id": order.id,
            "customer": "cus_1",
            "subscription": "sub_1",
        }))
        assert resp.status_code == 200

        order = db.session.get(Order, order.id)
        assert order.status == "paid"
        assert order.stripe_session_id == "cs_test_1"
        assert order.stripe_customer_id == "cus_1"
        assert order.stripe_subscription_id == "sub_1"

        log = WebhookEvent.query.one()
        assert log.processed is True
        assert log.event_type == "checkout.session.completed"

    def test_unknown_order_is_ignored(self, client, app):
        resp = _send(client, _event("checkout.session.completed", {
            "id": "cs_test_1", "client_reference_id": "missing", "customer": "cus_1",
        }))
        assert resp.status_code == 200
        assert Order.query.count() == 0

    def test_backfills_subscription_owner(self, client, app):
        order = make_order("user-1")
        # 구독 이벤트가 먼저 도착 (연결 정보 없음)
        _send(client, _event("customer.subscription.created", _subscription(), event_id="evt_sub"))
        assert Subscription.query.one().user_id is None

        _send(client, _event("checkout.session.completed", {
            "id": "cs_test_1", "client_reference_id": order.id, "customer": "cus_1", "subscription": "sub_1",
        }, event_id="evt_checkout"))
        assert Subscription.query.one().user_id == "user-1"


# ---------------------------------------------------------------------------
# Subscription lifecycle
# ---------------------------------------------------------------------------

class TestSubscriptionEvents:

    def test_created_resolves_owner_by_customer(self, client, app):
        make_order("user-1", plan_id="basic", stripe_customer_id="cus_1")
        resp = _send(client, _event("customer.subscription.created", _subscription(interval="year")))
        assert resp.status_code == 200

        sub = Subscription.query.one()
        assert sub.user_id == "user-1"
        assert sub.plan_id == "basic"
        assert sub.status == "active"
        assert sub.billing_cycle == "yearly"
        assert sub.current_period_start == from_unix(PERIOD_START)
        assert sub.current_period_end == from_unix(PERIOD_END)
        assert resolve_active_plan("user-1").id == "basic"

    def test_metadata_order_id_fallback(self, client, app):
        order = make_order("user-2", plan_id="standard")
        _send(client, _event(
            "customer.subscription.created",
            _subscription(customer="cus_new", metadata={"order_id": order.id}),
        ))
        sub = Subscription.query.one()
        assert sub.user_id == "user-2"
        assert sub.plan_id == "standard"

    def test_metadata_plan_id_wins(self, client, app):
        make_order("user-1", plan_id="basic", stripe_customer_id="cus_1")
        _send(client, _event("customer.subscription.created", _subscription(metadata={"plan_id": "premium"})))
        assert Subscription.query.one().plan_id == "premium"

    def test_default_plan_is_pro(self, client, app):
        _send(client, _event("customer.subscription.created", _subscription(customer="cus_unknown")))
        sub = Subscription.query.one()
        assert sub.plan_id == "pro"
        assert sub.user_id is None

    def test_updated_keeps_single_row_and_owner(self, client, app):
        make_order("user-1", stripe_customer_id="cus_1")
        _send(client, _event("customer.subscription.created", _subscription(), event_id="evt_1"))

        Order.query.delete()
        resp = _send(client, _event(
            "customer.subscription.updated",
            _subscription(status="past_due", cancel_at_period_end=True),
            event_id="evt_2",
        ))
        assert resp.status_code == 200

        sub = Subscription.query.one()
        assert sub.status == "past_due"
        assert sub.cancel_at_period_end is True
        # 주문을 못 찾아도 기존 user_id 는 유지
        assert sub.user_id == "user-1"

    def test_deleted_marks_canceled(self, client, app):
        make_order("user-1", plan_id="basic", stripe_customer_id="cus_1")
        _send(client, _event("customer.subscription.created", _subscription(), event_id="evt_1"))
        _send(client, _event(
            "customer.subscription.deleted",
            _subscription(status="canceled", canceled_at=NOW),
            event_id="evt_2",
        ))

        sub = Subscription.query.one()
        assert sub.status == "canceled"
        assert sub.cancelled_at == from_unix(NOW)
        assert resolve_active_plan("user-1").id == "free"

    def test_periods_on_subscription_items(self, client, app):
        obj = _subscription()
        del obj["current_period_start"], obj["current_period_end"]
        obj["items"]["data"][0].update(current_period_start=PERIOD_START, current_period_end=PERIOD_END)

        _send(client, _event("customer.subscription.created", obj))
        assert Subscription.query.one().current_period_end == from_unix(PERIOD_END)


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------

class TestInvoiceEvents:

    def test_payment_succeeded_refetches_subscription(self, client, app, clients):
        make_order("user-1", plan_id="standard", stripe_customer_id="cus_1")
        clients.billing.subscriptions["sub_1"] = _subscription()

        resp = _send(client, _event("invoice.payment_succeeded", {
            "id": "in_1", "object": "invoice", "customer": "cus_1", "subscription": "sub_1",
        }))
        assert resp.status_code == 200
        sub = Subscription.query.one()
        assert (sub.user_id, sub.plan_id, sub.status) == ("user-1", "standard", "active")

    def test_payment_failed_with_parent_subscription_details(self, client, app, clients):
        make_order("user-1", stripe_customer_id="cus_1")
        clients.billing.subscriptions["sub_1"] = _subscription(status="past_due")

        _send(client, _event("invoice.payment_failed", {
            "id": "in_2",
            "object": "invoice",
            "customer": "cus_1",
            "parent": {"subscription_details": {"subscription": "sub_1"}},
        }))
        assert Subscription.query.one().status == "past_due"

    def test_invoice_without_subscription_is_noop(self, client, app):
        resp = _send(client, _event("invoice.payment_succeeded", {"id": "in_3", "customer": "cus_1"}))
        assert resp.status_code == 200
        assert Subscription.query.count() == 0


# ---------------------------------------------------------------------------
# Replays and failures
# ---------------------------------------------------------------------------

class TestDeliverySemantics:

    def test_replayed_event_is_not_reprocessed(self, client, app):
        make_order("user-1", stripe_customer_id="cus_1")
        event = _event("customer.subscription.created", _subscription())
        _send(client, event)

        sub = Subscription.query.one()
        sub.status = "canceled"
        db.session.commit()

        resp = _send(client, event)
        assert resp.status_code == 200
        assert Subscription.query.one().status == "canceled"
        assert WebhookEvent.query.count() == 1

    def test_out_of_order_delivery_converges(self, client, app):
        make_order("user-1", stripe_customer_id="cus_1")
        _send(client, _event("customer.subscription.updated", _subscription(status="active"), event_id="evt_2"))
        _send(client, _event("customer.subscription.created", _subscription(status="incomplete"), event_id="evt_1"))
        assert Subscription.query.count() == 1

    def test_processing_failure_is_500_and_retryable(self, client, app, clients):
        make_order("user-1", stripe_customer_id="cus_1")
        event = _event("invoice.payment_succeeded", {"id": "in_1", "subscription": "sub_missing"})

        resp = _send(client, event)
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Processing failed"}
        assert WebhookEvent.query.count() == 0

        clients.billing.subscriptions["sub_missing"] = _subscription(sub_id="sub_missing")
        assert _send(client, event).status_code == 200
        assert Subscription.query.one().stripe_subscription_id == "sub_missing"


def test_metadata_user_id_used_when_no_order(client, app):
    _send(client, _event(
        "customer.subscription.created",
        _subscription(customer="cus_x", metadata={"user_id": "user-7", "plan_id": "basic"}),
    ))
    sub = Subscription.query.one()
    assert (sub.user_id, sub.plan_id) == ("user-7", "basic")


def test_replaying_updated_event_twice_is_stable(client, app):
    make_order("user-1", stripe_customer_id="cus_1")
    event = _event("customer.subscription.updated", _subscription(status="active"), event_id="evt_upd")
    _send(client, event)
    first = Subscription.query.one().to_dict()
    _send(client, event)
    assert Subscription.query.one().to_dict() == first


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------

class LimitedConfig(TestConfig):
    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = "3 per hour"


@pytest.fixture
def limited_client(clients):
    app = create_app(LimitedConfig, clients=clients)
    with app.app_context():
        db.create_all()
        yield app.test_client()
        db.session.remove()
        db.drop_all()


class TestRateLimitExemption:

    def test_signed_deliveries_are_never_throttled(self, limited_client):
        make_order("user-1", stripe_customer_id="cus_1")
        codes = [
            _send(limited_client, _event("customer.subscription.updated", _subscription(), event_id=f"evt_{i}")).status_code
            for i in range(6)
        ]
        assert codes == [200] * 6
        assert WebhookEvent.query.count() == 6

    def test_health_is_not_throttled(self, limited_client):
        assert [limited_client.get("/health").status_code for _ in range(5)] == [200] * 5

    def test_default_limit_still_applies_to_user_endpoints(self, limited_client, auth_headers):
        codes = [limited_client.get("/usage", headers=auth_headers).status_code for _ in range(4)]
        assert codes == [200, 200, 200, 429]
