# services/stripe_webhook.py
"""
Stripe webhook -> 로컬 Order / Subscription 동기화.

    checkout.session.completed            -> Order paid + customer/subscription id 연결
    customer.subscription.created/updated/deleted -> Subscription upsert
    invoice.payment_succeeded/failed      -> 구독 전체를 다시 조회 후 upsert

upsert 는 stripe_subscription_id 기준이라 재전송/순서 뒤바뀜에도 같은 상태로 수렴한다
(필드는 마지막 반영 우선).
"""
from typing import Optional

from flask import current_app

from core.clients import get_clients
from domain.models import db, Order, Subscription, WebhookEvent, utcnow
from services.stripe_client import stripe_id
from utils.time_utils import from_unix

SUPPORTED_EVENTS = {
    "checkout.session.completed",
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "invoice.payment_succeeded",
    "invoice.payment_failed",
}

DEFAULT_SUBSCRIPTION_PLAN = "pro"


def handle_event(event: dict) -> bool:
    """
    검증된 이벤트 1건 처리. 반영했으면 True, 무시/중복이면 False.
    예외는 그대로 올려서 라우트가 500 (Stripe 재전송) 으로 응답하게 한다.
    """
    event_type = event.get("type")
    if event_type not in SUPPORTED_EVENTS:
        current_app.logger.info("[WEBHOOK] ignored type=%s id=%s", event_type, event.get("id"))
        return False

    log = _log_event(event)
    if log is not None and log.processed:
        current_app.logger.info("[WEBHOOK] duplicate id=%s type=%s", log.event_id, event_type)
        return False

    obj = (event.get("data") or {}).get("object") or {}

    if event_type == "checkout.session.completed":
        mark_order_paid(obj)
    elif event_type.startswith("customer.subscription."):
        upsert_subscription(obj)
    else:
        sub_id = _invoice_subscription_id(obj)
        if sub_id:
            upsert_subscription(get_clients().billing.retrieve_subscription(sub_id))
        else:
            current_app.logger.info("[WEBHOOK] invoice without subscription id=%s", obj.get("id"))

    if log is not None:
        log.processed = True
        log.processed_at = utcnow()
    db.session.commit()
    current_app.logger.info("[WEBHOOK] processed id=%s type=%s", event.get("id"), event_type)
    return True


def _log_event(event: dict) -> Optional[WebhookEvent]:
    event_id = event.get("id")
    if not event_id:
        return None
    log = WebhookEvent.query.filter_by(event_id=event_id).first()
    if log is None:
        log = WebhookEvent(
            provider="stripe",
            event_id=event_id,
            event_type=event.get("type"),
            payload=event,
        )
        db.session.add(log)
        db.session.flush()
    return log


# -------------------- checkout --------------------

def mark_order_paid(session_obj: dict) -> Optional[Order]:
    order_id = session_obj.get("client_reference_id")
    if not order_id:
        return None

    order = db.session.get(Order, order_id)
    if not order:
        current_app.logger.warning("[WEBHOOK] order not found id=%s session=%s", order_id, session_obj.get("id"))
        return None

    order.status = "paid"
    order.stripe_session_id = session_obj.get("id") or order.stripe_session_id
    customer_id = stripe_id(session_obj.get("customer"))
    subscription_id = stripe_id(session_obj.get("subscription"))
    if customer_id:
        order.stripe_customer_id = customer_id
    if subscription_id:
        order.stripe_subscription_id = subscription_id
        # 구독 이벤트가 먼저 와서 user_id 없이 저장된 경우 채워준다
        sub = Subscription.query.filter_by(stripe_subscription_id=subscription_id).first()
        if sub and not sub.user_id:
            sub.user_id = order.user_id
    return order


# -------------------- subscription --------------------

def _first_item(sub: dict) -> dict:
    items = (sub.get("items") or {}).get("data") or []
    return items[0] if items else {}


def _billing_cycle(sub: dict) -> str:
    price = _first_item(sub).get("price") or {}
    interval = (price.get("recurring") or {}).get("interval")
    return "yearly" if interval == "year" else "monthly"


def _period(sub: dict, key: str):
    # 최신 API 버전에서는 기간이 subscription item 으로 옮겨졌다
    value = sub.get(key)
    if value is None:
        value = _first_item(sub).get(key)
    return from_unix(value)


def _invoice_subscription_id(invoice: dict) -> Optional[str]:
    sub_id = stripe_id(invoice.get("subscription"))
    if sub_id:
        return sub_id
    details = ((invoice.get("parent") or {}).get("subscription_details") or {})
    return stripe_id(details.get("subscription"))


def _resolve_owner(customer_id: Optional[str], metadata: dict):
    """
    이벤트에는 로컬 user id 가 없으므로 customer id -> 최신 Order -> user_id 로 찾는다.
    checkout 완료보다 구독 이벤트가 먼저 오면 metadata.order_id 로 찾는다.
    (주문을 못 찾으면 호출 측에서 metadata.user_id 사용)
    """
    order = None
    if customer_id:
        order = (
            Order.query
            .filter(Order.stripe_customer_id == customer_id)
            .order_by(Order.created_at.desc())
            .first()
        )
    if order is None and metadata.get("order_id"):
        order = db.session.get(Order, metadata["order_id"])
    return order


def upsert_subscription(sub: dict) -> Subscription:
    sub_id = sub["id"]
    customer_id = stripe_id(sub.get("customer"))
    metadata = sub.get("metadata") or {}

    order = _resolve_owner(customer_id, metadata)
    user_id = order.user_id if order else (metadata.get("user_id") or None)
    plan_id = metadata.get("plan_id") or (order.plan_id if order else None) or DEFAULT_SUBSCRIPTION_PLAN

    cancelled_ts = sub.get("canceled_at") or sub.get("cancel_at")
    fields = {
        "plan_id": plan_id,
        "status": sub.get("status") or "incomplete",
        "billing_cycle": _billing_cycle(sub),
        "current_period_start": _period(sub, "current_period_start"),
        "current_period_end": _period(sub, "current_period_end"),
        "cancel_at_period_end": bool(sub.get("cancel_at_period_end")),
        "cancelled_at": from_unix(cancelled_ts),
        "stripe_customer_id": customer_id,
    }

    row = Subscription.query.filter_by(stripe_subscription_id=sub_id).first()
    if row is None:
        row = Subscription(stripe_subscription_id=sub_id, user_id=user_id, **fields)
        db.session.add(row)
    else:
        for k, v in fields.items():
            setattr(row, k, v)
        # 이미 알고 있는 user_id 를 None 으로 덮지 않는다
        if user_id:
            row.user_id = user_id

    if not row.user_id:
        current_app.logger.warning("[WEBHOOK] subscription has no user_id yet sub=%s customer=%s", sub_id, customer_id)

    db.session.flush()
    return row


def latest_subscription(user_id: str) -> Optional[Subscription]:
    return (
        Subscription.query
        .filter(Subscription.user_id == user_id)
        .order_by(Subscription.created_at.desc())
        .first()
    )
