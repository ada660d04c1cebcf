# services/billing.py
from flask import current_app

from core.clients import get_clients
from core.errors import ValidationError, AppError
from domain.models import db, Order
from domain.plans import BILLING_CYCLES, get_plan

DEFAULT_ORDER_PLAN = "pro"


def _checkout_params(order: Order, plan, email=None) -> dict:
    cfg = current_app.config
    app_url = cfg.get("APP_URL", "").rstrip("/")
    params = {
        "mode": "subscription",
        "payment_method_types": ["card"],
        "line_items": [
            {
                "price_data": {
                    "currency": order.currency,
                    "product_data": {"name": plan.name},
                    "recurring": {"interval": "year" if order.cycle == "yearly" else "month"},
                    "unit_amount": order.amount,
                },
                "quantity": 1,
            }
        ],
        "success_url": f"{app_url}/user-portal?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{app_url}/pricing?cancelled=1",
        "client_reference_id": order.id,
        # webhook 에서 주문/플랜을 되짚기 위한 메타데이터
        "subscription_data": {
            "metadata": {"order_id": order.id, "plan_id": order.plan_id, "user_id": order.user_id},
        },
        "metadata": {"order_id": order.id, "plan_id": order.plan_id},
    }
    if email:
        params["customer_email"] = email
    return params


def create_order(user, cycle=None, plan_id=None) -> Order:
    """
    pending 주문 생성 -> Stripe Checkout Session 생성 -> 결제 링크 저장
    """
    cycle = (cycle or "monthly").strip().lower()
    if cycle not in BILLING_CYCLES:
        raise ValidationError("付款週期只能是 monthly 或 yearly。")

    plan = get_plan(plan_id or DEFAULT_ORDER_PLAN)
    if not plan or not plan.is_purchasable:
        raise ValidationError("找不到可訂閱的方案。")

    order = Order(
        user_id=user.id,
        plan_id=plan.id,
        cycle=cycle,
        amount=plan.price_for(cycle),
        currency=current_app.config.get("STRIPE_CURRENCY", "usd"),
        status="pending",
    )
    try:
        db.session.add(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("[ORDER] insert failed uid=%s plan=%s cycle=%s", user.id, plan.id, cycle)
        raise AppError("建立訂單失敗，請稍後再試。")

    checkout = get_clients().billing.create_checkout_session(**_checkout_params(order, plan, user.email))

    order.stripe_link = getattr(checkout, "url", None)
    order.stripe_session_id = getattr(checkout, "id", None)
    db.session.commit()

    if not order.stripe_link:
        current_app.logger.error("[ORDER] checkout session without url order=%s", order.id)
        raise AppError("建立訂單回傳失敗。")

    current_app.logger.info(
        "[ORDER] created order=%s uid=%s plan=%s cycle=%s session=%s",
        order.id, user.id, plan.id, cycle, order.stripe_session_id,
    )
    return order


def latest_order(user_id: str):
    return (
        Order.query
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc())
        .first()
    )
