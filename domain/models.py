# models.py (Stripe + Supabase Auth)
# 사용자 계정은 외부 인증(Supabase)에 있고, 여기서는 user_id(UUID 문자열)만 보관한다.
import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import Index, UniqueConstraint, JSON
from sqlalchemy.dialects.postgresql import JSONB

db = SQLAlchemy()

# PostgreSQL 에서는 JSONB, 테스트(SQLite)에서는 JSON
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow():
    # NOTE: 현재 프로젝트가 naive UTC를 쓰는 전제.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_uuid():
    return str(uuid.uuid4())


# =========================
#   Orders (결제 시도: pending -> paid)
# =========================
class Order(db.Model):
    """
    구독 결제 시도 1건.
    - id 는 Stripe Checkout 의 client_reference_id 로 전달된다.
    - webhook 에서 stripe_customer_id 를 채우며, 이후 Subscription 의 user_id 를
      찾는 유일한 연결고리가 된다.
    """
    __tablename__ = "orders"

    id = db.Column(db.String(36), primary_key=True, default=_new_uuid)
    user_id = db.Column(db.String(64), nullable=False, index=True)

    plan_id = db.Column(db.String(32), nullable=False, default="pro")
    cycle = db.Column(db.String(16), nullable=False, default="monthly")  # monthly / yearly
    amount = db.Column(db.Integer, nullable=False, default=0)  # cent
    currency = db.Column(db.String(3), nullable=False, default="usd")

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)  # pending / paid

    stripe_link = db.Column(db.Text, nullable=True)
    stripe_session_id = db.Column(db.String(255), nullable=True, index=True)
    stripe_customer_id = db.Column(db.String(255), nullable=True, index=True)
    stripe_subscription_id = db.Column(db.String(255), nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_orders_user_created", "user_id", "created_at"),
        Index("idx_orders_customer_created", "stripe_customer_id", "created_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "plan_id": self.plan_id,
            "status": self.status,
            "cycle": self.cycle,
            "amount": self.amount,
            "currency": self.currency,
            "stripe_link": self.stripe_link,
            "stripe_session_id": self.stripe_session_id,
            "stripe_customer_id": self.stripe_customer_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# =========================
#   Subscriptions (webhook 으로만 생성/갱신)
# =========================
class Subscription(db.Model):
    __tablename__ = "subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    # webhook 이 주문보다 먼저 도착하면 잠시 비어 있을 수 있음
    user_id = db.Column(db.String(64), nullable=True, index=True)

    plan_id = db.Column(db.String(32), nullable=False, default="pro")
    status = db.Column(db.String(32), nullable=False, index=True)  # Stripe status 그대로 (active/canceled/past_due/...)
    billing_cycle = db.Column(db.String(16), nullable=False, default="monthly")

    current_period_start = db.Column(db.DateTime, nullable=True)
    current_period_end = db.Column(db.DateTime, nullable=True, index=True)
    cancel_at_period_end = db.Column(db.Boolean, nullable=False, default=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    stripe_subscription_id = db.Column(db.String(255), nullable=False, unique=True, index=True)
    stripe_customer_id = db.Column(db.String(255), nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_sub_user_status_end", "user_id", "status", "current_period_end"),
    )

    def to_dict(self):
        return {
            "status": self.status,
            "plan_id": self.plan_id,
            "billing_cycle": self.billing_cycle,
            "current_period_start": self.current_period_start.isoformat() if self.current_period_start else None,
            "current_period_end": self.current_period_end.isoformat() if self.current_period_end else None,
            "cancel_at_period_end": bool(self.cancel_at_period_end),
            "stripe_subscription_id": self.stripe_subscription_id,
            "stripe_customer_id": self.stripe_customer_id,
        }


# =========================
#    Usage Counters (사용자 x UTC 날짜, 일간)
# =========================
class UsageCounter(db.Model):
    __tablename__ = "usage_counters"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    usage_date = db.Column(db.Date, nullable=False, index=True)

    # 마지막 갱신 시점의 플랜
    plan_id = db.Column(db.String(32), nullable=True)

    mini_used = db.Column(db.Integer, nullable=False, default=0)
    pro_used = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "usage_date", name="uq_usage_counters_user_date"),
    )

    def used_for(self, mode: str) -> int:
        return int((self.mini_used if mode == "mini" else self.pro_used) or 0)


# =========================
#    Usage Events (append-only)
# =========================
class UsageEvent(db.Model):
    __tablename__ = "usage_events"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    plan_id = db.Column(db.String(32), nullable=True)
    mode = db.Column(db.String(16), nullable=False)  # mini / pro
    word_count = db.Column(db.Integer, nullable=False, default=0)
    # "metadata" 는 Declarative 예약어라 속성명만 meta
    meta = db.Column("metadata", JSONType, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("idx_usage_events_user_created", "user_id", "created_at"),
    )


# =========================
#   Webhook Events (Stripe 전달 멱등 로그)
# =========================
class WebhookEvent(db.Model):
    """
    Stripe 는 같은 이벤트를 여러 번 보낼 수 있다.
    - event_id: Stripe event id (UNIQUE)
    - processed: 비즈니스 로직 반영 여부 (실패 시 False 로 남아 재전송 때 다시 처리)
    """
    __tablename__ = "webhook_events"

    id = db.Column(db.Integer, primary_key=True)

    provider = db.Column(db.String(16), nullable=False, default="stripe", index=True)
    event_id = db.Column(db.String(255), nullable=False, unique=True, index=True)
    event_type = db.Column(db.String(64), nullable=True, index=True)

    payload = db.Column(JSONType, nullable=True)

    processed = db.Column(db.Boolean, nullable=False, default=False, index=True)
    processed_at = db.Column(db.DateTime, nullable=True)
    received_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("idx_wh_type_received", "event_type", "received_at"),
    )
