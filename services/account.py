# services/account.py
from auth.entitlements import resolve_active_plan
from auth.quota import get_today_counter, usage_snapshot
from services.billing import latest_order
from services.stripe_webhook import latest_subscription
from utils.time_utils import utcnow_naive, to_utc_naive, usage_day


def build_usage_payload(user_id: str, now=None) -> dict:
    now = to_utc_naive(now) or utcnow_naive()
    plan = resolve_active_plan(user_id, now)
    day = usage_day(now)
    counter = get_today_counter(user_id, day)

    usage = {"date": day.isoformat()}
    usage.update(usage_snapshot(plan, counter))
    return {"plan": plan.to_dict(), "usage": usage}


def build_account_summary(user_id: str, now=None) -> dict:
    payload = build_usage_payload(user_id, now)

    sub = latest_subscription(user_id)
    order = latest_order(user_id)
    payload["subscription"] = sub.to_dict() if sub else None
    payload["latestOrder"] = order.to_dict() if order else None
    return payload
