from typing import Optional

from flask import g, session, request, current_app

from core.clients import get_clients
from core.http_utils import bearer_token
from domain.models import Subscription
from domain.plans import PlanDefinition, get_plan, FALLBACK_PLAN
from services.supabase_auth import AuthUser
from utils.time_utils import utcnow_naive, to_utc_naive


# 현재 사용자를 외부 인증(Supabase)으로 확인해 g.current_user 에 저장
# 1) Authorization: Bearer <access_token>
# 2) (allow_session=True 일 때만) Flask 세션에 저장된 access_token, 만료됐으면 refresh_token 으로 갱신
def load_current_user(allow_session: bool = False) -> Optional[AuthUser]:
    auth = get_clients().auth

    token = bearer_token(request.headers.get("Authorization"))
    if token:
        user = auth.get_user(token)
        g.current_user = user
        g.access_token = token if user else None
        return user

    if not allow_session:
        g.current_user = None
        return None

    sess = session.get("user") or {}
    token = sess.get("access_token")
    user = auth.get_user(token) if token else None

    if not user and sess.get("refresh_token"):
        refreshed = auth.refresh_session(sess["refresh_token"])
        if refreshed:
            session["user"] = {
                "user_id": refreshed.user.id,
                "email": refreshed.user.email,
                "access_token": refreshed.access_token,
                "refresh_token": refreshed.refresh_token,
            }
            user, token = refreshed.user, refreshed.access_token
            current_app.logger.info("[AUTH] session refreshed uid=%s", user.id)

    if not user and sess:
        session.pop("user", None)

    g.current_user = user
    g.access_token = token if user else None
    return user


# =========================
#   Plan Resolver
# =========================
def find_active_subscription(user_id: str, now=None) -> Optional[Subscription]:
    now = to_utc_naive(now) or utcnow_naive()
    return (
        Subscription.query
        .filter(
            Subscription.user_id == user_id,
            Subscription.status == "active",
            Subscription.current_period_end > now,
        )
        .order_by(Subscription.current_period_end.desc())
        .first()
    )


def resolve_active_plan(user_id: str, now=None) -> PlanDefinition:
    """
    유효한(active + 기간 미종료) 최신 구독의 플랜.
    구독이 없거나 만료면 DEFAULT_PLAN_ID, 카탈로그에도 없으면 FALLBACK_PLAN.
    """
    sub = find_active_subscription(user_id, now) if user_id else None
    plan_id = sub.plan_id if sub else current_app.config.get("DEFAULT_PLAN_ID", "free")
    return get_plan(plan_id) or FALLBACK_PLAN
