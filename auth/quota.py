from typing import Optional

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from core.errors import QuotaExhausted
from domain.models import db, UsageCounter, UsageEvent, utcnow
from domain.plans import PlanDefinition, USAGE_MODES


# -------------------- 모드 선택 --------------------

def resolve_usage_mode(plan: PlanDefinition) -> str:
    """
    플랜 기준 자동 선택:
      - pro 한도가 0/없음 이고 mini 한도가 양수면 mini
      - 그 외는 전부 pro (mini/pro 둘 다 양수여도 pro)
    """
    pro_quota = plan.limits.ghost_pro_quota
    mini_quota = plan.limits.ghost_mini_quota
    if (pro_quota or 0) <= 0 and (mini_quota or 0) > 0:
        return "mini"
    return "pro"


def mode_available(plan: PlanDefinition, mode: str) -> bool:
    quota = plan.limits.quota_for(mode)
    return quota is None or quota > 0


def select_usage_mode(plan: PlanDefinition, requested: Optional[str] = None) -> str:
    """요청에 mode 가 있고 플랜이 그 모드를 허용하면 그대로, 아니면 자동 선택"""
    mode = (requested or "").strip().lower()
    if mode in USAGE_MODES and mode_available(plan, mode):
        return mode
    return resolve_usage_mode(plan)


# -------------------- 한도 확인 --------------------

def ensure_quota_available(plan: PlanDefinition, mode: str, counter: Optional[UsageCounter]) -> None:
    limit = plan.limits.quota_for(mode)
    if limit is None:
        return
    used = counter.used_for(mode) if counter else 0
    if used >= limit:
        raise QuotaExhausted(
            f"今日的 Ghost {mode.capitalize()} 改寫次數已用完（{used}/{limit}），請明天再試或升級方案。",
            mode=mode,
            limit=limit,
        )


def usage_snapshot(plan: PlanDefinition, counter: Optional[UsageCounter]) -> dict:
    out = {}
    for mode, key in (("mini", "ghostMini"), ("pro", "ghostPro")):
        limit = plan.limits.quota_for(mode)
        used = counter.used_for(mode) if counter else 0
        out[key] = {
            "used": used,
            "limit": limit,
            "remaining": None if limit is None else max(limit - used, 0),
        }
    return out


# -------------------- 사용량 카운터 --------------------

def get_today_counter(user_id: str, usage_date) -> Optional[UsageCounter]:
    return UsageCounter.query.filter_by(user_id=user_id, usage_date=usage_date).first()


def _bump(counter_id: int, mode: str, plan_id: Optional[str]) -> bool:
    column = UsageCounter.mini_used if mode == "mini" else UsageCounter.pro_used
    values = {column.key: column + 1, "updated_at": utcnow()}
    if plan_id:
        values["plan_id"] = plan_id
    result = db.session.execute(
        update(UsageCounter).where(UsageCounter.id == counter_id).values(**values)
    )
    return bool(result.rowcount)


def increment_usage(user_id: str, usage_date, mode: str, plan_id: Optional[str] = None) -> None:
    """
    (user, date) 행의 mode 카운터 +1
      1) 행이 있으면 원자적 UPDATE (col = col + 1)
      2) 없으면 INSERT
      3) INSERT 가 unique 충돌이면(동시 첫 요청 경쟁에서 짐) 다시 읽어서 UPDATE
    """
    if mode not in USAGE_MODES:
        raise ValueError(f"Unknown usage mode '{mode}'")

    counter = get_today_counter(user_id, usage_date)
    if counter is not None and _bump(counter.id, mode, plan_id):
        db.session.commit()
        return

    row = UsageCounter(
        user_id=user_id,
        usage_date=usage_date,
        plan_id=plan_id,
        mini_used=1 if mode == "mini" else 0,
        pro_used=1 if mode == "pro" else 0,
    )
    db.session.add(row)
    try:
        db.session.commit()
        return
    except IntegrityError:
        # 다른 요청이 먼저 행을 만든 상태
        db.session.rollback()
        current_app.logger.info(
            "[QUOTA] usage row race uid=%s date=%s mode=%s -> retry as update", user_id, usage_date, mode
        )

    counter = UsageCounter.query.filter_by(user_id=user_id, usage_date=usage_date).one()
    _bump(counter.id, mode, plan_id)
    db.session.commit()


def record_usage_event(user_id: str, plan_id: Optional[str], mode: str, word_count: int, metadata=None) -> UsageEvent:
    event = UsageEvent(
        user_id=user_id,
        plan_id=plan_id,
        mode=mode,
        word_count=int(word_count or 0),
        meta=dict(metadata or {}),
    )
    db.session.add(event)
    db.session.commit()
    return event
