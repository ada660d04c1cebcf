# services/rewrite.py
"""
Rewrite Gateway: 플랜 확인 -> 글자 수 상한 -> 일간 쿼터 -> DeepSeek 호출 -> 사용량 기록.

사용량 기록(카운터 +1, 이벤트 로그)은 best-effort:
실패해도 이미 만들어진 결과는 그대로 돌려준다.
"""
from dataclasses import dataclass
from typing import Optional

from flask import current_app

from auth.entitlements import resolve_active_plan
from auth.quota import (
    select_usage_mode,
    get_today_counter,
    ensure_quota_available,
    increment_usage,
    record_usage_event,
)
from core.errors import ValidationError, ContentTooLong
from domain.models import db
from services.ai.deepseek_service import call_deepseek_rewrite
from utils.text import approximate_word_count
from utils.time_utils import utcnow_naive, to_utc_naive, usage_day


@dataclass
class RewriteResult:
    rewritten: str
    mode: str
    word_count: int
    plan_id: str

    def to_dict(self):
        return {"rewritten": self.rewritten, "mode": self.mode, "wordCount": self.word_count}


def rewrite_for_user(user_id: str, text, *, now=None, requested_mode: Optional[str] = None) -> RewriteResult:
    text = text.strip() if isinstance(text, str) else ""
    if not text:
        raise ValidationError("請提供要改寫的內容。")

    now = to_utc_naive(now) or utcnow_naive()
    plan = resolve_active_plan(user_id, now)

    word_count = approximate_word_count(text)
    max_words = plan.limits.max_words
    if max_words is not None and word_count > max_words:
        raise ContentTooLong(
            f"內容超過方案上限（{max_words} 字），目前約 {word_count} 字。",
            maxWords=max_words,
            wordCount=word_count,
        )

    mode = select_usage_mode(plan, requested_mode)
    day = usage_day(now)
    ensure_quota_available(plan, mode, get_today_counter(user_id, day))

    completion = call_deepseek_rewrite(text, mode)

    _record_usage(user_id, plan.id, mode, day, word_count, completion)
    return RewriteResult(rewritten=completion.text, mode=mode, word_count=word_count, plan_id=plan.id)


def _record_usage(user_id, plan_id, mode, day, word_count, completion):
    try:
        increment_usage(user_id, day, mode, plan_id)
        record_usage_event(
            user_id,
            plan_id,
            mode,
            word_count,
            {
                "model": completion.model,
                "latency_ms": completion.latency_ms,
                "output_chars": len(completion.text),
                **completion.usage,
            },
        )
    except Exception:
        db.session.rollback()
        current_app.logger.exception(
            "[REWRITE] usage record failed uid=%s plan=%s mode=%s date=%s", user_id, plan_id, mode, day
        )
