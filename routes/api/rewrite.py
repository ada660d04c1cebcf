from flask import Blueprint, jsonify, g, current_app

from auth.guards import login_required
from core.extensions import limiter
from domain.schema import rewrite_schema
from security.validation import require_valid_input
from services.rewrite import rewrite_for_user

api_rewrite_bp = Blueprint("api_rewrite", __name__)


def _rewrite_limit():
    return current_app.config.get("REWRITE_RATELIMIT") or "30/minute"


# 인증 -> 입력 검증 -> 플랜/쿼터 -> DeepSeek
@api_rewrite_bp.route("/rewrite", methods=["POST"])
@limiter.limit(_rewrite_limit)
@login_required()
@require_valid_input(rewrite_schema)
def api_rewrite():
    user = g.current_user
    data = g.safe_input

    result = rewrite_for_user(user.id, data.get("text"), requested_mode=data.get("mode"))

    current_app.logger.info(
        "[REWRITE] ok uid=%s plan=%s mode=%s words=%s", user.id, result.plan_id, result.mode, result.word_count
    )
    return jsonify(result.to_dict()), 200
