from flask import Blueprint, jsonify, g

from auth.guards import login_required
from core.http_utils import nocache
from services.account import build_usage_payload

api_usage_bp = Blueprint("api_usage", __name__)


@api_usage_bp.route("/usage", methods=["GET"])
@nocache
@login_required()
def api_usage_status():
    """오늘(UTC) 사용량 + 현재 플랜 한도"""
    return jsonify(build_usage_payload(g.current_user.id)), 200
