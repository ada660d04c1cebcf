from flask import Blueprint, jsonify

from core.extensions import limiter

api_health_bp = Blueprint("api_health", __name__)


@api_health_bp.route("/health")
@limiter.exempt
def health():
    return jsonify({"ok": True}), 200
