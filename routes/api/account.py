from flask import Blueprint, jsonify, g

from auth.guards import login_required
from core.http_utils import nocache
from services.account import build_account_summary

api_account_bp = Blueprint("api_account", __name__)


# Bearer 또는 웹 세션 쿠키
@api_account_bp.route("/account/summary", methods=["GET"])
@nocache
@login_required(allow_session=True)
def account_summary():
    return jsonify(build_account_summary(g.current_user.id)), 200
