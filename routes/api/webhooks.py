from flask import Blueprint, jsonify, request, current_app

from core.clients import get_clients
from core.extensions import limiter
from domain.models import db
from services.stripe_client import WebhookSignatureError
from services.stripe_webhook import handle_event

api_webhooks_bp = Blueprint("api_webhooks", __name__)


@api_webhooks_bp.route("/webhooks/billing", methods=["POST"])
@limiter.exempt
def billing_webhook():
    payload = request.get_data()
    sig_header = request.headers.get("Stripe-Signature", "")

    try:
        event = get_clients().billing.verify_event(payload, sig_header)
    except WebhookSignatureError as e:
        return jsonify({"error": e.message}), 400

    try:
        handle_event(event)
    except Exception:
        # 500 이면 Stripe 가 재전송한다
        db.session.rollback()
        current_app.logger.exception(
            "[WEBHOOK] processing failed id=%s type=%s", event.get("id"), event.get("type")
        )
        return jsonify({"error": "Processing failed"}), 500

    return jsonify({"received": True}), 200
