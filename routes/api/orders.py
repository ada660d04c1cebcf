from flask import Blueprint, jsonify, g

from auth.guards import login_required
from domain.schema import order_schema
from security.validation import require_valid_input
from services.billing import create_order

api_orders_bp = Blueprint("api_orders", __name__)


@api_orders_bp.route("/orders/create", methods=["POST"])
@login_required(allow_session=True)
@require_valid_input(order_schema)
def api_create_order():
    data = g.safe_input
    order = create_order(g.current_user, cycle=data.get("cycle"), plan_id=data.get("plan"))
    return jsonify({"orderId": order.id, "paymentLink": order.stripe_link}), 200
