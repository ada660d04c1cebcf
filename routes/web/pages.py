from flask import Blueprint, render_template, request, redirect, url_for, g, current_app

from auth.entitlements import load_current_user
from core.errors import AppError
from core.http_utils import nocache
from domain.plans import purchasable_plans, format_price, BILLING_CYCLES
from domain.schema import checkout_form_schema
from security.validation import validate_payload, _form_to_dict
from services.account import build_account_summary
from services.billing import create_order
from services.rewrite import rewrite_for_user

pages_bp = Blueprint("pages", __name__)

MIN_INPUT_LENGTH = 8


@pages_bp.route("/", methods=["GET", "POST"])
def index():
    if request.method == "GET":
        return render_template("index.html", min_length=MIN_INPUT_LENGTH)

    text = (request.form.get("text") or "").strip()
    ctx = {"min_length": MIN_INPUT_LENGTH, "input_text": text}

    user = load_current_user(allow_session=True)
    if not user:
        return render_template("index.html", error="請先登入後再使用改寫功能。", **ctx), 401
    if len(text) < MIN_INPUT_LENGTH:
        return render_template("index.html", error=f"請至少輸入 {MIN_INPUT_LENGTH} 個字元的內容。", **ctx), 400

    try:
        result = rewrite_for_user(user.id, text, requested_mode=request.form.get("mode"))
    except AppError as e:
        return render_template("index.html", error=e.message, **ctx), e.status_code

    return render_template("index.html", result=result, **ctx)


@pages_bp.route("/pricing")
def pricing():
    return render_template(
        "pricing.html",
        plans=purchasable_plans(),
        cycles=BILLING_CYCLES,
        format_price=format_price,
        cancelled=request.args.get("cancelled") == "1",
    )


@pages_bp.route("/pricing/checkout", methods=["POST"])
def pricing_checkout():
    user = load_current_user(allow_session=True)
    if not user:
        return redirect(url_for("auth.login_page", next=url_for("pages.pricing")))

    data = _form_to_dict(request.form)
    try:
        validate_payload(data, checkout_form_schema)
        order = create_order(user, cycle=data["cycle"], plan_id=data["plan"])
    except AppError as e:
        current_app.logger.info("[ORDER] web checkout failed uid=%s err=%s", user.id, e.message)
        return render_template(
            "pricing.html",
            plans=purchasable_plans(),
            cycles=BILLING_CYCLES,
            format_price=format_price,
            error=e.message,
        ), e.status_code

    return redirect(order.stripe_link, code=303)


@pages_bp.route("/user-portal")
@nocache
def user_portal():
    user = load_current_user(allow_session=True)
    if not user:
        return redirect(url_for("auth.login_page", next=url_for("pages.user_portal")))

    summary = build_account_summary(user.id)
    return render_template(
        "user_portal.html",
        user=g.current_user,
        summary=summary,
        checkout_done=bool(request.args.get("session_id")),
    )
