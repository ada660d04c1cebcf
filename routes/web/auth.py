from flask import Blueprint, render_template, request, redirect, url_for, session, current_app

from core.clients import get_clients
from core.errors import AppError
from domain.schema import login_schema, register_schema
from security.validation import validate_payload, _form_to_dict
from services.supabase_auth import AuthProviderError

auth_bp = Blueprint("auth", __name__)


def _store_session(auth_session):
    session.clear()
    session["user"] = {
        "user_id": auth_session.user.id,
        "email": auth_session.user.email,
        "access_token": auth_session.access_token,
        "refresh_token": auth_session.refresh_token,
    }
    session.permanent = True


@auth_bp.route("/login", methods=["GET", "POST"])
def login_page():
    if request.method == "GET":
        return render_template("login.html", next=request.args.get("next", ""))

    data = _form_to_dict(request.form)
    email = (data.get("email") or "").strip().lower()
    next_url = data.get("next") or ""
    try:
        validate_payload({**data, "email": email}, login_schema)
        auth_session = get_clients().auth.sign_in_with_password(email, data["password"])
    except AuthProviderError as e:
        current_app.logger.info("[AUTH] login failed email=%s status=%s", email, e.status)
        return render_template("login.html", email=email, next=next_url, error=e.message), 400
    except AppError as e:
        return render_template("login.html", email=email, next=next_url, error=e.message), e.status_code

    _store_session(auth_session)
    current_app.logger.info("[AUTH] login uid=%s", auth_session.user.id)

    # 내부 경로만 허용 (open redirect 방지)
    if next_url.startswith("/") and not next_url.startswith("//"):
        return redirect(next_url)
    return redirect(url_for("pages.index"))


@auth_bp.route("/register", methods=["GET", "POST"])
def register_page():
    if request.method == "GET":
        return render_template("register.html")

    data = _form_to_dict(request.form)
    email = (data.get("email") or "").strip().lower()
    try:
        validate_payload({**data, "email": email}, register_schema)
    except AppError as e:
        return render_template("register.html", email=email, error=e.message), e.status_code

    if data["password"] != data["confirm"]:
        return render_template("register.html", email=email, error="請確認兩次輸入的密碼相同。"), 400

    redirect_to = f"{current_app.config.get('APP_URL', '').rstrip('/')}/login"
    try:
        auth_session = get_clients().auth.sign_up(email, data["password"], redirect_to=redirect_to)
    except AuthProviderError as e:
        current_app.logger.info("[AUTH] register failed email=%s status=%s", email, e.status)
        return render_template("register.html", email=email, error=e.message), 400
    except AppError as e:
        return render_template("register.html", email=email, error=e.message), e.status_code

    # 이메일 인증이 꺼져 있으면 바로 세션이 온다
    if auth_session:
        _store_session(auth_session)
        return redirect(url_for("pages.index"))

    return render_template(
        "register.html",
        message="註冊成功！請到信箱點擊驗證信，或直接使用密碼登入。",
    )


@auth_bp.route("/logout")
def logout():
    sess = session.pop("user", None) or {}
    if sess.get("access_token"):
        get_clients().auth.sign_out(sess["access_token"])
    return redirect(url_for("pages.index"))
