import secrets
from flask import g, current_app

from core.errors import is_api_request


def init_security_headers(app):

    @app.before_request
    def _make_csp_nonce():
        g.csp_nonce = secrets.token_urlsafe(16)

    @app.after_request
    def add_security_headers(resp):
        cfg = current_app.config
        nonce = getattr(g, "csp_nonce", "")

        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        if cfg.get("ENV") == "production":
            resp.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=15552000; includeSubDomains; preload"
            )

        # JSON 응답에는 CSP 불필요
        if is_api_request():
            return resp

        # -----------------------------
        # CSP 구성 요소 (Stripe Checkout 리다이렉트 허용)
        # -----------------------------
        script_src = ["'self'", f"'nonce-{nonce}'", "https://js.stripe.com"]
        frame_src = ["https://js.stripe.com", "https://checkout.stripe.com"]
        connect_src = ["'self'", "https://api.stripe.com"]
        form_action = ["'self'", "https://checkout.stripe.com"]

        csp = (
            "default-src 'self'; "
            f"script-src {' '.join(script_src)}; "
            "img-src 'self' data:; "
            "style-src 'self' 'unsafe-inline'; "
            f"frame-src {' '.join(frame_src)}; "
            f"connect-src {' '.join(connect_src)}; "
            f"form-action {' '.join(form_action)}; "
        )

        resp.headers["Content-Security-Policy"] = csp
        return resp

    @app.context_processor
    def _inject_nonce():
        return {"csp_nonce": getattr(g, "csp_nonce", "")}
