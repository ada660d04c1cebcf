from flask import session


def init_context_processors(app):
    @app.context_processor
    def inject_nav_user():
        # 네비게이션 표시용 (인증 검증은 각 라우트에서)
        sess = session.get("user") or {}
        return {
            "NAV_EMAIL": sess.get("email"),
            "NAV_LOGGED_IN": bool(sess.get("access_token")),
        }
