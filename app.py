import logging
from datetime import timedelta

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

import routes
from core.clients import init_clients
from core.config import Config
from core.context import init_context_processors
from core.errors import register_error_handlers
from core.extensions import init_extensions
from core.hooks import register_hooks
from security.headers import init_security_headers


def create_app(config_object=Config, clients=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO))

    app.secret_key = app.config.get("SECRET_KEY")
    if app.config.get("ENV") == "production":
        assert app.secret_key and app.secret_key != "local-dev-secret", \
            "SECURITY: 환경변수 SECRET_KEY를 강력한 값으로 설정하세요."

    # 쿠키 기본 설정
    app.config.update(
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        PERMANENT_SESSION_LIFETIME=timedelta(days=30),
    )
    # dev/prod 분기
    app.config["SESSION_COOKIE_SECURE"] = (app.config.get("ENV") == "production")

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

    init_extensions(app)
    init_clients(app, clients)
    register_error_handlers(app)
    register_hooks(app)
    init_security_headers(app)
    init_context_processors(app)

    routes.register_routes(app)

    app.logger.info("[DB] dialect=%s", app.config["SQLALCHEMY_DATABASE_URI"].split(":", 1)[0])
    return app


if __name__ == "__main__":
    create_app().run(debug=True)
