# routes/__init__.py
from core.extensions import csrf

from .api.account import api_account_bp
from .api.health import api_health_bp
from .api.orders import api_orders_bp
from .api.rewrite import api_rewrite_bp
from .api.usage import api_usage_bp
from .api.webhooks import api_webhooks_bp
from .web.auth import auth_bp
from .web.pages import pages_bp

# JSON API 는 Bearer 토큰/서명 기반이라 CSRF 제외
API_BLUEPRINTS = (
    api_rewrite_bp,
    api_usage_bp,
    api_account_bp,
    api_orders_bp,
    api_webhooks_bp,
    api_health_bp,
)

WEB_BLUEPRINTS = (
    pages_bp,
    auth_bp,
)


def register_routes(app):
    for bp in API_BLUEPRINTS:
        csrf.exempt(bp)
        app.register_blueprint(bp)
    for bp in WEB_BLUEPRINTS:
        app.register_blueprint(bp)
