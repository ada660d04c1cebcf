# extensions.py
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect
from domain.models import db


migrate = Migrate()
csrf = CSRFProtect()

# limiter는 객체만 만들고, 실제 설정(storage/default_limits)은 app.config에서 가져오도록
limiter = Limiter(key_func=get_remote_address)

cors = CORS()

# 브라우저/외부 클라이언트가 호출하는 JSON API
CORS_API_PATHS = r"/(rewrite|usage|account/.*|orders/.*)"


def init_extensions(app):
    # DB / migrate / csrf
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    # 레이트리밋 초기화
    limiter.init_app(app)

    # CORS: JSON API 만 허용 (webhook 은 서버-서버라 제외)
    cors.init_app(
        app,
        supports_credentials=True,
        resources={
            CORS_API_PATHS: {
                "origins": app.config.get("CORS_ORIGINS") or [],
                "methods": ["POST", "GET"],
                "allow_headers": ["Content-Type", "Authorization"],
            }
        },
    )
