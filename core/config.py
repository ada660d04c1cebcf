import os

from dotenv import load_dotenv

load_dotenv()


def _csv(v: str):
    return [x.strip() for x in (v or "").split(",") if x.strip()]


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    try:
        return int(v) if v not in (None, "") else default
    except ValueError:
        return default


# Config 에서는 환경변수 설정만
class Config:
    # Flask 보안 키
    SECRET_KEY = os.getenv("SECRET_KEY", "local-dev-secret")

    ENV = os.getenv("FLASK_ENV", "production")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # 공개 URL (Stripe success/cancel 리다이렉트)
    APP_URL = os.getenv("APP_URL", "http://localhost:5000").rstrip("/")

    # DB
    # postgres:// (Heroku/Render 형식) -> SQLAlchemy 가 요구하는 postgresql://
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///stealthwriter.db").replace(
        "postgres://", "postgresql://", 1
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 280,
    }

    # -------------------------
    # Supabase Auth (외부 인증)
    # -------------------------
    SUPABASE_URL = (os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or "").rstrip("/")
    SUPABASE_ANON_KEY = (os.getenv("SUPABASE_ANON_KEY") or os.getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY") or "").strip()
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip()

    # -------------------------
    # Stripe
    # -------------------------
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "").strip()
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "").strip()
    STRIPE_API_VERSION = os.getenv("STRIPE_API_VERSION", "2022-11-15")
    STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "usd").lower()

    # -------------------------
    # DeepSeek (OpenAI 호환 completion API)
    # -------------------------
    DEEPSEEK_API_KEY = os.getenv("DEEPSEEK_API_KEY", "").strip()
    DEEPSEEK_BASE_URL = os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com/v1").rstrip("/")
    DEEPSEEK_MODEL_PRO = os.getenv("DEEPSEEK_MODEL_PRO", "deepseek-chat")
    DEEPSEEK_MODEL_MINI = os.getenv("DEEPSEEK_MODEL_MINI", "deepseek-chat")

    # 외부 호출 공통
    HTTP_TIMEOUT_SECONDS = _env_int("HTTP_TIMEOUT_SECONDS", 30)
    RETRY_TRIES = _env_int("RETRY_TRIES", 3)
    RETRY_BASE_DELAY = float(os.getenv("RETRY_BASE_DELAY", "0.4"))

    # 구독이 없을 때 적용되는 플랜
    DEFAULT_PLAN_ID = os.getenv("DEFAULT_PLAN_ID", "free")

    # 요청 본문 상한
    MAX_PAYLOAD_BYTES = 256 * 1024

    # -------------------------
    # CORS
    # -------------------------
    CORS_ORIGINS = [o.rstrip("/") for o in _csv(os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5000",
    ))]

    # -------------------------
    # Rate limiting (Flask-Limiter 표준 키)
    # -------------------------
    REDIS_URL = os.getenv("REDIS_URL", "")
    RATELIMIT_STORAGE_URI = REDIS_URL if REDIS_URL else "memory://"
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "200 per hour")
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", True)
    REWRITE_RATELIMIT = os.getenv("REWRITE_RATELIMIT", "30/minute")
