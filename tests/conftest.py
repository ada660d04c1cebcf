"""
Shared fixtures: Flask app on in-memory SQLite with fake external clients.

- FakeAuth       : token -> user map (Supabase stand-in)
- FakeCompletion : OpenAI-compatible chat.completions stub (DeepSeek stand-in)
- FakeBilling    : real StripeBilling signature verification, stubbed API calls
"""
import hashlib
import hmac
import json
import time
from datetime import timedelta
from types import SimpleNamespace

import pytest

from app import create_app
from core.clients import ServiceClients
from core.config import Config
from domain.models import db, Subscription, Order
from services.stripe_client import StripeBilling
from services.supabase_auth import AuthUser, AuthSession, AuthProviderError
from utils.time_utils import utcnow_naive

WEBHOOK_SECRET = "whsec_test_secret"


class TestConfig(Config):
    __test__ = False

    TESTING = True
    ENV = "testing"
    SECRET_KEY = "test-secret"
    APP_URL = "http://testserver"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = "memory://"
    RETRY_TRIES = 2
    RETRY_BASE_DELAY = 0
    DEFAULT_PLAN_ID = "free"
    DEEPSEEK_MODEL_PRO = "deepseek-chat"
    DEEPSEEK_MODEL_MINI = "deepseek-chat-mini"
    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET = WEBHOOK_SECRET
    STRIPE_CURRENCY = "usd"
    LOG_LEVEL = "DEBUG"


# ---------------------------------------------------------------------------
# Fake clients
# ---------------------------------------------------------------------------

class FakeAuth:
    def __init__(self):
        self.tokens = {}
        self.passwords = {}
        self.refresh_tokens = {}
        self.signed_out = []
        self.confirm_email = True

    def add_user(self, token, user_id, email=None, password=None):
        user = AuthUser(id=user_id, email=email or f"{user_id}@example.com")
        self.tokens[token] = user
        if password:
            self.passwords[user.email] = (password, token)
        return user

    def get_user(self, access_token):
        return self.tokens.get(access_token)

    def sign_in_with_password(self, email, password):
        stored = self.passwords.get(email)
        if not stored or stored[0] != password:
            raise AuthProviderError("Invalid login credentials", 400)
        token = stored[1]
        return AuthSession(access_token=token, refresh_token=f"refresh-{token}", user=self.tokens[token])

    def sign_up(self, email, password, redirect_to=None):
        if email in self.passwords:
            raise AuthProviderError("User already registered", 422)
        token = f"token-{len(self.tokens) + 1}"
        user = self.add_user(token, f"user-{len(self.tokens) + 1}", email, password)
        if self.confirm_email:
            return None
        return AuthSession(access_token=token, refresh_token=f"refresh-{token}", user=user)

    def refresh_session(self, refresh_token):
        token = self.refresh_tokens.get(refresh_token)
        if not token:
            return None
        return AuthSession(access_token=token, refresh_token=refresh_token, user=self.tokens[token])

    def sign_out(self, access_token):
        self.signed_out.append(access_token)


class FakeCompletion:
    """client.chat.completions.create(...) 호환"""

    def __init__(self, text="這是一段改寫後的文字。"):
        self.text = text
        self.error = None
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.text))],
            usage=SimpleNamespace(prompt_tokens=12, completion_tokens=34, total_tokens=46),
        )


class FakeBilling(StripeBilling):
    def __init__(self):
        super().__init__("sk_test_dummy", WEBHOOK_SECRET)
        self.sessions = []
        self.subscriptions = {}
        self.checkout_error = None

    def create_checkout_session(self, **params):
        if self.checkout_error is not None:
            raise self.checkout_error
        self.sessions.append(params)
        sid = f"cs_test_{len(self.sessions)}"
        return SimpleNamespace(id=sid, url=f"https://checkout.stripe.com/c/pay/{sid}")

    def retrieve_subscription(self, subscription_id):
        return self.subscriptions[subscription_id]


# ---------------------------------------------------------------------------
# App fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clients():
    return ServiceClients(auth=FakeAuth(), completion=FakeCompletion(), billing=FakeBilling())


@pytest.fixture
def app(clients):
    app = create_app(TestConfig, clients=clients)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user(clients):
    return clients.auth.add_user("good-token", "user-1", "writer@example.com", password="s3cret-pass")


@pytest.fixture
def auth_headers(user):
    return {"Authorization": "Bearer good-token"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_subscription(user_id, plan_id, *, status="active", period_end=None, stripe_id="sub_1", **kw):
    now = utcnow_naive()
    sub = Subscription(
        user_id=user_id,
        plan_id=plan_id,
        status=status,
        billing_cycle=kw.pop("billing_cycle", "monthly"),
        current_period_start=kw.pop("period_start", now - timedelta(days=1)),
        current_period_end=period_end or (now + timedelta(days=29)),
        stripe_subscription_id=stripe_id,
        **kw,
    )
    db.session.add(sub)
    db.session.commit()
    return sub


def make_order(user_id, plan_id="pro", **kw):
    order = Order(user_id=user_id, plan_id=plan_id, cycle=kw.pop("cycle", "monthly"), amount=799, **kw)
    db.session.add(order)
    db.session.commit()
    return order


def signed_webhook(event: dict, secret: str = WEBHOOK_SECRET):
    """Stripe-Signature 헤더를 Stripe 와 같은 방식(HMAC-SHA256)으로 만든다"""
    payload = json.dumps(event)
    ts = int(time.time())
    signature = hmac.new(secret.encode(), f"{ts}.{payload}".encode(), hashlib.sha256).hexdigest()
    return payload, {"Stripe-Signature": f"t={ts},v1={signature}", "Content-Type": "application/json"}
