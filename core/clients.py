# core/clients.py
"""
외부 서비스 클라이언트 묶음.
create_app() 에서 한 번 만들어 app.extensions 에 올려두고, 핸들러는 get_clients() 로 꺼낸다.
테스트에서는 create_app(clients=...) 로 가짜 클라이언트를 주입한다.
"""
from dataclasses import dataclass
from typing import Any, Optional

from flask import current_app
from openai import OpenAI

from services.stripe_client import StripeBilling
from services.supabase_auth import SupabaseAuthClient

EXTENSION_KEY = "service_clients"


@dataclass
class ServiceClients:
    auth: Any
    completion: Optional[Any]
    billing: Any


def build_clients(app) -> ServiceClients:
    cfg = app.config
    timeout = cfg.get("HTTP_TIMEOUT_SECONDS", 30)

    auth = SupabaseAuthClient(
        cfg.get("SUPABASE_URL"),
        # anon 키가 없으면 service role 키로 대체 (RLS 우회 주의)
        cfg.get("SUPABASE_ANON_KEY") or cfg.get("SUPABASE_SERVICE_ROLE_KEY"),
        timeout=timeout,
        tries=cfg.get("RETRY_TRIES", 3),
        base_delay=cfg.get("RETRY_BASE_DELAY", 0.4),
        logger=app.logger,
    )

    completion = None
    if cfg.get("DEEPSEEK_API_KEY"):
        # 재시도는 utils.retry 에서 처리
        completion = OpenAI(
            api_key=cfg["DEEPSEEK_API_KEY"],
            base_url=cfg.get("DEEPSEEK_BASE_URL"),
            timeout=timeout,
            max_retries=0,
        )
    else:
        app.logger.warning("[CLIENTS] DEEPSEEK_API_KEY missing; /rewrite will fail with 500")

    billing = StripeBilling(
        cfg.get("STRIPE_SECRET_KEY"),
        cfg.get("STRIPE_WEBHOOK_SECRET"),
        api_version=cfg.get("STRIPE_API_VERSION"),
        logger=app.logger,
    )
    return ServiceClients(auth=auth, completion=completion, billing=billing)


def init_clients(app, clients: Optional[ServiceClients] = None):
    app.extensions[EXTENSION_KEY] = clients or build_clients(app)


def get_clients() -> ServiceClients:
    return current_app.extensions[EXTENSION_KEY]
