import time
from dataclasses import dataclass, field

import openai
from flask import current_app

from core.clients import get_clients
from core.errors import ConfigurationError, UpstreamFailure
from prompt_management.build_prompt import build_prompt
from prompt_management.templates import GENERATION_PARAMS
from utils.retry import _retry

# 네트워크/일시적 오류만 재시도
_TRANSIENT = (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError)


@dataclass
class CompletionResult:
    text: str
    model: str
    latency_ms: int
    usage: dict = field(default_factory=dict)


def call_deepseek_rewrite(input_text: str, mode: str = "pro") -> CompletionResult:
    cfg = current_app.config
    client = get_clients().completion
    if client is None:
        current_app.logger.error("[REWRITE] DEEPSEEK_API_KEY missing")
        raise ConfigurationError("伺服器尚未配置 DeepSeek API 金鑰。")

    model_name = cfg.get("DEEPSEEK_MODEL_MINI") if mode == "mini" else cfg.get("DEEPSEEK_MODEL_PRO")
    params = GENERATION_PARAMS.get(mode) or GENERATION_PARAMS["pro"]
    system_prompt, user_prompt = build_prompt(input_text, mode)

    def _do():
        return client.chat.completions.create(
            model=model_name,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=params["temperature"],
            max_tokens=params["max_tokens"],
        )

    start = time.perf_counter()
    try:
        completion = _retry(
            _do,
            tries=cfg.get("RETRY_TRIES", 3),
            base_delay=cfg.get("RETRY_BASE_DELAY", 0.4),
            retry_on=_TRANSIENT,
        )
    except openai.APIError as e:
        current_app.logger.warning("[REWRITE] DeepSeek call failed model=%s err=%r", model_name, e)
        raise UpstreamFailure(f"DeepSeek API 錯誤：{getattr(e, 'message', None) or e}")
    latency_ms = int((time.perf_counter() - start) * 1000)

    choices = getattr(completion, "choices", None) or []
    message = getattr(choices[0], "message", None) if choices else None
    text = (getattr(message, "content", None) or "").strip()
    if not text:
        current_app.logger.warning("[REWRITE] DeepSeek returned empty result model=%s", model_name)
        raise UpstreamFailure("DeepSeek API 未返回有效的改寫結果。")

    usage = {}
    raw_usage = getattr(completion, "usage", None)
    if raw_usage:
        for k in ("prompt_tokens", "completion_tokens", "total_tokens"):
            v = getattr(raw_usage, k, None)
            if v is not None:
                usage[k] = v

    current_app.logger.info("[REWRITE] DeepSeek ok model=%s mode=%s latency_ms=%s", model_name, mode, latency_ms)
    return CompletionResult(text=text, model=model_name, latency_ms=latency_ms, usage=usage)
