# services/stripe_client.py
import json

import stripe

from core.errors import ConfigurationError, UpstreamFailure, ValidationError


class WebhookSignatureError(ValidationError):
    default_message = "Invalid signature"


def to_plain_dict(obj):
    """StripeObject -> 순수 dict (버전별 dict 호환성 차이를 피하려고 JSON 경유)"""
    if obj is None:
        return None
    if isinstance(obj, dict) and not isinstance(obj, stripe.StripeObject):
        return obj
    return json.loads(str(obj))


def stripe_id(value):
    """expand 여부와 상관없이 Stripe 객체 id 문자열만 꺼낸다"""
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        return value.get("id")
    return None


class StripeBilling:
    """
    Stripe 호출을 한 곳에 모은 얇은 래퍼.
    전역 stripe.api_key 를 쓰지 않고 호출마다 api_key 를 넘긴다.
    """

    def __init__(self, secret_key: str, webhook_secret: str, *, api_version=None, logger=None):
        self.secret_key = secret_key or ""
        self.webhook_secret = webhook_secret or ""
        self.api_version = api_version
        self.logger = logger

    def _require_key(self):
        if not self.secret_key:
            raise ConfigurationError("伺服器尚未配置 Stripe 金鑰。")

    def _opts(self) -> dict:
        opts = {"api_key": self.secret_key}
        if self.api_version:
            opts["stripe_version"] = self.api_version
        return opts

    def create_checkout_session(self, **params):
        self._require_key()
        try:
            return stripe.checkout.Session.create(**self._opts(), **params)
        except stripe.StripeError as e:
            if self.logger:
                self.logger.warning("[STRIPE] checkout.Session.create failed: %s", e)
            raise UpstreamFailure("建立付款連結失敗，請稍後再試。")

    def retrieve_subscription(self, subscription_id: str) -> dict:
        self._require_key()
        try:
            sub = stripe.Subscription.retrieve(
                subscription_id,
                expand=["latest_invoice.payment_intent"],
                **self._opts(),
            )
        except stripe.StripeError as e:
            if self.logger:
                self.logger.warning("[STRIPE] Subscription.retrieve(%s) failed: %s", subscription_id, e)
            raise UpstreamFailure("無法取得訂閱資料。")
        return to_plain_dict(sub)

    def verify_event(self, payload: bytes, sig_header: str) -> dict:
        """서명 검증 후 이벤트를 dict 로 반환. 실패하면 WebhookSignatureError"""
        if not self.webhook_secret or not sig_header:
            raise WebhookSignatureError("Signature required")
        try:
            stripe.Webhook.construct_event(payload, sig_header, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            if self.logger:
                self.logger.warning("[STRIPE] webhook verification failed: %s", e)
            raise WebhookSignatureError("Invalid signature")
        return json.loads(payload)
