# services/supabase_auth.py
"""
Supabase Auth (GoTrue REST) 클라이언트.

회원가입/로그인/토큰 갱신/토큰 검증은 전부 외부 인증 서비스가 처리하고,
이 앱은 access token 으로 사용자 id/email 만 받아온다.
"""
from dataclasses import dataclass
from typing import Optional

import requests

from core.errors import UpstreamFailure, ConfigurationError
from utils.retry import _retry

_TRANSIENT = (requests.ConnectionError, requests.Timeout)


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    refresh_token: Optional[str]
    user: AuthUser


class AuthProviderError(Exception):
    """로그인/회원가입 거절 (잘못된 비밀번호, 중복 이메일 등)"""

    def __init__(self, message, status=None):
        self.message = message
        self.status = status
        super().__init__(message)


def _user_from_payload(data) -> Optional[AuthUser]:
    if not isinstance(data, dict) or not data.get("id"):
        return None
    return AuthUser(id=str(data["id"]), email=data.get("email"))


def _session_from_payload(data) -> Optional[AuthSession]:
    if not isinstance(data, dict) or not data.get("access_token"):
        return None
    user = _user_from_payload(data.get("user"))
    if not user:
        return None
    return AuthSession(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        user=user,
    )


def _error_message(data, fallback):
    if isinstance(data, dict):
        for k in ("error_description", "msg", "message", "error"):
            v = data.get(k)
            if isinstance(v, str) and v.strip():
                return v.strip()
    return fallback


class SupabaseAuthClient:
    def __init__(self, base_url: str, api_key: str, *, timeout=10, tries=2, base_delay=0.3, logger=None):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key or ""
        self.timeout = timeout
        self.tries = tries
        self.base_delay = base_delay
        self.logger = logger

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _headers(self, access_token: Optional[str] = None) -> dict:
        headers = {
            "apikey": self.api_key,
            "Content-Type": "application/json",
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _request(self, method: str, path: str, *, access_token=None, json_body=None, params=None):
        if not self.configured:
            raise ConfigurationError("伺服器尚未配置 Supabase 驗證服務。")

        url = f"{self.base_url}/auth/v1{path}"

        def _do():
            return requests.request(
                method.upper(),
                url,
                headers=self._headers(access_token),
                json=json_body,
                params=params,
                timeout=self.timeout,
            )

        try:
            r = _retry(_do, tries=self.tries, base_delay=self.base_delay, retry_on=_TRANSIENT)
        except _TRANSIENT as e:
            if self.logger:
                self.logger.warning("[AUTH] %s %s network error: %r", method, path, e)
            raise UpstreamFailure("驗證服務暫時無法連線，請稍後再試。")

        try:
            data = r.json()
        except ValueError:
            data = {"raw": r.text}

        if r.status_code >= 500:
            if self.logger:
                self.logger.warning("[AUTH] %s %s -> %s %s", method, path, r.status_code, data)
            raise UpstreamFailure("驗證服務暫時無法使用，請稍後再試。")
        return r.status_code, data

    # -------------------- 토큰 검증 --------------------
    def get_user(self, access_token: str) -> Optional[AuthUser]:
        """유효한 토큰이면 AuthUser, 거절되면 None"""
        if not access_token:
            return None
        status, data = self._request("GET", "/user", access_token=access_token)
        if status != 200:
            return None
        return _user_from_payload(data)

    # -------------------- 로그인/가입 --------------------
    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        status, data = self._request(
            "POST", "/token",
            params={"grant_type": "password"},
            json_body={"email": email, "password": password},
        )
        session = _session_from_payload(data) if status == 200 else None
        if not session:
            raise AuthProviderError(_error_message(data, "帳號或密碼錯誤。"), status)
        return session

    def sign_up(self, email: str, password: str, redirect_to: Optional[str] = None) -> Optional[AuthSession]:
        """
        이메일 인증이 켜져 있으면 세션 없이 사용자만 생성된다 -> None
        자동 확인이면 바로 AuthSession
        """
        params = {"redirect_to": redirect_to} if redirect_to else None
        status, data = self._request(
            "POST", "/signup",
            params=params,
            json_body={"email": email, "password": password},
        )
        if status not in (200, 201):
            raise AuthProviderError(_error_message(data, "註冊失敗，請稍後再試。"), status)
        return _session_from_payload(data)

    def refresh_session(self, refresh_token: str) -> Optional[AuthSession]:
        if not refresh_token:
            return None
        status, data = self._request(
            "POST", "/token",
            params={"grant_type": "refresh_token"},
            json_body={"refresh_token": refresh_token},
        )
        if status != 200:
            return None
        return _session_from_payload(data)

    def sign_out(self, access_token: str) -> None:
        if not access_token:
            return
        try:
            self._request("POST", "/logout", access_token=access_token)
        except (UpstreamFailure, ConfigurationError) as e:
            # 로컬 세션은 어차피 지워진다
            if self.logger:
                self.logger.info("[AUTH] sign_out ignored: %s", e)
