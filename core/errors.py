"""
에러 분류: 요청 핸들러 경계에서 HTTP 상태코드로 변환된다.

    Unauthenticated   -> 401
    ValidationError   -> 400
    ContentTooLong    -> 413
    QuotaExhausted    -> 429
    UpstreamFailure   -> 502
    그 외              -> 500 (일반 메시지)
"""
from flask import jsonify, request, current_app
from werkzeug.exceptions import HTTPException, InternalServerError

GENERIC_ERROR_MESSAGE = "伺服器發生未知錯誤，請稍後再試。"


class AppError(Exception):
    status_code = 500
    default_message = GENERIC_ERROR_MESSAGE

    def __init__(self, message=None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.message, **self.extra}


class Unauthenticated(AppError):
    status_code = 401
    default_message = "登入狀態失效，請重新登入。"


class ValidationError(AppError):
    status_code = 400
    default_message = "請求內容格式不正確。"


class ContentTooLong(AppError):
    status_code = 413
    default_message = "內容超過目前方案的字數上限。"


class QuotaExhausted(AppError):
    status_code = 429
    default_message = "今日的改寫次數已用完，請明天再試或升級方案。"


class UpstreamFailure(AppError):
    status_code = 502
    default_message = "外部服務暫時無法使用，請稍後再試。"


class ConfigurationError(AppError):
    status_code = 500


# JSON 으로 응답하는 경로들 (나머지는 HTML 페이지)
API_PATH_PREFIXES = ("/rewrite", "/usage", "/account/", "/orders/", "/webhooks/", "/health")


def is_api_request() -> bool:
    path = request.path or ""
    return any(path == p or path.startswith(p) for p in API_PATH_PREFIXES)


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def _handle_app_error(e: AppError):
        if e.status_code >= 500:
            current_app.logger.error("[ERROR] %s %s -> %s", request.method, request.path, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def _handle_http_error(e: HTTPException):
        if not is_api_request():
            return e
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def _handle_unexpected(e: Exception):
        current_app.logger.exception("[ERROR] unhandled %s %s", request.method, request.path)
        if not is_api_request():
            return InternalServerError()
        return jsonify({"error": GENERIC_ERROR_MESSAGE}), 500
