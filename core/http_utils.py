from functools import wraps
from flask import make_response


def _no_store(resp):
    resp.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    resp.headers["Pragma"] = "no-cache"
    resp.headers["Expires"] = "0"
    return resp


def nocache(view):
    @wraps(view)
    def _wrapped(*args, **kwargs):
        rv = view(*args, **kwargs)
        return _no_store(make_response(rv))

    return _wrapped


def bearer_token(header_value) -> str:
    """'Bearer <token>' -> token (없으면 빈 문자열)"""
    value = (header_value or "").strip()
    if value[:7].lower() == "bearer ":
        return value[7:].strip()
    return ""
