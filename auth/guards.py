# guards.py
from functools import wraps

from auth.entitlements import load_current_user
from core.errors import Unauthenticated


def login_required(allow_session: bool = False, message=None):
    """
    인증 게이트: 유효한 토큰이 없으면 Unauthenticated(401)
    - allow_session: Bearer 외에 쿠키 세션도 허용
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            user = load_current_user(allow_session=allow_session)
            if not user:
                raise Unauthenticated(message)
            return f(*args, **kwargs)
        return wrapper
    return decorator
