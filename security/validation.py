"""
security/validation.py: 입력 검증 유틸
"""
from functools import wraps

from flask import request, g
from jsonschema import validate, ValidationError as SchemaError

from core.errors import ValidationError

# 제어문자 제거 (개행/탭 제외), 수직탭/폼피드는 공백으로
_CONTROL_TABLE = {c: None for c in range(32) if c not in (9, 10, 11, 12, 13)}
_CONTROL_TABLE.update({11: " ", 12: " ", 127: None})


# -------------------- 유틸 함수 --------------------
def _form_to_dict(formdata):
    """MultiDict → 일반 dict 변환 (getlist 포함)"""
    result = {}
    for k in formdata.keys():
        vals = formdata.getlist(k)
        result[k] = vals if len(vals) > 1 else (vals[0] if vals else None)
    return result


def _clean_payload(value):
    """문자열/리스트/딕셔너리를 재귀적으로 정리 (제어문자 제거)"""
    if isinstance(value, str):
        return value.translate(_CONTROL_TABLE)
    if isinstance(value, list):
        return [_clean_payload(v) for v in value]
    if isinstance(value, dict):
        return {k: _clean_payload(v) for k, v in value.items()}
    return value


def validate_payload(data, schema):
    """JSON Schema 검증 (필수 필드, 타입 등) 실패 시 ValidationError(400)"""
    if not schema:
        return data
    try:
        validate(instance=data, schema=schema)
    except SchemaError as e:
        field = ".".join(str(p) for p in e.absolute_path)
        raise ValidationError(f"輸入格式錯誤：{field + ' ' if field else ''}{e.message}")
    return data


# -------------------- 메인 데코레이터 --------------------
def require_valid_input(json_schema=None, *, form=False, only_methods=("POST", "PUT", "PATCH")):
    """
    입력 검증 데코레이터
      - json_schema : JSON 스키마(dict)
      - form=True   : request.form 검사 (HTML 폼)
      - only_methods : 검증을 적용할 메서드
    통과하면 g.safe_input 에 정리된 dict 저장
    """
    only_methods = tuple(only_methods or ())

    def deco(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            if only_methods and request.method.upper() not in only_methods:
                g.safe_input = None
                return f(*args, **kwargs)

            if form:
                payload = _form_to_dict(request.form)
            else:
                payload = request.get_json(silent=True)
                if not isinstance(payload, dict):
                    raise ValidationError("請以 JSON 物件格式送出請求。")

            safe = _clean_payload(payload)
            validate_payload(safe, json_schema)

            g.safe_input = safe
            return f(*args, **kwargs)
        return wrapped
    return deco
