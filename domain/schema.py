# -------------------- 입력 양식 스키마 --------------------
from domain.plans import BILLING_CYCLES, USAGE_MODES

rewrite_schema = {
    "type": "object",
    "properties": {
        "text": {"type": "string"},
        "mode": {"type": ["string", "null"], "enum": list(USAGE_MODES) + [None]},
    },
    "required": ["text"],
    "additionalProperties": True,
}

order_schema = {
    "type": "object",
    "properties": {
        "cycle": {"type": ["string", "null"]},
        "plan": {"type": ["string", "null"], "maxLength": 32},
    },
    "additionalProperties": True,
}

# 웹 폼 (pricing 페이지)
checkout_form_schema = {
    "type": "object",
    "properties": {
        "cycle": {"type": "string", "enum": list(BILLING_CYCLES)},
        "plan": {"type": "string", "minLength": 1, "maxLength": 32},
    },
    "required": ["cycle", "plan"],
    "additionalProperties": True,
}

login_schema = {
    "type": "object",
    "properties": {
        "email": {"type": "string", "minLength": 3, "maxLength": 254},
        "password": {"type": "string", "minLength": 1, "maxLength": 128},
    },
    "required": ["email", "password"],
    "additionalProperties": True,
}

register_schema = {
    "type": "object",
    "properties": {
        "email": {"type": "string", "minLength": 3, "maxLength": 254},
        "password": {"type": "string", "minLength": 6, "maxLength": 128},
        "confirm": {"type": "string", "minLength": 1, "maxLength": 128},
    },
    "required": ["email", "password", "confirm"],
    "additionalProperties": True,
}
