# domain/plans.py
"""
플랜 카탈로그: 런타임에 바뀌지 않는 참조 데이터.

limits 값이 None 이면 무제한.
가격은 USD cent 단위 (Stripe unit_amount 와 동일).
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

BILLING_CYCLES = ("monthly", "yearly")
USAGE_MODES = ("mini", "pro")


@dataclass(frozen=True)
class PlanLimits:
    max_words: Optional[int]
    ghost_mini_quota: Optional[int]
    ghost_pro_quota: Optional[int]

    def quota_for(self, mode: str) -> Optional[int]:
        return self.ghost_mini_quota if mode == "mini" else self.ghost_pro_quota

    def to_dict(self):
        return {
            "maxWords": self.max_words,
            "ghostMiniQuota": self.ghost_mini_quota,
            "ghostProQuota": self.ghost_pro_quota,
        }


@dataclass(frozen=True)
class PlanDefinition:
    id: str
    name: str
    limits: PlanLimits
    prices: Dict[str, int] = field(default_factory=dict)
    features: tuple = ()

    @property
    def is_purchasable(self) -> bool:
        return any(v > 0 for v in self.prices.values())

    def price_for(self, cycle: str) -> int:
        return int(self.prices.get(cycle) or 0)

    def to_dict(self):
        return {"id": self.id, "name": self.name, "limits": self.limits.to_dict()}


PLAN_CATALOG: Dict[str, PlanDefinition] = {
    "free": PlanDefinition(
        id="free",
        name="StealthWriter Free",
        limits=PlanLimits(max_words=300, ghost_mini_quota=5, ghost_pro_quota=0),
        prices={"monthly": 0, "yearly": 0},
        features=("Ghost Mini：每日 5 次改寫", "單次最高 300 字"),
    ),
    "basic": PlanDefinition(
        id="basic",
        name="StealthWriter Basic",
        limits=PlanLimits(max_words=1000, ghost_mini_quota=50, ghost_pro_quota=20),
        prices={"monthly": 499, "yearly": 4790},
        features=("Ghost Pro：每日 20 次改寫", "單次最高 1,000 字"),
    ),
    "standard": PlanDefinition(
        id="standard",
        name="StealthWriter Standard",
        limits=PlanLimits(max_words=3000, ghost_mini_quota=200, ghost_pro_quota=60),
        prices={"monthly": 799, "yearly": 5900},
        features=("Ghost Pro：每日 60 次改寫", "單次最高 3,000 字"),
    ),
    "premium": PlanDefinition(
        id="premium",
        name="StealthWriter Premium",
        limits=PlanLimits(max_words=5000, ghost_mini_quota=None, ghost_pro_quota=None),
        prices={"monthly": 1499, "yearly": 14390},
        features=("Ghost Mini / Pro：不限次數", "單次最高 5,000 字", "優先客服與專屬策略"),
    ),
    # 단일 구독 티어 (구버전 호환)
    "pro": PlanDefinition(
        id="pro",
        name="StealthWriter Pro",
        limits=PlanLimits(max_words=5000, ghost_mini_quota=None, ghost_pro_quota=None),
        prices={"monthly": 799, "yearly": 5900},
        features=(
            "Ghost Mini / Pro：每月 / 每年高頻改寫",
            "單次可改寫最高 5,000 字",
            "登入即能追蹤當日使用量與訂閱紀錄",
        ),
    ),
}

# 카탈로그 조회까지 실패했을 때 쓰는 하드코딩 플랜
FALLBACK_PLAN = PLAN_CATALOG["free"]


def get_plan(plan_id: Optional[str]) -> Optional[PlanDefinition]:
    if not plan_id:
        return None
    return PLAN_CATALOG.get(str(plan_id).strip().lower())


def purchasable_plans() -> List[PlanDefinition]:
    return [p for p in PLAN_CATALOG.values() if p.is_purchasable]


def format_price(cents: int) -> str:
    if cents % 100 == 0:
        return f"${cents // 100}"
    return f"${cents / 100:.2f}"
