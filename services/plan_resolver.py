"""
Plan/Feature Entitlement Resolver
---------------------------------
Computes the limits and feature flags a company actually gets:

  effective = override if override is not None else TIER_DEFAULTS[tier]

Overrides are admin-set per company and always win over the tier table.
Unknown or missing tiers resolve as FREE, the most restrictive tier.

Input  : tier + PlanOverrides (+ manually assigned badges)
Output : EffectiveFeatures
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, TypeVar

from services.badges import PLAN_AUTO_BADGES, effective_badges

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ─── Data Structures ─────────────────────────────────────────────────────────


class PlanTier(str, Enum):
    FREE = "FREE"
    GROWTH = "GROWTH"
    SCALE = "SCALE"
    CUSTOM = "CUSTOM"


class FeatureKey(str, Enum):
    """Keys the UI uses to gate feature visibility."""
    ANALYTICS_ADVANCED = "analytics_advanced"
    LEAD_GEN = "lead_gen"
    HIDE_COMPETITORS = "hide_competitors"
    EMAIL_CAMPAIGNS = "email_campaigns"
    BUSINESS_UPDATES = "business_updates"


@dataclass(frozen=True)
class TierDefaults:
    email_limit: int
    update_limit: int
    analytics_enabled: bool
    lead_gen_enabled: bool
    hide_competitors: bool


@dataclass(frozen=True)
class PlanOverrides:
    email_limit: Optional[int] = None
    update_limit: Optional[int] = None
    analytics_enabled: Optional[bool] = None
    lead_gen_enabled: Optional[bool] = None
    hide_competitors: Optional[bool] = None

    def is_empty(self) -> bool:
        return all(v is None for v in asdict(self).values())


@dataclass(frozen=True)
class EffectiveFeatures:
    tier: PlanTier
    email_limit: int
    update_limit: int
    analytics_enabled: bool
    lead_gen_enabled: bool
    hide_competitors: bool
    badges: Tuple[str, ...] = ()

    @property
    def analytics_tier(self) -> str:
        return "ADVANCED" if self.analytics_enabled else "BASIC"

    def has(self, feature: FeatureKey) -> bool:
        feature = FeatureKey(feature)
        if feature is FeatureKey.ANALYTICS_ADVANCED:
            return self.analytics_enabled
        if feature is FeatureKey.LEAD_GEN:
            return self.lead_gen_enabled
        if feature is FeatureKey.HIDE_COMPETITORS:
            return self.hide_competitors
        if feature is FeatureKey.EMAIL_CAMPAIGNS:
            return self.email_limit > 0
        return self.update_limit > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier": self.tier.value,
            "email_limit": self.email_limit,
            "update_limit": self.update_limit,
            "analytics_enabled": self.analytics_enabled,
            "analytics_tier": self.analytics_tier,
            "lead_gen_enabled": self.lead_gen_enabled,
            "hide_competitors": self.hide_competitors,
            "badges": list(self.badges),
            "features": [k.value for k in FeatureKey if self.has(k)],
        }


# ─── Tier table ──────────────────────────────────────────────────────────────

# CUSTOM has no built-in allowances; admins configure it per company.
TIER_DEFAULTS: Mapping[PlanTier, TierDefaults] = MappingProxyType({
    PlanTier.FREE: TierDefaults(
        email_limit=0, update_limit=0,
        analytics_enabled=False, lead_gen_enabled=False, hide_competitors=False,
    ),
    PlanTier.GROWTH: TierDefaults(
        email_limit=500, update_limit=10,
        analytics_enabled=True, lead_gen_enabled=True, hide_competitors=True,
    ),
    PlanTier.SCALE: TierDefaults(
        email_limit=5000, update_limit=20,
        analytics_enabled=True, lead_gen_enabled=True, hide_competitors=True,
    ),
    PlanTier.CUSTOM: TierDefaults(
        email_limit=0, update_limit=0,
        analytics_enabled=False, lead_gen_enabled=False, hide_competitors=False,
    ),
})


# ─── Resolution ──────────────────────────────────────────────────────────────


def resolve(override: Optional[T], default: T) -> T:
    """The override wins whenever it is set."""
    return default if override is None else override


def normalize_tier(value: Any) -> PlanTier:
    if isinstance(value, PlanTier):
        return value
    if isinstance(value, str):
        try:
            return PlanTier(value.strip().upper())
        except ValueError:
            pass
    if value is not None:
        logger.debug("Unknown plan tier %r, falling back to FREE", value)
    return PlanTier.FREE


def _limit_override(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return max(int(value), 0)
    except (TypeError, ValueError, OverflowError):
        return None


def _flag_override(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def resolve_features(
    tier: Any,
    overrides: Optional[PlanOverrides] = None,
    manual_badges: Iterable[str] = (),
    defaults: Mapping[PlanTier, TierDefaults] = TIER_DEFAULTS,
    auto_badges: Mapping[str, Tuple[str, ...]] = PLAN_AUTO_BADGES,
) -> EffectiveFeatures:
    plan = normalize_tier(tier)
    base = defaults.get(plan) or defaults[PlanTier.FREE]
    o = overrides or PlanOverrides()

    return EffectiveFeatures(
        tier=plan,
        email_limit=resolve(_limit_override(o.email_limit), base.email_limit),
        update_limit=resolve(_limit_override(o.update_limit), base.update_limit),
        analytics_enabled=resolve(_flag_override(o.analytics_enabled), base.analytics_enabled),
        lead_gen_enabled=resolve(_flag_override(o.lead_gen_enabled), base.lead_gen_enabled),
        hide_competitors=resolve(_flag_override(o.hide_competitors), base.hide_competitors),
        badges=effective_badges(plan.value, manual_badges, auto_badges),
    )


# ─── ORM adapters ────────────────────────────────────────────────────────────


def overrides_from_company(company) -> PlanOverrides:
    return PlanOverrides(
        email_limit=getattr(company, "custom_email_limit", None),
        update_limit=getattr(company, "custom_update_limit", None),
        analytics_enabled=getattr(company, "enable_analytics", None),
        lead_gen_enabled=getattr(company, "enable_lead_gen", None),
        hide_competitors=getattr(company, "hide_competitors", None),
    )


def resolve_company_features(company) -> EffectiveFeatures:
    return resolve_features(
        getattr(company, "plan", None),
        overrides_from_company(company),
        manual_badges=getattr(company, "badges", None) or (),
    )


# ─── Admin form parsing ──────────────────────────────────────────────────────


def parse_toggle(value: Any) -> Optional[bool]:
    """'default' / blank → None (use plan), 'true' → True, 'false' → False."""
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    text = str(value).strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return None


def parse_limit(value: Any) -> Optional[int]:
    """Blank → None (use plan); otherwise a non-negative int."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return _limit_override(value.strip() if isinstance(value, str) else value)


def format_toggle(value: Optional[bool]) -> str:
    """Inverse of parse_toggle, used to pre-fill the admin form."""
    if value is None:
        return "default"
    return "true" if value else "false"


def format_limit(value: Optional[int]) -> str:
    """Inverse of parse_limit; a blank field means the plan default."""
    return "" if value is None else str(value)


def override_form_values(company) -> Dict[str, str]:
    """Stored overrides rendered as admin form field values."""
    o = overrides_from_company(company)
    return {
        "email_limit": format_limit(o.email_limit),
        "update_limit": format_limit(o.update_limit),
        "analytics_enabled": format_toggle(o.analytics_enabled),
        "lead_gen_enabled": format_toggle(o.lead_gen_enabled),
        "hide_competitors": format_toggle(o.hide_competitors),
    }


def overrides_from_form(values: Mapping[str, Any]) -> PlanOverrides:
    return PlanOverrides(
        email_limit=parse_limit(values.get("email_limit")),
        update_limit=parse_limit(values.get("update_limit")),
        analytics_enabled=parse_toggle(values.get("analytics_enabled")),
        lead_gen_enabled=parse_toggle(values.get("lead_gen_enabled")),
        hide_competitors=parse_toggle(values.get("hide_competitors")),
    )
