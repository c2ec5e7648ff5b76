"""
Badge catalog and plan badge entitlements.

Non-CUSTOM tiers carry a fixed automatic badge set; anything an admin
assigns by hand is kept alongside it, minus badges that belong to the
plan system. CUSTOM tier badges are assigned by hand only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

from services.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

MOST_RELEVANT = "MOST_RELEVANT"


@dataclass(frozen=True)
class BadgeInfo:
    label: str
    description: str


BADGE_CATALOG: Mapping[str, BadgeInfo] = MappingProxyType({
    "FAST_REPLY": BadgeInfo(
        "Fast Responder", "Typically replies to reviews within 24 hours."),
    "HIGH_RESPONSE": BadgeInfo(
        "Active Resolver", "Replies to 90% of negative reviews."),
    "VERIFIED_DETAILS": BadgeInfo(
        "Fully Verified", "Phone, Email, and Address verified by staff."),
    "COMMUNITY_FAV": BadgeInfo(
        "Community Favorite", "Maintains a 4.5+ rating for 3 months."),
    "CATEGORY_LEADER": BadgeInfo(
        "Category Leader", "Ranked in the Top 3 for this category."),
    MOST_RELEVANT: BadgeInfo(
        "Most Relevant", "Highlighted as a top choice for this category."),
})

# Keyed by tier value so this module stays independent of PlanTier.
PLAN_AUTO_BADGES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "FREE": (),
    "GROWTH": ("COMMUNITY_FAV", "VERIFIED_DETAILS"),
    "SCALE": ("COMMUNITY_FAV", "VERIFIED_DETAILS", "CATEGORY_LEADER"),
    "CUSTOM": (),
})


def _dedupe(badges: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for badge in badges:
        if badge in BADGE_CATALOG and badge not in seen:
            seen.append(badge)
    return tuple(seen)


def plan_exclusive_badges(auto_badges: Mapping[str, Tuple[str, ...]] = PLAN_AUTO_BADGES) -> frozenset:
    """Every badge that some tier grants automatically."""
    return frozenset(b for badges in auto_badges.values() for b in badges)


def effective_badges(
    tier: str,
    manual_badges: Iterable[str] = (),
    auto_badges: Mapping[str, Tuple[str, ...]] = PLAN_AUTO_BADGES,
) -> Tuple[str, ...]:
    """
    Badges a company actually holds.

    CUSTOM: the manual list as assigned (known ids only).
    Others: manual badges without plan-exclusive ones, then the tier's set,
    so a stale CATEGORY_LEADER left on a downgraded company is not shown.
    """
    manual = _dedupe(manual_badges or ())
    if tier == "CUSTOM":
        return manual

    exclusive = plan_exclusive_badges(auto_badges)
    kept = [b for b in manual if b not in exclusive]
    return _dedupe(kept + list(auto_badges.get(tier, ())))


def public_badges(badges: Iterable[str]) -> Tuple[str, ...]:
    """Badges for the transparency card; MOST_RELEVANT is shown in listings instead."""
    return tuple(b for b in badges if b != MOST_RELEVANT)


def validate_badge_ids(badges: Iterable[str]) -> Tuple[str, ...]:
    badges = tuple(badges)
    unknown = sorted(set(badges) - set(BADGE_CATALOG))
    if unknown:
        raise InvalidInputError(f"Unknown badge(s): {', '.join(unknown)}")
    return _dedupe(badges)
