"""
Administrative plan changes: tier, overrides, single feature toggles and
manually assigned badges. Every operation returns the company's new
EffectiveFeatures.
"""

import logging
from typing import Iterable

from sqlalchemy.orm import Session

from config.settings import settings
from db.models import Company
from services.badges import MOST_RELEVANT, validate_badge_ids
from services.exceptions import InvalidInputError, NotFoundError
from services.plan_resolver import (
    EffectiveFeatures, FeatureKey, PlanOverrides, PlanTier, resolve_company_features,
)

logger = logging.getLogger(__name__)

# Boolean overrides an admin can toggle one at a time
FEATURE_OVERRIDE_COLUMNS = {
    FeatureKey.ANALYTICS_ADVANCED: "enable_analytics",
    FeatureKey.LEAD_GEN: "enable_lead_gen",
    FeatureKey.HIDE_COMPETITORS: "hide_competitors",
}


def _get_company(db: Session, company_id: int) -> Company:
    company = db.get(Company, company_id)
    if company is None:
        raise NotFoundError(f"Company {company_id} not found.")
    return company


def _apply_overrides(company: Company, overrides: PlanOverrides) -> None:
    company.custom_email_limit = overrides.email_limit
    company.custom_update_limit = overrides.update_limit
    company.enable_analytics = overrides.analytics_enabled
    company.enable_lead_gen = overrides.lead_gen_enabled
    company.hide_competitors = overrides.hide_competitors


def change_plan(db: Session, company_id: int, tier) -> EffectiveFeatures:
    """
    Move a company to a new tier.

    Clears every override so the company gets exactly what the new plan
    promises; CUSTOM companies are then configured through update_overrides.
    """
    try:
        plan = PlanTier(tier.strip().upper() if isinstance(tier, str) else tier)
    except ValueError:
        raise InvalidInputError(f"Unknown plan: {tier}")

    company = _get_company(db, company_id)
    previous = company.plan
    company.plan = plan.value
    _apply_overrides(company, PlanOverrides())
    db.flush()
    logger.info("Company %s plan changed %s -> %s", company_id, previous, plan.value)
    return resolve_company_features(company)


def update_overrides(db: Session, company_id: int, overrides: PlanOverrides) -> EffectiveFeatures:
    for name in ("email_limit", "update_limit"):
        value = getattr(overrides, name)
        if value is not None and value < 0:
            raise InvalidInputError(f"{name} cannot be negative.")

    company = _get_company(db, company_id)
    _apply_overrides(company, overrides)
    db.flush()
    logger.info("Company %s overrides updated: %s", company_id, overrides)
    return resolve_company_features(company)


def set_feature_override(db: Session, company_id: int, feature, enabled) -> EffectiveFeatures:
    """Force a boolean feature on/off, or pass enabled=None to fall back to the plan."""
    try:
        column = FEATURE_OVERRIDE_COLUMNS[FeatureKey(feature)]
    except (ValueError, KeyError):
        raise InvalidInputError(f"Feature '{feature}' cannot be toggled.")

    company = _get_company(db, company_id)
    setattr(company, column, enabled)
    db.flush()
    return resolve_company_features(company)


def _most_relevant_holders(db: Session, company: Company) -> int:
    query = db.query(Company).filter(Company.company_id != company.company_id)
    if company.sub_category_id is not None:
        query = query.filter(Company.sub_category_id == company.sub_category_id)
    else:
        query = query.filter(Company.category_id == company.category_id)
    return sum(1 for other in query.all() if MOST_RELEVANT in (other.badges or []))


def update_badges(db: Session, company_id: int, badges: Iterable[str]) -> EffectiveFeatures:
    """
    Replace a company's manually assigned badges.

    MOST_RELEVANT is capped per scope (sub-category when set, otherwise the
    main category); a company that already holds it can still edit its
    other badges.
    """
    badges = validate_badge_ids(badges)
    company = _get_company(db, company_id)

    if MOST_RELEVANT in badges and MOST_RELEVANT not in (company.badges or []):
        holders = _most_relevant_holders(db, company)
        if holders >= settings.MOST_RELEVANT_SCOPE_LIMIT:
            scope = "Sub-Category" if company.sub_category_id is not None else "Main Category"
            raise InvalidInputError(
                f'Limit Reached: {settings.MOST_RELEVANT_SCOPE_LIMIT} companies in this '
                f'{scope} already have "Most Relevant". Remove the badge from another company first.'
            )

    company.badges = list(badges)
    db.flush()
    logger.info("Company %s badges set to %s", company_id, list(badges))
    return resolve_company_features(company)
