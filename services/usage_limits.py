"""
Usage limits for email campaigns and business update posts.

Email usage is a monthly counter on the company with a lazy reset: the
first check after the reset date wipes the counter and schedules the next
reset one month out. Update posts are counted per calendar month.
"""

import calendar
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from config.settings import settings
from db.models import BusinessUpdate, Company
from models.schemas import UsageCheck
from services.exceptions import InvalidInputError, LimitExceededError, NotFoundError
from services.plan_resolver import resolve_company_features

logger = logging.getLogger(__name__)


def add_months(moment: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def month_bounds(moment: datetime):
    start = moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return start, add_months(start, 1)


def parse_recipients(raw: Iterable[str]) -> List[str]:
    """Trim, drop anything without an '@', de-duplicate keeping order."""
    recipients: List[str] = []
    for entry in raw:
        email = (entry or "").strip()
        if "@" in email and email not in recipients:
            recipients.append(email)
    return recipients


def _get_company(db: Session, company_id: int) -> Company:
    company = db.get(Company, company_id)
    if company is None:
        raise NotFoundError(f"Company {company_id} not found.")
    return company


# ─── Email campaigns ─────────────────────────────────────────────────────────


def _apply_monthly_reset(company: Company, now: datetime) -> None:
    reset_at = company.email_usage_reset_date
    if reset_at is None or now > reset_at:
        company.email_usage_count = 0
        company.email_usage_reset_date = add_months(now, settings.EMAIL_RESET_PERIOD_MONTHS)
        logger.info(
            "Email usage reset for company %s; next reset %s",
            company.company_id, company.email_usage_reset_date.isoformat(),
        )


def check_email_limit(
    db: Session,
    company_id: int,
    recipient_count: int,
    now: Optional[datetime] = None,
) -> UsageCheck:
    now = now or datetime.utcnow()
    company = _get_company(db, company_id)
    _apply_monthly_reset(company, now)
    db.flush()

    current = company.email_usage_count or 0
    limit = resolve_company_features(company).email_limit

    if current + recipient_count > limit:
        return UsageCheck(
            allowed=False,
            current_usage=current,
            limit=limit,
            requested=recipient_count,
            message=(
                f"Limit exceeded. You have {max(limit - current, 0)} emails left this month, "
                f"but tried to send {recipient_count}."
            ),
        )
    return UsageCheck(allowed=True, current_usage=current, limit=limit, requested=recipient_count)


def record_email_usage(db: Session, company_id: int, count: int) -> int:
    company = _get_company(db, company_id)
    company.email_usage_count = (company.email_usage_count or 0) + count
    db.flush()
    return company.email_usage_count


def reserve_email_sends(
    db: Session,
    company_id: int,
    recipient_count: int,
    now: Optional[datetime] = None,
) -> UsageCheck:
    """Check the limit and count the sends against it in one step."""
    if recipient_count <= 0:
        raise InvalidInputError("No valid recipient emails found.")

    check = check_email_limit(db, company_id, recipient_count, now=now)
    if not check.allowed:
        logger.info("Email send blocked for company %s: %s", company_id, check.message)
        raise LimitExceededError(check)

    usage = record_email_usage(db, company_id, recipient_count)
    return UsageCheck(
        allowed=True,
        current_usage=usage,
        limit=check.limit,
        requested=recipient_count,
    )


# ─── Business updates ────────────────────────────────────────────────────────


def check_update_limit(db: Session, company_id: int, now: Optional[datetime] = None) -> UsageCheck:
    now = now or datetime.utcnow()
    company = _get_company(db, company_id)
    features = resolve_company_features(company)
    start, end = month_bounds(now)

    current = (
        db.query(func.count(BusinessUpdate.update_id))
        .filter(
            BusinessUpdate.company_id == company_id,
            BusinessUpdate.created_at >= start,
            BusinessUpdate.created_at < end,
        )
        .scalar()
    ) or 0

    if current >= features.update_limit:
        return UsageCheck(
            allowed=False,
            current_usage=current,
            limit=features.update_limit,
            requested=1,
            message=(
                f"Monthly limit of {features.update_limit} posts reached for "
                f"{features.tier.value} plan. Please upgrade to post more."
            ),
        )
    return UsageCheck(allowed=True, current_usage=current, limit=features.update_limit, requested=1)


def create_business_update(
    db: Session,
    company_id: int,
    title: str,
    content: str,
    image_url: Optional[str] = None,
    link_url: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BusinessUpdate:
    if not (title or "").strip() or not (content or "").strip():
        raise InvalidInputError("Title and content are required.")

    now = now or datetime.utcnow()
    check = check_update_limit(db, company_id, now=now)
    if not check.allowed:
        raise LimitExceededError(check)

    update = BusinessUpdate(
        company_id=company_id,
        title=title.strip(),
        content=content.strip(),
        image_url=image_url,
        link_url=link_url or "",
        created_at=now,
    )
    db.add(update)
    db.flush()
    logger.info("Business update %s published for company %s", update.update_id, company_id)
    return update
