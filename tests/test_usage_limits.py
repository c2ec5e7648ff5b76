"""
Email campaign and business update limit tests.
"""

from datetime import datetime

import pytest

from db.models import Company
from services.exceptions import InvalidInputError, LimitExceededError, NotFoundError
from services.usage_limits import (
    add_months, check_email_limit, check_update_limit, create_business_update,
    month_bounds, parse_recipients, record_email_usage, reserve_email_sends,
)

NOW = datetime(2024, 1, 15, 12, 0, 0)


# ─── Helpers ─────────────────────────────────────────────────────────────────

class TestDateHelpers:
    def test_add_months_simple(self):
        assert add_months(datetime(2024, 3, 10), 1) == datetime(2024, 4, 10)

    def test_add_months_crosses_year(self):
        assert add_months(datetime(2023, 12, 15, 8, 30), 1) == datetime(2024, 1, 15, 8, 30)

    def test_add_months_clamps_day(self):
        assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
        assert add_months(datetime(2023, 1, 31), 1) == datetime(2023, 2, 28)

    def test_month_bounds(self):
        start, end = month_bounds(datetime(2024, 12, 20, 17, 45))
        assert start == datetime(2024, 12, 1)
        assert end == datetime(2025, 1, 1)


class TestParseRecipients:
    def test_trims_filters_and_dedupes(self):
        raw = [" a@x.com ", "not-an-email", "a@x.com", "", None, "b@y.com"]
        assert parse_recipients(raw) == ["a@x.com", "b@y.com"]


# ─── Email limits ────────────────────────────────────────────────────────────

class TestEmailLimit:
    def test_allowed_up_to_the_limit(self, db, make_company):
        company = make_company(plan="GROWTH")
        check = check_email_limit(db, company.company_id, 500, now=NOW)
        assert check.allowed
        assert check.limit == 500
        assert check.remaining == 500

    def test_blocked_when_request_would_exceed(self, db, make_company):
        company = make_company(plan="GROWTH", email_usage_reset_date=datetime(2024, 2, 1))
        record_email_usage(db, company.company_id, 200)
        check = check_email_limit(db, company.company_id, 301, now=NOW)
        assert not check.allowed
        assert check.current_usage == 200
        assert check.message == (
            "Limit exceeded. You have 300 emails left this month, but tried to send 301."
        )

    def test_free_plan_cannot_send(self, db, make_company):
        company = make_company(plan="FREE")
        assert not check_email_limit(db, company.company_id, 1, now=NOW).allowed

    def test_override_raises_limit(self, db, make_company):
        company = make_company(plan="FREE", custom_email_limit=10)
        assert check_email_limit(db, company.company_id, 10, now=NOW).allowed

    def test_first_check_schedules_reset(self, db, make_company):
        company = make_company(plan="GROWTH")
        check_email_limit(db, company.company_id, 0, now=NOW)
        assert company.email_usage_reset_date == datetime(2024, 2, 15, 12, 0, 0)

    def test_lazy_monthly_reset(self, db, make_company):
        company = make_company(
            plan="GROWTH", email_usage_count=450, email_usage_reset_date=datetime(2024, 1, 1),
        )
        check = check_email_limit(db, company.company_id, 100, now=NOW)
        assert check.allowed
        assert check.current_usage == 0
        assert company.email_usage_count == 0
        assert company.email_usage_reset_date == datetime(2024, 2, 15, 12, 0, 0)

    def test_no_reset_before_due_date(self, db, make_company):
        company = make_company(
            plan="GROWTH", email_usage_count=450, email_usage_reset_date=datetime(2024, 2, 1),
        )
        check = check_email_limit(db, company.company_id, 100, now=NOW)
        assert not check.allowed
        assert company.email_usage_count == 450

    def test_unknown_company(self, db):
        with pytest.raises(NotFoundError):
            check_email_limit(db, 999, 1, now=NOW)


class TestReserveEmailSends:
    def test_reserve_records_usage(self, db, make_company):
        company = make_company(plan="SCALE")
        check = reserve_email_sends(db, company.company_id, 120, now=NOW)
        assert check.allowed
        assert check.current_usage == 120
        assert db.get(Company, company.company_id).email_usage_count == 120

    def test_reserve_over_limit_raises_and_does_not_count(self, db, make_company):
        company = make_company(plan="GROWTH", email_usage_count=499,
                               email_usage_reset_date=datetime(2024, 2, 1))
        with pytest.raises(LimitExceededError) as exc_info:
            reserve_email_sends(db, company.company_id, 2, now=NOW)
        assert exc_info.value.check.limit == 500
        assert "1 emails left" in str(exc_info.value)
        assert company.email_usage_count == 499

    def test_reserve_requires_recipients(self, db, make_company):
        company = make_company(plan="GROWTH")
        with pytest.raises(InvalidInputError, match="No valid recipient"):
            reserve_email_sends(db, company.company_id, 0, now=NOW)


# ─── Business updates ────────────────────────────────────────────────────────

class TestUpdateLimit:
    def test_free_plan_blocked(self, db, make_company):
        company = make_company(plan="FREE")
        check = check_update_limit(db, company.company_id, now=NOW)
        assert not check.allowed
        assert check.message == (
            "Monthly limit of 0 posts reached for FREE plan. Please upgrade to post more."
        )

    def test_limit_counts_current_month_only(self, db, make_company):
        company = make_company(plan="GROWTH", custom_update_limit=2)
        create_business_update(db, company.company_id, "One", "First post", now=datetime(2024, 1, 2))
        create_business_update(db, company.company_id, "Two", "Second post", now=datetime(2024, 1, 20))

        with pytest.raises(LimitExceededError):
            create_business_update(db, company.company_id, "Three", "Third", now=datetime(2024, 1, 31))

        update = create_business_update(db, company.company_id, "Feb", "New month", now=datetime(2024, 2, 1))
        assert update.update_id is not None
        assert update.created_at == datetime(2024, 2, 1)

    def test_growth_default_allows_ten(self, db, make_company):
        company = make_company(plan="GROWTH")
        for i in range(10):
            create_business_update(db, company.company_id, f"Post {i}", "Body", now=NOW)
        check = check_update_limit(db, company.company_id, now=NOW)
        assert not check.allowed
        assert check.current_usage == 10

    def test_title_and_content_required(self, db, make_company):
        company = make_company(plan="SCALE")
        with pytest.raises(InvalidInputError):
            create_business_update(db, company.company_id, "  ", "Body", now=NOW)
        with pytest.raises(InvalidInputError):
            create_business_update(db, company.company_id, "Title", "", now=NOW)
