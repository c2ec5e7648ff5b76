"""
Plan/feature entitlement and badge tests.
"""

import pytest

from services.badges import (
    MOST_RELEVANT, effective_badges, plan_exclusive_badges, public_badges, validate_badge_ids,
)
from services.exceptions import InvalidInputError
from services.plan_resolver import (
    FeatureKey, PlanOverrides, PlanTier, TIER_DEFAULTS, TierDefaults, format_limit, format_toggle,
    normalize_tier, override_form_values, overrides_from_form,
    overrides_from_company, parse_limit, parse_toggle, resolve, resolve_company_features,
    resolve_features,
)


# ─── Tier defaults ───────────────────────────────────────────────────────────

class TestTierDefaults:
    def test_free_has_nothing(self):
        f = resolve_features(PlanTier.FREE)
        assert f.email_limit == 0
        assert f.update_limit == 0
        assert not f.analytics_enabled
        assert not f.lead_gen_enabled
        assert not f.hide_competitors
        assert f.analytics_tier == "BASIC"
        assert f.to_dict()["features"] == []

    def test_growth(self):
        f = resolve_features("GROWTH")
        assert (f.email_limit, f.update_limit) == (500, 10)
        assert f.analytics_enabled and f.lead_gen_enabled and f.hide_competitors
        assert f.analytics_tier == "ADVANCED"

    def test_scale_limits_exceed_growth(self):
        growth, scale = resolve_features("GROWTH"), resolve_features("SCALE")
        assert scale.email_limit > growth.email_limit
        assert scale.update_limit == 20

    def test_custom_without_overrides_is_empty(self):
        f = resolve_features("CUSTOM")
        assert f.email_limit == 0
        assert not f.has(FeatureKey.LEAD_GEN)

    def test_every_tier_has_defaults(self):
        assert set(TIER_DEFAULTS) == set(PlanTier)


# ─── Overrides ───────────────────────────────────────────────────────────────

class TestOverrides:
    def test_resolve_prefers_override(self):
        assert resolve(None, 10) == 10
        assert resolve(0, 10) == 0
        assert resolve(False, True) is False

    def test_zero_limit_override_wins(self):
        f = resolve_features("SCALE", PlanOverrides(email_limit=0))
        assert f.email_limit == 0
        assert not f.has(FeatureKey.EMAIL_CAMPAIGNS)

    def test_false_flag_override_wins(self):
        f = resolve_features("GROWTH", PlanOverrides(analytics_enabled=False))
        assert not f.analytics_enabled
        assert f.lead_gen_enabled

    def test_custom_tier_configured_by_overrides(self):
        f = resolve_features("CUSTOM", PlanOverrides(
            email_limit=20000, update_limit=50, analytics_enabled=True,
        ))
        assert f.email_limit == 20000
        assert f.update_limit == 50
        assert f.analytics_enabled
        assert not f.lead_gen_enabled

    def test_free_can_be_granted_a_feature(self):
        f = resolve_features("FREE", PlanOverrides(lead_gen_enabled=True))
        assert f.has(FeatureKey.LEAD_GEN)
        assert "lead_gen" in f.to_dict()["features"]

    def test_negative_limit_override_floors_at_zero(self):
        assert resolve_features("GROWTH", PlanOverrides(update_limit=-4)).update_limit == 0

    def test_is_empty(self):
        assert PlanOverrides().is_empty()
        assert not PlanOverrides(hide_competitors=False).is_empty()

    def test_custom_defaults_table(self):
        table = dict(TIER_DEFAULTS)
        table[PlanTier.FREE] = TierDefaults(1, 1, True, False, False)
        f = resolve_features("FREE", defaults=table)
        assert f.email_limit == 1
        assert f.analytics_enabled


# ─── Tier normalization ──────────────────────────────────────────────────────

class TestNormalizeTier:
    @pytest.mark.parametrize("value,expected", [
        ("GROWTH", PlanTier.GROWTH),
        (" scale ", PlanTier.SCALE),
        (PlanTier.CUSTOM, PlanTier.CUSTOM),
        ("PRO", PlanTier.FREE),
        ("", PlanTier.FREE),
        (None, PlanTier.FREE),
        (42, PlanTier.FREE),
    ])
    def test_normalize(self, value, expected):
        assert normalize_tier(value) is expected

    def test_unknown_tier_resolves_as_free(self):
        assert resolve_features("ENTERPRISE").to_dict() == resolve_features("FREE").to_dict()


# ─── Form parsing ────────────────────────────────────────────────────────────

class TestFormParsing:
    @pytest.mark.parametrize("value,expected", [
        ("default", None),
        ("", None),
        (None, None),
        ("true", True),
        ("TRUE", True),
        ("false", False),
        (False, False),
    ])
    def test_parse_toggle(self, value, expected):
        assert parse_toggle(value) is expected

    @pytest.mark.parametrize("value,expected", [
        ("", None),
        ("   ", None),
        (None, None),
        ("25", 25),
        (" 0 ", 0),
        (300, 300),
        ("abc", None),
    ])
    def test_parse_limit(self, value, expected):
        assert parse_limit(value) == expected


# ─── Badges ──────────────────────────────────────────────────────────────────

class TestBadges:
    def test_plan_exclusive_set(self):
        assert plan_exclusive_badges() == {"COMMUNITY_FAV", "VERIFIED_DETAILS", "CATEGORY_LEADER"}

    def test_growth_gets_auto_badges_plus_manual(self):
        badges = effective_badges("GROWTH", ["FAST_REPLY"])
        assert badges == ("FAST_REPLY", "COMMUNITY_FAV", "VERIFIED_DETAILS")

    def test_stale_plan_badge_dropped_after_downgrade(self):
        assert effective_badges("FREE", ["CATEGORY_LEADER", "HIGH_RESPONSE"]) == ("HIGH_RESPONSE",)
        assert "CATEGORY_LEADER" not in effective_badges("GROWTH", ["CATEGORY_LEADER"])

    def test_custom_uses_manual_list_only(self):
        assert effective_badges("CUSTOM", ["CATEGORY_LEADER", "BOGUS"]) == ("CATEGORY_LEADER",)

    def test_duplicates_collapsed(self):
        assert effective_badges("SCALE", ["COMMUNITY_FAV", "FAST_REPLY", "FAST_REPLY"]) == (
            "FAST_REPLY", "COMMUNITY_FAV", "VERIFIED_DETAILS", "CATEGORY_LEADER",
        )

    def test_public_badges_hide_most_relevant(self):
        assert public_badges([MOST_RELEVANT, "FAST_REPLY"]) == ("FAST_REPLY",)

    def test_validate_rejects_unknown(self):
        with pytest.raises(InvalidInputError, match="NOPE"):
            validate_badge_ids(["FAST_REPLY", "NOPE"])

    def test_resolved_features_carry_badges(self):
        f = resolve_features("SCALE", manual_badges=[MOST_RELEVANT])
        assert f.badges[0] == MOST_RELEVANT
        assert "CATEGORY_LEADER" in f.to_dict()["badges"]


# ─── ORM adapters ────────────────────────────────────────────────────────────

class TestCompanyAdapter:
    def test_overrides_read_from_columns(self, make_company):
        company = make_company(plan="GROWTH", custom_email_limit=42, hide_competitors=False)
        overrides = overrides_from_company(company)
        assert overrides.email_limit == 42
        assert overrides.hide_competitors is False
        assert overrides.update_limit is None

    def test_resolve_company_features(self, make_company):
        company = make_company(plan="SCALE", enable_lead_gen=False)
        f = resolve_company_features(company)
        assert f.tier is PlanTier.SCALE
        assert f.email_limit == 5000
        assert not f.lead_gen_enabled

    def test_legacy_plan_value_resolves_as_free(self, make_company):
        company = make_company(plan="PRO")
        assert resolve_company_features(company).tier is PlanTier.FREE


# ─── Single-field overrides ──────────────────────────────────────────────────

OVERRIDE_FIELDS = ["email_limit", "update_limit", "analytics_enabled", "lead_gen_enabled", "hide_competitors"]
OVERRIDE_VALUES = {
    "email_limit": 1234,
    "update_limit": 3,
    "analytics_enabled": False,
    "lead_gen_enabled": False,
    "hide_competitors": False,
}


class TestSingleFieldOverride:
    @pytest.mark.parametrize("tier", [PlanTier.GROWTH, PlanTier.SCALE])
    @pytest.mark.parametrize("field", OVERRIDE_FIELDS)
    def test_other_fields_keep_tier_default(self, tier, field):
        value = OVERRIDE_VALUES[field]
        features = resolve_features(tier, PlanOverrides(**{field: value}))
        defaults = TIER_DEFAULTS[tier]

        assert getattr(features, field) == value
        for other in OVERRIDE_FIELDS:
            if other != field:
                assert getattr(features, other) == getattr(defaults, other)

    @pytest.mark.parametrize("field", ["analytics_enabled", "lead_gen_enabled", "hide_competitors"])
    def test_free_flag_override_leaves_limits_at_zero(self, field):
        features = resolve_features(PlanTier.FREE, PlanOverrides(**{field: True}))
        assert getattr(features, field) is True
        assert features.email_limit == 0
        assert features.update_limit == 0


# ─── Admin form values ───────────────────────────────────────────────────────

class TestOverrideFormValues:
    @pytest.mark.parametrize("value,text", [(None, "default"), (True, "true"), (False, "false")])
    def test_format_toggle_inverts_parse(self, value, text):
        assert format_toggle(value) == text
        assert parse_toggle(text) is value

    @pytest.mark.parametrize("value,text", [(None, ""), (0, "0"), (20000, "20000")])
    def test_format_limit_inverts_parse(self, value, text):
        assert format_limit(value) == text
        assert parse_limit(text) == value

    def test_form_prefilled_from_stored_overrides(self, make_company):
        company = make_company(plan="CUSTOM", custom_email_limit=20000, enable_analytics=True)
        values = override_form_values(company)
        assert values == {
            "email_limit": "20000",
            "update_limit": "",
            "analytics_enabled": "true",
            "lead_gen_enabled": "default",
            "hide_competitors": "default",
        }
        assert overrides_from_form(values) == overrides_from_company(company)
