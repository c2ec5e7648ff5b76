"""
Streamlit Dashboard
Review Platform — admin console

Sections:
  1. Sidebar — plan filter and score recalculation
  2. Overview KPIs
  3. Company table (trust score + effective entitlements)
  4. Star-block distribution / stabilizer effect charts
  5. Plan manager (tier, limit overrides, feature toggles)
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import streamlit as st
import pandas as pd
import numpy as np
import plotly.express as px
from typing import Dict, List
import logging

from config.settings import settings
from db.database import get_db, init_db
from db.models import Company
from services import plan_admin
from services.base import JobRunner
from services.exceptions import ServiceError
from services.plan_resolver import (
    PlanTier, TIER_DEFAULTS, override_form_values, overrides_from_form, resolve_company_features,
)
from services.recalculation import RecalculateScoresJob
from services.trust_score import rating_band, stabilize_score, trust_score_from_stored

logger = logging.getLogger(__name__)

TOGGLE_OPTIONS = {"Use Plan Default": "default", "Force Enable": "true", "Force Disable": "false"}

# ─── Page Config ─────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Review Platform Admin",
    page_icon="⭐",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ─── Data Loading ────────────────────────────────────────────────────────────

def load_companies() -> pd.DataFrame:
    """One row per company with its trust score and resolved plan entitlements."""
    rows: List[Dict] = []
    with get_db() as db:
        for company in db.query(Company).order_by(Company.name).all():
            score = trust_score_from_stored(company.rating, company.review_count)
            features = resolve_company_features(company)
            rows.append({
                "id": company.company_id,
                "Company": company.name,
                "Plan": features.tier.value,
                "Reviews": score.rating_count,
                "Raw Avg": round(score.raw_average, 2),
                "Trust Score": score.display_score,
                "Star Blocks": score.star_blocks,
                "Band": rating_band(score.star_blocks).label,
                "Emails/mo": features.email_limit,
                "Email Usage": company.email_usage_count or 0,
                "Updates/mo": features.update_limit,
                "Analytics": features.analytics_tier,
                "Lead Gen": features.lead_gen_enabled,
                "Hide Competitors": features.hide_competitors,
                "Badges": ", ".join(features.badges),
                "form": override_form_values(company),
            })
    return pd.DataFrame(rows)


# ─── Sidebar ─────────────────────────────────────────────────────────────────

def render_sidebar() -> Dict:
    with st.sidebar:
        st.title("⭐ Admin")
        st.divider()

        plans = st.multiselect(
            "Plans", [t.value for t in PlanTier], default=[t.value for t in PlanTier]
        )

        st.divider()
        st.subheader("🔄 Maintenance")
        if st.button("Recalculate all trust scores", use_container_width=True):
            runner = JobRunner([RecalculateScoresJob()])
            with get_db() as db:
                results = runner.execute(db)
            if runner.success:
                report = results[-1].data
                st.success(f"✅ {report.updated}/{report.companies} companies changed")
            else:
                st.error(f"❌ Recalculation failed: {results[-1].error}")

        st.divider()
        st.caption(
            f"Stabilizer: {settings.NEUTRAL_WEIGHT} virtual reviews of "
            f"{settings.NEUTRAL_RATING}★ · full 5 blocks at ≥ {settings.NEAR_PERFECT_THRESHOLD}"
        )

    return {"plans": plans}


# ─── KPI Cards ───────────────────────────────────────────────────────────────

def render_kpis(df: pd.DataFrame):
    rated = df[df["Reviews"] > 0]
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("🏢 Companies", len(df))
    with col2:
        st.metric("📝 Reviews", f"{int(df['Reviews'].sum()):,}")
    with col3:
        st.metric("⭐ Avg Trust Score", f"{rated['Trust Score'].mean():.2f}" if len(rated) else "—")
    with col4:
        paid = df[df["Plan"] != PlanTier.FREE.value]
        st.metric("💳 Paid Plans", len(paid))


# ─── Charts ──────────────────────────────────────────────────────────────────

def render_charts(df: pd.DataFrame):
    col1, col2 = st.columns(2)

    with col1:
        st.subheader("📊 Star-Block Distribution")
        fig = px.histogram(
            df, x="Star Blocks", color="Plan",
            nbins=11, range_x=[-0.25, 5.25],
            title="Companies per displayed star-block value",
        )
        fig.update_layout(height=400, bargap=0.1)
        st.plotly_chart(fig, use_container_width=True)

    with col2:
        st.subheader("🧮 Stabilizer Effect")
        counts = np.unique(np.geomspace(1, 1000, num=40).astype(int))
        curve = pd.DataFrame([
            {"Reviews": int(n), "Raw Avg": raw, "Trust Score": stabilize_score(raw, int(n))}
            for raw in (5.0, 4.0, 2.0)
            for n in counts
        ])
        fig = px.line(
            curve, x="Reviews", y="Trust Score", color="Raw Avg", log_x=True,
            title=f"Score vs review count (pulled toward {settings.NEUTRAL_RATING})",
        )
        fig.update_layout(height=400, yaxis_range=[0, 5])
        st.plotly_chart(fig, use_container_width=True)


# ─── Plan Manager ────────────────────────────────────────────────────────────

def _toggle_selectbox(label: str, stored: str, key: str) -> str:
    """Tri-state selectbox starting at the company's stored override."""
    labels = list(TOGGLE_OPTIONS)
    index = list(TOGGLE_OPTIONS.values()).index(stored)
    return TOGGLE_OPTIONS[st.selectbox(label, labels, index=index, key=key)]


def render_plan_manager(df: pd.DataFrame):
    st.subheader("🛠️ Plan Manager")
    if df.empty:
        st.info("No companies yet. Run `python run.py --mode seed` to load demo data.")
        return

    names = dict(zip(df["Company"], df["id"]))
    choice = st.selectbox("Company", list(names))
    company_id = int(names[choice])
    row = df[df["id"] == company_id].iloc[0]
    stored: Dict[str, str] = row["form"]

    with st.form(f"plan_form_{company_id}"):
        col1, col2 = st.columns(2)
        with col1:
            tier = st.selectbox(
                "Plan", [t.value for t in PlanTier],
                index=[t.value for t in PlanTier].index(row["Plan"]),
                help="Changing the plan clears every override you did not edit here.",
            )
            defaults = TIER_DEFAULTS[PlanTier(row["Plan"])]
            values = {
                "email_limit": st.text_input(
                    "Emails / Month", value=stored["email_limit"],
                    placeholder=f"Default: {defaults.email_limit}", key=f"email_{company_id}",
                ),
                "update_limit": st.text_input(
                    "Updates / Month", value=stored["update_limit"],
                    placeholder=f"Default: {defaults.update_limit}", key=f"updates_{company_id}",
                ),
            }
        with col2:
            values["analytics_enabled"] = _toggle_selectbox(
                "Adv. Analytics", stored["analytics_enabled"], f"analytics_{company_id}")
            values["lead_gen_enabled"] = _toggle_selectbox(
                "Lead Gen Cards", stored["lead_gen_enabled"], f"lead_gen_{company_id}")
            values["hide_competitors"] = _toggle_selectbox(
                "Hide Competitors", stored["hide_competitors"], f"competitors_{company_id}")

        submitted = st.form_submit_button("💾 Save Settings", type="primary")

    if submitted:
        edited = overrides_from_form(values) != overrides_from_form(stored)
        try:
            with get_db() as db:
                features = None
                if tier != row["Plan"]:
                    features = plan_admin.change_plan(db, company_id, tier)
                if edited or features is None:
                    features = plan_admin.update_overrides(db, company_id, overrides_from_form(values))
            st.success(f"✅ Features updated for {choice}")
            st.json(features.to_dict())
        except ServiceError as e:
            st.error(f"❌ {e}")


# ─── Main App ─────────────────────────────────────────────────────────────────

def main():
    st.title("⭐ Review Platform — Admin")
    st.caption("Trust scores, plan entitlements and overrides")

    init_db()
    config = render_sidebar()
    df = load_companies()

    if df.empty:
        render_plan_manager(df)
        return

    df = df[df["Plan"].isin(config["plans"])]

    render_kpis(df)
    st.divider()

    tab1, tab2, tab3 = st.tabs(["🏢 Companies", "📊 Scores", "🛠️ Plans"])
    with tab1:
        st.dataframe(df.drop(columns=["id", "form"]), use_container_width=True, hide_index=True)
    with tab2:
        render_charts(df)
    with tab3:
        render_plan_manager(df)


if __name__ == "__main__":
    main()
