#!/usr/bin/env python3
"""
Quick CLI runner for the Review Platform.

Usage:
    python run.py                        # Demo: seed data and print trust scores
    python run.py --mode api             # Start FastAPI server
    python run.py --mode dashboard       # Start Streamlit admin dashboard
    python run.py --mode recalculate     # Recompute every company's trust score
    python run.py --mode seed            # Insert demo companies and reviews
"""

import sys
import os
import argparse
import logging

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("run")


def seed():
    from db.database import init_db, get_db
    from utils.demo_data import seed_demo_data

    init_db()
    with get_db() as db:
        created = seed_demo_data(db)
    logger.info(f"Seeded {len(created)} companies")


def recalculate():
    from db.database import init_db, get_db
    from services.base import JobRunner
    from services.recalculation import RecalculateScoresJob, ResetEmailUsageJob

    init_db()
    runner = JobRunner([RecalculateScoresJob(), ResetEmailUsageJob()], stop_on_failure=True)
    with get_db() as db:
        results = runner.execute(db)

    print(runner.summary())
    if not runner.success:
        sys.exit(1)
    print(results[0].data.summary())


def demo():
    """Seed demo data and print each company's score and entitlements."""
    from db.database import get_db
    from db.models import Company
    from services.badges import public_badges
    from services.plan_resolver import resolve_company_features
    from services.trust_score import rating_band, trust_score_from_stored

    seed()

    print("\n" + "=" * 78)
    print("  ⭐ REVIEW PLATFORM — TRUST SCORES & PLAN ENTITLEMENTS")
    print("=" * 78)

    with get_db() as db:
        for company in db.query(Company).order_by(Company.rating.desc()).all():
            score = trust_score_from_stored(company.rating, company.review_count)
            band = rating_band(score.star_blocks)
            features = resolve_company_features(company)
            print(
                f"\n  {company.name:<22} [{features.tier.value:<6}] "
                f"raw={score.raw_average:.2f}  n={score.rating_count:<4} "
                f"score={score.score:.2f}  blocks={score.star_blocks}  ({band.label})"
            )
            print(
                f"     emails/mo={features.email_limit:<6} updates/mo={features.update_limit:<3} "
                f"analytics={features.analytics_tier:<8} lead_gen={features.lead_gen_enabled}  "
                f"hide_competitors={features.hide_competitors}"
            )
            badges = public_badges(features.badges)
            if badges:
                print(f"     badges: {', '.join(badges)}")

    print("\n" + "=" * 78)
    print(f"  🔌 Start API:       uvicorn api.main:app --reload --port 8000")
    print(f"  🌐 Start dashboard: streamlit run dashboard/app.py")
    print("=" * 78 + "\n")


def start_api():
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


def start_dashboard():
    import subprocess
    subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        os.path.join(os.path.dirname(__file__), "dashboard", "app.py"),
        "--server.port", "8501",
    ])


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Review Platform")
    parser.add_argument(
        "--mode",
        choices=["demo", "api", "dashboard", "recalculate", "seed"],
        default="demo",
        help="Run mode: demo | api | dashboard | recalculate | seed",
    )
    args = parser.parse_args()

    if args.mode == "demo":
        demo()
    elif args.mode == "api":
        start_api()
    elif args.mode == "dashboard":
        start_dashboard()
    elif args.mode == "recalculate":
        recalculate()
    elif args.mode == "seed":
        seed()
