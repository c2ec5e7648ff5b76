"""
Demo data seeding.

Creates a small directory of categories and companies across every plan
tier, with synthetic reviews whose star mix varies per company, then
scores them through the normal review path.
"""

from __future__ import annotations

import logging
import random
import re
from datetime import datetime, timedelta
from typing import Dict, List

from sqlalchemy.orm import Session

from db.models import Category, Company, Review
from services.reviews import recalculate_company_rating

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    text = text.strip().lower()
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"[^\w\-]+", "", text)
    return re.sub(r"-{2,}", "-", text)


CATEGORIES = {
    "Banking & Finance": ["Banks", "Credit Cards"],
    "Home Services": ["Cleaning", "Plumbing"],
    "Software": ["Cloud Hosting", "Developer Tools"],
}

# (name, sub-category, plan, positive share, review count)
COMPANIES = [
    ("Harbor Trust Bank", "Banks", "SCALE", 0.92, 640),
    ("Northwind Credit", "Credit Cards", "GROWTH", 0.55, 48),
    ("Sparkle Cleaners", "Cleaning", "FREE", 0.80, 12),
    ("PipeWorks", "Plumbing", "FREE", 1.00, 1),
    ("Nimbus Cloud", "Cloud Hosting", "CUSTOM", 0.70, 210),
    ("ByteForge", "Developer Tools", "GROWTH", 0.30, 35),
    ("Quiet Start Ltd", "Developer Tools", "FREE", 0.0, 0),
]

POSITIVE = [
    ("Great service", "Quick, friendly and exactly what I needed."),
    ("Highly recommend", "Smooth experience from start to finish."),
    ("Reliable", "They did what they promised, on time."),
]

NEGATIVE = [
    ("Disappointed", "Took weeks to get a response from support."),
    ("Not worth it", "Hidden fees and nobody could explain them."),
    ("Poor experience", "The booking was cancelled twice without notice."),
]


def _synthetic_reviews(company: Company, positive_share: float, n: int) -> List[Review]:
    rng = random.Random(company.slug)
    reviews = []
    for _ in range(n):
        happy = rng.random() < positive_share
        star = rng.choice([4, 5, 5]) if happy else rng.choice([1, 2, 3])
        title, comment = rng.choice(POSITIVE if happy else NEGATIVE)
        reviews.append(Review(
            company_id=company.company_id,
            author_name=f"user_{rng.randint(1000, 9999)}",
            star_rating=star,
            title=title,
            comment=comment,
            date_of_experience=datetime.utcnow() - timedelta(days=rng.randint(1, 365)),
        ))
    return reviews


def seed_demo_data(db: Session) -> List[Company]:
    """Insert demo rows. Existing companies with the same slug are left alone."""
    categories: Dict[str, Category] = {}
    for parent_name, children in CATEGORIES.items():
        parent = db.query(Category).filter(Category.slug == slugify(parent_name)).first()
        if parent is None:
            parent = Category(name=parent_name, slug=slugify(parent_name))
            db.add(parent)
            db.flush()
        categories[parent_name] = parent
        for child_name in children:
            child = db.query(Category).filter(Category.slug == slugify(child_name)).first()
            if child is None:
                child = Category(name=child_name, slug=slugify(child_name), parent_id=parent.category_id)
                db.add(child)
                db.flush()
            categories[child_name] = child

    created: List[Company] = []
    for name, sub_name, plan, positive_share, n in COMPANIES:
        slug = slugify(name)
        if db.query(Company).filter(Company.slug == slug).first() is not None:
            continue
        sub = categories[sub_name]
        company = Company(
            name=name,
            slug=slug,
            website=f"https://{slug}.example.com",
            category_id=sub.parent_id,
            sub_category_id=sub.category_id,
            plan=plan,
            badges=["FAST_REPLY"] if plan in ("GROWTH", "CUSTOM") else [],
        )
        if plan == "CUSTOM":
            company.custom_email_limit = 20000
            company.custom_update_limit = 50
            company.enable_analytics = True
        db.add(company)
        db.flush()

        db.add_all(_synthetic_reviews(company, positive_share, n))
        score = recalculate_company_rating(db, company)
        logger.info(f"Seeded {name} ({plan}): {score.rating_count} reviews -> {score.score:.2f}")
        created.append(company)

    db.flush()
    return created
