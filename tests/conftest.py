"""
Shared fixtures: an in-memory database per test and company factories.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import itertools

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base, Category, Company, Review
from utils.demo_data import slugify


# ─── Database ────────────────────────────────────────────────────────────────

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def categories(db):
    software = Category(name="Software", slug="software")
    db.add(software)
    db.flush()
    dev_tools = Category(name="Developer Tools", slug="developer-tools", parent_id=software.category_id)
    hosting = Category(name="Cloud Hosting", slug="cloud-hosting", parent_id=software.category_id)
    db.add_all([dev_tools, hosting])
    db.flush()
    return {"software": software, "dev_tools": dev_tools, "hosting": hosting}


# ─── Factories ───────────────────────────────────────────────────────────────

@pytest.fixture
def make_company(db, categories):
    counter = itertools.count(1)

    def _make(plan="FREE", name=None, sub_category="dev_tools", **fields):
        name = name or f"Company {next(counter)}"
        sub = categories[sub_category] if sub_category else None
        company = Company(
            name=name,
            slug=slugify(name),
            plan=plan,
            category_id=categories["software"].category_id,
            sub_category_id=sub.category_id if sub else None,
            badges=[],
            **fields,
        )
        db.add(company)
        db.flush()
        return company

    return _make


@pytest.fixture
def add_reviews(db):
    """Insert raw review rows without touching the stored score."""
    def _add(company, stars):
        rows = [
            Review(company_id=company.company_id, star_rating=s, title="Title", comment="Comment")
            for s in stars
        ]
        db.add_all(rows)
        db.flush()
        return rows

    return _add
