"""
SQLAlchemy ORM Models
Review Platform
"""

from sqlalchemy import (
    Column, Integer, Float, String, Text, Boolean,
    DateTime, ForeignKey, JSON, Index
)
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime

Base = declarative_base()


class Category(Base):
    __tablename__ = "category"

    category_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    parent_id = Column(Integer, ForeignKey("category.category_id"))  # set for sub-categories
    created_at = Column(DateTime, default=datetime.utcnow)

    parent = relationship("Category", remote_side=[category_id], back_populates="children")
    children = relationship("Category", back_populates="parent")


class Company(Base):
    __tablename__ = "company"

    company_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    website = Column(String(500))
    category_id = Column(Integer, ForeignKey("category.category_id"))
    sub_category_id = Column(Integer, ForeignKey("category.category_id"))

    # Plan entitlement: tier plus admin overrides (NULL = use tier default)
    plan = Column(String(20), nullable=False, default="FREE")
    custom_email_limit = Column(Integer)
    custom_update_limit = Column(Integer)
    enable_analytics = Column(Boolean)
    enable_lead_gen = Column(Boolean)
    hide_competitors = Column(Boolean)
    badges = Column(JSON, default=list)

    # Stored trust score, recomputed whenever a review changes
    rating = Column(Float, default=0.0)
    review_count = Column(Integer, default=0)

    email_usage_count = Column(Integer, default=0)
    email_usage_reset_date = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    category = relationship("Category", foreign_keys=[category_id])
    sub_category = relationship("Category", foreign_keys=[sub_category_id])
    reviews = relationship("Review", back_populates="company", cascade="all, delete-orphan")
    updates = relationship("BusinessUpdate", back_populates="company", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_company_category", "category_id"),
        Index("ix_company_sub_category", "sub_category_id"),
    )


class Review(Base):
    __tablename__ = "review"

    review_id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("company.company_id"), nullable=False)
    author_name = Column(String(255))
    star_rating = Column(Integer, nullable=False)  # 1–5
    title = Column(String(255), nullable=False)
    comment = Column(Text, nullable=False)
    date_of_experience = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    company = relationship("Company", back_populates="reviews")

    __table_args__ = (Index("ix_review_company", "company_id"),)


class BusinessUpdate(Base):
    __tablename__ = "business_update"

    update_id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("company.company_id"), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(String(1000))
    link_url = Column(String(1000))
    created_at = Column(DateTime, default=datetime.utcnow)

    company = relationship("Company", back_populates="updates")

    __table_args__ = (
        Index("ix_update_company_created", "company_id", "created_at"),
    )
