"""
Pydantic schemas for API request/response validation.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import datetime

from services.plan_resolver import PlanTier


# ─── Request Schemas ─────────────────────────────────────────────────────────

class TrustScoreRequest(BaseModel):
    raw_average: Optional[float] = None
    rating_count: int = 0


class ReviewCreateRequest(BaseModel):
    star_rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., min_length=1, max_length=255)
    comment: str = Field(..., min_length=1)
    author_name: Optional[str] = None
    date_of_experience: Optional[datetime] = None


class ReviewUpdateRequest(BaseModel):
    star_rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = None
    date_of_experience: Optional[datetime] = None


class PlanChangeRequest(BaseModel):
    plan: PlanTier


class OverridesRequest(BaseModel):
    """Null means "use the plan default"."""
    email_limit: Optional[int] = Field(None, ge=0)
    update_limit: Optional[int] = Field(None, ge=0)
    analytics_enabled: Optional[bool] = None
    lead_gen_enabled: Optional[bool] = None
    hide_competitors: Optional[bool] = None


class FeatureToggleRequest(BaseModel):
    enabled: Optional[bool] = None


class BadgesRequest(BaseModel):
    badges: List[str] = []


class EmailSendRequest(BaseModel):
    recipients: List[str]


class BusinessUpdateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    link_url: Optional[str] = None


# ─── Response Schemas ────────────────────────────────────────────────────────

class TrustScoreResponse(BaseModel):
    raw_average: float
    rating_count: int
    score: float
    display_score: float
    star_blocks: float
    is_rated: bool
    band: str
    color: str


class FeaturesResponse(BaseModel):
    tier: str
    email_limit: int
    update_limit: int
    analytics_enabled: bool
    analytics_tier: str
    lead_gen_enabled: bool
    hide_competitors: bool
    badges: List[str]
    features: List[str]


class DistributionResponse(BaseModel):
    counts: Dict[int, int]
    percentages: Dict[int, float]
    total: int


class CompanySummary(BaseModel):
    company_id: int
    name: str
    slug: str
    plan: str
    review_count: int
    trust_score: TrustScoreResponse


class CompanyDetail(CompanySummary):
    website: Optional[str] = None
    distribution: DistributionResponse
    features: FeaturesResponse
    public_badges: List[str]


class ReviewResponse(BaseModel):
    review_id: int
    company_id: int
    author_name: Optional[str] = None
    star_rating: int
    title: str
    comment: str
    date_of_experience: Optional[datetime] = None
    company_trust_score: TrustScoreResponse


class UsageResponse(BaseModel):
    allowed: bool
    current_usage: int
    limit: int
    remaining: int
    requested: int
    message: Optional[str] = None


class BusinessUpdateResponse(BaseModel):
    update_id: int
    company_id: int
    title: str
    content: str
    image_url: Optional[str] = None
    link_url: Optional[str] = None
    created_at: datetime


class RecalculationResponse(BaseModel):
    status: str
    companies: int
    updated: int
    details: List[Dict[str, Any]]


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
