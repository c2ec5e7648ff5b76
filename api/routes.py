"""
FastAPI Route Handlers
Review Platform
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from api.schemas import (
    TrustScoreRequest, TrustScoreResponse, ReviewCreateRequest, ReviewUpdateRequest,
    ReviewResponse, PlanChangeRequest, OverridesRequest, FeatureToggleRequest,
    BadgesRequest, EmailSendRequest, BusinessUpdateRequest, BusinessUpdateResponse,
    FeaturesResponse, CompanySummary, CompanyDetail, DistributionResponse,
    UsageResponse, RecalculationResponse, HealthResponse,
)
from config.settings import settings
from db.database import get_db_dependency
from db.models import Company
from models.schemas import TrustScore
from services import plan_admin, reviews, usage_limits
from services.badges import public_badges
from services.base import JobRunner
from services.exceptions import NotFoundError
from services.plan_resolver import (
    EffectiveFeatures, FeatureKey, PlanOverrides, normalize_tier, resolve_company_features,
)
from services.recalculation import RecalculateScoresJob
from services.trust_score import compute_trust_score, rating_band, trust_score_from_stored

logger = logging.getLogger(__name__)

router = APIRouter()


# ─── Helpers ─────────────────────────────────────────────────────────────────

def _trust_response(score: TrustScore) -> TrustScoreResponse:
    band = rating_band(score.star_blocks)
    return TrustScoreResponse(**score.to_dict(), band=band.label, color=band.color)


def _features_response(features: EffectiveFeatures) -> FeaturesResponse:
    return FeaturesResponse(**features.to_dict())


def _company_summary(company: Company) -> CompanySummary:
    score = trust_score_from_stored(company.rating, company.review_count)
    return CompanySummary(
        company_id=company.company_id,
        name=company.name,
        slug=company.slug,
        plan=normalize_tier(company.plan).value,
        review_count=company.review_count or 0,
        trust_score=_trust_response(score),
    )


def _get_company(db: Session, company_id: int) -> Company:
    company = db.get(Company, company_id)
    if company is None:
        raise NotFoundError(f"Company {company_id} not found.")
    return company


# ─── Health ──────────────────────────────────────────────────────────────────

@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    return HealthResponse(
        status="ok",
        version=settings.APP_VERSION,
        timestamp=datetime.utcnow(),
    )


# ─── Trust Score ─────────────────────────────────────────────────────────────

@router.post("/trust-score", response_model=TrustScoreResponse, tags=["Trust Score"])
async def trust_score(request: TrustScoreRequest):
    """Stabilized score and star blocks for a raw average and rating count."""
    return _trust_response(compute_trust_score(request.raw_average, request.rating_count))


# ─── Companies ───────────────────────────────────────────────────────────────

@router.get("/companies", response_model=List[CompanySummary], tags=["Companies"])
def list_companies(
    plan: Optional[str] = None,
    limit: int = 50,
    db: Session = Depends(get_db_dependency),
):
    query = db.query(Company)
    if plan:
        query = query.filter(Company.plan == normalize_tier(plan).value)
    companies = query.order_by(Company.rating.desc(), Company.name).limit(limit).all()
    return [_company_summary(c) for c in companies]


@router.get("/companies/{slug}", response_model=CompanyDetail, tags=["Companies"])
def get_company(slug: str, db: Session = Depends(get_db_dependency)):
    company = db.query(Company).filter(Company.slug == slug).first()
    if company is None:
        raise HTTPException(status_code=404, detail=f"Company '{slug}' not found.")

    summary = _company_summary(company)
    features = resolve_company_features(company)
    distribution = reviews.company_rating_distribution(db, company.company_id)
    return CompanyDetail(
        **summary.model_dump(),
        website=company.website,
        distribution=DistributionResponse(**distribution.to_dict()),
        features=_features_response(features),
        public_badges=list(public_badges(features.badges)),
    )


@router.get("/companies/{company_id}/features", response_model=FeaturesResponse, tags=["Plans"])
def get_features(company_id: int, db: Session = Depends(get_db_dependency)):
    return _features_response(resolve_company_features(_get_company(db, company_id)))


# ─── Reviews ─────────────────────────────────────────────────────────────────

def _review_response(db: Session, review) -> ReviewResponse:
    return ReviewResponse(
        review_id=review.review_id,
        company_id=review.company_id,
        author_name=review.author_name,
        star_rating=review.star_rating,
        title=review.title,
        comment=review.comment,
        date_of_experience=review.date_of_experience,
        company_trust_score=_trust_response(reviews.company_trust_score(db, review.company_id)),
    )


@router.post("/companies/{company_id}/reviews", response_model=ReviewResponse,
             status_code=201, tags=["Reviews"])
def create_review(company_id: int, request: ReviewCreateRequest,
                  db: Session = Depends(get_db_dependency)):
    review = reviews.create_review(
        db,
        company_id=company_id,
        star_rating=request.star_rating,
        title=request.title,
        comment=request.comment,
        author_name=request.author_name,
        date_of_experience=request.date_of_experience,
    )
    db.commit()
    return _review_response(db, review)


@router.put("/reviews/{review_id}", response_model=ReviewResponse, tags=["Reviews"])
def update_review(review_id: int, request: ReviewUpdateRequest,
                  db: Session = Depends(get_db_dependency)):
    review = reviews.update_review(
        db,
        review_id,
        star_rating=request.star_rating,
        title=request.title,
        comment=request.comment,
        date_of_experience=request.date_of_experience,
    )
    db.commit()
    return _review_response(db, review)


@router.delete("/reviews/{review_id}", response_model=TrustScoreResponse, tags=["Reviews"])
def delete_review(review_id: int, db: Session = Depends(get_db_dependency)):
    score = reviews.delete_review(db, review_id)
    db.commit()
    return _trust_response(score)


# ─── Usage ───────────────────────────────────────────────────────────────────

@router.get("/companies/{company_id}/email-usage", response_model=UsageResponse, tags=["Usage"])
def get_email_usage(company_id: int, db: Session = Depends(get_db_dependency)):
    check = usage_limits.check_email_limit(db, company_id, 0)
    db.commit()
    return UsageResponse(**check.to_dict())


@router.post("/companies/{company_id}/email-sends", response_model=UsageResponse, tags=["Usage"])
def reserve_email_sends(company_id: int, request: EmailSendRequest,
                        db: Session = Depends(get_db_dependency)):
    """Count a campaign's recipients against the monthly email limit."""
    recipients = usage_limits.parse_recipients(request.recipients)
    check = usage_limits.reserve_email_sends(db, company_id, len(recipients))
    db.commit()
    return UsageResponse(**check.to_dict())


@router.post("/companies/{company_id}/updates", response_model=BusinessUpdateResponse,
             status_code=201, tags=["Usage"])
def publish_update(company_id: int, request: BusinessUpdateRequest,
                   db: Session = Depends(get_db_dependency)):
    update = usage_limits.create_business_update(
        db,
        company_id,
        title=request.title,
        content=request.content,
        image_url=request.image_url,
        link_url=request.link_url,
    )
    db.commit()
    return BusinessUpdateResponse(
        update_id=update.update_id,
        company_id=update.company_id,
        title=update.title,
        content=update.content,
        image_url=update.image_url,
        link_url=update.link_url,
        created_at=update.created_at,
    )


# ─── Admin: Plans & Badges ───────────────────────────────────────────────────

@router.put("/admin/companies/{company_id}/plan", response_model=FeaturesResponse, tags=["Admin"])
def change_plan(company_id: int, request: PlanChangeRequest,
                db: Session = Depends(get_db_dependency)):
    features = plan_admin.change_plan(db, company_id, request.plan)
    db.commit()
    return _features_response(features)


@router.put("/admin/companies/{company_id}/overrides", response_model=FeaturesResponse, tags=["Admin"])
def update_overrides(company_id: int, request: OverridesRequest,
                     db: Session = Depends(get_db_dependency)):
    features = plan_admin.update_overrides(db, company_id, PlanOverrides(**request.model_dump()))
    db.commit()
    return _features_response(features)


@router.put("/admin/companies/{company_id}/features/{feature_key}",
            response_model=FeaturesResponse, tags=["Admin"])
def toggle_feature(company_id: int, feature_key: FeatureKey, request: FeatureToggleRequest,
                   db: Session = Depends(get_db_dependency)):
    features = plan_admin.set_feature_override(db, company_id, feature_key, request.enabled)
    db.commit()
    return _features_response(features)


@router.put("/admin/companies/{company_id}/badges", response_model=FeaturesResponse, tags=["Admin"])
def update_badges(company_id: int, request: BadgesRequest,
                  db: Session = Depends(get_db_dependency)):
    features = plan_admin.update_badges(db, company_id, request.badges)
    db.commit()
    return _features_response(features)


@router.post("/admin/recalculate-scores", response_model=RecalculationResponse, tags=["Admin"])
def recalculate_scores(db: Session = Depends(get_db_dependency)):
    runner = JobRunner([RecalculateScoresJob()])
    results = runner.execute(db)
    if not runner.success:
        raise HTTPException(status_code=500, detail=f"Recalculation failed: {results[-1].error}")

    report = results[-1].data
    return RecalculationResponse(
        status="success",
        companies=report.companies,
        updated=report.updated,
        details=report.details,
    )
