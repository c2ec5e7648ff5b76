"""
Review lifecycle.

Every create, edit or delete recomputes the company's stored trust score
from its full set of star ratings.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from db.models import Company, Review
from models.schemas import RatingDistribution, TrustScore
from services.exceptions import InvalidInputError, NotFoundError
from services.trust_score import rating_distribution, trust_score_from_ratings

logger = logging.getLogger(__name__)


def _validate_rating(star_rating) -> int:
    if isinstance(star_rating, bool):
        raise InvalidInputError("Please select a rating.")
    try:
        value = float(star_rating)
    except (TypeError, ValueError):
        raise InvalidInputError("Please select a rating.")
    if not value.is_integer() or not 1 <= value <= 5:
        raise InvalidInputError("Please select a rating.")
    return int(value)


def _get_company(db: Session, company_id: int) -> Company:
    company = db.get(Company, company_id)
    if company is None:
        raise NotFoundError(f"Company {company_id} not found.")
    return company


def _get_review(db: Session, review_id: int) -> Review:
    review = db.get(Review, review_id)
    if review is None:
        raise NotFoundError(f"Review {review_id} not found.")
    return review


def _star_ratings(db: Session, company_id: int):
    rows = db.query(Review.star_rating).filter(Review.company_id == company_id).all()
    return [r[0] for r in rows]


def recalculate_company_rating(db: Session, company: Company) -> TrustScore:
    """Store the stabilized score and review count on the company."""
    db.flush()
    score = trust_score_from_ratings(_star_ratings(db, company.company_id))
    company.rating = score.score
    company.review_count = score.rating_count
    db.flush()
    logger.debug(
        "Company %s: %d reviews -> score %.2f",
        company.company_id, score.rating_count, score.score,
    )
    return score


def create_review(
    db: Session,
    company_id: int,
    star_rating,
    title: str,
    comment: str,
    author_name: Optional[str] = None,
    date_of_experience: Optional[datetime] = None,
) -> Review:
    rating = _validate_rating(star_rating)
    if not (title or "").strip() or not (comment or "").strip():
        raise InvalidInputError("Fields cannot be empty.")

    company = _get_company(db, company_id)
    review = Review(
        company_id=company.company_id,
        author_name=author_name,
        star_rating=rating,
        title=title.strip(),
        comment=comment.strip(),
        date_of_experience=date_of_experience or datetime.utcnow(),
    )
    db.add(review)
    recalculate_company_rating(db, company)
    logger.info("Review %s created for company %s (%d★)", review.review_id, company_id, rating)
    return review


def update_review(
    db: Session,
    review_id: int,
    star_rating=None,
    title: Optional[str] = None,
    comment: Optional[str] = None,
    date_of_experience: Optional[datetime] = None,
) -> Review:
    review = _get_review(db, review_id)

    if star_rating is not None:
        review.star_rating = _validate_rating(star_rating)
    if title is not None:
        if not title.strip():
            raise InvalidInputError("Fields cannot be empty.")
        review.title = title.strip()
    if comment is not None:
        if not comment.strip():
            raise InvalidInputError("Fields cannot be empty.")
        review.comment = comment.strip()
    if date_of_experience is not None:
        review.date_of_experience = date_of_experience

    recalculate_company_rating(db, _get_company(db, review.company_id))
    return review


def delete_review(db: Session, review_id: int) -> TrustScore:
    review = _get_review(db, review_id)
    company = _get_company(db, review.company_id)
    db.delete(review)
    score = recalculate_company_rating(db, company)
    logger.info("Review %s deleted; company %s rescored", review_id, company.company_id)
    return score


def company_trust_score(db: Session, company_id: int) -> TrustScore:
    _get_company(db, company_id)
    return trust_score_from_ratings(_star_ratings(db, company_id))


def company_rating_distribution(db: Session, company_id: int) -> RatingDistribution:
    _get_company(db, company_id)
    return rating_distribution(_star_ratings(db, company_id))
