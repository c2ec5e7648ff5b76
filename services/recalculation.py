"""
Batch maintenance jobs
----------------------
RecalculateScoresJob : recompute every company's stored trust score
ResetEmailUsageJob   : zero email counters whose monthly reset date passed

Input  : SQLAlchemy session
Output : RecalculationReport / int (companies reset)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from config.settings import settings
from db.models import Company, Review
from services.base import Job
from services.trust_score import trust_score_from_ratings
from services.usage_limits import add_months

logger = logging.getLogger(__name__)


@dataclass
class RecalculationReport:
    companies: int = 0
    updated: int = 0
    details: List[Dict] = field(default_factory=list)

    def summary(self) -> str:
        lines = [f"=== TRUST SCORES ({self.updated}/{self.companies} changed) ==="]
        for d in self.details[:20]:
            lines.append(
                f"  {d['name']:<35} n={d['review_count']:>4}  "
                f"score={d['score']:.2f}  blocks={d['star_blocks']}"
            )
        return "\n".join(lines)


class RecalculateScoresJob(Job):
    def __init__(self):
        super().__init__(name="RecalculateScores")

    def run(self, db: Session) -> RecalculationReport:
        ratings_by_company: Dict[int, List[int]] = {}
        for company_id, star in db.query(Review.company_id, Review.star_rating).all():
            ratings_by_company.setdefault(company_id, []).append(star)

        report = RecalculationReport()
        for company in db.query(Company).order_by(Company.company_id).all():
            score = trust_score_from_ratings(ratings_by_company.get(company.company_id, []))
            report.companies += 1
            if company.rating != score.score or company.review_count != score.rating_count:
                report.updated += 1
            company.rating = score.score
            company.review_count = score.rating_count
            report.details.append({
                "company_id": company.company_id,
                "name": company.name,
                "review_count": score.rating_count,
                "score": round(score.score, 4),
                "star_blocks": score.star_blocks,
            })
            self.logger.debug(
                f"Updated {company.name}: {score.rating_count} reviews -> Score: {score.score:.2f}"
            )

        db.flush()
        return report


class ResetEmailUsageJob(Job):
    def __init__(self, now: Optional[datetime] = None):
        super().__init__(name="ResetEmailUsage")
        self.now = now

    def run(self, db: Session) -> int:
        now = self.now or datetime.utcnow()
        reset = 0
        for company in db.query(Company).all():
            due = company.email_usage_reset_date
            if due is None or now > due:
                company.email_usage_count = 0
                company.email_usage_reset_date = add_months(now, settings.EMAIL_RESET_PERIOD_MONTHS)
                reset += 1
        db.flush()
        self.logger.info(f"Reset email usage for {reset} companies")
        return reset
