"""
Core value types shared by the services, API and dashboard.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RatingAggregate:
    raw_average: float      # arithmetic mean of star ratings, 0.0 when unrated
    rating_count: int


@dataclass(frozen=True)
class TrustScore:
    raw_average: float
    rating_count: int
    score: float            # stabilized score in [0, 5]
    display_score: float    # score rounded to one decimal
    star_blocks: float      # 0, 0.5, ..., 5
    is_rated: bool

    def to_dict(self) -> Dict:
        return {
            "raw_average": round(self.raw_average, 4),
            "rating_count": self.rating_count,
            "score": round(self.score, 4),
            "display_score": self.display_score,
            "star_blocks": self.star_blocks,
            "is_rated": self.is_rated,
        }


@dataclass(frozen=True)
class RatingBand:
    label: str              # "high" | "medium" | "low"
    color: str


@dataclass
class RatingDistribution:
    counts: Dict[int, int] = field(default_factory=lambda: {s: 0 for s in range(1, 6)})
    total: int = 0

    @property
    def percentages(self) -> Dict[int, float]:
        if not self.total:
            return {star: 0.0 for star in self.counts}
        return {star: round(100.0 * n / self.total, 1) for star, n in self.counts.items()}

    def to_dict(self) -> Dict:
        return {
            "counts": dict(self.counts),
            "percentages": self.percentages,
            "total": self.total,
        }


# ---------------------------------------------------------------------------
# Usage limits
# ---------------------------------------------------------------------------

@dataclass
class UsageCheck:
    allowed: bool
    current_usage: int
    limit: int
    requested: int = 0
    message: Optional[str] = None

    @property
    def remaining(self) -> int:
        return max(self.limit - self.current_usage, 0)

    def to_dict(self) -> Dict:
        return {
            "allowed": self.allowed,
            "current_usage": self.current_usage,
            "limit": self.limit,
            "remaining": self.remaining,
            "requested": self.requested,
            "message": self.message,
        }
