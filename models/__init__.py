"""
Core data models for the Review Platform.
"""

from .schemas import (
    RatingAggregate,
    TrustScore,
    RatingBand,
    RatingDistribution,
    UsageCheck,
)

__all__ = [
    "RatingAggregate",
    "TrustScore",
    "RatingBand",
    "RatingDistribution",
    "UsageCheck",
]
