"""
Trust-Score Normalizer
----------------------
Turns a company's raw star ratings into the score shown on the site.

Stabilized score (Bayesian average):

  Score = (R̄·n + C·m) / (n + m)

  C = neutral rating (3.5), m = neutral weight (7 virtual reviews)

With few reviews the score is pulled toward C; as n grows it converges to R̄.

Star blocks: the score is floored to the nearest lower 0.5 step, except
at or above the near-perfect threshold (4.95) where it rounds normally, so
only a true near-5.0 average displays as five full blocks.

Input  : raw average + rating count (or the raw star ratings)
Output : TrustScore
"""

import math
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from config.settings import settings
from models.schemas import RatingAggregate, RatingBand, RatingDistribution, TrustScore

logger = logging.getLogger(__name__)

MIN_RATING = 0.0
MAX_RATING = 5.0
STAR_STEP = 0.5
_FLOAT_EPS = 1e-9


# ─── Parameters ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class StabilizerParams:
    neutral_rating: float
    neutral_weight: int
    near_perfect_threshold: float


DEFAULT_PARAMS = StabilizerParams(
    neutral_rating=settings.NEUTRAL_RATING,
    neutral_weight=settings.NEUTRAL_WEIGHT,
    near_perfect_threshold=settings.NEAR_PERFECT_THRESHOLD,
)

# (minimum star blocks, band, colour), checked top-down
RATING_BANDS = (
    (3.5, "high", "#0892A5"),
    (2.5, "medium", "#EAB308"),
    (0.0, "low", "#EF4444"),
)


# ─── Helpers ─────────────────────────────────────────────────────────────────


def _clamp(value: float, low: float = MIN_RATING, high: float = MAX_RATING) -> float:
    return max(low, min(high, value))


def _as_count(rating_count) -> int:
    try:
        n = int(rating_count)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(n, 0)


def _as_average(raw_average) -> Optional[float]:
    try:
        value = float(raw_average)
    except (TypeError, ValueError):
        return None
    if math.isnan(value):
        return None
    return _clamp(value)


def _as_star(rating) -> Optional[int]:
    try:
        value = float(rating)
    except (TypeError, ValueError):
        return None
    if value.is_integer() and 1 <= value <= 5:
        return int(value)
    return None


# ─── Core computations ───────────────────────────────────────────────────────


def aggregate_ratings(ratings: Iterable[float]) -> RatingAggregate:
    """Mean and count of individual star ratings; unreadable entries are skipped."""
    values = (_as_average(r) for r in ratings)
    arr = np.array([v for v in values if v is not None], dtype=float)
    if arr.size == 0:
        return RatingAggregate(raw_average=0.0, rating_count=0)
    return RatingAggregate(raw_average=float(arr.mean()), rating_count=int(arr.size))


def stabilize_score(raw_average, rating_count, params: StabilizerParams = DEFAULT_PARAMS) -> float:
    """
    Blend `neutral_weight` virtual reviews of `neutral_rating` into the average.

    Malformed input never raises: a missing or non-numeric count is treated
    as zero ratings, and an out-of-range average is clamped to [0, 5].
    """
    n = _as_count(rating_count)
    average = _as_average(raw_average)
    if average is None or n == 0:
        return _clamp(params.neutral_rating)

    m = params.neutral_weight
    score = (average * n + params.neutral_rating * m) / (n + m)
    return _clamp(score)


def snap_star_blocks(score, params: StabilizerParams = DEFAULT_PARAMS) -> float:
    """Map a continuous score to a star-block value in {0, 0.5, ..., 5}."""
    value = _as_average(score)
    if value is None:
        return MIN_RATING
    steps = value / STAR_STEP
    if value >= params.near_perfect_threshold:
        snapped = math.floor(steps + 0.5) * STAR_STEP
    else:
        # epsilon absorbs float noise such as 3.4999999999 for 3.5
        snapped = math.floor(steps + _FLOAT_EPS) * STAR_STEP
    return _clamp(snapped)


def compute_trust_score(raw_average, rating_count, params: StabilizerParams = DEFAULT_PARAMS) -> TrustScore:
    n = _as_count(rating_count)
    average = _as_average(raw_average)
    score = stabilize_score(average, n, params)
    return TrustScore(
        raw_average=average if (average is not None and n > 0) else 0.0,
        rating_count=n if average is not None else 0,
        score=score,
        display_score=round(score, 1),
        star_blocks=snap_star_blocks(score, params),
        is_rated=n > 0 and average is not None,
    )


def trust_score_from_ratings(ratings: Iterable[float], params: StabilizerParams = DEFAULT_PARAMS) -> TrustScore:
    aggregate = aggregate_ratings(ratings)
    return compute_trust_score(aggregate.raw_average, aggregate.rating_count, params)


def trust_score_from_stored(score, rating_count, params: StabilizerParams = DEFAULT_PARAMS) -> TrustScore:
    """Rebuild a TrustScore from the stabilized score persisted on a company row."""
    n = _as_count(rating_count)
    stored = _as_average(score)
    if n == 0 or stored is None:
        return compute_trust_score(None, 0, params)
    m = params.neutral_weight
    raw_average = (stored * (n + m) - params.neutral_rating * m) / n
    return compute_trust_score(_clamp(raw_average), n, params)


def rating_band(star_blocks: float) -> RatingBand:
    """Colour band used by the block display."""
    for threshold, label, color in RATING_BANDS:
        if star_blocks >= threshold:
            return RatingBand(label=label, color=color)
    _, label, color = RATING_BANDS[-1]
    return RatingBand(label=label, color=color)


def rating_distribution(ratings: Iterable[int]) -> RatingDistribution:
    """Reviews per star (1..5). Anything else is ignored."""
    stars = np.array(
        [s for s in (_as_star(r) for r in ratings) if s is not None],
        dtype=int,
    )
    counts = np.bincount(stars, minlength=6) if stars.size else np.zeros(6, dtype=int)
    return RatingDistribution(
        counts={star: int(counts[star]) for star in range(1, 6)},
        total=int(stars.size),
    )
