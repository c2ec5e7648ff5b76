from .base import Job, JobResult, JobRunner
from .exceptions import ServiceError, NotFoundError, InvalidInputError, LimitExceededError
from .trust_score import compute_trust_score, stabilize_score, snap_star_blocks
from .plan_resolver import PlanTier, PlanOverrides, EffectiveFeatures, resolve_features
from .recalculation import RecalculateScoresJob, ResetEmailUsageJob

__all__ = [
    "Job", "JobResult", "JobRunner",
    "ServiceError", "NotFoundError", "InvalidInputError", "LimitExceededError",
    "compute_trust_score", "stabilize_score", "snap_star_blocks",
    "PlanTier", "PlanOverrides", "EffectiveFeatures", "resolve_features",
    "RecalculateScoresJob", "ResetEmailUsageJob",
]
