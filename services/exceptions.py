"""
Domain exceptions raised by the service layer.

Routes translate these into HTTP errors; pure scoring and resolver
functions never raise them.
"""


class ServiceError(Exception):
    """Base class for service-layer errors."""


class NotFoundError(ServiceError):
    """Requested company, review or category does not exist."""


class InvalidInputError(ServiceError):
    """Caller supplied a value the operation cannot accept."""


class LimitExceededError(ServiceError):
    """A plan limit blocks the operation. Carries the UsageCheck."""

    def __init__(self, check):
        self.check = check
        super().__init__(check.message or "Plan limit reached.")
