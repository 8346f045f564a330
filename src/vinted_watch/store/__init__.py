class StoreError(Exception):
    """Raised when a store cannot complete an operation."""


class InvariantViolation(StoreError):
    """A write would break a persisted-state invariant. Programming error."""


class SubscriptionValidationError(ValueError):
    """Raised when a subscription's query or price bounds are invalid."""
