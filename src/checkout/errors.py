"""Exceptions raised by the checkout engine.

All of them are ``protean.exceptions.ValidationError`` subclasses, so every
error carries a ``messages`` dict keyed by field (or concern) with a list of
human readable messages, e.g. ``{"quantity": ["Quantity must be positive"]}``.
Commands validate before mutating, so a raised error leaves state untouched.
"""

from protean.exceptions import ValidationError


class AllocationError(ValidationError):
    """A requested allocation would break the cart quantity invariant."""


class InvalidOperationError(ValidationError):
    """The operation is not allowed in the current state."""


class GateError(ValidationError):
    """Checkout was refused by one of the validator's business rules."""

    def __init__(self, outcome):
        self.outcome = outcome
        super().__init__({"checkout": [outcome.message]})

    @property
    def reason(self):
        return self.outcome.reason


class ExternalFailure(ValidationError):
    """A collaborator call was rejected, failed or timed out."""

    def __init__(self, collaborator: str, reason: str):
        self.collaborator = collaborator
        self.reason = reason
        super().__init__({collaborator: [reason]})


__all__ = ["AllocationError", "ExternalFailure", "GateError", "InvalidOperationError", "ValidationError"]
