"""Ledger-specific rejections.

Both are Protean validation errors so they reach HTTP callers as 400
responses with a ``{field: [message]}`` body.
"""

from protean.exceptions import ValidationError


class InsufficientStockError(ValidationError):
    """Applying an operation would break the quantity/reservation counters."""


class ApprovalRequiredError(ValidationError):
    """The operation type must be approved before it may be settled."""
