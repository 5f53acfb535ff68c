"""Approval gate port: decides which operation types wait for approval."""

from abc import ABC, abstractmethod

from consumables.settings import get_settings


class ApprovalGate(ABC):
    """Abstract interface for the external approval workflow."""

    @abstractmethod
    def requires_approval(self, operation_type: str) -> bool:
        """Return True if operations of this type must start as pending."""
        ...


class ConfiguredApprovalGate(ApprovalGate):
    """Gate driven by a fixed set of types, or by ledger settings when none is given."""

    def __init__(self, gated_types=None):
        self.gated_types = frozenset(gated_types) if gated_types is not None else None

    def requires_approval(self, operation_type: str) -> bool:
        gated = self.gated_types if self.gated_types is not None else get_settings().approval_required_types
        return operation_type in gated
