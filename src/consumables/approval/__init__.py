"""Approval gate registry.

The configured gate reads gated operation types from ledger settings. An
external approval service can be plugged in with ``set_approval_gate``.
"""

from consumables.approval.gate import ApprovalGate, ConfiguredApprovalGate

_gate: ApprovalGate | None = None


def get_approval_gate() -> ApprovalGate:
    """Return the active approval gate (singleton)."""
    global _gate
    if _gate is None:
        _gate = ConfiguredApprovalGate()
    return _gate


def set_approval_gate(gate: ApprovalGate) -> None:
    global _gate
    _gate = gate


def reset_approval_gate() -> None:
    """Fall back to the settings-driven gate (useful for testing)."""
    global _gate
    _gate = None
