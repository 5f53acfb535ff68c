"""ConsumableOperation aggregate: one entry in the stock ledger.

An operation is immutable once recorded except for its status. Each type
touches exactly one counter in one direction (``adjust`` may touch either
or both, in any direction):

    purchase, inbound   quantity_delta > 0
    outbound, dispose   quantity_delta < 0
    reserve             reserved_delta > 0
    release             reserved_delta < 0
    adjust              at least one delta non-zero

State Machine:
    PENDING -> DONE       (settlement applies the deltas, exactly once)
    PENDING -> CANCELLED  (never applies the deltas)
    DONE, CANCELLED are terminal.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from consumables.domain import consumables
from consumables.exceptions import ApprovalRequiredError
from consumables.operation.events import OperationCancelled, OperationRecorded, OperationSettled


class OperationType(Enum):
    PURCHASE = "purchase"
    INBOUND = "inbound"
    OUTBOUND = "outbound"
    RESERVE = "reserve"
    RELEASE = "release"
    ADJUST = "adjust"
    DISPOSE = "dispose"


class OperationStatus(Enum):
    PENDING = "pending"
    DONE = "done"
    CANCELLED = "cancelled"


# (counter touched, required sign). ``None`` means either counter, non-zero.
_DELTA_SIGN_RULES = {
    OperationType.PURCHASE: ("quantity_delta", 1),
    OperationType.INBOUND: ("quantity_delta", 1),
    OperationType.OUTBOUND: ("quantity_delta", -1),
    OperationType.DISPOSE: ("quantity_delta", -1),
    OperationType.RESERVE: ("reserved_delta", 1),
    OperationType.RELEASE: ("reserved_delta", -1),
    OperationType.ADJUST: None,
}

_VALID_TRANSITIONS = {
    OperationStatus.PENDING: {OperationStatus.DONE, OperationStatus.CANCELLED},
    OperationStatus.DONE: set(),  # Terminal
    OperationStatus.CANCELLED: set(),  # Terminal
}


def parse_operation_type(operation_type) -> OperationType:
    try:
        return OperationType(operation_type)
    except ValueError:
        allowed = ", ".join(t.value for t in OperationType)
        raise ValidationError(
            {"operation_type": [f"Unknown operation type '{operation_type}'. Expected one of: {allowed}"]}
        ) from None


def validate_deltas(operation_type, quantity_delta: int = 0, reserved_delta: int = 0) -> OperationType:
    """Check the deltas against the sign rule of the operation type.

    Raises ``ValidationError`` naming the offending delta and rule.
    """
    op_type = parse_operation_type(operation_type)
    deltas = {"quantity_delta": quantity_delta or 0, "reserved_delta": reserved_delta or 0}

    rule = _DELTA_SIGN_RULES[op_type]
    if rule is None:
        if not any(deltas.values()):
            raise ValidationError(
                {"quantity_delta": [f"{op_type.value} operations need a non-zero quantity_delta or reserved_delta"]}
            )
        return op_type

    field, sign = rule
    if deltas[field] * sign <= 0:
        comparison = "> 0" if sign > 0 else "< 0"
        raise ValidationError(
            {field: [f"{op_type.value} operations require {field} {comparison} (got {deltas[field]})"]}
        )

    other = "reserved_delta" if field == "quantity_delta" else "quantity_delta"
    if deltas[other] != 0:
        raise ValidationError({other: [f"{op_type.value} operations must leave {other} at 0 (got {deltas[other]})"]})

    return op_type


def resolve_initial_status(operation_type, status=None, requires_approval: bool = False) -> str:
    """Pick the status an operation is recorded with.

    Without an explicit status, gated types start pending and the rest are
    settled immediately. Gated types may never be recorded as done.
    """
    if status is None:
        return OperationStatus.PENDING.value if requires_approval else OperationStatus.DONE.value

    try:
        initial = OperationStatus(status)
    except ValueError:
        raise ValidationError({"status": [f"Unknown operation status '{status}'"]}) from None

    if initial == OperationStatus.CANCELLED:
        raise ValidationError({"status": ["Operations cannot be recorded as cancelled"]})
    if initial == OperationStatus.DONE and requires_approval:
        raise ApprovalRequiredError(
            {"status": [f"{operation_type} operations require approval and must be recorded as pending"]}
        )
    return initial.value


@consumables.aggregate
class ConsumableOperation:
    """A signed change to a consumable's quantity and/or reserved counters."""

    consumable_id: Identifier(required=True)
    operation_type: String(choices=OperationType, required=True)
    quantity_delta: Integer(default=0)
    reserved_delta: Integer(default=0)
    status: String(choices=OperationStatus, default=OperationStatus.PENDING.value)

    actor: String(max_length=100)
    description: Text()
    attributes: Text()  # JSON, free-form key/value map

    # Settlement audit
    settled_at: DateTime()
    settled_by: String(max_length=100)
    cancelled_at: DateTime()
    cancelled_by: String(max_length=100)
    cancel_reason: String(max_length=500)

    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def record(
        cls,
        consumable_id,
        operation_type,
        quantity_delta=0,
        reserved_delta=0,
        actor=None,
        description=None,
        status=None,
        attributes=None,
        requires_approval=False,
    ):
        """Validate and create an operation. Touches no store."""
        op_type = validate_deltas(operation_type, quantity_delta, reserved_delta)
        initial_status = resolve_initial_status(op_type.value, status, requires_approval)
        now = datetime.now(UTC)

        operation = cls(
            consumable_id=consumable_id,
            operation_type=op_type.value,
            quantity_delta=quantity_delta or 0,
            reserved_delta=reserved_delta or 0,
            status=initial_status,
            actor=actor,
            description=description,
            attributes=json.dumps(attributes) if attributes else None,
            settled_at=now if initial_status == OperationStatus.DONE.value else None,
            settled_by=actor if initial_status == OperationStatus.DONE.value else None,
            created_at=now,
            updated_at=now,
        )

        operation.raise_(
            OperationRecorded(
                operation_id=str(operation.id),
                consumable_id=str(consumable_id),
                operation_type=operation.operation_type,
                quantity_delta=operation.quantity_delta,
                reserved_delta=operation.reserved_delta,
                status=operation.status,
                actor=actor,
                description=description,
                attributes=operation.attributes,
                recorded_at=now,
            )
        )
        return operation

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    @property
    def is_done(self) -> bool:
        return self.status == OperationStatus.DONE.value

    @property
    def is_cancelled(self) -> bool:
        return self.status == OperationStatus.CANCELLED.value

    def _assert_can_transition(self, target_status):
        current = OperationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"status": [f"Cannot transition operation from {current.value} to {target_status.value}"]}
            )

    def settle(self, settled_by=None) -> bool:
        """Mark the operation done. Returns False if it already was."""
        if self.is_done:
            return False
        self._assert_can_transition(OperationStatus.DONE)

        now = datetime.now(UTC)
        self.status = OperationStatus.DONE.value
        self.settled_at = now
        self.settled_by = settled_by
        self.updated_at = now

        self.raise_(
            OperationSettled(
                operation_id=str(self.id),
                consumable_id=str(self.consumable_id),
                operation_type=self.operation_type,
                quantity_delta=self.quantity_delta,
                reserved_delta=self.reserved_delta,
                settled_by=settled_by,
                settled_at=now,
            )
        )
        return True

    def cancel(self, cancelled_by=None, reason=None) -> bool:
        """Withdraw a pending operation. Returns False if already cancelled."""
        if self.is_cancelled:
            return False
        self._assert_can_transition(OperationStatus.CANCELLED)

        now = datetime.now(UTC)
        self.status = OperationStatus.CANCELLED.value
        self.cancelled_at = now
        self.cancelled_by = cancelled_by
        self.cancel_reason = reason
        self.updated_at = now

        self.raise_(
            OperationCancelled(
                operation_id=str(self.id),
                consumable_id=str(self.consumable_id),
                cancelled_by=cancelled_by,
                reason=reason,
                cancelled_at=now,
            )
        )
        return True

    def attribute_map(self) -> dict:
        return json.loads(self.attributes) if self.attributes else {}
