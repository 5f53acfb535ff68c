"""Operation ledger: record, settle and cancel commands and their handler.

Recording validates the operation before touching any store. When the
operation is settled on creation (or later through ``SettleOperation``),
the consumable's counters and the operation are written in one unit of
work, so a rejected application persists nothing.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from consumables.approval import get_approval_gate
from consumables.domain import consumables
from consumables.operation.operation import ConsumableOperation, parse_operation_type
from consumables.stock.consumable import Consumable

logger = structlog.get_logger(__name__)


@consumables.command(part_of="ConsumableOperation")
class RecordOperation:
    consumable_id = Identifier(required=True)
    operation_type = String(required=True, max_length=20)
    quantity_delta = Integer(default=0)
    reserved_delta = Integer(default=0)
    status = String(max_length=20)  # Omit to let the approval gate decide
    actor = String(max_length=100)
    description = Text()
    attributes = Text()  # JSON object


@consumables.command(part_of="ConsumableOperation")
class SettleOperation:
    operation_id = Identifier(required=True)
    actor = String(max_length=100)


@consumables.command(part_of="ConsumableOperation")
class CancelOperation:
    operation_id = Identifier(required=True)
    actor = String(max_length=100)
    reason = String(max_length=500)


def _apply(consumable: Consumable, operation: ConsumableOperation, actor) -> None:
    consumable.apply_operation(
        operation_id=operation.id,
        operation_type=operation.operation_type,
        quantity_delta=operation.quantity_delta,
        reserved_delta=operation.reserved_delta,
        actor=actor,
    )


@consumables.command_handler(part_of=ConsumableOperation)
class OperationLedgerHandler:
    @handle(RecordOperation)
    def record_operation(self, command):
        op_type = parse_operation_type(command.operation_type)
        attributes = command.attributes
        operation = ConsumableOperation.record(
            consumable_id=command.consumable_id,
            operation_type=op_type.value,
            quantity_delta=command.quantity_delta,
            reserved_delta=command.reserved_delta,
            actor=command.actor,
            description=command.description,
            status=command.status,
            attributes=json.loads(attributes) if isinstance(attributes, str) else attributes,
            requires_approval=get_approval_gate().requires_approval(op_type.value),
        )

        consumable_repo = current_domain.repository_for(Consumable)
        consumable = consumable_repo.get(command.consumable_id)
        consumable.ensure_active()

        if operation.is_done:
            _apply(consumable, operation, command.actor)
            consumable_repo.add(consumable)

        current_domain.repository_for(ConsumableOperation).add(operation)

        logger.info(
            "Operation recorded",
            operation_id=str(operation.id),
            consumable_id=str(command.consumable_id),
            operation_type=operation.operation_type,
            status=operation.status,
            quantity_delta=operation.quantity_delta,
            reserved_delta=operation.reserved_delta,
        )
        return str(operation.id)

    @handle(SettleOperation)
    def settle_operation(self, command):
        repo = current_domain.repository_for(ConsumableOperation)
        operation = repo.get(command.operation_id)

        if not operation.settle(settled_by=command.actor):
            logger.info("Operation already settled", operation_id=str(operation.id))
            return str(operation.id)

        consumable_repo = current_domain.repository_for(Consumable)
        consumable = consumable_repo.get(operation.consumable_id)
        _apply(consumable, operation, command.actor)

        consumable_repo.add(consumable)
        repo.add(operation)

        logger.info(
            "Operation settled",
            operation_id=str(operation.id),
            consumable_id=str(operation.consumable_id),
            quantity=consumable.quantity,
            reserved_quantity=consumable.reserved_quantity,
            status=consumable.status,
        )
        return str(operation.id)

    @handle(CancelOperation)
    def cancel_operation(self, command):
        repo = current_domain.repository_for(ConsumableOperation)
        operation = repo.get(command.operation_id)

        if operation.cancel(cancelled_by=command.actor, reason=command.reason):
            repo.add(operation)
        return str(operation.id)
