"""Domain events for the ConsumableOperation aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from consumables.domain import consumables


@consumables.event(part_of="ConsumableOperation")
class OperationRecorded:
    """An operation entered the ledger, either already settled or pending."""

    __version__ = 1

    operation_id = Identifier(required=True)
    consumable_id = Identifier(required=True)
    operation_type = String(required=True)
    quantity_delta = Integer(required=True)
    reserved_delta = Integer(required=True)
    status = String(required=True)
    actor = String()
    description = Text()
    attributes = Text()  # JSON object
    recorded_at = DateTime(required=True)


@consumables.event(part_of="ConsumableOperation")
class OperationSettled:
    """A pending operation was approved and its deltas applied."""

    __version__ = 1

    operation_id = Identifier(required=True)
    consumable_id = Identifier(required=True)
    operation_type = String(required=True)
    quantity_delta = Integer(required=True)
    reserved_delta = Integer(required=True)
    settled_by = String()
    settled_at = DateTime(required=True)


@consumables.event(part_of="ConsumableOperation")
class OperationCancelled:
    """A pending operation was withdrawn without touching stock."""

    __version__ = 1

    operation_id = Identifier(required=True)
    consumable_id = Identifier(required=True)
    cancelled_by = String()
    reason = String()
    cancelled_at = DateTime(required=True)
