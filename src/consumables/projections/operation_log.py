"""Operation log: audit read model over the ledger, with consumable details inlined."""

from datetime import UTC

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from consumables.domain import consumables
from consumables.operation.events import OperationCancelled, OperationRecorded, OperationSettled
from consumables.operation.operation import ConsumableOperation, OperationStatus, parse_operation_type
from consumables.settings import get_settings
from consumables.stock.consumable import Consumable
from consumables.stock.events import ConsumableDetailsUpdated
from consumables.utils.query import clamp_page, fetch_all, paginate


@consumables.projection
class OperationLog:
    operation_id = Identifier(identifier=True, required=True)
    consumable_id = Identifier(required=True)
    consumable_name = String(max_length=200)
    category = String(max_length=100)
    keeper = String(max_length=100)
    location = String(max_length=255)
    operation_type = String(required=True)
    status = String(required=True)
    quantity_delta = Integer(default=0)
    reserved_delta = Integer(default=0)
    actor = String(max_length=100)
    description = Text()
    attributes = Text()  # JSON
    settled_at = DateTime()
    settled_by = String(max_length=100)
    cancelled_by = String(max_length=100)
    created_at = DateTime(required=True)
    updated_at = DateTime()


@consumables.projector(projector_for=OperationLog, aggregates=[ConsumableOperation, Consumable])
class OperationLogProjector:
    @on(OperationRecorded)
    def on_operation_recorded(self, event):
        consumable = current_domain.repository_for(Consumable).get(event.consumable_id)
        done = event.status == OperationStatus.DONE.value
        current_domain.repository_for(OperationLog).add(
            OperationLog(
                operation_id=event.operation_id,
                consumable_id=event.consumable_id,
                consumable_name=consumable.name,
                category=consumable.category,
                keeper=consumable.keeper,
                location=consumable.location,
                operation_type=event.operation_type,
                status=event.status,
                quantity_delta=event.quantity_delta,
                reserved_delta=event.reserved_delta,
                actor=event.actor,
                description=event.description,
                attributes=event.attributes,
                settled_at=event.recorded_at if done else None,
                settled_by=event.actor if done else None,
                created_at=event.recorded_at,
                updated_at=event.recorded_at,
            )
        )

    @on(OperationSettled)
    def on_operation_settled(self, event):
        repo = current_domain.repository_for(OperationLog)
        entry = repo.get(event.operation_id)
        entry.status = OperationStatus.DONE.value
        entry.settled_at = event.settled_at
        entry.settled_by = event.settled_by
        entry.updated_at = event.settled_at
        repo.add(entry)

    @on(OperationCancelled)
    def on_operation_cancelled(self, event):
        repo = current_domain.repository_for(OperationLog)
        entry = repo.get(event.operation_id)
        entry.status = OperationStatus.CANCELLED.value
        entry.cancelled_by = event.cancelled_by
        entry.updated_at = event.cancelled_at
        repo.add(entry)

    @on(ConsumableDetailsUpdated)
    def on_consumable_details_updated(self, event):
        repo = current_domain.repository_for(OperationLog)
        for entry in fetch_all(repo._dao.query.filter(consumable_id=str(event.consumable_id))):
            entry.consumable_name = event.name
            entry.category = event.category
            entry.keeper = event.keeper
            entry.location = event.location
            repo.add(entry)


# ---------------------------------------------------------------------------
# Audit query
# ---------------------------------------------------------------------------
def _as_utc(value):
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _contains(value, needle) -> bool:
    return needle.lower() in (value or "").lower()


def summarize(entries) -> dict:
    """Counts by status plus quantity moved by done operations only."""
    done = [e for e in entries if e.status == OperationStatus.DONE.value]
    inbound = sum(e.quantity_delta for e in done if e.quantity_delta > 0)
    outbound = sum(-e.quantity_delta for e in done if e.quantity_delta < 0)
    return {
        "total_operations": len(entries),
        "pending_operations": sum(1 for e in entries if e.status == OperationStatus.PENDING.value),
        "done_operations": len(done),
        "cancelled_operations": sum(1 for e in entries if e.status == OperationStatus.CANCELLED.value),
        "inbound_quantity": inbound,
        "outbound_quantity": outbound,
        "net_quantity": inbound - outbound,
    }


def audit_operations(
    types=None,
    statuses=None,
    keyword=None,
    consumable_id=None,
    keeper=None,
    actor=None,
    date_from=None,
    date_to=None,
    page=1,
    page_size=None,
) -> dict:
    """Filter the operation log, newest first, with a summary over all matches."""
    for op_type in types or []:
        parse_operation_type(op_type)

    repo = current_domain.repository_for(OperationLog)
    query = repo._dao.query
    entries = fetch_all(query.filter(consumable_id=str(consumable_id)) if consumable_id else query)

    if types:
        entries = [e for e in entries if e.operation_type in types]
    if statuses:
        entries = [e for e in entries if e.status in statuses]
    if keeper:
        entries = [e for e in entries if _contains(e.keeper, keeper)]
    if actor:
        entries = [e for e in entries if _contains(e.actor, actor)]
    if keyword:
        entries = [
            e
            for e in entries
            if _contains(e.consumable_name, keyword)
            or _contains(e.description, keyword)
            or _contains(str(e.operation_id), keyword)
        ]
    if date_from:
        entries = [e for e in entries if _as_utc(e.created_at) >= _as_utc(date_from)]
    if date_to:
        entries = [e for e in entries if _as_utc(e.created_at) <= _as_utc(date_to)]

    entries.sort(key=lambda e: _as_utc(e.created_at), reverse=True)

    page, page_size = clamp_page(page, page_size, get_settings().audit_max_page_size)
    return {
        "items": paginate(entries, page, page_size),
        "total": len(entries),
        "page": page,
        "page_size": page_size,
        "summary": summarize(entries),
    }
