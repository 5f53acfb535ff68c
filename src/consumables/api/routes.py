"""FastAPI routes for the Consumables domain.

Thin adapters that translate HTTP requests into domain commands and read
helpers. No business logic, just schema -> command -> response translation.
"""

import json
from datetime import datetime

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from consumables.alert.management import ResolveAlert, ResolveConsumableAlerts
from consumables.alert.queries import get_alert, list_alerts
from consumables.api.schemas import (
    ActorRequest,
    AlertListResponse,
    AlertResponse,
    AuditSummary,
    CancelOperationRequest,
    ChangeInventoryTaskStatusRequest,
    ConsumableIdResponse,
    ConsumableListResponse,
    ConsumableResponse,
    CreateInventoryTaskRequest,
    InventoryEntryResponse,
    InventoryTaskIdResponse,
    InventoryTaskListResponse,
    InventoryTaskResponse,
    OperationAuditResponse,
    OperationIdResponse,
    OperationResponse,
    RecordInventoryCountsRequest,
    RecordOperationRequest,
    RegisterConsumableRequest,
    ResolvedAlertsResponse,
    StatusResponse,
    StockSummaryResponse,
    UpdateConsumableRequest,
)
from consumables.operation.ledger import CancelOperation, RecordOperation, SettleOperation
from consumables.operation.retry import process_with_retry
from consumables.projections.operation_log import OperationLog, audit_operations
from consumables.reconciliation.counting import (
    ChangeInventoryTaskStatus,
    CreateInventoryTask,
    RecordInventoryCounts,
)
from consumables.reconciliation.queries import get_task, list_tasks
from consumables.stock.management import (
    DeleteConsumable,
    PurgeConsumable,
    RegisterConsumable,
    RestoreConsumable,
    UpdateConsumableDetails,
)
from consumables.stock.queries import get_consumable, list_consumables, stock_summary
from consumables.utils.query import clamp_page


def _ts(value):
    return str(value) if value else None


def _split(values):
    """Flatten repeated and comma-separated query values."""
    if not values:
        return None
    return [item.strip() for value in values for item in value.split(",") if item.strip()] or None


def _consumable_response(c) -> ConsumableResponse:
    return ConsumableResponse(
        consumable_id=str(c.id),
        name=c.name,
        consumable_no=c.consumable_no,
        spec_model=c.spec_model,
        category=c.category,
        company_code=c.company_code,
        unit=c.unit,
        keeper=c.keeper,
        location=c.location,
        description=c.description,
        attributes=c.attribute_map(),
        quantity=c.quantity,
        reserved_quantity=c.reserved_quantity,
        available_quantity=c.available_quantity,
        safety_stock=c.safety_stock,
        status=c.status,
        archived=bool(c.archived),
        is_deleted=bool(c.is_deleted),
        deleted_at=_ts(c.deleted_at),
        deleted_by=c.deleted_by,
        created_at=_ts(c.created_at),
        updated_at=_ts(c.updated_at),
    )


def _operation_response(entry: OperationLog) -> OperationResponse:
    return OperationResponse(
        operation_id=str(entry.operation_id),
        consumable_id=str(entry.consumable_id),
        consumable_name=entry.consumable_name,
        keeper=entry.keeper,
        operation_type=entry.operation_type,
        quantity_delta=entry.quantity_delta,
        reserved_delta=entry.reserved_delta,
        status=entry.status,
        actor=entry.actor,
        description=entry.description,
        attributes=json.loads(entry.attributes) if entry.attributes else {},
        settled_at=_ts(entry.settled_at),
        settled_by=entry.settled_by,
        created_at=_ts(entry.created_at),
    )


def _alert_response(alert) -> AlertResponse:
    return AlertResponse(
        alert_id=str(alert.id),
        consumable_id=str(alert.consumable_id),
        consumable_name=alert.consumable_name,
        keeper=alert.keeper,
        level=alert.level,
        status=alert.status,
        message=alert.message,
        quantity=alert.quantity,
        reserved_quantity=alert.reserved_quantity,
        external_handle=alert.external_handle,
        created_at=_ts(alert.created_at),
        updated_at=_ts(alert.updated_at),
        resolved_at=_ts(alert.resolved_at),
        resolved_by=alert.resolved_by,
    )


def _task_response(task, include_entries: bool = False) -> InventoryTaskResponse:
    filters = task.filter_map()
    entries = []
    if include_entries:
        entries = [
            InventoryEntryResponse(
                entry_id=str(e.id),
                consumable_id=str(e.consumable_id),
                consumable_name=e.consumable_name,
                category=e.category,
                keeper=e.keeper,
                expected_quantity=e.expected_quantity,
                expected_reserved=e.expected_reserved,
                actual_quantity=e.actual_quantity,
                actual_reserved=e.actual_reserved,
                variance_quantity=e.variance_quantity,
                variance_reserved=e.variance_reserved,
                note=e.note,
                status=e.status,
            )
            for e in sorted(task.entries, key=lambda e: e.consumable_name)
        ]
    return InventoryTaskResponse(
        task_id=str(task.id),
        name=task.name,
        owner=task.owner,
        description=task.description,
        status=task.status,
        categories=filters.get("categories") or [],
        keeper=filters.get("keeper"),
        entries=entries,
        created_at=_ts(task.created_at),
        completed_at=_ts(task.completed_at),
        **task.stats(),
    )


# ---------------------------------------------------------------------------
# Consumables Router
# ---------------------------------------------------------------------------
consumable_router = APIRouter(prefix="/consumables", tags=["consumables"])


@consumable_router.post("", status_code=201, response_model=ConsumableIdResponse)
async def register_consumable(body: RegisterConsumableRequest) -> ConsumableIdResponse:
    command = RegisterConsumable(
        name=body.name,
        category=body.category,
        company_code=body.company_code,
        unit=body.unit,
        keeper=body.keeper,
        location=body.location,
        safety_stock=body.safety_stock,
        quantity=body.quantity,
        reserved_quantity=body.reserved_quantity,
        consumable_no=body.consumable_no,
        spec_model=body.spec_model,
        description=body.description,
        attributes=json.dumps(body.attributes) if body.attributes else None,
        archived=body.archived,
        actor=body.actor,
    )
    result = current_domain.process(command, asynchronous=False)
    return ConsumableIdResponse(consumable_id=result)


@consumable_router.get("", response_model=ConsumableListResponse)
async def get_consumables(
    search: str | None = None,
    category: str | None = None,
    company_code: str | None = None,
    status: list[str] | None = Query(None),
    include_deleted: bool = False,
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
) -> ConsumableListResponse:
    items, total = list_consumables(
        search=search,
        category=category,
        company_code=company_code,
        status=_split(status),
        include_deleted=include_deleted,
        page=page,
        page_size=page_size,
    )
    page, page_size = clamp_page(page, page_size)
    return ConsumableListResponse(
        items=[_consumable_response(c) for c in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@consumable_router.get("/summary", response_model=StockSummaryResponse)
async def get_stock_summary() -> StockSummaryResponse:
    summary = stock_summary()
    return StockSummaryResponse(
        total=summary["total"],
        in_stock=summary["in-stock"],
        low_stock=summary["low-stock"],
        out_of_stock=summary["out-of-stock"],
        reserved=summary["reserved"],
        archived=summary["archived"],
    )


@consumable_router.get("/{consumable_id}", response_model=ConsumableResponse)
async def get_consumable_detail(consumable_id: str) -> ConsumableResponse:
    return _consumable_response(get_consumable(consumable_id))


@consumable_router.put("/{consumable_id}", response_model=StatusResponse)
async def update_consumable(consumable_id: str, body: UpdateConsumableRequest) -> StatusResponse:
    command = UpdateConsumableDetails(
        consumable_id=consumable_id,
        name=body.name,
        consumable_no=body.consumable_no,
        spec_model=body.spec_model,
        category=body.category,
        company_code=body.company_code,
        unit=body.unit,
        keeper=body.keeper,
        location=body.location,
        safety_stock=body.safety_stock,
        description=body.description,
        attributes=json.dumps(body.attributes) if body.attributes is not None else None,
        archived=body.archived,
        actor=body.actor,
    )
    process_with_retry(command)
    return StatusResponse()


@consumable_router.delete("/{consumable_id}", response_model=StatusResponse)
async def delete_consumable(consumable_id: str, actor: str | None = None, reason: str | None = None) -> StatusResponse:
    current_domain.process(
        DeleteConsumable(consumable_id=consumable_id, actor=actor, reason=reason),
        asynchronous=False,
    )
    return StatusResponse()


@consumable_router.put("/{consumable_id}/restore", response_model=StatusResponse)
async def restore_consumable(consumable_id: str, body: ActorRequest) -> StatusResponse:
    current_domain.process(RestoreConsumable(consumable_id=consumable_id, actor=body.actor), asynchronous=False)
    return StatusResponse()


@consumable_router.delete("/{consumable_id}/permanent", response_model=StatusResponse)
async def purge_consumable(consumable_id: str, actor: str | None = None) -> StatusResponse:
    current_domain.process(PurgeConsumable(consumable_id=consumable_id, actor=actor), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Operations Router
# ---------------------------------------------------------------------------
operation_router = APIRouter(prefix="/operations", tags=["operations"])


@operation_router.post("", status_code=201, response_model=OperationIdResponse)
async def record_operation(body: RecordOperationRequest) -> OperationIdResponse:
    command = RecordOperation(
        consumable_id=body.consumable_id,
        operation_type=body.operation_type,
        quantity_delta=body.quantity_delta,
        reserved_delta=body.reserved_delta,
        status=body.status,
        actor=body.actor,
        description=body.description,
        attributes=json.dumps(body.attributes) if body.attributes else None,
    )
    result = process_with_retry(command)
    return OperationIdResponse(operation_id=result)


@operation_router.get("", response_model=OperationAuditResponse)
async def audit(
    types: list[str] | None = Query(None),
    statuses: list[str] | None = Query(None),
    keyword: str | None = None,
    consumable_id: str | None = None,
    keeper: str | None = None,
    actor: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
) -> OperationAuditResponse:
    result = audit_operations(
        types=types,
        statuses=statuses,
        keyword=keyword,
        consumable_id=consumable_id,
        keeper=keeper,
        actor=actor,
        date_from=date_from,
        date_to=date_to,
        page=page,
        page_size=page_size,
    )
    return OperationAuditResponse(
        items=[_operation_response(e) for e in result["items"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
        summary=AuditSummary(**result["summary"]),
    )


@operation_router.get("/{operation_id}", response_model=OperationResponse)
async def get_operation(operation_id: str) -> OperationResponse:
    entry = current_domain.repository_for(OperationLog).get(operation_id)
    return _operation_response(entry)


@operation_router.put("/{operation_id}/settle", response_model=StatusResponse)
async def settle_operation(operation_id: str, body: ActorRequest) -> StatusResponse:
    process_with_retry(SettleOperation(operation_id=operation_id, actor=body.actor))
    return StatusResponse()


@operation_router.put("/{operation_id}/cancel", response_model=StatusResponse)
async def cancel_operation(operation_id: str, body: CancelOperationRequest) -> StatusResponse:
    current_domain.process(
        CancelOperation(operation_id=operation_id, actor=body.actor, reason=body.reason),
        asynchronous=False,
    )
    return StatusResponse()


# ---------------------------------------------------------------------------
# Alerts Router
# ---------------------------------------------------------------------------
alert_router = APIRouter(prefix="/alerts", tags=["alerts"])


@alert_router.get("", response_model=AlertListResponse)
async def get_alerts(
    status: list[str] | None = Query(None),
    consumable_id: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
) -> AlertListResponse:
    items, total = list_alerts(
        statuses=_split(status),
        consumable_id=consumable_id,
        page=page,
        page_size=page_size,
    )
    page, page_size = clamp_page(page, page_size)
    return AlertListResponse(
        items=[_alert_response(a) for a in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@alert_router.put("/{alert_id}/resolve", response_model=AlertResponse)
async def resolve_alert(alert_id: str, body: ActorRequest) -> AlertResponse:
    current_domain.process(ResolveAlert(alert_id=alert_id, actor=body.actor), asynchronous=False)
    return _alert_response(get_alert(alert_id))


@alert_router.delete("", response_model=ResolvedAlertsResponse)
async def resolve_consumable_alerts(consumable_id: str, actor: str | None = None) -> ResolvedAlertsResponse:
    alert_ids = current_domain.process(
        ResolveConsumableAlerts(consumable_id=consumable_id, actor=actor),
        asynchronous=False,
    )
    return ResolvedAlertsResponse(resolved=[_alert_response(get_alert(alert_id)) for alert_id in alert_ids])


# ---------------------------------------------------------------------------
# Inventory Tasks Router
# ---------------------------------------------------------------------------
inventory_task_router = APIRouter(prefix="/inventory-tasks", tags=["inventory-tasks"])


@inventory_task_router.post("", status_code=201, response_model=InventoryTaskIdResponse)
async def create_inventory_task(body: CreateInventoryTaskRequest) -> InventoryTaskIdResponse:
    command = CreateInventoryTask(
        name=body.name,
        categories=json.dumps(body.categories),
        keeper=body.keeper,
        owner=body.owner,
        description=body.description,
        status=body.status,
        actor=body.actor,
    )
    result = current_domain.process(command, asynchronous=False)
    return InventoryTaskIdResponse(task_id=result)


@inventory_task_router.get("", response_model=InventoryTaskListResponse)
async def get_inventory_tasks(
    status: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
) -> InventoryTaskListResponse:
    items, total = list_tasks(status=status, page=page, page_size=page_size)
    page, page_size = clamp_page(page, page_size)
    return InventoryTaskListResponse(
        items=[_task_response(t) for t in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@inventory_task_router.get("/{task_id}", response_model=InventoryTaskResponse)
async def get_inventory_task(task_id: str) -> InventoryTaskResponse:
    return _task_response(get_task(task_id), include_entries=True)


@inventory_task_router.put("/{task_id}/entries", response_model=InventoryTaskResponse)
async def record_inventory_counts(task_id: str, body: RecordInventoryCountsRequest) -> InventoryTaskResponse:
    command = RecordInventoryCounts(
        task_id=task_id,
        entries=json.dumps([entry.model_dump() for entry in body.entries]),
        actor=body.actor,
    )
    current_domain.process(command, asynchronous=False)
    return _task_response(get_task(task_id), include_entries=True)


@inventory_task_router.put("/{task_id}/status", response_model=InventoryTaskResponse)
async def change_inventory_task_status(task_id: str, body: ChangeInventoryTaskStatusRequest) -> InventoryTaskResponse:
    command = ChangeInventoryTaskStatus(task_id=task_id, status=body.status, actor=body.actor)
    current_domain.process(command, asynchronous=False)
    return _task_response(get_task(task_id), include_entries=True)
