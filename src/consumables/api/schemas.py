"""Pydantic request/response schemas for the Consumables API.

These are external contracts, kept separate from the internal Protean
commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class ActorRequest(BaseModel):
    actor: str | None = None


# ---------------------------------------------------------------------------
# Consumables
# ---------------------------------------------------------------------------
class RegisterConsumableRequest(BaseModel):
    name: str
    category: str
    company_code: str
    unit: str
    keeper: str
    location: str
    safety_stock: int = Field(ge=0, default=0)
    quantity: int = Field(ge=0, default=0)
    reserved_quantity: int = Field(ge=0, default=0)
    consumable_no: str | None = None
    spec_model: str | None = None
    description: str | None = None
    attributes: dict | None = None
    archived: bool = False
    actor: str | None = None


class UpdateConsumableRequest(BaseModel):
    name: str | None = None
    consumable_no: str | None = None
    spec_model: str | None = None
    category: str | None = None
    company_code: str | None = None
    unit: str | None = None
    keeper: str | None = None
    location: str | None = None
    safety_stock: int | None = Field(ge=0, default=None)
    description: str | None = None
    attributes: dict | None = None
    archived: bool | None = None
    actor: str | None = None


class ConsumableIdResponse(BaseModel):
    consumable_id: str


class ConsumableResponse(BaseModel):
    consumable_id: str
    name: str
    consumable_no: str | None = None
    spec_model: str | None = None
    category: str
    company_code: str
    unit: str
    keeper: str
    location: str
    description: str | None = None
    attributes: dict = {}
    quantity: int
    reserved_quantity: int
    available_quantity: int
    safety_stock: int
    status: str
    archived: bool = False
    is_deleted: bool = False
    deleted_at: str | None = None
    deleted_by: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class ConsumableListResponse(BaseModel):
    items: list[ConsumableResponse]
    total: int
    page: int
    page_size: int


class StockSummaryResponse(BaseModel):
    total: int
    in_stock: int
    low_stock: int
    out_of_stock: int
    reserved: int
    archived: int


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------
class RecordOperationRequest(BaseModel):
    consumable_id: str
    operation_type: str
    quantity_delta: int = 0
    reserved_delta: int = 0
    status: str | None = None
    actor: str | None = None
    description: str | None = None
    attributes: dict | None = None


class CancelOperationRequest(BaseModel):
    actor: str | None = None
    reason: str | None = None


class OperationIdResponse(BaseModel):
    operation_id: str


class OperationResponse(BaseModel):
    operation_id: str
    consumable_id: str
    consumable_name: str | None = None
    keeper: str | None = None
    operation_type: str
    quantity_delta: int
    reserved_delta: int
    status: str
    actor: str | None = None
    description: str | None = None
    attributes: dict = {}
    settled_at: str | None = None
    settled_by: str | None = None
    created_at: str | None = None


class AuditSummary(BaseModel):
    total_operations: int
    pending_operations: int
    done_operations: int
    cancelled_operations: int
    inbound_quantity: int
    outbound_quantity: int
    net_quantity: int


class OperationAuditResponse(BaseModel):
    items: list[OperationResponse]
    total: int
    page: int
    page_size: int
    summary: AuditSummary


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------
class AlertResponse(BaseModel):
    alert_id: str
    consumable_id: str
    consumable_name: str
    keeper: str | None = None
    level: str
    status: str
    message: str
    quantity: int
    reserved_quantity: int
    external_handle: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    resolved_at: str | None = None
    resolved_by: str | None = None


class AlertListResponse(BaseModel):
    items: list[AlertResponse]
    total: int
    page: int
    page_size: int


class ResolvedAlertsResponse(BaseModel):
    resolved: list[AlertResponse]


# ---------------------------------------------------------------------------
# Inventory tasks
# ---------------------------------------------------------------------------
class CreateInventoryTaskRequest(BaseModel):
    name: str
    categories: list[str] = []
    keeper: str | None = None
    owner: str | None = None
    description: str | None = None
    status: str | None = None
    actor: str | None = None


class InventoryCountSchema(BaseModel):
    entry_id: str
    actual_quantity: int | None = Field(ge=0, default=None)
    actual_reserved: int | None = Field(ge=0, default=None)
    note: str | None = None


class RecordInventoryCountsRequest(BaseModel):
    entries: list[InventoryCountSchema] = Field(min_length=1)
    actor: str | None = None


class ChangeInventoryTaskStatusRequest(BaseModel):
    status: str
    actor: str | None = None


class InventoryTaskIdResponse(BaseModel):
    task_id: str


class InventoryEntryResponse(BaseModel):
    entry_id: str
    consumable_id: str
    consumable_name: str
    category: str | None = None
    keeper: str | None = None
    expected_quantity: int
    expected_reserved: int
    actual_quantity: int | None = None
    actual_reserved: int | None = None
    variance_quantity: int | None = None
    variance_reserved: int | None = None
    note: str | None = None
    status: str


class InventoryTaskResponse(BaseModel):
    task_id: str
    name: str
    owner: str | None = None
    description: str | None = None
    status: str
    categories: list[str] = []
    keeper: str | None = None
    total_entries: int
    recorded_entries: int
    variance_entries: int
    entries: list[InventoryEntryResponse] = []
    created_at: str | None = None
    completed_at: str | None = None


class InventoryTaskListResponse(BaseModel):
    items: list[InventoryTaskResponse]
    total: int
    page: int
    page_size: int
