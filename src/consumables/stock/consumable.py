"""Consumable aggregate: the stock record and its counters.

The record owns ``quantity``, ``reserved_quantity`` and ``safety_stock``.
Counters move only through :meth:`Consumable.apply_operation`, called by the
operation ledger when an operation settles. Status is never edited
directly; it is re-derived from the counters (plus the archive flag) after
every change.

Status derivation, first match wins:
    archived                                  -> archived
    quantity <= 0                             -> out-of-stock
    reserved_quantity >= quantity             -> reserved
    safety_stock > 0 and quantity <= safety   -> low-stock
    otherwise                                 -> in-stock
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text

from consumables.domain import consumables
from consumables.exceptions import InsufficientStockError
from consumables.stock.events import (
    ConsumableDeleted,
    ConsumableDetailsUpdated,
    ConsumableRegistered,
    ConsumableRestored,
    StockLevelsChanged,
)


class StockStatus(Enum):
    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"
    RESERVED = "reserved"
    ARCHIVED = "archived"


# Statuses that keep a stock alert open
ALERTING_STATUSES = {StockStatus.LOW_STOCK.value, StockStatus.OUT_OF_STOCK.value}

# Header fields editable outside the ledger
_HEADER_FIELDS = (
    "name",
    "consumable_no",
    "spec_model",
    "category",
    "company_code",
    "unit",
    "keeper",
    "location",
    "safety_stock",
    "description",
)


def derive_status(quantity: int, reserved_quantity: int, safety_stock: int, archived: bool = False) -> str:
    """Return the stock status for the given counters."""
    if archived:
        return StockStatus.ARCHIVED.value
    if quantity <= 0:
        return StockStatus.OUT_OF_STOCK.value
    if reserved_quantity >= quantity:
        return StockStatus.RESERVED.value
    if safety_stock > 0 and quantity <= safety_stock:
        return StockStatus.LOW_STOCK.value
    return StockStatus.IN_STOCK.value


@consumables.aggregate
class Consumable:
    """A stock-keeping unit of consumable goods held by a keeper."""

    # Identity and classification
    name: String(max_length=200, required=True)
    consumable_no: String(max_length=100)
    spec_model: String(max_length=200)
    category: String(max_length=100, required=True)
    company_code: String(max_length=100, required=True)
    unit: String(max_length=50, required=True)
    keeper: String(max_length=100, required=True)
    location: String(max_length=255, required=True)
    description: Text()
    attributes: Text()  # JSON, free-form key/value map

    # Counters
    quantity: Integer(min_value=0, default=0)
    reserved_quantity: Integer(min_value=0, default=0)
    safety_stock: Integer(min_value=0, default=0)

    # Derived
    status: String(choices=StockStatus, default=StockStatus.IN_STOCK.value)
    archived: Boolean(default=False)

    # Soft delete
    is_deleted: Boolean(default=False)
    deleted_at: DateTime()
    deleted_by: String(max_length=100)
    delete_reason: String(max_length=500)
    restored_at: DateTime()
    restored_by: String(max_length=100)

    # Timestamps
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def reserved_must_not_exceed_quantity(self):
        if (self.reserved_quantity or 0) > (self.quantity or 0):
            raise ValidationError(
                {
                    "reserved_quantity": [
                        f"Reserved quantity ({self.reserved_quantity}) cannot exceed quantity ({self.quantity})"
                    ]
                }
            )

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def register(
        cls,
        name,
        category,
        company_code,
        unit,
        keeper,
        location,
        safety_stock=0,
        quantity=0,
        reserved_quantity=0,
        consumable_no=None,
        spec_model=None,
        description=None,
        attributes=None,
        archived=False,
        registered_by=None,
    ):
        now = datetime.now(UTC)
        consumable = cls(
            name=name,
            consumable_no=consumable_no,
            spec_model=spec_model,
            category=category,
            company_code=company_code,
            unit=unit,
            keeper=keeper,
            location=location,
            description=description,
            attributes=json.dumps(attributes) if attributes else None,
            quantity=quantity,
            reserved_quantity=reserved_quantity,
            safety_stock=safety_stock,
            archived=bool(archived),
            created_at=now,
            updated_at=now,
        )
        consumable.status = consumable.derived_status()

        consumable.raise_(
            ConsumableRegistered(
                consumable_id=str(consumable.id),
                name=consumable.name,
                category=consumable.category,
                company_code=consumable.company_code,
                keeper=consumable.keeper,
                location=consumable.location,
                quantity=consumable.quantity,
                reserved_quantity=consumable.reserved_quantity,
                safety_stock=consumable.safety_stock,
                status=consumable.status,
                registered_by=registered_by,
                registered_at=now,
            )
        )
        return consumable

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def available_quantity(self) -> int:
        return self.quantity - self.reserved_quantity

    def derived_status(self) -> str:
        return derive_status(self.quantity, self.reserved_quantity, self.safety_stock, self.archived)

    def attribute_map(self) -> dict:
        return json.loads(self.attributes) if self.attributes else {}

    def ensure_active(self):
        if self.is_deleted:
            raise ValidationError({"consumable_id": [f"Consumable {self.id} has been deleted"]})

    # -------------------------------------------------------------------
    # Ledger mutation
    # -------------------------------------------------------------------
    def apply_operation(self, operation_id, operation_type, quantity_delta=0, reserved_delta=0, actor=None):
        """Apply a settled operation's deltas and re-derive status.

        Rejections leave the record untouched.
        """
        self.ensure_active()

        available = self.available_quantity
        if quantity_delta < 0 and -quantity_delta > available:
            raise InsufficientStockError(
                {
                    "quantity_delta": [
                        f"Insufficient stock: requested {-quantity_delta}, available {available} "
                        f"(quantity {self.quantity}, reserved {self.reserved_quantity})"
                    ]
                }
            )
        if reserved_delta < 0 and -reserved_delta > self.reserved_quantity:
            raise InsufficientStockError(
                {
                    "reserved_delta": [
                        f"Insufficient reserved stock: releasing {-reserved_delta}, reserved {self.reserved_quantity}"
                    ]
                }
            )

        new_quantity = self.quantity + quantity_delta
        new_reserved = self.reserved_quantity + reserved_delta
        if new_reserved > new_quantity:
            raise InsufficientStockError(
                {
                    "reserved_delta": [
                        f"Insufficient stock to reserve: reserved quantity would be {new_reserved} "
                        f"but quantity is {new_quantity} (available {available})"
                    ]
                }
            )
        if new_quantity < 0 or new_reserved < 0:
            raise InsufficientStockError(
                {"quantity": [f"Counters cannot go negative: quantity {new_quantity}, reserved {new_reserved}"]}
            )

        previous_quantity = self.quantity
        previous_reserved = self.reserved_quantity
        previous_status = self.status
        now = datetime.now(UTC)

        with atomic_change(self):
            self.quantity = new_quantity
            self.reserved_quantity = new_reserved
            self.status = self.derived_status()
            self.updated_at = now

        self.raise_(
            StockLevelsChanged(
                consumable_id=str(self.id),
                name=self.name,
                keeper=self.keeper,
                operation_id=str(operation_id),
                operation_type=operation_type,
                quantity_delta=quantity_delta,
                reserved_delta=reserved_delta,
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
                previous_reserved=previous_reserved,
                new_reserved=new_reserved,
                safety_stock=self.safety_stock,
                previous_status=previous_status,
                status=self.status,
                actor=actor,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Header edits
    # -------------------------------------------------------------------
    def update_details(self, updated_by=None, attributes=None, archived=None, **changes):
        """Edit header fields and/or toggle the archive flag.

        ``None`` values are ignored. Counters cannot be edited here.
        """
        self.ensure_active()

        unknown = sorted(set(changes) - set(_HEADER_FIELDS))
        if unknown:
            raise ValidationError({field: ["Field cannot be edited on a consumable"] for field in unknown})

        previous_status = self.status
        now = datetime.now(UTC)

        with atomic_change(self):
            for field, value in changes.items():
                if value is not None:
                    setattr(self, field, value)
            if attributes is not None:
                self.attributes = json.dumps(attributes)
            if archived is not None:
                self.archived = bool(archived)
            self.status = self.derived_status()
            self.updated_at = now

        self.raise_(
            ConsumableDetailsUpdated(
                consumable_id=str(self.id),
                name=self.name,
                category=self.category,
                keeper=self.keeper,
                location=self.location,
                quantity=self.quantity,
                reserved_quantity=self.reserved_quantity,
                safety_stock=self.safety_stock,
                archived=self.archived,
                previous_status=previous_status,
                status=self.status,
                updated_by=updated_by,
                updated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Deletion lifecycle
    # -------------------------------------------------------------------
    def mark_deleted(self, deleted_by=None, reason=None):
        self.ensure_active()
        now = datetime.now(UTC)

        with atomic_change(self):
            self.is_deleted = True
            self.deleted_at = now
            self.deleted_by = deleted_by
            self.delete_reason = reason
            self.updated_at = now

        self.raise_(
            ConsumableDeleted(
                consumable_id=str(self.id),
                name=self.name,
                deleted_by=deleted_by,
                reason=reason,
                deleted_at=now,
            )
        )

    def restore(self, restored_by=None):
        if not self.is_deleted:
            raise ValidationError({"consumable_id": [f"Consumable {self.id} is not deleted"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.is_deleted = False
            self.deleted_at = None
            self.deleted_by = None
            self.delete_reason = None
            self.restored_at = now
            self.restored_by = restored_by
            self.status = self.derived_status()
            self.updated_at = now

        self.raise_(
            ConsumableRestored(
                consumable_id=str(self.id),
                name=self.name,
                keeper=self.keeper,
                quantity=self.quantity,
                reserved_quantity=self.reserved_quantity,
                safety_stock=self.safety_stock,
                status=self.status,
                restored_by=restored_by,
                restored_at=now,
            )
        )

    def ensure_purgeable(self):
        if not self.is_deleted:
            raise ValidationError(
                {"consumable_id": [f"Consumable {self.id} must be deleted before it can be purged permanently"]}
            )
