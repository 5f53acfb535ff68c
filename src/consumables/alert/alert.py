"""StockAlert aggregate (CQRS): low/out-of-stock alert for one consumable.

At most one alert per consumable is open at a time. An open alert is
refreshed in place while the condition persists and resolved once stock
recovers, or manually acknowledged by a user.

State Machine:
    OPEN -> RESOLVED (terminal)
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from consumables.alert.events import AlertOpened, AlertResolved
from consumables.domain import consumables
from consumables.stock.consumable import StockStatus


class AlertLevel(Enum):
    LOW_STOCK = StockStatus.LOW_STOCK.value
    OUT_OF_STOCK = StockStatus.OUT_OF_STOCK.value


class AlertStatus(Enum):
    OPEN = "open"
    RESOLVED = "resolved"


def build_alert_message(level: str, quantity: int, reserved_quantity: int, safety_stock: int = 0) -> str:
    if level == AlertLevel.OUT_OF_STOCK.value:
        return f"Current stock is {quantity}, the item is out of stock"
    return (
        f"Stock {quantity} (reserved {reserved_quantity}) is at or below "
        f"the safety threshold of {safety_stock}"
    )


@consumables.aggregate
class StockAlert:
    consumable_id: Identifier(required=True)
    consumable_name: String(max_length=200, required=True)
    keeper: String(max_length=100)

    level: String(choices=AlertLevel, required=True)
    status: String(choices=AlertStatus, default=AlertStatus.OPEN.value)
    message: Text(required=True)

    # Snapshot at last sync
    quantity: Integer(default=0)
    reserved_quantity: Integer(default=0)

    # External todo reference, bound after a successful push
    external_handle: String(max_length=255)

    created_at: DateTime()
    updated_at: DateTime()
    resolved_at: DateTime()
    resolved_by: String(max_length=100)

    @classmethod
    def open(cls, consumable_id, consumable_name, keeper, level, message, quantity, reserved_quantity):
        now = datetime.now(UTC)
        alert = cls(
            consumable_id=consumable_id,
            consumable_name=consumable_name,
            keeper=keeper,
            level=level,
            message=message,
            quantity=quantity,
            reserved_quantity=reserved_quantity,
            status=AlertStatus.OPEN.value,
            created_at=now,
            updated_at=now,
        )
        alert.raise_(
            AlertOpened(
                alert_id=str(alert.id),
                consumable_id=str(consumable_id),
                consumable_name=consumable_name,
                keeper=keeper,
                level=level,
                message=message,
                quantity=quantity,
                reserved_quantity=reserved_quantity,
                opened_at=now,
            )
        )
        return alert

    @property
    def is_open(self) -> bool:
        return self.status == AlertStatus.OPEN.value

    def refresh(self, level, message, quantity, reserved_quantity, consumable_name=None, keeper=None):
        """Update level, message and snapshot while the alert stays open."""
        if not self.is_open:
            raise ValidationError({"status": ["Only open alerts can be refreshed"]})

        self.level = level
        self.message = message
        self.quantity = quantity
        self.reserved_quantity = reserved_quantity
        if consumable_name:
            self.consumable_name = consumable_name
        if keeper:
            self.keeper = keeper
        self.updated_at = datetime.now(UTC)

    def resolve(self, resolved_by=None):
        if not self.is_open:
            raise ValidationError({"status": [f"Alert {self.id} is already resolved"]})

        now = datetime.now(UTC)
        self.status = AlertStatus.RESOLVED.value
        self.resolved_at = now
        self.resolved_by = resolved_by
        self.updated_at = now

        self.raise_(
            AlertResolved(
                alert_id=str(self.id),
                consumable_id=str(self.consumable_id),
                external_handle=self.external_handle,
                resolved_by=resolved_by,
                resolved_at=now,
            )
        )

    def bind_external_handle(self, handle: str):
        self.external_handle = handle
        self.updated_at = datetime.now(UTC)
