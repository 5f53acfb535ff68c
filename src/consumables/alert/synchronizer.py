"""Alert synchronizer: keeps stock alerts in step with consumable status.

Reacts to every Consumable event that carries a fresh status snapshot. An
alerting status (low-stock, out-of-stock) opens an alert or refreshes the
open one in place; any other status resolves it. Runs after the counter
change has committed.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from consumables.alert.alert import AlertStatus, StockAlert, build_alert_message
from consumables.domain import consumables
from consumables.settings import get_settings
from consumables.stock.consumable import ALERTING_STATUSES, Consumable
from consumables.stock.events import (
    ConsumableDeleted,
    ConsumableDetailsUpdated,
    ConsumableRegistered,
    ConsumableRestored,
    StockLevelsChanged,
)
from consumables.utils.query import fetch_all

logger = structlog.get_logger(__name__)

SYSTEM_ACTOR = "system"


def find_open_alerts(consumable_id) -> list[StockAlert]:
    repo = current_domain.repository_for(StockAlert)
    alerts = fetch_all(repo._dao.query.filter(consumable_id=str(consumable_id), status=AlertStatus.OPEN.value))
    return sorted(alerts, key=lambda a: a.created_at)


def resolve_open_alerts(consumable_id, resolved_by=None) -> list[StockAlert]:
    repo = current_domain.repository_for(StockAlert)
    resolved = []
    for alert in find_open_alerts(consumable_id):
        alert.resolve(resolved_by=resolved_by or SYSTEM_ACTOR)
        repo.add(alert)
        resolved.append(alert)
    return resolved


def sync_snapshot(
    consumable_id,
    name,
    keeper,
    status,
    quantity,
    reserved_quantity,
    safety_stock=0,
    actor=None,
) -> StockAlert | None:
    """Open, refresh or resolve the consumable's alert for a status snapshot.

    Returns the open alert after the sync, or None when nothing is open.
    """
    if status not in ALERTING_STATUSES:
        resolved = resolve_open_alerts(consumable_id, resolved_by=actor)
        if resolved:
            logger.info("Stock alert resolved", consumable_id=str(consumable_id), status=status)
        return None

    repo = current_domain.repository_for(StockAlert)
    message = build_alert_message(status, quantity, reserved_quantity, safety_stock)
    open_alerts = find_open_alerts(consumable_id)

    if open_alerts:
        alert, duplicates = open_alerts[0], open_alerts[1:]
        alert.refresh(status, message, quantity, reserved_quantity, consumable_name=name, keeper=keeper)
        repo.add(alert)
        for duplicate in duplicates:
            duplicate.resolve(resolved_by=SYSTEM_ACTOR)
            repo.add(duplicate)
        return alert

    if not get_settings().alerts_enabled:
        logger.debug("Stock alerts disabled, not opening alert", consumable_id=str(consumable_id))
        return None

    alert = StockAlert.open(
        consumable_id=str(consumable_id),
        consumable_name=name,
        keeper=keeper,
        level=status,
        message=message,
        quantity=quantity,
        reserved_quantity=reserved_quantity,
    )
    repo.add(alert)
    logger.info(
        "Stock alert opened",
        consumable_id=str(consumable_id),
        level=status,
        quantity=quantity,
        reserved_quantity=reserved_quantity,
    )
    return alert


@consumables.event_handler(part_of=Consumable)
class AlertSynchronizer:
    """Feeds every consumable status snapshot into ``sync_snapshot``."""

    @handle(ConsumableRegistered)
    def on_consumable_registered(self, event: ConsumableRegistered) -> None:
        sync_snapshot(
            event.consumable_id,
            event.name,
            event.keeper,
            event.status,
            event.quantity,
            event.reserved_quantity,
            event.safety_stock,
            actor=event.registered_by,
        )

    @handle(ConsumableDetailsUpdated)
    def on_consumable_details_updated(self, event: ConsumableDetailsUpdated) -> None:
        sync_snapshot(
            event.consumable_id,
            event.name,
            event.keeper,
            event.status,
            event.quantity,
            event.reserved_quantity,
            event.safety_stock,
            actor=event.updated_by,
        )

    @handle(StockLevelsChanged)
    def on_stock_levels_changed(self, event: StockLevelsChanged) -> None:
        sync_snapshot(
            event.consumable_id,
            event.name,
            event.keeper,
            event.status,
            event.new_quantity,
            event.new_reserved,
            event.safety_stock,
            actor=event.actor,
        )

    @handle(ConsumableRestored)
    def on_consumable_restored(self, event: ConsumableRestored) -> None:
        sync_snapshot(
            event.consumable_id,
            event.name,
            event.keeper,
            event.status,
            event.quantity,
            event.reserved_quantity,
            event.safety_stock,
            actor=event.restored_by,
        )

    @handle(ConsumableDeleted)
    def on_consumable_deleted(self, event: ConsumableDeleted) -> None:
        resolve_open_alerts(event.consumable_id, resolved_by=event.deleted_by)
