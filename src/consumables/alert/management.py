"""Manual alert acknowledgement."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from consumables.alert.alert import StockAlert
from consumables.alert.synchronizer import resolve_open_alerts
from consumables.domain import consumables

logger = structlog.get_logger(__name__)


@consumables.command(part_of="StockAlert")
class ResolveAlert:
    alert_id = Identifier(required=True)
    actor = String(max_length=100)


@consumables.command(part_of="StockAlert")
class ResolveConsumableAlerts:
    """Close every open alert of one consumable, whatever its stock."""

    consumable_id = Identifier(required=True)
    actor = String(max_length=100)


@consumables.command_handler(part_of=StockAlert)
class AlertManagementHandler:
    @handle(ResolveAlert)
    def resolve_alert(self, command):
        repo = current_domain.repository_for(StockAlert)
        alert = repo.get(command.alert_id)
        alert.resolve(resolved_by=command.actor)
        repo.add(alert)
        return str(alert.id)

    @handle(ResolveConsumableAlerts)
    def resolve_consumable_alerts(self, command):
        resolved = resolve_open_alerts(command.consumable_id, resolved_by=command.actor)
        logger.info(
            "Consumable alerts resolved",
            consumable_id=str(command.consumable_id),
            resolved=len(resolved),
            resolved_by=command.actor,
        )
        return [str(alert.id) for alert in resolved]
