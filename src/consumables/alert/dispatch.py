"""Alert notifier: pushes committed alerts to the external todo sink.

Runs after the alert is stored. Sink failures are logged and swallowed;
the local alert is never rolled back because of them.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from consumables.alert.alert import StockAlert
from consumables.alert.events import AlertOpened, AlertResolved
from consumables.channel import get_todo_sink
from consumables.domain import consumables
from consumables.settings import get_settings

logger = structlog.get_logger(__name__)


def _alert_payload(alert: StockAlert) -> dict:
    return {
        "alert_id": str(alert.id),
        "consumable_id": str(alert.consumable_id),
        "consumable_name": alert.consumable_name,
        "keeper": alert.keeper,
        "level": alert.level,
        "message": alert.message,
    }


@consumables.event_handler(part_of=StockAlert)
class AlertNotifier:
    @handle(AlertOpened)
    def on_alert_opened(self, event: AlertOpened) -> None:
        if not get_settings().push_enabled:
            return

        repo = current_domain.repository_for(StockAlert)
        alert = repo.get(event.alert_id)
        if not alert.is_open:
            logger.info("Alert resolved before push, skipping", alert_id=str(event.alert_id))
            return

        try:
            external_handle = get_todo_sink().push(_alert_payload(alert))
        except Exception as exc:
            logger.warning(
                "Failed to push stock alert",
                alert_id=str(alert.id),
                consumable_id=str(alert.consumable_id),
                error=str(exc),
            )
            return

        if external_handle:
            alert.bind_external_handle(external_handle)
            repo.add(alert)

    @handle(AlertResolved)
    def on_alert_resolved(self, event: AlertResolved) -> None:
        if not event.external_handle or not get_settings().push_enabled:
            return

        try:
            get_todo_sink().withdraw(event.external_handle)
        except Exception as exc:
            logger.warning(
                "Failed to withdraw stock alert",
                alert_id=str(event.alert_id),
                external_handle=event.external_handle,
                error=str(exc),
            )
