"""Domain events for the StockAlert aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from consumables.domain import consumables


@consumables.event(part_of="StockAlert")
class AlertOpened:
    __version__ = 1

    alert_id = Identifier(required=True)
    consumable_id = Identifier(required=True)
    consumable_name = String(required=True)
    keeper = String()
    level = String(required=True)
    message = Text(required=True)
    quantity = Integer(required=True)
    reserved_quantity = Integer(required=True)
    opened_at = DateTime(required=True)


@consumables.event(part_of="StockAlert")
class AlertResolved:
    """Carries the external handle so the todo can be withdrawn."""

    __version__ = 1

    alert_id = Identifier(required=True)
    consumable_id = Identifier(required=True)
    external_handle = String()
    resolved_by = String()
    resolved_at = DateTime(required=True)
