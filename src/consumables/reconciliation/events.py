"""Domain events for the InventoryTask aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from consumables.domain import consumables


@consumables.event(part_of="InventoryTask")
class InventoryTaskCreated:
    """Expected counters were frozen into entries for a set of consumables."""

    __version__ = 1

    task_id = Identifier(required=True)
    name = String(required=True)
    status = String(required=True)
    entry_count = Integer(required=True)
    filters = Text()  # JSON: {"categories": [...], "keeper": ...}
    owner = String()
    created_at = DateTime(required=True)


@consumables.event(part_of="InventoryTask")
class InventoryCountsRecorded:
    __version__ = 1

    task_id = Identifier(required=True)
    entry_ids = Text(required=True)  # JSON list
    recorded_entries = Integer(required=True)
    total_entries = Integer(required=True)
    recorded_by = String()
    recorded_at = DateTime(required=True)


@consumables.event(part_of="InventoryTask")
class InventoryTaskStatusChanged:
    """``automatic`` is set when the last entry was counted and the task closed itself."""

    __version__ = 1

    task_id = Identifier(required=True)
    previous_status = String(required=True)
    status = String(required=True)
    automatic = Boolean(default=False)
    changed_by = String()
    changed_at = DateTime(required=True)
