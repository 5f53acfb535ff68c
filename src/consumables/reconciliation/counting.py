"""Inventory task commands and handler."""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from consumables.domain import consumables
from consumables.reconciliation.task import InventoryTask
from consumables.stock.consumable import Consumable
from consumables.utils.query import fetch_all

logger = structlog.get_logger(__name__)


def _json(value, default):
    if value is None:
        return default
    return json.loads(value) if isinstance(value, str) else value


@consumables.command(part_of="InventoryTask")
class CreateInventoryTask:
    name = String(required=True, max_length=200)
    categories = Text()  # JSON list of category codes
    keeper = String(max_length=100)
    owner = String(max_length=100)
    description = Text()
    status = String(max_length=20)  # "draft" to hold the task back
    actor = String(max_length=100)


@consumables.command(part_of="InventoryTask")
class RecordInventoryCounts:
    task_id = Identifier(required=True)
    entries = Text(required=True)  # JSON list of {entry_id, actual_quantity, actual_reserved, note}
    actor = String(max_length=100)


@consumables.command(part_of="InventoryTask")
class ChangeInventoryTaskStatus:
    task_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    actor = String(max_length=100)


def select_consumables(categories=None, keeper=None) -> list[Consumable]:
    """Live, non-archived consumables matching the task filters, by name."""
    repo = current_domain.repository_for(Consumable)
    candidates = fetch_all(repo._dao.query.filter(is_deleted=False, archived=False))
    if categories:
        candidates = [c for c in candidates if c.category in categories]
    if keeper:
        candidates = [c for c in candidates if c.keeper == keeper]
    return sorted(candidates, key=lambda c: c.name)


@consumables.command_handler(part_of=InventoryTask)
class InventoryTaskHandler:
    @handle(CreateInventoryTask)
    def create_inventory_task(self, command):
        categories = _json(command.categories, [])
        snapshots = select_consumables(categories, command.keeper)

        task = InventoryTask.create(
            name=command.name,
            snapshots=snapshots,
            categories=categories,
            keeper=command.keeper,
            owner=command.owner,
            description=command.description,
            status=command.status,
        )
        current_domain.repository_for(InventoryTask).add(task)

        logger.info(
            "Inventory task created",
            task_id=str(task.id),
            entries=len(snapshots),
            categories=categories,
            keeper=command.keeper,
        )
        return str(task.id)

    @handle(RecordInventoryCounts)
    def record_inventory_counts(self, command):
        repo = current_domain.repository_for(InventoryTask)
        task = repo.get(command.task_id)
        task.record_counts(_json(command.entries, []), recorded_by=command.actor)
        repo.add(task)
        return str(task.id)

    @handle(ChangeInventoryTaskStatus)
    def change_inventory_task_status(self, command):
        repo = current_domain.repository_for(InventoryTask)
        task = repo.get(command.task_id)
        if task.change_status(command.status, changed_by=command.actor):
            repo.add(task)
        return str(task.id)
