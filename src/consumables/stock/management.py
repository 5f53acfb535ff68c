"""Consumable record management: commands and handler.

Header CRUD only. Counters change exclusively through the operation ledger.
"""

import json

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from consumables.domain import consumables
from consumables.stock.consumable import Consumable

logger = structlog.get_logger(__name__)


def _json_map(value):
    if value is None:
        return None
    return json.loads(value) if isinstance(value, str) else value


@consumables.command(part_of="Consumable")
class RegisterConsumable:
    name = String(required=True, max_length=200)
    category = String(required=True, max_length=100)
    company_code = String(required=True, max_length=100)
    unit = String(required=True, max_length=50)
    keeper = String(required=True, max_length=100)
    location = String(required=True, max_length=255)
    safety_stock = Integer(min_value=0, default=0)
    quantity = Integer(min_value=0, default=0)
    reserved_quantity = Integer(min_value=0, default=0)
    consumable_no = String(max_length=100)
    spec_model = String(max_length=200)
    description = Text()
    attributes = Text()  # JSON object
    archived = Boolean(default=False)
    actor = String(max_length=100)


@consumables.command(part_of="Consumable")
class UpdateConsumableDetails:
    consumable_id = Identifier(required=True)
    name = String(max_length=200)
    consumable_no = String(max_length=100)
    spec_model = String(max_length=200)
    category = String(max_length=100)
    company_code = String(max_length=100)
    unit = String(max_length=50)
    keeper = String(max_length=100)
    location = String(max_length=255)
    safety_stock = Integer(min_value=0)
    description = Text()
    attributes = Text()  # JSON object
    archived = Boolean()
    actor = String(max_length=100)


@consumables.command(part_of="Consumable")
class DeleteConsumable:
    consumable_id = Identifier(required=True)
    actor = String(max_length=100)
    reason = String(max_length=500)


@consumables.command(part_of="Consumable")
class RestoreConsumable:
    consumable_id = Identifier(required=True)
    actor = String(max_length=100)


@consumables.command(part_of="Consumable")
class PurgeConsumable:
    consumable_id = Identifier(required=True)
    actor = String(max_length=100)


@consumables.command_handler(part_of=Consumable)
class ConsumableManagementHandler:
    @handle(RegisterConsumable)
    def register_consumable(self, command):
        consumable = Consumable.register(
            name=command.name,
            category=command.category,
            company_code=command.company_code,
            unit=command.unit,
            keeper=command.keeper,
            location=command.location,
            safety_stock=command.safety_stock,
            quantity=command.quantity,
            reserved_quantity=command.reserved_quantity,
            consumable_no=command.consumable_no,
            spec_model=command.spec_model,
            description=command.description,
            attributes=_json_map(command.attributes),
            archived=command.archived,
            registered_by=command.actor,
        )
        current_domain.repository_for(Consumable).add(consumable)
        return str(consumable.id)

    @handle(UpdateConsumableDetails)
    def update_consumable_details(self, command):
        repo = current_domain.repository_for(Consumable)
        consumable = repo.get(command.consumable_id)
        consumable.update_details(
            updated_by=command.actor,
            attributes=_json_map(command.attributes),
            archived=command.archived,
            name=command.name,
            consumable_no=command.consumable_no,
            spec_model=command.spec_model,
            category=command.category,
            company_code=command.company_code,
            unit=command.unit,
            keeper=command.keeper,
            location=command.location,
            safety_stock=command.safety_stock,
            description=command.description,
        )
        repo.add(consumable)

    @handle(DeleteConsumable)
    def delete_consumable(self, command):
        repo = current_domain.repository_for(Consumable)
        consumable = repo.get(command.consumable_id)
        consumable.mark_deleted(deleted_by=command.actor, reason=command.reason)
        repo.add(consumable)

    @handle(RestoreConsumable)
    def restore_consumable(self, command):
        repo = current_domain.repository_for(Consumable)
        consumable = repo.get(command.consumable_id)
        consumable.restore(restored_by=command.actor)
        repo.add(consumable)

    @handle(PurgeConsumable)
    def purge_consumable(self, command):
        repo = current_domain.repository_for(Consumable)
        consumable = repo.get(command.consumable_id)
        consumable.ensure_purgeable()
        repo._dao.delete(consumable)
        logger.info(
            "Consumable purged",
            consumable_id=str(command.consumable_id),
            name=consumable.name,
            purged_by=command.actor,
        )
