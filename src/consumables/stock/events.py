"""Domain events for the Consumable aggregate.

Each event carrying counters includes the full snapshot (name, keeper,
counters, derived status) so the alert synchronizer and the operation log
never have to reload the consumable.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from consumables.domain import consumables


@consumables.event(part_of="Consumable")
class ConsumableRegistered:
    """A consumable was added to the ledger with its opening counters."""

    __version__ = 1

    consumable_id = Identifier(required=True)
    name = String(required=True)
    category = String(required=True)
    company_code = String(required=True)
    keeper = String(required=True)
    location = String(required=True)
    quantity = Integer(required=True)
    reserved_quantity = Integer(required=True)
    safety_stock = Integer(required=True)
    status = String(required=True)
    registered_by = String()
    registered_at = DateTime(required=True)


@consumables.event(part_of="Consumable")
class ConsumableDetailsUpdated:
    """Header fields or the archive flag changed; counters did not."""

    __version__ = 1

    consumable_id = Identifier(required=True)
    name = String(required=True)
    category = String(required=True)
    keeper = String(required=True)
    location = String(required=True)
    quantity = Integer(required=True)
    reserved_quantity = Integer(required=True)
    safety_stock = Integer(required=True)
    archived = Boolean(default=False)
    previous_status = String(required=True)
    status = String(required=True)
    updated_by = String()
    updated_at = DateTime(required=True)


@consumables.event(part_of="Consumable")
class StockLevelsChanged:
    """A settled operation moved the quantity and/or reserved counters."""

    __version__ = 1

    consumable_id = Identifier(required=True)
    name = String(required=True)
    keeper = String(required=True)
    operation_id = Identifier(required=True)
    operation_type = String(required=True)
    quantity_delta = Integer(required=True)
    reserved_delta = Integer(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    previous_reserved = Integer(required=True)
    new_reserved = Integer(required=True)
    safety_stock = Integer(required=True)
    previous_status = String(required=True)
    status = String(required=True)
    actor = String()
    changed_at = DateTime(required=True)


@consumables.event(part_of="Consumable")
class ConsumableDeleted:
    """The consumable was soft-deleted and hidden from listings."""

    __version__ = 1

    consumable_id = Identifier(required=True)
    name = String(required=True)
    deleted_by = String()
    reason = String()
    deleted_at = DateTime(required=True)


@consumables.event(part_of="Consumable")
class ConsumableRestored:
    """A soft-deleted consumable was brought back."""

    __version__ = 1

    consumable_id = Identifier(required=True)
    name = String(required=True)
    keeper = String(required=True)
    quantity = Integer(required=True)
    reserved_quantity = Integer(required=True)
    safety_stock = Integer(required=True)
    status = String(required=True)
    restored_by = String()
    restored_at = DateTime(required=True)
