"""InventoryTask aggregate: a physical stock count against frozen book values.

Creating a task snapshots the counters of every matching consumable into an
InventoryEntry. Counting fills in actual values and variances on the
entries; the consumables themselves are never touched.

Task State Machine:
    DRAFT -> IN_PROGRESS -> COMPLETED
    DRAFT -> COMPLETED
    IN_PROGRESS -> COMPLETED happens on its own once every entry is recorded.
    COMPLETED is terminal.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from consumables.domain import consumables
from consumables.reconciliation.events import (
    InventoryCountsRecorded,
    InventoryTaskCreated,
    InventoryTaskStatusChanged,
)


class TaskStatus(Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class EntryStatus(Enum):
    EXPECTED = "expected"
    RECORDED = "recorded"


_VALID_TRANSITIONS = {
    TaskStatus.DRAFT: {TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED},
    TaskStatus.COMPLETED: set(),  # Terminal
}


@consumables.entity(part_of="InventoryTask")
class InventoryEntry:
    consumable_id = Identifier(required=True)
    consumable_name = String(max_length=200, required=True)
    category = String(max_length=100)
    keeper = String(max_length=100)

    # Book values at task creation
    expected_quantity = Integer(required=True)
    expected_reserved = Integer(default=0)

    # Counted values, null until recorded
    actual_quantity = Integer(min_value=0)
    actual_reserved = Integer(min_value=0)
    variance_quantity = Integer()
    variance_reserved = Integer()

    note = Text()
    status = String(choices=EntryStatus, default=EntryStatus.EXPECTED.value)
    recorded_at = DateTime()

    @property
    def is_recorded(self) -> bool:
        return self.status == EntryStatus.RECORDED.value

    @property
    def has_variance(self) -> bool:
        return bool(self.variance_quantity) or bool(self.variance_reserved)

    def record(self, actual_quantity=None, actual_reserved=None, note=None, recorded_at=None):
        """Overwrite the counted values. ``None`` clears a previous count."""
        self.actual_quantity = actual_quantity
        self.actual_reserved = actual_reserved
        self.variance_quantity = None if actual_quantity is None else actual_quantity - self.expected_quantity
        self.variance_reserved = None if actual_reserved is None else actual_reserved - self.expected_reserved
        self.note = note

        # The counted quantity decides; a reserved count alone does not record the entry
        if actual_quantity is not None:
            self.status = EntryStatus.RECORDED.value
            self.recorded_at = recorded_at or datetime.now(UTC)
        else:
            self.status = EntryStatus.EXPECTED.value
            self.recorded_at = None


@consumables.aggregate
class InventoryTask:
    name = String(max_length=200, required=True)
    owner = String(max_length=100)
    description = Text()
    status = String(choices=TaskStatus, default=TaskStatus.IN_PROGRESS.value)
    filters = Text()  # JSON: {"categories": [...], "keeper": ...}
    entries = HasMany(InventoryEntry)

    created_at = DateTime()
    updated_at = DateTime()
    completed_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, name, snapshots, categories=None, keeper=None, owner=None, description=None, status=None):
        """Open a task over the given consumables.

        ``snapshots`` are the consumables selected by the filters; their
        current counters become the expected values.
        """
        try:
            initial = TaskStatus(status) if status else TaskStatus.IN_PROGRESS
        except ValueError:
            raise ValidationError({"status": [f"Unknown inventory task status '{status}'"]}) from None
        if initial == TaskStatus.COMPLETED:
            raise ValidationError({"status": ["A task cannot be created as completed"]})
        if not snapshots:
            raise ValidationError({"filters": ["No consumables match the task filters"]})

        now = datetime.now(UTC)
        filters = json.dumps({"categories": list(categories or []), "keeper": keeper})
        task = cls(
            name=name,
            owner=owner,
            description=description,
            status=initial.value,
            filters=filters,
            created_at=now,
            updated_at=now,
        )
        for consumable in snapshots:
            task.add_entries(
                InventoryEntry(
                    consumable_id=str(consumable.id),
                    consumable_name=consumable.name,
                    category=consumable.category,
                    keeper=consumable.keeper,
                    expected_quantity=consumable.quantity,
                    expected_reserved=consumable.reserved_quantity,
                    status=EntryStatus.EXPECTED.value,
                )
            )

        task.raise_(
            InventoryTaskCreated(
                task_id=str(task.id),
                name=name,
                status=task.status,
                entry_count=len(snapshots),
                filters=filters,
                owner=owner,
                created_at=now,
            )
        )
        return task

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def filter_map(self) -> dict:
        return json.loads(self.filters) if self.filters else {"categories": [], "keeper": None}

    def stats(self) -> dict:
        entries = list(self.entries or [])
        return {
            "total_entries": len(entries),
            "recorded_entries": sum(1 for e in entries if e.is_recorded),
            "variance_entries": sum(1 for e in entries if e.has_variance),
        }

    def _entry(self, entry_id) -> InventoryEntry:
        entry = next((e for e in self.entries if str(e.id) == str(entry_id)), None)
        if entry is None:
            raise ObjectNotFoundError(f"Inventory entry {entry_id} does not belong to task {self.id}")
        return entry

    # -------------------------------------------------------------------
    # Counting
    # -------------------------------------------------------------------
    def record_counts(self, counts, recorded_by=None):
        """Write counted values for a batch of entries.

        Each count is ``{"entry_id", "actual_quantity"?, "actual_reserved"?, "note"?}``.
        An in-progress task completes once no entry is left expected.
        Completed tasks are closed to further counts.
        """
        if self.status == TaskStatus.COMPLETED.value:
            raise ValidationError({"status": [f"Inventory task {self.id} is completed and cannot take more counts"]})

        targets = [(self._entry(count.get("entry_id")), count) for count in counts]

        now = datetime.now(UTC)
        for entry, count in targets:
            entry.record(
                actual_quantity=count.get("actual_quantity"),
                actual_reserved=count.get("actual_reserved"),
                note=count.get("note"),
                recorded_at=now,
            )
        self.updated_at = now

        stats = self.stats()
        self.raise_(
            InventoryCountsRecorded(
                task_id=str(self.id),
                entry_ids=json.dumps([str(entry.id) for entry, _ in targets]),
                recorded_entries=stats["recorded_entries"],
                total_entries=stats["total_entries"],
                recorded_by=recorded_by,
                recorded_at=now,
            )
        )

        self._complete_if_counted(changed_by=recorded_by)

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = TaskStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"status": [f"Cannot transition inventory task from {current.value} to {target_status.value}"]}
            )

    def _complete_if_counted(self, changed_by=None):
        stats = self.stats()
        if self.status == TaskStatus.IN_PROGRESS.value and stats["recorded_entries"] == stats["total_entries"]:
            self._move_to(TaskStatus.COMPLETED, changed_by=changed_by, automatic=True)

    def _move_to(self, target_status, changed_by=None, automatic=False):
        previous = self.status
        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now
        if target_status == TaskStatus.COMPLETED:
            self.completed_at = now

        self.raise_(
            InventoryTaskStatusChanged(
                task_id=str(self.id),
                previous_status=previous,
                status=self.status,
                automatic=automatic,
                changed_by=changed_by,
                changed_at=now,
            )
        )

    def change_status(self, status, changed_by=None) -> bool:
        """Explicit status change. Returns False when already in ``status``."""
        try:
            target = TaskStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown inventory task status '{status}'"]}) from None

        if target.value == self.status:
            return False
        self._assert_can_transition(target)
        self._move_to(target, changed_by=changed_by)
        # A draft counted in full completes as soon as it starts
        self._complete_if_counted(changed_by=changed_by)
        return True
