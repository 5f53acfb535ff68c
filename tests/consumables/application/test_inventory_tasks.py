"""Inventory task creation, counting and completion through commands."""

import json

import pytest
from consumables.reconciliation.counting import (
    ChangeInventoryTaskStatus,
    CreateInventoryTask,
    RecordInventoryCounts,
)
from consumables.reconciliation.queries import get_task, list_tasks
from consumables.reconciliation.task import EntryStatus, TaskStatus
from consumables.stock.management import DeleteConsumable, RegisterConsumable, UpdateConsumableDetails
from consumables.stock.queries import get_consumable
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _register(name, category="Office", quantity=10, keeper="alice", **overrides):
    data = {
        "name": name,
        "category": category,
        "company_code": "HQ",
        "unit": "piece",
        "keeper": keeper,
        "location": "Store",
        "safety_stock": 0,
        "quantity": quantity,
    }
    data.update(overrides)
    return current_domain.process(RegisterConsumable(**data), asynchronous=False)


def _create_task(categories=None, **kwargs):
    return current_domain.process(
        CreateInventoryTask(
            name=kwargs.pop("name", "Quarterly count"),
            categories=json.dumps(categories) if categories is not None else None,
            owner="olivia",
            **kwargs,
        ),
        asynchronous=False,
    )


def _record(task_id, counts, actor="olivia"):
    return current_domain.process(
        RecordInventoryCounts(task_id=task_id, entries=json.dumps(counts), actor=actor),
        asynchronous=False,
    )


def _entry_for(task, consumable_id):
    return next(e for e in task.entries if e.consumable_id == consumable_id)


class TestCountingScenario:
    def test_counts_record_variance_and_complete_task(self):
        paper = _register("Paper", quantity=20)
        pens = _register("Pens", quantity=5)
        _register("Toner", category="Printing", quantity=7)

        task_id = _create_task(["Office"])
        task = get_task(task_id)
        assert task.status == TaskStatus.IN_PROGRESS.value
        assert len(task.entries) == 2

        paper_entry = _entry_for(task, paper)
        pens_entry = _entry_for(task, pens)
        _record(
            task_id,
            [
                {"entry_id": str(paper_entry.id), "actual_quantity": 18},
                {"entry_id": str(pens_entry.id), "actual_quantity": 5},
            ],
        )

        task = get_task(task_id)
        paper_entry = _entry_for(task, paper)
        pens_entry = _entry_for(task, pens)
        assert paper_entry.variance_quantity == -2
        assert paper_entry.status == EntryStatus.RECORDED.value
        assert pens_entry.variance_quantity == 0
        assert pens_entry.status == EntryStatus.RECORDED.value
        assert task.status == TaskStatus.COMPLETED.value
        assert task.completed_at is not None

        # Counting never touches the ledger
        assert get_consumable(paper).quantity == 20

    def test_partial_counts_keep_task_open(self):
        paper = _register("Paper", quantity=20)
        _register("Pens", quantity=5)
        task_id = _create_task(["Office"])
        entry = _entry_for(get_task(task_id), paper)

        _record(task_id, [{"entry_id": str(entry.id), "actual_quantity": 19, "note": "One torn"}])

        task = get_task(task_id)
        assert task.status == TaskStatus.IN_PROGRESS.value
        assert task.stats() == {"total_entries": 2, "recorded_entries": 1, "variance_entries": 1}
        assert _entry_for(task, paper).note == "One torn"

    def test_draft_task_records_without_completing(self):
        paper = _register("Paper", quantity=20)
        task_id = _create_task(["Office"], status="draft")
        entry = _entry_for(get_task(task_id), paper)

        _record(task_id, [{"entry_id": str(entry.id), "actual_quantity": 20}])

        assert get_task(task_id).status == TaskStatus.DRAFT.value

    def test_unknown_entry_rejects_whole_batch(self):
        paper = _register("Paper", quantity=20)
        task_id = _create_task(["Office"])
        entry = _entry_for(get_task(task_id), paper)

        with pytest.raises(ObjectNotFoundError):
            _record(
                task_id,
                [
                    {"entry_id": str(entry.id), "actual_quantity": 20},
                    {"entry_id": "not-an-entry", "actual_quantity": 1},
                ],
            )

        assert _entry_for(get_task(task_id), paper).status == EntryStatus.EXPECTED.value


class TestTaskScope:
    def test_snapshot_freezes_book_values(self):
        paper = _register("Paper", quantity=20, reserved_quantity=3)
        task_id = _create_task(["Office"])

        current_domain.process(UpdateConsumableDetails(consumable_id=paper, name="Paper A4"), asynchronous=False)

        entry = _entry_for(get_task(task_id), paper)
        assert entry.expected_quantity == 20
        assert entry.expected_reserved == 3
        assert entry.consumable_name == "Paper"

    def test_keeper_filter(self):
        _register("Paper", keeper="alice")
        mine = _register("Pens", keeper="bob")

        task = get_task(_create_task(keeper="bob"))

        assert [e.consumable_id for e in task.entries] == [mine]
        assert task.filter_map() == {"categories": [], "keeper": "bob"}

    def test_archived_and_deleted_excluded(self):
        live = _register("Paper")
        archived = _register("Binders")
        deleted = _register("Clips")
        current_domain.process(UpdateConsumableDetails(consumable_id=archived, archived=True), asynchronous=False)
        current_domain.process(DeleteConsumable(consumable_id=deleted), asynchronous=False)

        task = get_task(_create_task(["Office"]))

        assert [e.consumable_id for e in task.entries] == [live]

    def test_no_matches_rejected(self):
        _register("Paper")
        with pytest.raises(ValidationError) as exc_info:
            _create_task(["Cleaning"])
        assert "filters" in exc_info.value.messages
        _, total = list_tasks()
        assert total == 0


class TestTaskStatus:
    def test_start_draft_task(self):
        _register("Paper")
        task_id = _create_task(status="draft")

        current_domain.process(
            ChangeInventoryTaskStatus(task_id=task_id, status="in-progress", actor="olivia"), asynchronous=False
        )

        assert get_task(task_id).status == TaskStatus.IN_PROGRESS.value

    def test_completed_is_terminal(self):
        _register("Paper")
        task_id = _create_task()
        current_domain.process(ChangeInventoryTaskStatus(task_id=task_id, status="completed"), asynchronous=False)

        with pytest.raises(ValidationError):
            current_domain.process(
                ChangeInventoryTaskStatus(task_id=task_id, status="in-progress"), asynchronous=False
            )

    def test_list_tasks_by_status(self):
        _register("Paper")
        _create_task(name="Draft count", status="draft")
        _create_task(name="Live count")

        items, total = list_tasks(status=TaskStatus.DRAFT.value)
        assert total == 1
        assert items[0].name == "Draft count"

    def test_starting_counted_draft_completes(self):
        paper = _register("Paper", quantity=20)
        task_id = _create_task(["Office"], status="draft")
        entry = _entry_for(get_task(task_id), paper)
        _record(task_id, [{"entry_id": str(entry.id), "actual_quantity": 20}])

        current_domain.process(ChangeInventoryTaskStatus(task_id=task_id, status="in-progress"), asynchronous=False)

        task = get_task(task_id)
        assert task.status == TaskStatus.COMPLETED.value
        assert _entry_for(task, paper).status == EntryStatus.RECORDED.value

    def test_completed_task_keeps_its_counts(self):
        paper = _register("Paper", quantity=20)
        task_id = _create_task(["Office"])
        entry = _entry_for(get_task(task_id), paper)
        _record(task_id, [{"entry_id": str(entry.id), "actual_quantity": 19}])
        assert get_task(task_id).status == TaskStatus.COMPLETED.value

        with pytest.raises(ValidationError) as exc_info:
            _record(task_id, [{"entry_id": str(entry.id), "actual_quantity": None}])
        assert "status" in exc_info.value.messages

        task = get_task(task_id)
        assert task.status == TaskStatus.COMPLETED.value
        assert _entry_for(task, paper).status == EntryStatus.RECORDED.value
        assert _entry_for(task, paper).actual_quantity == 19
