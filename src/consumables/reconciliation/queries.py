"""Read helpers over inventory tasks."""

from protean.utils.globals import current_domain

from consumables.reconciliation.task import InventoryTask
from consumables.utils.query import clamp_page, fetch_all, paginate


def get_task(task_id) -> InventoryTask:
    return current_domain.repository_for(InventoryTask).get(task_id)


def list_tasks(status=None, page=1, page_size=None):
    """Return ``(items, total)``, newest first. Use ``task.stats()`` for counts."""
    query = current_domain.repository_for(InventoryTask)._dao.query
    records = fetch_all(query.filter(status=status) if status else query)
    records.sort(key=lambda t: t.created_at, reverse=True)

    page, page_size = clamp_page(page, page_size)
    return paginate(records, page, page_size), len(records)
