"""Read helpers over the consumable store."""

from protean.utils.globals import current_domain

from consumables.stock.consumable import Consumable, StockStatus
from consumables.utils.query import clamp_page, fetch_all, paginate

_SEARCH_FIELDS = ("id", "name", "consumable_no", "spec_model", "keeper", "location", "description")


def get_consumable(consumable_id) -> Consumable:
    return current_domain.repository_for(Consumable).get(consumable_id)


def _matches_search(consumable: Consumable, search: str) -> bool:
    needle = search.lower()
    return any(needle in str(getattr(consumable, field) or "").lower() for field in _SEARCH_FIELDS)


def list_consumables(
    search=None,
    category=None,
    company_code=None,
    status=None,
    include_deleted=False,
    page=1,
    page_size=None,
):
    """Filter and page consumables, newest first.

    ``status`` takes one status or a list of them. ``search`` also matches
    the consumable id.

    Returns ``(items, total)``.
    """
    criteria = {}
    if category:
        criteria["category"] = category
    if company_code:
        criteria["company_code"] = company_code
    if not include_deleted:
        criteria["is_deleted"] = False

    query = current_domain.repository_for(Consumable)._dao.query
    records = fetch_all(query.filter(**criteria) if criteria else query)
    if status:
        statuses = {status} if isinstance(status, str) else set(status)
        records = [c for c in records if c.status in statuses]
    if search:
        records = [c for c in records if _matches_search(c, search)]
    records.sort(key=lambda c: c.created_at, reverse=True)

    page, page_size = clamp_page(page, page_size)
    return paginate(records, page, page_size), len(records)


def stock_summary() -> dict:
    """Count live consumables by derived status."""
    records = fetch_all(current_domain.repository_for(Consumable)._dao.query.filter(is_deleted=False))
    summary = {status.value: 0 for status in StockStatus}
    for consumable in records:
        summary[consumable.status] += 1
    summary["total"] = len(records)
    return summary
