"""Read helpers over stock alerts."""

from protean.utils.globals import current_domain

from consumables.alert.alert import AlertStatus, StockAlert
from consumables.utils.query import clamp_page, fetch_all, paginate


def get_alert(alert_id) -> StockAlert:
    return current_domain.repository_for(StockAlert).get(alert_id)


def list_alerts(statuses=None, consumable_id=None, page=1, page_size=None):
    """Return ``(items, total)``: open alerts first, then newest first.

    ``statuses`` defaults to open alerts only.
    """
    statuses = set(statuses or [AlertStatus.OPEN.value])

    query = current_domain.repository_for(StockAlert)._dao.query
    records = fetch_all(query.filter(consumable_id=str(consumable_id)) if consumable_id else query)
    records = [a for a in records if a.status in statuses]
    records.sort(key=lambda a: a.created_at, reverse=True)
    records.sort(key=lambda a: not a.is_open)

    page, page_size = clamp_page(page, page_size)
    return paginate(records, page, page_size), len(records)
