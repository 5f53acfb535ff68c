"""Helpers for reading whole result sets and paging through them."""

from consumables.settings import get_settings


def fetch_all(queryset) -> list:
    """Return every record matched by a Protean queryset.

    Querysets carry a default limit, so the total is read first and the
    query re-run with a limit covering all matches.
    """
    total = queryset.limit(1).all().total
    if total == 0:
        return []
    return queryset.limit(total).all().items


def clamp_page(page: int | None, page_size: int | None, max_page_size: int | None = None) -> tuple[int, int]:
    settings = get_settings()
    page = max(page or 1, 1)
    page_size = page_size or settings.default_page_size
    return page, min(max(page_size, 1), max_page_size or settings.max_page_size)


def paginate(records: list, page: int, page_size: int) -> list:
    offset = (page - 1) * page_size
    return records[offset : offset + page_size]
