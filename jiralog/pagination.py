"""
Pagination drivers for the two page styles used upstream.

- Tempo: {"results": [...], "metadata": {"offset", "limit", "next"}}
- Jira:  {"startAt", "maxResults", "total", "<items>": [...]}

Neither driver retries; whatever the fetch function raises propagates.
"""
from typing import Any, Callable, Dict, List, Optional

Page = Dict[str, Any]


def paginate_offset(fetch: Callable[[Dict[str, Any]], Page], options: Dict[str, Any],
                    on_page: Optional[Callable[[int], None]] = None) -> List[Dict[str, Any]]:
    """Follow Tempo-style pages until metadata carries no 'next' link.

    Args:
        fetch: Callable taking the query options and returning one decoded page.
        options: Initial query options (from/to/limit/...). Not mutated.
        on_page: Optional callback invoked with the 1-based page number before each fetch.

    Returns:
        List[Dict[str, Any]]: All results, in page order.
    """
    opts = dict(options)
    results: List[Dict[str, Any]] = []
    page_no = 1
    while True:
        if on_page:
            on_page(page_no)
        body = fetch(dict(opts))
        page = body.get("results") or []
        results.extend(page)

        metadata = body.get("metadata") or {}
        if not metadata.get("next"):
            break
        offset = metadata.get("offset", opts.get("offset", 0)) or 0
        limit = metadata.get("limit") or len(page)
        if not limit:
            break
        opts["offset"] = offset + limit
        page_no += 1
    return results


def paginate_start_at(fetch: Callable[[Dict[str, Any]], Page], options: Dict[str, Any],
                      items_key: str = "issues") -> List[Dict[str, Any]]:
    """Follow Jira-style startAt/maxResults pages up to the reported total.

    Stops once the accumulated count reaches 'total' or the next startAt would
    reach or pass it; an empty page also ends the loop.
    """
    opts = dict(options)
    opts.setdefault("startAt", 0)
    results: List[Dict[str, Any]] = []
    while True:
        body = fetch(dict(opts))
        items = body.get(items_key) or []
        results.extend(items)

        step = body.get("maxResults") or len(items)
        opts["startAt"] += step
        total = body.get("total", 0) or 0
        if not items or not step:
            break
        if not (len(results) < total and total > opts["startAt"]):
            break
    return results
