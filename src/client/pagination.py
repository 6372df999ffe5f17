"""Multi-page retrieval for Suite API list endpoints.

List endpoints wrap their items in an envelope::

    {"pageInfo": {"totalCount": 2500, "page": 0, "pageSize": 1000},
     "<items_key>": [...]}

Page 0 is requested first; its envelope decides how many more pages follow.
When ``totalCount`` is an exact multiple of the page size, one extra trailing
page is requested and may come back empty. That empty page is a normal
result, not an error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .models import PageInfo
from ..common.console import debug

DEFAULT_PAGE_SIZE = 1000


def extra_pages(total_count: int, page_size: int) -> range:
    """Page indexes to request after page 0.

    >>> list(extra_pages(2500, 1000))
    [1, 2]
    >>> list(extra_pages(2000, 1000))
    [1, 2]
    >>> list(extra_pages(1000, 1000))
    []
    """
    if page_size <= 0 or total_count <= page_size:
        return range(0)
    return range(1, total_count // page_size + 1)


def fetch_all(
    client,
    path: str,
    items_key: str,
    page_size: int = DEFAULT_PAGE_SIZE,
    params: Optional[Dict[str, Any]] = None,
    internal: bool = False,
) -> List[Dict[str, Any]]:
    """Fetch every item of a paged list endpoint, in page order.

    Args:
        client: A SuiteApiClient (anything with ``get_json`` and ``node``).
        path: Endpoint path below ``/suite-api``.
        items_key: Key of the item list inside each page.
        page_size: Requested page size.
        params: Extra query parameters sent with every page.
        internal: Whether the endpoint needs the unsupported-API header.

    Returns:
        All items from page 0 onwards, concatenated in request order.

    Raises:
        SuiteApiError: If any page fails; partial results are never returned.
    """
    operation = f"list {items_key}"
    query = dict(params or {})
    query.update({"page": 0, "pageSize": page_size})

    first = client.get_json(operation, path, internal=internal, params=query)
    items: List[Dict[str, Any]] = list(first.get(items_key) or [])

    if "pageInfo" not in first:
        debug("paging", f"{path}: unpaged response with {len(items)} {items_key}")
        return items

    info = PageInfo.from_dict(first["pageInfo"], page_size)
    pages = extra_pages(info.total_count, info.page_size)
    debug(
        "paging",
        f"{path}: totalCount={info.total_count} pageSize={info.page_size} extra_pages={len(pages)}",
    )

    for page in pages:
        query["page"] = page
        query["pageSize"] = info.page_size
        payload = client.get_json(operation, path, internal=internal, params=query)
        items.extend(payload.get(items_key) or [])

    return items
