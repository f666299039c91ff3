"""
Cursor pagination for Qlik Cloud collections

Qlik list endpoints return a page of items plus an opaque ``next`` cursor
carried in the query string of ``links.next.href``. The walker follows
cursors until they run out or a per-resource ceiling is reached.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urljoin, urlsplit

from src.logging import get_logger

logger = get_logger('PAGINATION')

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 100

# Hard ceilings per resource kind
SEARCH_CEILING = 2000
USERS_CEILING = 2000
DATA_PRODUCTS_CEILING = 2000
SPACES_CEILING = 1000
DATASETS_CEILING = 1000
AUTOMATIONS_CEILING = 1000
ALERTS_CEILING = 1000
GLOSSARY_TERMS_CEILING = 1000
SPACE_ITEMS_CEILING = 500
RELOADS_CEILING = 500
AUTOMATION_RUNS_CEILING = 500
ASSISTANTS_CEILING = 500
EXPERIMENTS_CEILING = 500
DEPLOYMENTS_CEILING = 500
GLOSSARIES_CEILING = 500


@dataclass
class Page:
    """One page of a collection and the cursor to the next one."""

    items: List[Any] = field(default_factory=list)
    next_cursor: Optional[str] = None


FetchPage = Callable[[Optional[str]], Awaitable[Page]]


class PageWalker:
    """
    Drains a cursor-paginated collection.

    The walker never re-fetches a page and keeps items in cross-page order.
    An error from the fetch function propagates and the items gathered so far
    are discarded.
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE, hard_ceiling: int = 1000):
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")
        if hard_ceiling < 1:
            raise ValueError(f"hard_ceiling must be positive, got {hard_ceiling}")
        self.page_size = page_size
        self.hard_ceiling = hard_ceiling

    async def collect(self, fetch_page: FetchPage) -> List[Any]:
        items: List[Any] = []
        cursor: Optional[str] = None
        pages = 0

        while True:
            page = await fetch_page(cursor)
            pages += 1
            items.extend(page.items)
            cursor = page.next_cursor
            if not cursor or len(items) >= self.hard_ceiling:
                break

        if cursor and len(items) >= self.hard_ceiling:
            logger.info(f"ceiling reached | items:{len(items)} | ceiling:{self.hard_ceiling} | pages:{pages}")
        else:
            logger.debug(f"collection drained | items:{len(items)} | pages:{pages}")

        return items[:self.hard_ceiling]


async def collect(fetch_page: FetchPage, page_size: int, hard_ceiling: int) -> List[Any]:
    """Collect up to hard_ceiling items by following cursors from fetch_page."""
    return await PageWalker(page_size, hard_ceiling).collect(fetch_page)


def extract_cursor(response: Dict[str, Any], base_url: str) -> Optional[str]:
    """
    Pull the ``next`` cursor out of a Qlik list response.

    ``links.next.href`` may be absolute or relative to the tenant; the cursor
    value is returned verbatim.
    """
    href = ((response.get("links") or {}).get("next") or {}).get("href")
    if not href:
        return None
    query = urlsplit(urljoin(base_url + "/", href)).query
    values = parse_qs(query).get("next")
    return values[0] if values else None


def _page_items(response: Dict[str, Any], items_keys: Tuple[str, ...]) -> List[Any]:
    for key in items_keys:
        items = response.get(key)
        if items:
            return list(items)
    return []


def rest_page_fetcher(
    client,
    endpoint: str,
    params: Optional[Dict[str, Any]] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    items_keys: Tuple[str, ...] = ("data",),
) -> FetchPage:
    """
    Build a fetch function over a REST list endpoint.

    Args:
        client: QlikClient used for the requests
        endpoint: List endpoint, e.g. "/items"
        params: Filters sent with every page
        page_size: Value of the ``limit`` query parameter
        items_keys: Response keys that may hold the items, first non-empty wins
    """
    base_params = dict(params or {})

    async def fetch_page(cursor: Optional[str]) -> Page:
        page_params = {**base_params, "limit": page_size}
        if cursor:
            page_params["next"] = cursor
        response = await client.request(endpoint, params=page_params)
        return Page(
            items=_page_items(response, items_keys),
            next_cursor=extract_cursor(response, client.config.base_url),
        )

    return fetch_page
