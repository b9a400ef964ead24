"""Paginated translation search: filter/sort state, debounced execution and full-result paging."""
import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from tqdm.asyncio import tqdm

from mio_dashboard.dashboard import Dashboard, search_key
from mio_dashboard.models import PaginatedTranslations, TranslationListItem, TranslationSearchParams
from mio_dashboard.query_cache import LatestRequestGate, QueryKey

logger = logging.getLogger(__name__)

ALL = "all"
DEFAULT_PAGE_SIZE = 25
DEFAULT_SORT_BY = "updatedAt"
SORTABLE_COLUMNS = ("keyName", "featureName", "locale", "value", "updatedAt")


@dataclass
class SearchState:
    query: str = ""
    locale: str = ALL
    feature_id: str = ALL
    project_id: Optional[str] = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = "desc"

    # Any filter change invalidates the current page number.
    def set_query(self, query: str) -> None:
        self.query = query
        self.page = 1

    def set_locale(self, locale: Optional[str]) -> None:
        self.locale = locale or ALL
        self.page = 1

    def set_feature(self, feature_id: Optional[str]) -> None:
        self.feature_id = feature_id or ALL
        self.page = 1

    def set_page_size(self, page_size: int) -> None:
        if page_size < 1:
            raise ValueError(f"Page size must be positive, got {page_size}")
        self.page_size = page_size
        self.page = 1

    def set_page(self, page: int) -> None:
        self.page = max(1, page)

    def toggle_sort(self, column: str) -> None:
        """Same column flips the order; a new column starts descending."""
        if column not in SORTABLE_COLUMNS:
            raise ValueError(f"Cannot sort by '{column}'; expected one of {', '.join(SORTABLE_COLUMNS)}")
        if column == self.sort_by:
            self.sort_order = "asc" if self.sort_order == "desc" else "desc"
        else:
            self.sort_by = column
            self.sort_order = "desc"

    def clear_filters(self) -> None:
        self.query = ""
        self.locale = ALL
        self.feature_id = ALL
        self.page = 1

    @property
    def has_active_filters(self) -> bool:
        return bool(self.query) or self.locale != ALL or self.feature_id != ALL

    def to_params(self) -> TranslationSearchParams:
        return TranslationSearchParams(
            q=self.query.strip() or None,
            locale=None if self.locale == ALL else self.locale,
            feature_id=None if self.feature_id == ALL else self.feature_id,
            project_id=self.project_id,
            page=self.page,
            limit=self.page_size,
            sort_by=self.sort_by,
            sort_order=self.sort_order,
        )

    def query_key(self) -> QueryKey:
        return search_key(self.to_params())

    def copy(self) -> "SearchState":
        return replace(self)


class SearchRunner:
    """
    Runs searches after a settle delay and only hands back the newest result.

    Every call takes a sequence number. A call that is overtaken by a newer one,
    either while settling or while its request is in flight, returns ``None``
    instead of its (stale) page.
    """

    def __init__(self, dashboard: Dashboard, debounce_seconds: float = 0.3) -> None:
        self.dashboard = dashboard
        self.debounce_seconds = debounce_seconds
        self._gate = LatestRequestGate()
        self.latest_result: Optional[PaginatedTranslations] = None

    async def run(self, state: SearchState) -> Optional[PaginatedTranslations]:
        sequence = self._gate.issue()
        params = state.to_params()
        if self.debounce_seconds > 0:
            await asyncio.sleep(self.debounce_seconds)
        if not self._gate.is_current(sequence):
            logger.debug("Search #%d superseded before it was sent", sequence)
            return None

        result = await self.dashboard.search_translations(params)
        if not self._gate.is_current(sequence):
            logger.debug("Discarding stale result of search #%d", sequence)
            return None
        self.latest_result = result
        return result

    async def run_now(self, state: SearchState) -> Optional[PaginatedTranslations]:
        """Search without the settle delay; used for explicit page or sort changes."""
        sequence = self._gate.issue()
        result = await self.dashboard.search_translations(state.to_params())
        if not self._gate.is_current(sequence):
            logger.debug("Discarding stale result of search #%d", sequence)
            return None
        self.latest_result = result
        return result


async def fetch_all_pages(
    dashboard: Dashboard, state: SearchState, show_progress: bool = True
) -> List[TranslationListItem]:
    """
    Every translation matching ``state``, across all result pages.

    The first page tells how many pages exist; the rest are fetched
    concurrently and stitched back together in page order.
    """
    first_state = state.copy()
    first_state.set_page(1)
    first = await dashboard.search_translations(first_state.to_params())
    total_pages = first.meta.total_pages
    pages: Dict[int, List[TranslationListItem]] = {1: first.data}

    async def fetch_page(page: int) -> Tuple[int, PaginatedTranslations]:
        page_state = state.copy()
        page_state.set_page(page)
        return page, await dashboard.search_translations(page_state.to_params())

    if total_pages > 1:
        tasks = [fetch_page(page) for page in range(2, total_pages + 1)]
        for coro in tqdm.as_completed(tasks, desc="Fetching translations", unit="page",
                                      total=len(tasks), disable=not show_progress):
            page, result = await coro
            pages[page] = result.data

    logger.info("Fetched %d page(s) of translations.", len(pages))
    return [item for page in sorted(pages) for item in pages[page]]
