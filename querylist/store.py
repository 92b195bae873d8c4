"""
List store - owns the query, the current page of records and its status.

Usage:
    client = CollectionClient("https://api.example.com", token_supplier=get_token)
    options = ListOptions(endpoint="/jobs", view_mode_key="jobs:view-mode")
    store = ListStore.for_endpoint(client, options, preferences=prefs, address=address)

    await store.mount()            # view mode, address, first fetch
    store.set_search("engineer")   # debounced
    store.set_filter("status", "open")
    await store.settle()
    print(store.items, store.pagination.total)

Mutators are the only way to change the query. Each one updates the state
synchronously, notifies listeners and schedules a fetch. The records shown are
always the last accepted answer for the last issued query.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Awaitable, Callable, Hashable, Optional, Union

from querylist.api.client import CollectionClient
from querylist.config import DEFAULTS, ListOptions
from querylist.models import ListResult, Pagination
from querylist.preferences import Preferences
from querylist.query import SORT_ORDERS, FilterValue, QueryState, ViewMode, total_pages_for
from querylist.scheduler import FetchScheduler
from querylist.selection import SelectionSet
from querylist.url_sync import Address, UrlSynchronizer

logger = logging.getLogger(__name__)

Fetch = Callable[[QueryState], Awaitable[ListResult]]
Listener = Callable[["ListStore"], None]


class ListStatus(str, Enum):
    """What a screen should render."""

    IDLE = "idle"
    LOADING = "loading"  # first load in progress, nothing to show yet
    READY = "ready"
    EMPTY = "empty"
    FAILED = "failed"  # first load failed: empty state with error banner
    STALE = "stale"  # refresh failed: keep rows, show a non-blocking error


class ListStore:
    """Query state, records and status for one list screen."""

    def __init__(
        self,
        fetch: Fetch,
        options: Optional[ListOptions] = None,
        preferences: Optional[Preferences] = None,
        address: Optional[Address] = None,
        transform: Optional[Callable[[list[Any]], list[Any]]] = None,
    ):
        self.options = options or ListOptions()
        self._preferences = preferences
        self._transform = transform
        self._url_sync = (
            UrlSynchronizer(address, self.options) if address is not None and self.options.sync_to_url else None
        )

        self._defaults = QueryState(
            filters=dict(self.options.default_filters),
            sort_by=self.options.default_sort_by,
            sort_order=self.options.default_sort_order,
            page=DEFAULTS["page"],
            limit=self.options.default_limit,
            view_mode=ViewMode.parse(self.options.default_view_mode) or ViewMode.GRID,
        )
        self._state = self._defaults
        self._items: list[Any] = []
        self._pagination: Optional[Pagination] = None
        self._loading = False
        self._error: Optional[Exception] = None
        self._has_loaded = False
        self._mounted = False
        self._listeners: list[Listener] = []

        self._scheduler = FetchScheduler(
            fetch,
            on_result=self._commit,
            on_error=self._fail,
            debounce_seconds=self.options.debounce_seconds,
            abort_stale_requests=self.options.abort_stale_requests,
        )
        self.selection: Optional[SelectionSet] = SelectionSet(self.visible_ids) if self.options.selectable else None

    @classmethod
    def for_endpoint(cls, client: CollectionClient, options: ListOptions, **kwargs) -> "ListStore":
        """Store fetching `options.endpoint` through the collection client."""
        if not options.endpoint:
            raise ValueError("ListOptions.endpoint is required")
        return cls(client.fetcher(options.endpoint, include=options.include), options, **kwargs)

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def items(self) -> list[Any]:
        return list(self._items)

    @property
    def pagination(self) -> Optional[Pagination]:
        return self._pagination

    @property
    def total(self) -> int:
        return self._pagination.total if self._pagination else 0

    @property
    def total_pages(self) -> int:
        return self._pagination.total_pages if self._pagination else 0

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    @property
    def error_message(self) -> Optional[str]:
        if self._error is None:
            return None
        return str(self._error) or "Failed to load data"

    @property
    def generation(self) -> int:
        return self._scheduler.generation

    @property
    def requests_issued(self) -> int:
        return self._scheduler.issued

    @property
    def status(self) -> ListStatus:
        if self._error is not None:
            return ListStatus.STALE if self._has_loaded else ListStatus.FAILED
        if not self._has_loaded:
            return ListStatus.LOADING if self._loading else ListStatus.IDLE
        return ListStatus.READY if self._items else ListStatus.EMPTY

    def record_id(self, item: Any) -> Hashable:
        field = self.options.id_field
        if isinstance(item, Mapping):
            return item[field]
        return getattr(item, field)

    def visible_ids(self) -> list[Hashable]:
        return [self.record_id(item) for item in self._items]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(store)` after every change. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def mount(self) -> None:
        """
        Restore the persisted view mode and the address, then start the first fetch.

        Does not wait for the fetch; use settle() for that.
        """
        key = self.options.view_mode_key
        if self._preferences is not None and key:
            stored = ViewMode.parse(await self._preferences.get(key))
            if stored is not None:
                self._state = self._state.evolve(view_mode=stored)

        if self._url_sync is not None:
            self._state = self._url_sync.read(self._state)

        self._mounted = True
        if self.options.auto_fetch:
            self._request()

    async def unmount(self) -> None:
        """Abandon pending work; late responses are ignored."""
        self._scheduler.cancel()
        self._loading = False
        await self._scheduler.settle()
        self._mounted = False

    async def settle(self) -> None:
        """Wait for the debounce timer and every in-flight fetch to finish."""
        await self._scheduler.settle()

    # -------------------------------------------------------------------------
    # Mutators
    # -------------------------------------------------------------------------

    def set_search(self, text: str) -> None:
        """Free-text search. Debounced, except that clearing fetches at once."""
        self._apply(debounce=bool(text), search=text, page=1)

    def clear_search(self) -> None:
        self.set_search("")

    def set_filter(self, key: str, value: FilterValue) -> None:
        if value is not None and not isinstance(value, (str, bool)):
            raise TypeError(f"Filter {key!r} must be a string, a boolean or None, got {type(value).__name__}")
        self._apply(filters={**self._state.filters, key: value}, page=1)

    def set_filters(self, filters: dict[str, FilterValue]) -> None:
        """Replace every filter at once."""
        for key, value in filters.items():
            if value is not None and not isinstance(value, (str, bool)):
                raise TypeError(f"Filter {key!r} must be a string, a boolean or None")
        self._apply(filters=filters, page=1)

    def clear_filters(self) -> None:
        self._apply(filters=self._defaults.filters, page=1)

    def set_sort(self, key: str, order: Optional[str] = None) -> None:
        """Sort by `key`; `order` defaults to the current direction."""
        if not key:
            raise ValueError("Sort key cannot be empty")
        if self.options.sortable_fields and key not in self.options.sortable_fields:
            raise ValueError(f"{key!r} is not sortable on this screen")
        order = order or self._state.sort_order
        if order not in SORT_ORDERS:
            raise ValueError(f"Invalid sort order: {order!r}")
        self._apply(sort_by=key, sort_order=order, page=1)

    def toggle_sort(self, key: str) -> None:
        """Same key flips the direction; a new key starts descending."""
        if key == self._state.sort_by:
            self.set_sort(key, "asc" if self._state.sort_order == "desc" else "desc")
        else:
            self.set_sort(key, "desc")

    def go_to_page(self, page: int) -> None:
        """Jump to `page`, clamped to the pages the server reported."""
        if self._pagination is not None:
            page = min(page, max(self._pagination.total_pages, 1))
        self._apply(page=max(page, 1))

    def next_page(self) -> None:
        self.go_to_page(self._state.page + 1)

    def prev_page(self) -> None:
        self.go_to_page(self._state.page - 1)

    def set_limit(self, limit: int) -> None:
        """
        Change the page size, keeping the first record of the current page visible.

        Page 2 of 25 (records 26-50) becomes page 3 of 10 (records 21-30).
        """
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        first_index = (self._state.page - 1) * self._state.limit
        page = first_index // limit + 1
        if self._pagination is not None:
            page = min(page, max(total_pages_for(self._pagination.total, limit), 1))
        self._apply(limit=limit, page=page)

    async def set_view_mode(self, mode: Union[ViewMode, str]) -> None:
        """Switch layout and persist the choice. Never refetches."""
        mode = ViewMode(mode)
        self._state = self._state.evolve(view_mode=mode)
        self._notify()
        key = self.options.view_mode_key
        if self._preferences is not None and key:
            await self._preferences.set(key, mode.value)

    def reset(self) -> None:
        """Back to the screen defaults, keeping the view mode."""
        defaults = self._defaults
        self._apply(
            search=defaults.search,
            filters=defaults.filters,
            sort_by=defaults.sort_by,
            sort_order=defaults.sort_order,
            page=defaults.page,
            limit=defaults.limit,
        )

    async def refresh(self) -> bool:
        """
        Re-issue the current query unchanged and wait for it.

        Returns True when the list settled without an error.
        """
        self._request()
        await self.settle()
        return self._error is None

    retry = refresh

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _apply(self, debounce: bool = False, **changes) -> None:
        self._state = self._state.evolve(**changes)
        if self.selection is not None:
            self.selection.clear()
        self._notify()
        self._request(debounce=debounce)

    def _request(self, debounce: bool = False) -> None:
        self._loading = True
        self._scheduler.schedule(self._state, debounce=debounce)

    def _notify(self) -> None:
        if self._url_sync is not None and self._mounted:
            self._url_sync.write(self._state)
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"List listener {listener!r} failed: {e}")

    def _commit(self, generation: int, query: QueryState, result: ListResult) -> None:
        items = result.items
        if self._transform is not None:
            try:
                items = self._transform(items)
            except Exception as e:
                self._fail(generation, query, e)
                return

        pagination = result.pagination
        last_page = max(pagination.total_pages, 1)
        if query.page > last_page:
            # The collection shrank under us; ask for the last page that exists
            logger.debug(f"Page {query.page} beyond last page {last_page}, clamping")
            self._pagination = pagination
            self._apply(page=last_page)
            return

        self._items = list(items)
        self._pagination = pagination
        self._loading = False
        self._error = None
        self._has_loaded = True
        if self.selection is not None:
            self.selection.clear()
        self._notify()

    def _fail(self, generation: int, query: QueryState, error: Exception) -> None:
        logger.warning(f"List fetch failed (generation {generation}): {error}")
        self._loading = False
        self._error = error
        # Last-known-good items and pagination stay in place
        self._notify()
