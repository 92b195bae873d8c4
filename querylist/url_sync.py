"""
URL synchronizer - mirrors query state into the navigable address.

Usage:
    address = InMemoryAddress({"page": "2", "search": "engineer"})
    sync = UrlSynchronizer(address, options)
    state = sync.read(QueryState())      # initial state on mount
    sync.write(state)                    # after every change (replace, never push)

Only values that differ from the screen defaults are written, so a fresh
screen has a clean address. Parameters this module does not manage (deep-link
ids and the like) are left untouched. View mode is never part of the address.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol, runtime_checkable

from querylist.config import DEFAULTS, ListOptions
from querylist.query import SORT_ORDERS, FilterValue, QueryState, is_active

logger = logging.getLogger(__name__)

MANAGED_PARAMS = ("page", "limit", "search", "sort_by", "sort_order", "filters")


@runtime_checkable
class Address(Protocol):
    """Flat key -> string view of the current location."""

    def params(self) -> dict[str, str]:
        """Current query parameters."""
        ...

    def replace(self, params: dict[str, str]) -> None:
        """Swap the parameters without adding a history entry."""
        ...


class InMemoryAddress:
    """Address held in memory, with a history stack like a browser's."""

    def __init__(self, params: Optional[dict[str, str]] = None):
        self._history: list[dict[str, str]] = [dict(params or {})]
        self.replace_count = 0
        self.push_count = 0

    def params(self) -> dict[str, str]:
        return dict(self._history[-1])

    def replace(self, params: dict[str, str]) -> None:
        self._history[-1] = dict(params)
        self.replace_count += 1

    def push(self, params: dict[str, str]) -> None:
        self._history.append(dict(params))
        self.push_count += 1

    @property
    def history_length(self) -> int:
        return len(self._history)


def _positive_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= 1 else default


def _normalized(value: FilterValue) -> FilterValue:
    return value if is_active(value) else None


class UrlSynchronizer:
    """Bidirectional mapping between QueryState and address parameters."""

    def __init__(self, address: Address, options: ListOptions):
        self._address = address
        self._options = options

    # -- parsing -------------------------------------------------------------

    def _parse_filters(self, raw: Optional[str]) -> dict[str, FilterValue]:
        filters = dict(self._options.default_filters)
        if not raw:
            return filters
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug(f"Ignoring malformed filters parameter: {raw!r}")
            return filters
        if not isinstance(decoded, dict):
            return filters
        for key, value in decoded.items():
            if value is None or isinstance(value, (str, bool)):
                filters[key] = value
        return filters

    def parse(self, params: dict[str, str], base: QueryState) -> QueryState:
        """
        Build a query state from address parameters.

        Anything missing or invalid falls back to the screen default; `base`
        supplies the fields the address never carries (view mode).
        """
        options = self._options

        sort_by = params.get("sort_by") or options.default_sort_by
        if options.sortable_fields and sort_by not in options.sortable_fields:
            sort_by = options.default_sort_by

        sort_order = params.get("sort_order")
        if sort_order not in SORT_ORDERS:
            sort_order = options.default_sort_order

        return base.evolve(
            search=params.get("search", ""),
            filters=self._parse_filters(params.get("filters")),
            sort_by=sort_by,
            sort_order=sort_order,
            page=_positive_int(params.get("page"), DEFAULTS["page"]),
            limit=_positive_int(params.get("limit"), options.default_limit),
        )

    def read(self, base: QueryState) -> QueryState:
        """Initial state from the current address."""
        return self.parse(self._address.params(), base)

    # -- serialization -------------------------------------------------------

    def _changed_filters(self, state: QueryState) -> dict[str, Any]:
        defaults = self._options.default_filters
        changed = {}
        for key, value in state.filters.items():
            value = _normalized(value)
            if value != _normalized(defaults.get(key)):
                changed[key] = value
        # A default dropped from the filters entirely must not come back on reload
        for key, value in defaults.items():
            if key not in state.filters and _normalized(value) is not None:
                changed[key] = None
        return changed

    def serialize(self, state: QueryState) -> dict[str, str]:
        """Managed parameters for `state`, omitting defaults."""
        options = self._options
        params: dict[str, str] = {}
        if state.page != DEFAULTS["page"]:
            params["page"] = str(state.page)
        if state.limit != options.default_limit:
            params["limit"] = str(state.limit)
        if state.search:
            params["search"] = state.search
        if state.sort_by != options.default_sort_by:
            params["sort_by"] = state.sort_by
        if state.sort_order != options.default_sort_order:
            params["sort_order"] = state.sort_order
        changed = self._changed_filters(state)
        if changed:
            params["filters"] = json.dumps(changed, sort_keys=True, separators=(",", ":"))
        return params

    def write(self, state: QueryState) -> bool:
        """
        Mirror `state` into the address.

        Returns False when the address already matches and nothing was replaced.
        """
        current = self._address.params()
        updated = {k: v for k, v in current.items() if k not in MANAGED_PARAMS}
        updated.update(self.serialize(state))
        if updated == current:
            return False
        self._address.replace(updated)
        return True
