"""Query state - the complete description of what a list screen is asking for."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union

FilterValue = Union[str, bool, None]

SORT_ORDERS = ("asc", "desc")


class ViewMode(str, Enum):
    """How a screen lays out its records. Local preference, never sent to the API."""

    GRID = "grid"
    TABLE = "table"
    SPLIT = "split"

    @classmethod
    def parse(cls, value: Any) -> Optional["ViewMode"]:
        """Return the matching mode, or None for anything unrecognised."""
        try:
            return cls(value)
        except ValueError:
            return None


def is_active(value: FilterValue) -> bool:
    """A filter takes part in the request unless it is unset or blank."""
    return value is not None and value != ""


def total_pages_for(total: int, limit: int) -> int:
    """Number of pages needed to show `total` records `limit` at a time."""
    return math.ceil(total / limit) if total > 0 else 0


@dataclass(frozen=True)
class QueryState:
    """Immutable snapshot of search, filters, sort, page and view mode."""

    search: str = ""
    filters: dict[str, FilterValue] = field(default_factory=dict)
    sort_by: str = "created_at"
    sort_order: str = "desc"
    page: int = 1
    limit: int = 25
    view_mode: ViewMode = ViewMode.GRID

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.limit <= 0:
            raise ValueError(f"limit must be positive, got {self.limit}")
        if self.sort_order not in SORT_ORDERS:
            raise ValueError(f"sort_order must be 'asc' or 'desc', got {self.sort_order!r}")

    def evolve(self, **changes) -> "QueryState":
        """Return a copy with `changes` applied; filters are copied, never shared."""
        if "filters" in changes:
            changes["filters"] = dict(changes["filters"])
        return replace(self, **changes)

    def active_filters(self) -> dict[str, FilterValue]:
        """Filters that are set to something meaningful."""
        return {k: v for k, v in self.filters.items() if is_active(v)}

    def to_params(self, include: Optional[str] = None) -> dict[str, str]:
        """
        Flat query parameters for the collection API.

        Booleans are sent as "true"/"false"; an empty search is omitted.
        """
        params = {
            "page": str(self.page),
            "limit": str(self.limit),
            "sort_by": self.sort_by,
            "sort_order": self.sort_order,
        }
        if self.search:
            params["search"] = self.search
        for key, value in self.active_filters().items():
            if isinstance(value, bool):
                params[key] = "true" if value else "false"
            else:
                params[key] = str(value)
        if include:
            params["include"] = include
        return params
