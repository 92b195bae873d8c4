"""
Configuration for list screens.

Usage:
    from querylist.config import ListOptions

    options = ListOptions(
        endpoint="/applications",
        default_filters={"stage": None},
        view_mode_key="applications:view-mode",
        selectable=True,
    )

Library-wide defaults live in DEFAULTS; each screen gets its own ListOptions.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_API_URL = "http://localhost:8000"

# Library defaults - each screen may override them through ListOptions
DEFAULTS = {
    "page": 1,
    "limit": 25,
    "sort_by": "created_at",
    "sort_order": "desc",
    "view_mode": "grid",
    # Delay before a search keystroke turns into a request
    "debounce_seconds": 0.3,
    # HTTP timeout for the collection client
    "timeout_seconds": 10.0,
    "id_field": "id",
    "api_url": DEFAULT_API_URL,
}


@dataclass
class ListOptions:
    """Screen-scoped configuration for one ListStore instance."""

    endpoint: str = ""
    default_filters: dict[str, Any] = field(default_factory=dict)
    default_sort_by: str = DEFAULTS["sort_by"]
    default_sort_order: str = DEFAULTS["sort_order"]
    default_limit: int = DEFAULTS["limit"]
    default_view_mode: str = DEFAULTS["view_mode"]
    # Related data to embed in each record (comma-separated, sent as `include`)
    include: Optional[str] = None
    debounce_seconds: float = DEFAULTS["debounce_seconds"]
    sync_to_url: bool = True
    # Storage key for the persisted view mode (None = not persisted)
    view_mode_key: Optional[str] = None
    # Empty means any sort key is accepted from the address
    sortable_fields: tuple[str, ...] = ()
    id_field: str = DEFAULTS["id_field"]
    # Only screens offering bulk actions keep a selection
    selectable: bool = False
    auto_fetch: bool = True
    abort_stale_requests: bool = True

    def __post_init__(self):
        if self.default_limit <= 0:
            raise ValueError(f"default_limit must be positive, got {self.default_limit}")
        if self.default_sort_order not in ("asc", "desc"):
            raise ValueError(f"Invalid default_sort_order: {self.default_sort_order}")
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds cannot be negative")


def _normalize_url(url: str) -> str:
    return url.rstrip("/")


def get_api_url(cli_value: Optional[str] = None) -> str:
    """Return API URL from CLI arg > env var > default."""
    if cli_value:
        return _normalize_url(cli_value)

    env_url = os.environ.get("QUERYLIST_API_URL")
    if env_url:
        return _normalize_url(env_url)

    return DEFAULTS["api_url"]


def get_api_token() -> Optional[str]:
    """Return the bearer token from the environment, if any."""
    return os.environ.get("QUERYLIST_API_TOKEN") or None
