"""
querylist - List/query controller for paginated REST collections.

Usage:
    from querylist import CollectionClient, ListOptions, ListStore, BulkMutationCoordinator

    client = CollectionClient("https://api.example.com", token_supplier=get_token)
    options = ListOptions(endpoint="/applications", selectable=True)
    store = ListStore.for_endpoint(client, options)
    await store.mount()
    await store.settle()

    store.selection.select_all()
    bulk = BulkMutationCoordinator(store, client.writer(options.endpoint))
    report = await bulk.run("reject", {"stage": "rejected"})
"""

from querylist.api.client import CollectionClient
from querylist.bulk import BulkMutationCoordinator, BulkOperation, BulkReport, BulkState
from querylist.config import DEFAULTS, ListOptions
from querylist.errors import AuthenticationRequired, InvalidResponse, ListError, TransportError
from querylist.models import ListResult, Pagination
from querylist.preferences import MemoryPreferences, Preferences, SqlitePreferences
from querylist.query import QueryState, ViewMode
from querylist.scheduler import FetchScheduler
from querylist.selection import SelectionSet
from querylist.store import ListStatus, ListStore
from querylist.url_sync import Address, InMemoryAddress, UrlSynchronizer

__all__ = [
    # Query
    "QueryState",
    "ViewMode",
    "ListOptions",
    "DEFAULTS",
    # Store
    "ListStore",
    "ListStatus",
    "FetchScheduler",
    "SelectionSet",
    # Address
    "Address",
    "InMemoryAddress",
    "UrlSynchronizer",
    # Preferences
    "Preferences",
    "MemoryPreferences",
    "SqlitePreferences",
    # Bulk
    "BulkMutationCoordinator",
    "BulkOperation",
    "BulkReport",
    "BulkState",
    # API
    "CollectionClient",
    "ListResult",
    "Pagination",
    # Errors
    "ListError",
    "TransportError",
    "AuthenticationRequired",
    "InvalidResponse",
]
