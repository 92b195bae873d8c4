"""HTTP access to the paginated collection API."""

from querylist.api.client import CollectionClient

__all__ = ["CollectionClient"]
