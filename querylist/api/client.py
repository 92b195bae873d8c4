"""Async HTTP client for paginated collection endpoints."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from querylist.config import DEFAULTS
from querylist.errors import AuthenticationRequired, InvalidResponse, TransportError
from querylist.models import ListResult
from querylist.query import QueryState

logger = logging.getLogger(__name__)

TokenSupplier = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]


class CollectionClient:
    """Thin async wrapper around `GET <endpoint>` and `PATCH <endpoint>/<id>`."""

    def __init__(
        self,
        base_url: str,
        token_supplier: Optional[TokenSupplier] = None,
        require_auth: bool = True,
        timeout: float = DEFAULTS["timeout_seconds"],
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token_supplier = token_supplier
        self._require_auth = require_auth
        self._client = httpx.AsyncClient(base_url=self._base_url, timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "CollectionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _headers(self) -> dict[str, str]:
        """Resolve the credential for this request."""
        token = None
        if self._token_supplier is not None:
            token = self._token_supplier()
            if inspect.isawaitable(token):
                token = await token
        if token:
            return {"Authorization": f"Bearer {token}"}
        if self._require_auth:
            raise AuthenticationRequired()
        return {}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = await self._headers()
        try:
            resp = await self._client.request(method, path, headers=headers, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise TransportError(f"{method} {path} failed with status {status}", status_code=status) from e
        except httpx.RequestError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise InvalidResponse(f"{method} {path} returned a non-JSON body") from e

    # -- endpoints -----------------------------------------------------------

    async def list(self, endpoint: str, query: QueryState, include: Optional[str] = None) -> ListResult:
        """Fetch one page of `endpoint` for `query`."""
        params = query.to_params(include=include)
        logger.debug(f"GET {endpoint} {params}")
        payload = await self._request("GET", endpoint, params=params)
        return ListResult.from_payload(payload, query)

    async def patch(self, endpoint: str, record_id: Any, body: dict) -> Any:
        """Apply a partial update to a single record."""
        path = f"{endpoint.rstrip('/')}/{record_id}"
        return await self._request("PATCH", path, json=body)

    def fetcher(self, endpoint: str, include: Optional[str] = None) -> Callable[[QueryState], Awaitable[ListResult]]:
        """Bind `list` to an endpoint, for use as a ListStore fetch function."""

        async def fetch(query: QueryState) -> ListResult:
            return await self.list(endpoint, query, include=include)

        return fetch

    def writer(self, endpoint: str) -> Callable[[Any, dict], Awaitable[Any]]:
        """Bind `patch` to an endpoint, for use by the bulk coordinator."""

        async def write(record_id: Any, body: dict) -> Any:
            return await self.patch(endpoint, record_id, body)

        return write
