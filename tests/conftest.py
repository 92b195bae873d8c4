"""Pytest configuration and fixtures."""

import asyncio

import pytest

from querylist.config import ListOptions
from querylist.models import ListResult, Pagination
from querylist.query import QueryState
from querylist.store import ListStore


def make_records(count: int) -> list[dict]:
    """Records with ids r001.. and created_at increasing with the id."""
    return [
        {
            "id": f"r{i:03d}",
            "title": f"{'Senior engineer' if i % 3 == 0 else 'Designer'} {i}",
            "status": "open" if i % 2 else "closed",
            "remote": i % 5 == 0,
            "created_at": i,
        }
        for i in range(1, count + 1)
    ]


class FakeCollection:
    """In-memory stand-in for a paginated collection endpoint."""

    def __init__(self, records: list[dict]):
        self.records = records
        self.requests: list[QueryState] = []
        self.writes: list[tuple[str, dict]] = []
        self.fail_writes_for: dict[str, str] = {}

    async def fetch(self, query: QueryState) -> ListResult:
        self.requests.append(query)
        await asyncio.sleep(0)

        rows = [r for r in self.records if query.search.lower() in r["title"].lower()]
        for key, value in query.active_filters().items():
            rows = [r for r in rows if r.get(key) == value]
        rows.sort(key=lambda r: r[query.sort_by], reverse=query.sort_order == "desc")

        start = (query.page - 1) * query.limit
        return ListResult(
            items=rows[start : start + query.limit],
            pagination=Pagination(total=len(rows), page=query.page, limit=query.limit),
        )

    async def write(self, record_id: str, body: dict) -> dict:
        await asyncio.sleep(0)
        if record_id in self.fail_writes_for:
            raise RuntimeError(self.fail_writes_for[record_id])
        self.writes.append((record_id, body))
        for record in self.records:
            if record["id"] == record_id:
                record.update(body)
                return record
        raise KeyError(record_id)


class GatedFetcher:
    """Fetcher whose responses are released by the test, in any order."""

    def __init__(self):
        self.calls: list[tuple[QueryState, asyncio.Future]] = []

    async def __call__(self, query: QueryState) -> ListResult:
        future = asyncio.get_running_loop().create_future()
        self.calls.append((query, future))
        return await future

    def release(self, index: int, items: list[dict], total: int = None) -> None:
        query, future = self.calls[index]
        future.set_result(
            ListResult(
                items=items,
                pagination=Pagination(
                    total=len(items) if total is None else total, page=query.page, limit=query.limit
                ),
            )
        )


@pytest.fixture
def gated():
    return GatedFetcher()


@pytest.fixture
def records():
    return make_records(137)


@pytest.fixture
def collection(records):
    return FakeCollection(records)


@pytest.fixture
def make_store(collection):
    """Build a store over the fake collection with a short debounce."""

    def _make(**overrides) -> ListStore:
        kwargs = {k: overrides.pop(k) for k in ("preferences", "address", "transform") if k in overrides}
        fetch = overrides.pop("fetch", collection.fetch)
        overrides.setdefault("debounce_seconds", 0.02)
        overrides.setdefault("default_sort_order", "asc")
        options = ListOptions(**overrides)
        return ListStore(fetch, options, **kwargs)

    return _make
