"""Tests for scheduler.py - debounced fetch scheduling with generation checks."""

import asyncio

import pytest

from querylist.models import ListResult, Pagination
from querylist.query import QueryState
from querylist.scheduler import FetchScheduler


class Recorder:
    """Collects scheduler callbacks."""

    def __init__(self):
        self.results = []
        self.errors = []

    def on_result(self, generation, query, result):
        self.results.append((generation, query.search))

    def on_error(self, generation, query, error):
        self.errors.append((generation, str(error)))


async def echo_fetch(query: QueryState) -> ListResult:
    await asyncio.sleep(0)
    return ListResult(items=[query.search], pagination=Pagination(total=1, page=1, limit=query.limit))


@pytest.fixture
def recorder():
    return Recorder()


def make_scheduler(recorder, fetch=echo_fetch, **kwargs):
    kwargs.setdefault("debounce_seconds", 0.02)
    return FetchScheduler(fetch, recorder.on_result, recorder.on_error, **kwargs)


@pytest.mark.asyncio
async def test_generation_increments_on_every_schedule(recorder):
    scheduler = make_scheduler(recorder)
    assert scheduler.schedule(QueryState()) == 1
    assert scheduler.schedule(QueryState(), debounce=True) == 2
    assert scheduler.generation == 2
    await scheduler.settle()


@pytest.mark.asyncio
async def test_immediate_schedule_commits(recorder):
    scheduler = make_scheduler(recorder)
    scheduler.schedule(QueryState(search="a"))
    await scheduler.settle()

    assert recorder.results == [(1, "a")]
    assert scheduler.issued == 1
    assert scheduler.pending is False


@pytest.mark.asyncio
async def test_debounce_collapses_keystrokes(recorder):
    scheduler = make_scheduler(recorder)
    for text in ("e", "en", "eng", "engi"):
        scheduler.schedule(QueryState(search=text), debounce=True)
    await scheduler.settle()

    assert scheduler.issued == 1
    assert recorder.results == [(4, "engi")]


@pytest.mark.asyncio
async def test_immediate_schedule_cancels_timer(recorder):
    scheduler = make_scheduler(recorder)
    scheduler.schedule(QueryState(search="eng"), debounce=True)
    scheduler.schedule(QueryState(search="eng", page=2))
    await scheduler.settle()
    await asyncio.sleep(0.04)

    assert scheduler.issued == 1
    assert recorder.results == [(2, "eng")]


@pytest.mark.asyncio
async def test_zero_delay_fetches_immediately(recorder):
    scheduler = make_scheduler(recorder, debounce_seconds=0)
    scheduler.schedule(QueryState(search="x"), debounce=True)
    assert scheduler.issued == 1
    await scheduler.settle()


@pytest.mark.asyncio
async def test_error_reported_for_current_generation(recorder):
    async def failing(query):
        raise ConnectionError("down")

    scheduler = make_scheduler(recorder, fetch=failing)
    scheduler.schedule(QueryState())
    await scheduler.settle()

    assert recorder.errors == [(1, "down")]
    assert recorder.results == []


@pytest.mark.asyncio
async def test_slow_stale_response_dropped(recorder):
    """An old request finishing last never reaches the handler."""
    delays = {"old": 0.03, "new": 0.0}

    async def fetch(query):
        await asyncio.sleep(delays[query.search])
        return await echo_fetch(query)

    scheduler = make_scheduler(recorder, fetch=fetch, abort_stale_requests=False)
    scheduler.schedule(QueryState(search="old"))
    scheduler.schedule(QueryState(search="new"))
    await scheduler.settle()

    assert scheduler.issued == 2
    assert recorder.results == [(2, "new")]


@pytest.mark.asyncio
async def test_cancel_discards_everything(recorder):
    scheduler = make_scheduler(recorder)
    scheduler.schedule(QueryState(search="a"))
    scheduler.schedule(QueryState(search="b"), debounce=True)
    scheduler.cancel()
    await scheduler.settle()
    await asyncio.sleep(0.04)

    assert recorder.results == []
    assert recorder.errors == []
