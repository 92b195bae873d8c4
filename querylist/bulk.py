"""
Bulk mutation coordinator - one concurrent write per selected record.

Usage:
    coordinator = BulkMutationCoordinator(store, client.writer("/applications"))
    report = await coordinator.run("stage", {"stage": "interview"})
    if report.failed:
        show_warning(report.summary())

Writes are independent: a failing id never aborts its siblings and nothing
is rolled back. Once every write has settled the store is refreshed and the
selection cleared.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Hashable, Iterable, Optional

from querylist.store import ListStore

logger = logging.getLogger(__name__)

Write = Callable[[Hashable, dict], Awaitable[Any]]


class BulkState(str, Enum):
    """Lifecycle of the coordinator's current operation."""

    IDLE = "idle"
    DISPATCHING = "dispatching"
    COMPLETED = "completed"


class IntentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class BulkOperation:
    """A confirmed action over an ordered set of record ids."""

    action_kind: str
    target_ids: tuple[Hashable, ...]
    payload: dict = field(default_factory=dict)


@dataclass
class WriteIntent:
    """The write for one id of a bulk operation."""

    record_id: Hashable
    status: IntentStatus = IntentStatus.PENDING
    error: Optional[str] = None


@dataclass
class BulkFailure:
    record_id: Hashable
    error: str


@dataclass
class BulkReport:
    """Per-id outcome of a completed bulk operation."""

    operation: BulkOperation
    succeeded: list[Hashable] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        """
        One line for the user.

        Returns:
            e.g. "5 of 5 updated" or "4 of 5 updated; 1 failed: Not found"
        """
        text = f"{len(self.succeeded)} of {self.total} updated"
        if self.failed:
            reasons = "; ".join(sorted({f.error for f in self.failed}))
            text += f"; {len(self.failed)} failed: {reasons}"
        return text


def _default_body(operation: BulkOperation, record_id: Hashable) -> dict:
    return dict(operation.payload)


class BulkMutationCoordinator:
    """Runs bulk operations for one list store."""

    def __init__(
        self,
        store: ListStore,
        write: Write,
        body_builder: Callable[[BulkOperation, Hashable], dict] = _default_body,
    ):
        self._store = store
        self._write = write
        self._body_builder = body_builder
        self._state = BulkState.IDLE
        self._intents: list[WriteIntent] = []

    @property
    def state(self) -> BulkState:
        return self._state

    @property
    def intents(self) -> list[WriteIntent]:
        """Write intents of the current (or last) operation."""
        return list(self._intents)

    async def run(
        self,
        action_kind: str,
        payload: Optional[dict] = None,
        target_ids: Optional[Iterable[Hashable]] = None,
    ) -> BulkReport:
        """
        Apply `action_kind` to `target_ids` (default: the store's selection).

        Raises:
            RuntimeError: another operation is still dispatching
            ValueError: nothing to act on
        """
        if self._state is BulkState.DISPATCHING:
            raise RuntimeError("A bulk operation is already in progress")

        if target_ids is None:
            if self._store.selection is None:
                raise ValueError("This screen has no selection; pass target_ids")
            target_ids = self._store.selection.snapshot()
        ids = list(dict.fromkeys(target_ids))
        if not ids:
            raise ValueError("No records selected")

        operation = BulkOperation(action_kind=action_kind, target_ids=tuple(ids), payload=dict(payload or {}))
        self._intents = [WriteIntent(record_id=i) for i in ids]
        self._state = BulkState.DISPATCHING
        logger.debug(f"Dispatching {action_kind} to {len(ids)} record(s)")

        writes = asyncio.gather(*(self._dispatch(operation, intent) for intent in self._intents))
        try:
            # Dispatched writes run to completion even if the caller goes away
            await asyncio.shield(writes)
        except asyncio.CancelledError:
            if writes.done():
                self._complete(operation)
            else:
                logger.warning(f"Bulk {action_kind} cancelled by caller; {len(ids)} write(s) still settling")
                writes.add_done_callback(lambda _f: self._complete(operation))
            raise

        report = self._complete(operation)
        await self._store.refresh()
        if self._store.selection is not None:
            self._store.selection.clear()
        return report

    def _complete(self, operation: BulkOperation) -> BulkReport:
        report = BulkReport(operation=operation)
        for intent in self._intents:
            if intent.status is IntentStatus.SUCCEEDED:
                report.succeeded.append(intent.record_id)
            else:
                report.failed.append(BulkFailure(record_id=intent.record_id, error=intent.error or "Not completed"))
        self._state = BulkState.COMPLETED
        logger.info(f"Bulk {operation.action_kind}: {report.summary()}")
        return report

    async def _dispatch(self, operation: BulkOperation, intent: WriteIntent) -> None:
        """Run one write; its failure is recorded, never raised."""
        try:
            body = self._body_builder(operation, intent.record_id)
            await self._write(intent.record_id, body)
        except Exception as e:
            intent.status = IntentStatus.FAILED
            intent.error = str(e) or type(e).__name__
            logger.warning(f"Bulk {operation.action_kind} failed for {intent.record_id}: {intent.error}")
            return
        intent.status = IntentStatus.SUCCEEDED
