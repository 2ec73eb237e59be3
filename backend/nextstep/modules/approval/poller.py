"""
Background watcher a pending business session runs until it is decided.

Polls `approval_status` on a fixed cadence, keeps at most one read in
flight (a tick that fires while a read is outstanding is dropped, not
queued), reports every observed change, and stops on its own once the
status leaves `pending`.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable

import anyio

from ...db.dynamodb.errors import DdbError
from ...errors import EngineError
from ...observability.logging import get_logger
from ...settings import settings
from .approval_gate import PENDING, approval_status

log = get_logger("approval_poller")

OnChange = Callable[[str], Any]


class ApprovalStatusPoller:
    def __init__(
        self,
        business_id: str,
        *,
        on_change: OnChange,
        fetch: Callable[[str], str] | None = None,
        interval_s: float | None = None,
        initial_status: str | None = None,
    ) -> None:
        self.business_id = business_id
        self.on_change = on_change
        self.fetch = fetch or approval_status
        self.interval_s = float(interval_s if interval_s is not None else settings.approval_poll_interval_seconds)
        self.status = initial_status
        self.skipped_ticks = 0
        self._in_flight = False
        self._stopped = False
        self._scope: anyio.CancelScope | None = None

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def stop(self) -> None:
        self._stopped = True
        if self._scope is not None:
            self._scope.cancel()

    async def poll_once(self) -> str | None:
        """One tick. Returns the fetched status, or None when the tick was dropped."""
        if self._stopped:
            return None
        if self._in_flight:
            self.skipped_ticks += 1
            return None

        self._in_flight = True
        try:
            status = await anyio.to_thread.run_sync(self.fetch, self.business_id)
        except (EngineError, DdbError) as e:
            log.warning("approval_poll_failed", business_id=self.business_id, error=str(e))
            return None
        finally:
            self._in_flight = False

        if self._stopped:
            return None
        if status != self.status:
            previous = self.status
            self.status = status
            log.info("approval_poll_changed", business_id=self.business_id, previous=previous, status=status)
            try:
                res = self.on_change(status)
                if inspect.isawaitable(res):
                    await res
            except Exception as e:  # noqa: BLE001
                log.warning(
                    "approval_poll_callback_failed",
                    business_id=self.business_id,
                    status=status,
                    error=str(e) or e.__class__.__name__,
                )
        if status != PENDING:
            self.stop()
        return status

    async def run(self) -> None:
        """Tick every `interval_s` until stopped or decided."""
        async with anyio.create_task_group() as tg:
            self._scope = tg.cancel_scope
            while not self._stopped:
                tg.start_soon(self.poll_once)
                await anyio.sleep(self.interval_s)
            tg.cancel_scope.cancel()
