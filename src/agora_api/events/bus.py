"""In-process event bus with per-key ordering and per-handler retries.

Events are routed to one of ``partitions`` queues by hashing their ordering
key, so two events sharing a key (for example the same user id) are handled
strictly in publish order while unrelated keys progress concurrently. Each
partition is drained by its own worker task.

A failing handler is retried on its own; the other handlers subscribed to the
same event are not re-run. Once attempts are exhausted the failure is logged
and kept in :attr:`EventBus.dead_letters`, and the worker moves on.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, TypeVar

from agora_api.common.logging import bind_request_context, clear_request_context, log_context

from .types import LifecycleEvent

logger = logging.getLogger(__name__)

TEvent = TypeVar("TEvent", bound=LifecycleEvent)
Handler = Callable[[Any], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class DeadLetter:
    """A handler invocation that failed on every attempt."""

    event: LifecycleEvent
    handler: str
    error: str
    attempts: int


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class EventBus:
    """Publish lifecycle events to asynchronously scheduled handlers."""

    def __init__(
        self,
        *,
        partitions: int = 4,
        max_attempts: int = 5,
        retry_backoff: timedelta = timedelta(milliseconds=200),
    ) -> None:
        if partitions < 1:
            raise ValueError("partitions must be >= 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._partitions = partitions
        self._max_attempts = max_attempts
        self._retry_backoff = retry_backoff.total_seconds()
        self._handlers: dict[type[LifecycleEvent], list[Handler]] = defaultdict(list)
        self._queues: list[asyncio.Queue[LifecycleEvent]] = []
        self._workers: list[asyncio.Task[None]] = []
        self._pending = 0
        self._idle: asyncio.Event | None = None
        self.dead_letters: list[DeadLetter] = []

    # ------------- subscription -----------------

    def subscribe(self, event_type: type[TEvent], handler: Callable[[TEvent], Awaitable[None]]) -> None:
        """Register ``handler`` for ``event_type``; handlers run in registration order."""

        self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: type[LifecycleEvent]) -> tuple[Handler, ...]:
        return tuple(self._handlers.get(event_type, ()))

    # ------------- lifecycle -----------------

    @property
    def running(self) -> bool:
        return bool(self._workers)

    async def start(self) -> None:
        if self._workers:
            return
        self._queues = [asyncio.Queue() for _ in range(self._partitions)]
        self._pending = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._workers = [
            asyncio.create_task(self._run_partition(index), name=f"event-bus-{index}")
            for index in range(self._partitions)
        ]
        logger.debug("events.bus.started", extra=log_context(partitions=self._partitions))

    async def stop(self, *, drain: bool = True) -> None:
        """Stop the workers, optionally after processing everything queued."""

        if not self._workers:
            return
        if drain:
            await self.join()
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._queues = []
        logger.debug("events.bus.stopped")

    async def join(self) -> None:
        """Wait until every published event, including ones published by
        handlers while draining, has been fully handled."""

        if self._idle is not None:
            await self._idle.wait()

    # ------------- publishing -----------------

    def partition_for(self, key: str) -> int:
        digest = hashlib.blake2b(key.encode("utf-8"), digest_size=8).digest()
        return int.from_bytes(digest, "big") % self._partitions

    def publish(self, event: LifecycleEvent) -> None:
        """Enqueue ``event``; returns immediately without running handlers."""

        if not self._workers:
            raise RuntimeError("EventBus is not running. Call start() first.")
        partition = self.partition_for(event.ordering_key)
        self._pending += 1
        if self._idle is not None:
            self._idle.clear()
        self._queues[partition].put_nowait(event)
        logger.debug(
            "events.published",
            extra=log_context(event=event.name, event_id=event.event_id, partition=partition),
        )

    # ------------- workers -----------------

    async def _run_partition(self, index: int) -> None:
        queue = self._queues[index]
        while True:
            event = await queue.get()
            try:
                bind_request_context(f"evt_{event.event_id}")
                for handler in self.handlers_for(type(event)):
                    await self._deliver(event, handler)
            finally:
                clear_request_context()
                queue.task_done()
                self._pending -= 1
                if self._pending == 0 and self._idle is not None:
                    self._idle.set()

    async def _deliver(self, event: LifecycleEvent, handler: Handler) -> None:
        name = _handler_name(handler)
        for attempt in range(1, self._max_attempts + 1):
            try:
                await handler(event)
                return
            except Exception as exc:
                if attempt >= self._max_attempts:
                    logger.error(
                        "events.handler.failed",
                        exc_info=True,
                        extra=log_context(
                            event=event.name,
                            event_id=event.event_id,
                            handler=name,
                            attempts=attempt,
                        ),
                    )
                    self.dead_letters.append(
                        DeadLetter(event=event, handler=name, error=repr(exc), attempts=attempt)
                    )
                    return
                logger.warning(
                    "events.handler.retry",
                    extra=log_context(
                        event=event.name,
                        event_id=event.event_id,
                        handler=name,
                        attempt=attempt,
                        error=type(exc).__name__,
                    ),
                )
                await asyncio.sleep(self._retry_backoff * attempt)


__all__ = ["DeadLetter", "EventBus", "Handler"]
