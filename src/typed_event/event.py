"""Typed publish/subscribe events.

Usage:
    saved: Event[str, int] = Event("conversation.saved")

    async def on_saved(path: str, size: int) -> None:
        print(f"Saved {size} bytes to {path}")

    saved.subscribe(on_saved)
    await saved.dispatch("/tmp/chat.json", 512)

    # Wait for the next dispatch only
    path, size = await saved.pull()

    # Consume every dispatch until closed
    async with saved.stream() as saves:
        async for path, size in saves:
            ...
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import inspect
import logging
from typing import Any, Generic, Self, TypeAlias, TypeVarTuple, Unpack

from .exceptions import ListenerFailure, describe_listener

LOGGER = logging.getLogger(__name__)

Ts = TypeVarTuple("Ts")

Subscription: TypeAlias = Callable[[Unpack[Ts]], Any | Awaitable[Any]]

# Wakes consumers blocked on a closed stream.
_CLOSED = object()


class Event(Generic[Unpack[Ts]]):
    """A subscribable event carrying a fixed tuple of positional arguments.

    Listeners are kept in insertion order, keyed by identity, together with
    a ``once`` flag. Dispatch awaits each listener before calling the next,
    so listeners of one dispatch never run concurrently.
    """

    def __init__(
        self,
        name: str | None = None,
        *,
        failure_log_level: int = logging.ERROR,
        log_tracebacks: bool = True,
    ) -> None:
        self.name = name
        self._failure_log_level = failure_log_level
        self._log_tracebacks = log_tracebacks
        self._subscriptions: dict[Subscription[Unpack[Ts]], bool] = {}

    @classmethod
    def from_config(
        cls, events_config: dict[str, Any], name: str | None = None
    ) -> Self:
        """Build an event using the ``[events]`` configuration section."""
        level_name = str(events_config.get("failure_log_level", "ERROR")).strip().upper()
        return cls(
            name,
            failure_log_level=logging.getLevelNamesMapping().get(
                level_name, logging.ERROR
            ),
            log_tracebacks=bool(events_config.get("log_tracebacks", True)),
        )

    def __repr__(self) -> str:
        return f"Event(name={self.name!r}, listeners={len(self._subscriptions)})"

    def __contains__(self, listener: object) -> bool:
        return listener in self._subscriptions

    def __len__(self) -> int:
        return len(self._subscriptions)

    def is_once(self, listener: Subscription[Unpack[Ts]]) -> bool:
        """Return whether *listener* is subscribed for a single dispatch."""
        return self._subscriptions.get(listener, False)

    def subscribe(self, *listeners: Subscription[Unpack[Ts]]) -> Self:
        """Subscribe listeners to every dispatch.

        Re-subscribing a listener keeps its position and clears ``once``.

        Args:
            listeners: Sync or async callables taking the dispatched arguments

        Returns:
            This event, for chaining
        """
        for listener in listeners:
            self._subscriptions[listener] = False
        return self

    def subscribe_once(self, *listeners: Subscription[Unpack[Ts]]) -> Self:
        """Subscribe listeners to the next dispatch only.

        Args:
            listeners: Callables removed just before their single call
        """
        for listener in listeners:
            self._subscriptions[listener] = True
        return self

    def unsubscribe(self, *listeners: Subscription[Unpack[Ts]]) -> Self:
        """Unsubscribe listeners from the event.

        Args:
            listeners: Callables to remove; unknown ones are ignored
        """
        for listener in listeners:
            self._subscriptions.pop(listener, None)
        return self

    def clear(self) -> Self:
        """Remove every listener."""
        self._subscriptions.clear()
        return self

    async def dispatch(self, *args: Unpack[Ts]) -> None:
        """Call every subscribed listener in order and await its result.

        Listener errors are logged and never interrupt delivery. Listeners
        added while dispatching wait for the next dispatch; listeners removed
        while dispatching are skipped.

        Args:
            args: Positional arguments passed to every listener
        """
        for listener in list(self._subscriptions):
            once = self._subscriptions.get(listener)
            if once is None:
                continue
            if once:
                # Removed before the call so the listener cannot re-trigger itself.
                del self._subscriptions[listener]
            try:
                result = listener(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                self._report(ListenerFailure(listener, exc, self.name))

    def pull(self) -> asyncio.Future[tuple[Unpack[Ts]]]:
        """Return a future resolved with the arguments of the next dispatch.

        Must be called from a running event loop. Cancelling the future
        before a dispatch arrives unsubscribes its listener.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[tuple[Unpack[Ts]]] = loop.create_future()

        def resolve(*args: Unpack[Ts]) -> None:
            if not future.done():
                future.set_result(args)

        def forget(done: asyncio.Future[tuple[Unpack[Ts]]]) -> None:
            if done.cancelled():
                self.unsubscribe(resolve)

        future.add_done_callback(forget)
        self.subscribe_once(resolve)
        return future

    def stream(self) -> EventStream[Unpack[Ts]]:
        """Return a closeable async iterator over subsequent dispatches."""
        return EventStream(self)

    def _report(self, failure: ListenerFailure) -> None:
        LOGGER.log(
            self._failure_log_level,
            "event.listener.failed",
            exc_info=failure.original if self._log_tracebacks else None,
            extra={
                "event": "event.listener.failed",
                "event_name": self.name,
                "listener": describe_listener(failure.listener),
                "reason": str(failure.original),
                "failure": str(failure),
            },
        )


class EventStream(Generic[Unpack[Ts]]):
    """Async iteration handle yielding the arguments of each dispatch.

    Dispatched values are buffered in an unbounded queue, so a dispatch never
    waits on a slow consumer and nothing is dropped while the stream is open.
    Closing unsubscribes from the event and discards anything still buffered.
    """

    def __init__(self, event: Event[Unpack[Ts]]) -> None:
        self._event = event
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        event.subscribe(self._push)

    @property
    def closed(self) -> bool:
        return self._closed

    def _push(self, *args: Unpack[Ts]) -> None:
        if not self._closed:
            self._queue.put_nowait(args)

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> tuple[Unpack[Ts]]:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            # Pass the marker on to any other waiting consumer.
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item

    next = __anext__

    async def close(self) -> None:
        """Stop receiving dispatches. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._event.unsubscribe(self._push)
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)
        LOGGER.debug(
            "event.stream.closed",
            extra={"event": "event.stream.closed", "event_name": self._event.name},
        )

    aclose = close

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
