"""Domain exception hierarchy for typed events."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any


class TypedEventError(RuntimeError):
    """Base class for all typed-event errors."""


class ListenerFailure(TypedEventError):
    """Raised when a subscribed listener fails during dispatch.

    Dispatch catches and logs these; they never reach the dispatching caller.
    """

    def __init__(
        self,
        listener: Callable[..., Any],
        original: BaseException,
        event_name: str | None = None,
    ) -> None:
        self.listener = listener
        self.original = original
        self.event_name = event_name
        label = event_name or "<anonymous>"
        super().__init__(
            f"Listener {describe_listener(listener)} failed on event {label}: {original!r}"
        )
        self.__cause__ = original


class ConfigValidationError(TypedEventError):
    """Raised when configuration cannot be validated safely."""


def describe_listener(listener: Callable[..., Any]) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)
