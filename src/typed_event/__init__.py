"""Typed publish/subscribe events for asyncio."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .event import Event, EventStream, Subscription
from .exceptions import ConfigValidationError, ListenerFailure, TypedEventError

if TYPE_CHECKING:
    from .config import ensure_config_dir, load_config
    from .logging_utils import configure_logging

__all__ = [
    "ConfigValidationError",
    "Event",
    "EventStream",
    "ListenerFailure",
    "Subscription",
    "TypedEventError",
    "configure_logging",
    "ensure_config_dir",
    "load_config",
]


def __getattr__(name: str) -> Any:
    """Lazily import the config and logging helpers, which pull in pydantic and structlog."""
    if name in {"ensure_config_dir", "load_config"}:
        from .config import ensure_config_dir, load_config

        return {"ensure_config_dir": ensure_config_dir, "load_config": load_config}[name]
    if name == "configure_logging":
        from .logging_utils import configure_logging

        return configure_logging
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
