"""Helpers for safe event emission to UI-side observers.

Provides `safe_emit` to call arbitrary listeners (sync or async) with
consistent error handling, and `ListenerRegistry` which keeps an ordered
list of such listeners for a single notification kind.
"""

import inspect
import logging
from typing import Any, Callable, List, Optional

logger = logging.getLogger("vocabary.utils.emitter")

Listener = Callable[[Any], Any]


async def safe_emit(
    emitter: Listener,
    event: Any,
    log: Optional[logging.Logger] = None,
    session_id: Optional[str] = None,
) -> None:
    """Call `emitter(event)` safely: await if awaitable and log exceptions.

    `emitter` may be an async function or a sync callable. Exceptions are
    logged and swallowed so a faulty observer cannot stop the detection loop.
    """
    lg = log or logger
    try:
        result = emitter(event)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        lg.error("safe_emit failed: %s", e, extra={"session_id": session_id})


class ListenerRegistry:
    """Ordered set of observers notified with `safe_emit`."""

    def __init__(self, name: str):
        self._name = name
        self._listeners: List[Listener] = []

    def add(self, listener: Listener) -> Callable[[], None]:
        """Register `listener` and return a callable that unregisters it."""
        if listener not in self._listeners:
            self._listeners.append(listener)

        def _remove() -> None:
            self.remove(listener)

        return _remove

    def remove(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def __len__(self) -> int:
        return len(self._listeners)

    async def emit(self, event: Any, session_id: Optional[str] = None) -> None:
        for listener in list(self._listeners):
            await safe_emit(listener, event, logger, session_id)
        logger.debug(f"{self._name} delivered to {len(self._listeners)} listener(s)")
