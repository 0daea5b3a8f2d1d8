"""
Handler slots for UI callbacks (loading indicator, modal, toast).

A slot holds at most one callable. Components register on mount and
unregister on unmount; callers invoke the slot without knowing whether
anything is listening.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class HandlerSlot:
    """A named, single-occupant callback slot."""

    def __init__(self, name: str):
        self.name = name
        self._handler: Optional[Callable[..., Any]] = None

    @property
    def is_registered(self) -> bool:
        return self._handler is not None

    def register(self, handler: Callable[..., Any]) -> None:
        """Install ``handler``, replacing any previous one."""
        if self._handler is not None and self._handler is not handler:
            logger.debug("Handler slot %s: replacing registered handler", self.name)
        self._handler = handler

    def unregister(self, handler: Optional[Callable[..., Any]] = None) -> None:
        """
        Remove the handler.

        With an argument, only removes it if it is still the registered one,
        so a late unmount cannot clear a newer component's handler.
        """
        if handler is None or self._handler is handler:
            self._handler = None

    async def invoke(self, *args: Any, **kwargs: Any) -> Any:
        """Call the handler; a no-op returning None when the slot is empty."""
        handler = self._handler
        if handler is None:
            return None
        result = handler(*args, **kwargs)
        if asyncio.iscoroutine(result):
            result = await result
        return result
