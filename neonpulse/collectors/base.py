from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, TypeVar

from neonpulse.config import Settings
from neonpulse.errors import CollectionError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class BaseCollector(ABC, Generic[T]):
    """Abstract base for all on-demand collectors.

    Subclasses implement ``collect()`` which queries the OS and returns one
    response model. Collectors hold no state between calls; every
    ``snapshot()`` is a fresh collection. Blocking OS calls are pushed to
    worker threads with ``_offload`` so independent sub-queries can run
    concurrently under ``asyncio.gather``.
    """

    name: str = "base"
    error_message: str = "Failed to collect metrics"

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    # ── abstract method ─────────────────────────────────

    @abstractmethod
    async def collect(self) -> T:
        """Query the host and return a freshly built model."""
        ...

    # ── public entry point ──────────────────────────────

    async def snapshot(self) -> T:
        try:
            return await self.collect()
        except CollectionError:
            raise
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Collector [%s] error during collect()", self.name)
            raise CollectionError(self.error_message, str(exc)) from exc

    # ── internals ───────────────────────────────────────

    @staticmethod
    async def _offload(func: Callable[..., R], *args: Any) -> R:
        return await asyncio.to_thread(func, *args)

    @property
    def settings(self) -> Settings:
        return self._settings
