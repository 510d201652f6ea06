"""
Controller - Work Queue

File de travail dédupliquée partagée par les workers.

Garanties:
    - Un item déjà en file n'y est pas ajouté une seconde fois
    - Un item en cours de traitement qui reçoit un nouvel ajout est
      remis en file à la fin de son traitement (done), jamais traité
      par deux workers à la fois
    - add_after conserve l'échéance la plus proche par item
"""

import asyncio
from collections import deque
from typing import Deque, Dict, Hashable, Optional, Set, Tuple

from .interfaces import WorkQueueShutDownError
from .rate_limiter import ItemExponentialRateLimiter


class WorkQueue:
    """
    File de travail asyncio.

    Example:
        queue = WorkQueue()
        queue.add(key)
        item = await queue.get()
        try:
            ...
        finally:
            queue.done(item)
    """

    def __init__(self, rate_limiter: Optional[ItemExponentialRateLimiter] = None) -> None:
        self._rate_limiter = rate_limiter or ItemExponentialRateLimiter()
        self._queue: Deque[Hashable] = deque()
        self._dirty: Set[Hashable] = set()
        self._processing: Set[Hashable] = set()
        self._waiting: Dict[Hashable, Tuple[float, asyncio.TimerHandle]] = {}
        self._wakeup: Optional[asyncio.Event] = None
        self._shutting_down = False

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def is_processing(self, item: Hashable) -> bool:
        return item in self._processing

    def is_waiting(self, item: Hashable) -> bool:
        return item in self._waiting

    def add(self, item: Hashable) -> None:
        """Ajoute un item (ignoré si déjà en file ou si la file est arrêtée)."""
        if self._shutting_down or item in self._dirty:
            return

        self._dirty.add(item)
        if item in self._processing:
            return

        self._queue.append(item)
        self._notify()

    def add_after(self, item: Hashable, delay: float) -> None:
        """Ajoute un item après delay secondes."""
        if self._shutting_down:
            return
        if delay <= 0:
            self.add(item)
            return

        loop = asyncio.get_running_loop()
        ready_at = loop.time() + delay

        existing = self._waiting.get(item)
        if existing is not None:
            if existing[0] <= ready_at:
                return
            existing[1].cancel()

        handle = loop.call_later(delay, self._fire, item)
        self._waiting[item] = (ready_at, handle)

    def _notify(self) -> None:
        # Event créé au premier get(), dans la boucle qui attend
        if self._wakeup is not None:
            self._wakeup.set()

    def _fire(self, item: Hashable) -> None:
        self._waiting.pop(item, None)
        self.add(item)

    def add_rate_limited(self, item: Hashable) -> None:
        """Ajoute un item après le délai de backoff de son rate limiter."""
        self.add_after(item, self._rate_limiter.when(item))

    def forget(self, item: Hashable) -> None:
        """Remet à zéro le backoff de l'item."""
        self._rate_limiter.forget(item)

    def num_requeues(self, item: Hashable) -> int:
        return self._rate_limiter.num_requeues(item)

    async def get(self) -> Hashable:
        """
        Attend et retourne le prochain item.

        Raises:
            WorkQueueShutDownError: File arrêtée et vide
        """
        while not self._queue and not self._shutting_down:
            if self._wakeup is None:
                self._wakeup = asyncio.Event()
            self._wakeup.clear()
            await self._wakeup.wait()

        if not self._queue:
            raise WorkQueueShutDownError("work queue is shut down")

        item = self._queue.popleft()
        self._processing.add(item)
        self._dirty.discard(item)
        return item

    def done(self, item: Hashable) -> None:
        """Fin de traitement: remet l'item en file s'il a été ré-ajouté entre-temps."""
        self._processing.discard(item)
        if item in self._dirty:
            self._queue.append(item)
            self._notify()

    def shut_down(self) -> None:
        """Arrête la file: ajouts ignorés, ajouts différés annulés, workers réveillés."""
        self._shutting_down = True
        for _, handle in self._waiting.values():
            handle.cancel()
        self._waiting.clear()
        self._notify()
