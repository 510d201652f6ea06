"""
Controller - Rate Limiter

Backoff exponentiel par work item.

Formula: min(base_delay * 2 ^ failures, max_delay)
- 1er échec: base_delay
- 2e échec: base_delay * 2
- ...
Remis à zéro par forget() après une passe réussie.
"""

from typing import Dict, Hashable


class ItemExponentialRateLimiter:
    """
    Rate limiter exponentiel par item.

    Example:
        limiter = ItemExponentialRateLimiter(base_delay=0.005, max_delay=300.0)
        limiter.when(key)  # 0.005
        limiter.when(key)  # 0.01
        limiter.forget(key)
    """

    DEFAULT_BASE_DELAY: float = 0.005
    DEFAULT_MAX_DELAY: float = 300.0

    def __init__(
        self,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
    ) -> None:
        """
        Raises:
            ValueError: Si base_delay <= 0 ou max_delay < base_delay
        """
        if base_delay <= 0:
            raise ValueError(f"base_delay must be > 0, got {base_delay}")
        if max_delay < base_delay:
            raise ValueError(f"max_delay must be >= base_delay, got {max_delay}")

        self._base_delay = base_delay
        self._max_delay = max_delay
        self._failures: Dict[Hashable, int] = {}

    def when(self, item: Hashable) -> float:
        """Délai avant la prochaine tentative (incrémente le compteur)."""
        failures = self._failures.get(item, 0)
        self._failures[item] = failures + 1

        # Évite un overflow float sur de longues séries d'échecs
        if failures >= 64:
            return self._max_delay
        delay = self._base_delay * (2**failures)
        return min(delay, self._max_delay)

    def forget(self, item: Hashable) -> None:
        """Oublie l'historique d'échecs de l'item."""
        self._failures.pop(item, None)

    def num_requeues(self, item: Hashable) -> int:
        return self._failures.get(item, 0)
