"""Bounded history of router results."""

from collections import deque

from partyline.domain.entities import RouterResult


class ResultHistory:
    """Keep the most recent router results for inspection.

    Pass an instance as the broker's result_hook.
    """

    def __init__(self, max_size: int = 100) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._results: deque[RouterResult] = deque(maxlen=max_size)

    def __call__(self, result: RouterResult) -> None:
        self._results.append(result)

    def __len__(self) -> int:
        return len(self._results)

    def results(self) -> list[RouterResult]:
        """Return recorded results, oldest first."""
        return list(self._results)

    def clear(self) -> None:
        self._results.clear()
