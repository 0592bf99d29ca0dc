"""In-memory session store for finalized collection results."""

from typing import Optional

from ..models.links import CollectionResult


class ResultStore:
    """
    Finalized results keyed by tab id, kept for the lifetime of the process.

    A newer result for the same tab replaces the older one.
    """

    def __init__(self) -> None:
        self._results: dict[int, CollectionResult] = {}

    def put(self, result: CollectionResult) -> None:
        self._results[result.tab_id] = result

    def get(self, tab_id: int) -> Optional[CollectionResult]:
        return self._results.get(tab_id)

    def remove(self, tab_id: int) -> bool:
        """Drop a tab's result; returns True if one was stored."""
        return self._results.pop(tab_id, None) is not None

    def clear(self) -> None:
        self._results.clear()

    def __contains__(self, tab_id: int) -> bool:
        return tab_id in self._results

    def __len__(self) -> int:
        return len(self._results)
