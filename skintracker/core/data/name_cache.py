from __future__ import annotations

import logging
import time
from typing import Callable

from skintracker.core.data.catalog import row_to_label
from skintracker.core.data.row_store import RowStore
from skintracker.core.errors import UpstreamFetchError


LOG = logging.getLogger(__name__)

NAMES_RANGE = "Sheet1!A2:B"
DEFAULT_TTL_SECONDS = 3600.0


def names_fetcher(store: RowStore, sheet_id: str, range_spec: str = NAMES_RANGE) -> Callable[[], list[str]]:
    def _fetch() -> list[str]:
        labels: list[str] = []
        for row in store.get_range(sheet_id, range_spec):
            label = row_to_label(row)
            if label:
                labels.append(label)
        return labels

    return _fetch


class NameCache:
    """Time-bounded cache of the skin label list.

    A failed refresh serves the stale list when one exists. The error only
    reaches the caller when there is nothing cached yet.
    """

    def __init__(
        self,
        fetch: Callable[[], list[str]],
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self.ttl_seconds = max(0.0, float(ttl_seconds))
        self._clock = clock
        self._names: list[str] = []
        self._fetched_at: float | None = None

    @property
    def fetched_at(self) -> float | None:
        return self._fetched_at

    def is_fresh(self) -> bool:
        if not self._names or self._fetched_at is None:
            return False
        return (self._clock() - self._fetched_at) < self.ttl_seconds

    def invalidate(self) -> None:
        self._fetched_at = None

    def get(self, force_refresh: bool = False) -> list[str]:
        if not force_refresh and self.is_fresh():
            return list(self._names)

        try:
            names = list(self._fetch())
        except Exception as exc:
            if self._names:
                LOG.warning("skin list refresh failed, serving %s cached names: %s", len(self._names), exc)
                return list(self._names)
            if isinstance(exc, UpstreamFetchError):
                raise
            raise UpstreamFetchError(f"skin list fetch failed: {exc}") from exc

        self._names = names
        self._fetched_at = self._clock()
        LOG.info("skin list refreshed (%s names)", len(names))
        return list(names)
