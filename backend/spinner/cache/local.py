from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

CACHE_TTL_S = 10 * 60


@dataclass(frozen=True, slots=True)
class CachedImage:
    fetched_at: float
    data: bytes
    content_type: str

    def age_s(self, *, now: float) -> float:
        return float(now) - float(self.fetched_at)

    def is_fresh(self, *, now: float, ttl_s: float) -> bool:
        return self.age_s(now=now) < float(ttl_s)


class LocalImageCache:
    """Single-slot, process-local image cache.

    The slot is only ever replaced wholesale, so concurrent writers race on a
    reference assignment and the last one wins.
    """

    def __init__(
        self,
        *,
        ttl_s: float = CACHE_TTL_S,
        now: Callable[[], float] | None = None,
    ) -> None:
        self._ttl_s = max(0.0, float(ttl_s))
        self._now = now or time.time
        self._current: CachedImage | None = None

    @property
    def ttl_s(self) -> float:
        return self._ttl_s

    def now(self) -> float:
        return float(self._now())

    def get(self) -> CachedImage | None:
        return self._current

    def get_fresh(self) -> CachedImage | None:
        current = self._current
        if current is None or not current.is_fresh(now=self.now(), ttl_s=self._ttl_s):
            return None
        return current

    def put(self, image: CachedImage) -> None:
        self._current = image

    def store(self, *, data: bytes, content_type: str) -> CachedImage:
        image = CachedImage(fetched_at=self.now(), data=bytes(data), content_type=content_type)
        self.put(image)
        return image
