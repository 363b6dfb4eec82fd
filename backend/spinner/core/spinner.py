from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import httpx

from spinner.cache.local import CachedImage, LocalImageCache
from spinner.cache.shared import DisabledSharedStore, SharedImageStore
from spinner.core.config import DEFAULT_MIN_UPVOTES, DEFAULT_UPSTREAM_TIMEOUT_S
from spinner.core.errors import (
    EmptyCandidateSetError,
    LiveFetchError,
    UpstreamImageError,
    UpstreamListingError,
)
from spinner.core.logging import get_logger
from spinner.core.metrics import SHARED_CACHE_ERRORS_TOTAL, observe_live_fetch
from spinner.reddit.candidates import select_candidate_urls
from spinner.reddit.image import FetchedImage, fetch_image
from spinner.reddit.listing import ListingVariant, default_listing_variants, fetch_listing
from spinner.reddit.selector import pick_candidate

log = get_logger(__name__)


class ImageSource(str, Enum):
    LIVE = "live"
    LOCAL = "local"
    SHARED = "shared"
    STALE = "stale"


@dataclass(frozen=True, slots=True)
class ServedImage:
    data: bytes
    content_type: str
    source: ImageSource


def _served(image: CachedImage, source: ImageSource) -> ServedImage:
    return ServedImage(
        data=image.data,
        content_type=image.content_type,
        source=source,
    )


def _live_fetch_result(exc: BaseException) -> str:
    if isinstance(exc, UpstreamListingError):
        return "listing_error"
    if isinstance(exc, EmptyCandidateSetError):
        return "no_candidates"
    if isinstance(exc, UpstreamImageError):
        return "image_error"
    return "error"


class ImageSpinner:
    """Serves one random image per request: shared tier, local tier, live fetch, stale fallback.

    Concurrent cache misses are not coalesced; each may run its own live fetch
    and the last write to the local slot wins.
    """

    def __init__(
        self,
        *,
        local: LocalImageCache | None = None,
        shared: SharedImageStore | None = None,
        min_upvotes: int = DEFAULT_MIN_UPVOTES,
        listing_variants: Sequence[ListingVariant] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout_s: float = DEFAULT_UPSTREAM_TIMEOUT_S,
        rng: random.Random | None = None,
    ) -> None:
        self.local = local or LocalImageCache()
        self.shared: SharedImageStore = shared or DisabledSharedStore()
        self.min_upvotes = int(min_upvotes)
        self._variants = list(listing_variants) if listing_variants is not None else default_listing_variants()
        self._transport = transport
        self._timeout_s = float(timeout_s)
        self._rng = rng

    async def serve(self) -> ServedImage:
        shared_hit = await self._check_shared()
        if shared_hit is not None:
            return _served(shared_hit, ImageSource.SHARED)

        fresh = self.local.get_fresh()
        if fresh is not None:
            return _served(fresh, ImageSource.LOCAL)

        try:
            image = await self.fetch_live()
        except Exception as exc:
            observe_live_fetch(_live_fetch_result(exc))
            log.error("live_fetch_failed err=%s: %s", type(exc).__name__, exc)
            stale = self.local.get()
            if stale is not None:
                log.warning("serving_stale_image age_s=%.1f", stale.age_s(now=self.local.now()))
                return _served(stale, ImageSource.STALE)
            raise LiveFetchError() from exc

        observe_live_fetch("ok")
        return _served(image, ImageSource.LIVE)

    async def fetch_live(self) -> CachedImage:
        listing = await fetch_listing(self._variants, transport=self._transport, timeout_s=self._timeout_s)
        urls = select_candidate_urls(listing, min_score=self.min_upvotes)
        url = pick_candidate(urls, rng=self._rng)
        log.info("image_selected candidates=%d url=%s", len(urls), url)

        fetched: FetchedImage = await fetch_image(url, transport=self._transport, timeout_s=self._timeout_s)
        image = self.local.store(data=fetched.data, content_type=fetched.content_type)
        await self._write_shared(image)
        return image

    async def _check_shared(self) -> CachedImage | None:
        if not self.shared.enabled:
            return None
        try:
            image = await self.shared.get_image()
        except Exception as exc:
            SHARED_CACHE_ERRORS_TOTAL.labels(op="read").inc()
            log.error("shared_cache_read_failed err=%s: %s", type(exc).__name__, exc)
            return None
        if image is not None:
            log.info("shared_cache_hit age_s=%.1f", image.age_s(now=self.local.now()))
            self.local.put(image)
        return image

    async def _write_shared(self, image: CachedImage) -> None:
        if not self.shared.enabled:
            return
        try:
            await self.shared.put_image(image)
        except Exception as exc:
            SHARED_CACHE_ERRORS_TOTAL.labels(op="write").inc()
            log.error("shared_cache_write_failed err=%s: %s", type(exc).__name__, exc)
