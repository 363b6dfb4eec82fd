"""Shared (cross-instance) image cache tier.

Every replica reads and writes the same two keys, so all of them converge on
one image per TTL window. The store is chosen once at startup: a Redis-backed
store when ``REDIS_URL`` is set, otherwise a disabled store that always misses.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from spinner.cache.local import CACHE_TTL_S, CachedImage
from spinner.core.errors import SharedCacheError
from spinner.core.logging import get_logger

log = get_logger(__name__)

IMAGE_KEY = "current-image"
META_KEY = "current-image:meta"


class SharedImageStore(Protocol):
    enabled: bool

    async def get_image(self) -> CachedImage | None: ...

    async def put_image(self, image: CachedImage) -> None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class DisabledSharedStore:
    enabled = False

    async def get_image(self) -> CachedImage | None:
        return None

    async def put_image(self, image: CachedImage) -> None:
        return None

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


def encode_meta(image: CachedImage) -> str:
    return json.dumps(
        {"contentType": image.content_type, "fetchedAt": int(round(image.fetched_at * 1000))},
        separators=(",", ":"),
    )


def decode_meta(raw: Any) -> tuple[str, float] | None:
    try:
        meta = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(meta, dict):
        return None
    content_type = meta.get("contentType")
    if not isinstance(content_type, str) or not content_type.strip():
        return None
    fetched_at_ms = meta.get("fetchedAt")
    if isinstance(fetched_at_ms, bool) or not isinstance(fetched_at_ms, (int, float)):
        return None
    return content_type.strip(), float(fetched_at_ms) / 1000.0


class RedisImageStore:
    enabled = True

    def __init__(self, client: Redis, *, ttl_s: int = CACHE_TTL_S) -> None:
        self._client = client
        self._ttl_s = max(1, int(ttl_s))

    @classmethod
    def from_url(cls, url: str, *, ttl_s: int = CACHE_TTL_S) -> RedisImageStore:
        client = Redis.from_url(
            url,
            socket_timeout=10.0,
            socket_connect_timeout=5.0,
        )
        return cls(client, ttl_s=ttl_s)

    async def get_image(self) -> CachedImage | None:
        try:
            data, meta_raw = await self._client.mget([IMAGE_KEY, META_KEY])
        except (RedisError, OSError) as exc:
            raise SharedCacheError(f"shared cache read failed: {type(exc).__name__}") from exc

        if not data or meta_raw is None:
            return None

        meta = decode_meta(meta_raw)
        if meta is None:
            log.warning("shared_cache_meta_invalid key=%s", META_KEY)
            return None
        content_type, fetched_at = meta
        return CachedImage(fetched_at=fetched_at, data=bytes(data), content_type=content_type)

    async def put_image(self, image: CachedImage) -> None:
        try:
            await asyncio.gather(
                self._client.set(IMAGE_KEY, image.data, ex=self._ttl_s),
                self._client.set(META_KEY, encode_meta(image), ex=self._ttl_s),
            )
        except (RedisError, OSError) as exc:
            raise SharedCacheError(f"shared cache write failed: {type(exc).__name__}") from exc

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as exc:
            log.warning("shared_cache_ping_failed err=%s", type(exc).__name__)
            return False

    async def close(self) -> None:
        await self._client.aclose()
