from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Mapping

from spinner.core.logging import get_logger

log = get_logger(__name__)

DEFAULT_MIN_UPVOTES = 50
DEFAULT_UPSTREAM_TIMEOUT_S = 30.0


@dataclass(frozen=True, slots=True)
class Settings:
    min_upvotes: int
    redis_url: str
    upstream_timeout_s: float

    @property
    def shared_cache_enabled(self) -> bool:
        return bool(self.redis_url)


def _get(env: Mapping[str, str], key: str, default: str) -> str:
    value = env.get(key, default)
    return value.strip()


def parse_min_upvotes(raw: str | None) -> int:
    raw = (raw or "").strip()
    if not raw:
        return DEFAULT_MIN_UPVOTES
    try:
        value = float(raw)
    except ValueError:
        log.warning("min_upvotes_invalid value=%s", raw)
        return DEFAULT_MIN_UPVOTES
    if not math.isfinite(value) or value < 0:
        log.warning("min_upvotes_invalid value=%s", raw)
        return DEFAULT_MIN_UPVOTES
    return int(math.floor(value))


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    env = env if env is not None else os.environ

    min_upvotes = parse_min_upvotes(env.get("MIN_UPVOTES"))
    redis_url = _get(env, "REDIS_URL", "")

    try:
        upstream_timeout_s = float(_get(env, "UPSTREAM_TIMEOUT_SECONDS", "30") or "30")
    except ValueError:
        upstream_timeout_s = DEFAULT_UPSTREAM_TIMEOUT_S
    if not math.isfinite(upstream_timeout_s):
        upstream_timeout_s = DEFAULT_UPSTREAM_TIMEOUT_S
    upstream_timeout_s = max(1.0, min(float(upstream_timeout_s), 300.0))

    return Settings(
        min_upvotes=min_upvotes,
        redis_url=redis_url,
        upstream_timeout_s=upstream_timeout_s,
    )
