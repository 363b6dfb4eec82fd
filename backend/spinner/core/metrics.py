from __future__ import annotations

from prometheus_client import Counter, Histogram

IMAGE_RESULTS: tuple[str, ...] = (
    "ok",
    "shared",
    "stale",
    "upstream_error",
    "error",
)

LIVE_FETCH_RESULTS: tuple[str, ...] = (
    "ok",
    "listing_error",
    "no_candidates",
    "image_error",
    "error",
)

SHARED_CACHE_OPS: tuple[str, ...] = ("read", "write")

IMAGE_REQUESTS_TOTAL = Counter(
    "blahaj_spinner_image_requests_total",
    "Total / requests by result.",
    ["result"],
)

IMAGE_LATENCY_SECONDS = Histogram(
    "blahaj_spinner_image_latency_seconds",
    "Latency for / endpoint (seconds).",
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
    ),
)

LIVE_FETCHES_TOTAL = Counter(
    "blahaj_spinner_live_fetches_total",
    "Total live fetches (listing + image) by result.",
    ["result"],
)

LISTING_VARIANT_FAILURES_TOTAL = Counter(
    "blahaj_spinner_listing_variant_failures_total",
    "Total listing request variants that failed.",
    ["variant"],
)

SHARED_CACHE_ERRORS_TOTAL = Counter(
    "blahaj_spinner_shared_cache_errors_total",
    "Total shared cache (redis) errors by operation.",
    ["op"],
)


def _init_labelsets() -> None:
    for result in IMAGE_RESULTS:
        IMAGE_REQUESTS_TOTAL.labels(result=result).inc(0)
    for result in LIVE_FETCH_RESULTS:
        LIVE_FETCHES_TOTAL.labels(result=result).inc(0)
    for op in SHARED_CACHE_OPS:
        SHARED_CACHE_ERRORS_TOTAL.labels(op=op).inc(0)


_init_labelsets()


def observe_image_result(*, result: str, duration_s: float | None) -> None:
    result = (result or "").strip()
    if result not in IMAGE_RESULTS:
        result = "error"
    IMAGE_REQUESTS_TOTAL.labels(result=result).inc()
    if duration_s is not None and duration_s >= 0:
        IMAGE_LATENCY_SECONDS.observe(duration_s)


def observe_live_fetch(result: str) -> None:
    if result not in LIVE_FETCH_RESULTS:
        result = "error"
    LIVE_FETCHES_TOTAL.labels(result=result).inc()
