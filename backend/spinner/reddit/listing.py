from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

import httpx

from spinner.core.errors import UpstreamListingError
from spinner.core.logging import get_logger
from spinner.core.metrics import LISTING_VARIANT_FAILURES_TOTAL
from spinner.core.redact import redact_text

log = get_logger(__name__)

REDDIT_LIST_URL = "https://www.reddit.com/r/BLAHAJ/hot.json?limit=100"
OLD_REDDIT_HOST = "old.reddit.com"

SPINNER_USER_AGENT = "blahaj-spinner/1.0 (by /u/anonymous)"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass(frozen=True, slots=True)
class ListingVariant:
    label: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)


def _old_reddit(url: str) -> str:
    return url.replace("www.reddit.com", OLD_REDDIT_HOST)


def default_listing_variants(list_url: str = REDDIT_LIST_URL) -> list[ListingVariant]:
    """Request variants tried in order.

    Some egress IPs get a 403 from the default reddit host or user agent, so
    the list falls back to the old.reddit.com alias and to a browser-like
    header set.
    """
    browser_headers = {
        "User-Agent": BROWSER_USER_AGENT,
        "Accept": "application/json",
        "Referer": "https://www.reddit.com/",
    }
    return [
        ListingVariant(label="www", url=list_url, headers={"User-Agent": SPINNER_USER_AGENT}),
        ListingVariant(label="old", url=_old_reddit(list_url), headers={"User-Agent": SPINNER_USER_AGENT}),
        ListingVariant(label="www_browser", url=list_url, headers=dict(browser_headers)),
        ListingVariant(label="old_browser", url=_old_reddit(list_url), headers=dict(browser_headers)),
    ]


async def _try_variant(
    variant: ListingVariant,
    *,
    transport: httpx.AsyncBaseTransport | None,
    timeout_s: float,
) -> Any:
    async with httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(timeout_s, connect=10.0),
        follow_redirects=True,
        headers=variant.headers,
    ) as client:
        resp = await client.get(variant.url)

    if not resp.is_success:
        raise UpstreamListingError(
            f"Failed to fetch subreddit listing: {resp.status_code}",
            status_code=resp.status_code,
        )

    try:
        return resp.json()
    except ValueError as exc:
        raise UpstreamListingError(
            "Subreddit listing response is not JSON",
            status_code=resp.status_code,
        ) from exc


async def fetch_listing(
    variants: Sequence[ListingVariant] | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout_s: float = 30.0,
) -> Any:
    variants = list(variants) if variants is not None else default_listing_variants()

    last_err: UpstreamListingError | None = None
    for variant in variants:
        try:
            return await _try_variant(variant, transport=transport, timeout_s=timeout_s)
        except UpstreamListingError as exc:
            last_err = exc
            if exc.status_code == 403:
                log.info("listing_variant_forbidden variant=%s", variant.label)
            else:
                log.warning("listing_variant_failed variant=%s status=%s err=%s", variant.label, exc.status_code, exc)
        except httpx.HTTPError as exc:
            last_err = UpstreamListingError(redact_text(f"{type(exc).__name__}: {exc}"))
            last_err.__cause__ = exc
            log.warning("listing_variant_failed variant=%s err=%s", variant.label, type(exc).__name__)
        LISTING_VARIANT_FAILURES_TOTAL.labels(variant=variant.label).inc()

    if last_err is not None:
        raise last_err
    raise UpstreamListingError()
