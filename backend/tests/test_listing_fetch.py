from __future__ import annotations

import asyncio

import httpx
import pytest

from spinner.core.errors import UpstreamListingError
from spinner.reddit.listing import (
    BROWSER_USER_AGENT,
    REDDIT_LIST_URL,
    SPINNER_USER_AGENT,
    ListingVariant,
    default_listing_variants,
    fetch_listing,
)

LISTING = {"data": {"children": [{"data": {"url": "https://i.redd.it/a.jpg", "score": 99}}]}}


def test_default_variants_cover_host_aliases_and_header_sets() -> None:
    variants = default_listing_variants()
    assert [v.label for v in variants] == ["www", "old", "www_browser", "old_browser"]
    assert variants[0].url == REDDIT_LIST_URL
    assert variants[1].url == "https://old.reddit.com/r/BLAHAJ/hot.json?limit=100"
    assert variants[0].headers == {"User-Agent": SPINNER_USER_AGENT}
    assert variants[2].headers["User-Agent"] == BROWSER_USER_AGENT
    assert variants[2].headers["Accept"] == "application/json"
    assert variants[3].headers["Referer"] == "https://www.reddit.com/"
    assert variants[3].url.startswith("https://old.reddit.com/")


def test_first_successful_variant_wins() -> None:
    seen: list[str] = []

    def handler(req: httpx.Request) -> httpx.Response:
        seen.append(str(req.url))
        assert req.headers.get("User-Agent") == SPINNER_USER_AGENT
        return httpx.Response(200, json=LISTING)

    out = asyncio.run(fetch_listing(transport=httpx.MockTransport(handler)))
    assert out == LISTING
    assert seen == [REDDIT_LIST_URL]


def test_forbidden_variants_fall_through_to_next() -> None:
    seen: list[tuple[str, str]] = []

    def handler(req: httpx.Request) -> httpx.Response:
        seen.append((req.url.host, req.headers.get("User-Agent", "")))
        if req.headers.get("User-Agent") == BROWSER_USER_AGENT and req.url.host == "old.reddit.com":
            return httpx.Response(200, json=LISTING)
        return httpx.Response(403, text="blocked")

    out = asyncio.run(fetch_listing(transport=httpx.MockTransport(handler)))
    assert out == LISTING
    assert seen == [
        ("www.reddit.com", SPINNER_USER_AGENT),
        ("old.reddit.com", SPINNER_USER_AGENT),
        ("www.reddit.com", BROWSER_USER_AGENT),
        ("old.reddit.com", BROWSER_USER_AGENT),
    ]


def test_server_error_and_bad_json_also_fall_through() -> None:
    variants = [
        ListingVariant(label="one", url="https://one.test/hot.json"),
        ListingVariant(label="two", url="https://two.test/hot.json"),
        ListingVariant(label="three", url="https://three.test/hot.json"),
    ]

    def handler(req: httpx.Request) -> httpx.Response:
        if req.url.host == "one.test":
            return httpx.Response(500)
        if req.url.host == "two.test":
            return httpx.Response(200, content=b"<html>not json</html>")
        return httpx.Response(200, json=LISTING)

    out = asyncio.run(fetch_listing(variants, transport=httpx.MockTransport(handler)))
    assert out == LISTING


def test_all_variants_failing_raises_last_error() -> None:
    variants = [
        ListingVariant(label="one", url="https://one.test/hot.json"),
        ListingVariant(label="two", url="https://two.test/hot.json"),
    ]

    def handler(req: httpx.Request) -> httpx.Response:
        if req.url.host == "one.test":
            return httpx.Response(403)
        return httpx.Response(503)

    with pytest.raises(UpstreamListingError) as excinfo:
        asyncio.run(fetch_listing(variants, transport=httpx.MockTransport(handler)))
    assert excinfo.value.status_code == 503
    assert "503" in str(excinfo.value)


def test_network_fault_is_recorded_and_next_variant_tried() -> None:
    variants = [
        ListingVariant(label="down", url="https://down.test/hot.json"),
        ListingVariant(label="up", url="https://up.test/hot.json"),
    ]

    def handler(req: httpx.Request) -> httpx.Response:
        if req.url.host == "down.test":
            raise httpx.ConnectError("connection refused", request=req)
        return httpx.Response(200, json=LISTING)

    assert asyncio.run(fetch_listing(variants, transport=httpx.MockTransport(handler))) == LISTING


def test_network_fault_on_every_variant_raises_listing_error() -> None:
    def handler(req: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=req)

    with pytest.raises(UpstreamListingError) as excinfo:
        asyncio.run(fetch_listing(transport=httpx.MockTransport(handler)))
    assert excinfo.value.status_code is None
    assert "ConnectError" in str(excinfo.value)


def test_no_variants_raises_generic_error() -> None:
    with pytest.raises(UpstreamListingError) as excinfo:
        asyncio.run(fetch_listing([]))
    assert str(excinfo.value) == "Failed to fetch subreddit listing"
