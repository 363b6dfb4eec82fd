from __future__ import annotations

from dataclasses import dataclass

import httpx

from spinner.core.errors import UpstreamImageError
from spinner.reddit.candidates import guess_content_type_from_url

IMAGE_USER_AGENT = "blahaj-spinner/1.0"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class FetchedImage:
    url: str
    data: bytes
    content_type: str


def resolve_content_type(url: str, header_value: str | None) -> str:
    header_value = (header_value or "").strip()
    if header_value:
        return header_value
    return guess_content_type_from_url(url) or DEFAULT_CONTENT_TYPE


async def fetch_image(
    url: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout_s: float = 30.0,
) -> FetchedImage:
    try:
        async with httpx.AsyncClient(
            transport=transport,
            timeout=httpx.Timeout(timeout_s, connect=10.0),
            follow_redirects=True,
            headers={"User-Agent": IMAGE_USER_AGENT},
        ) as client:
            resp = await client.get(url)
    except httpx.HTTPError as exc:
        raise UpstreamImageError(f"Failed to fetch image: {type(exc).__name__}") from exc

    if not resp.is_success:
        raise UpstreamImageError(f"Failed to fetch image: {resp.status_code}", status_code=resp.status_code)

    return FetchedImage(
        url=url,
        data=resp.content,
        content_type=resolve_content_type(url, resp.headers.get("content-type")),
    )
