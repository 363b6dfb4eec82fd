from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from spinner.core.errors import EmptyCandidateSetError

IMAGE_EXT_RE = re.compile(r"\.(jpe?g|png|gif|webp)(\?|$)", re.IGNORECASE)

_CONTENT_TYPE_BY_EXT: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\.(jpe?g)(\?|$)", re.IGNORECASE), "image/jpeg"),
    (re.compile(r"\.(png)(\?|$)", re.IGNORECASE), "image/png"),
    (re.compile(r"\.(gif)(\?|$)", re.IGNORECASE), "image/gif"),
    (re.compile(r"\.(webp)(\?|$)", re.IGNORECASE), "image/webp"),
)


@dataclass(frozen=True, slots=True)
class Candidate:
    url: str
    score: float | None


def guess_content_type_from_url(url: str) -> str | None:
    for pattern, content_type in _CONTENT_TYPE_BY_EXT:
        if pattern.search(url):
            return content_type
    return None


def _str_or_none(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _score(post: Mapping[str, Any]) -> float | None:
    value = post.get("score")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _meets_threshold(post: Mapping[str, Any], min_score: int) -> bool:
    score = _score(post)
    return score is not None and score >= min_score


def preview_url(post: Mapping[str, Any]) -> str | None:
    preview = post.get("preview")
    if not isinstance(preview, Mapping):
        return None
    images = preview.get("images")
    if not isinstance(images, list) or not images or not isinstance(images[0], Mapping):
        return None
    source = images[0].get("source")
    if not isinstance(source, Mapping):
        return None
    return _str_or_none(source.get("url"))


def link_url(post: Mapping[str, Any]) -> str | None:
    return _str_or_none(post.get("url_overridden_by_dest")) or _str_or_none(post.get("url"))


def resolve_post_url(post: Mapping[str, Any]) -> str:
    url = link_url(post) or preview_url(post) or ""
    return url.replace("&amp;", "&")


def is_image_post(post: Mapping[str, Any]) -> bool:
    url = link_url(post)
    if url is None:
        return False
    if IMAGE_EXT_RE.search(url):
        return True
    if post.get("post_hint") == "image":
        return True
    return preview_url(post) is not None


def iter_posts(listing: Any) -> Iterable[Mapping[str, Any]]:
    data = listing.get("data") if isinstance(listing, Mapping) else None
    children = data.get("children") if isinstance(data, Mapping) else None
    if not isinstance(children, list):
        return
    for child in children:
        post = child.get("data") if isinstance(child, Mapping) else None
        if isinstance(post, Mapping):
            yield post


def select_candidates(listing: Any, *, min_score: int) -> list[Candidate]:
    """Image posts from a listing, preferring those scoring at least ``min_score``.

    When no image post reaches the threshold the full image set is used, so a
    quiet subreddit still yields something. Listing order is preserved.
    """
    image_posts = [post for post in iter_posts(listing) if is_image_post(post)]

    popular = [post for post in image_posts if _meets_threshold(post, min_score)]
    pool = popular if popular else image_posts

    out: list[Candidate] = []
    for post in pool:
        url = resolve_post_url(post)
        if url:
            out.append(Candidate(url=url, score=_score(post)))

    if not out:
        raise EmptyCandidateSetError()
    return out


def select_candidate_urls(listing: Any, *, min_score: int) -> list[str]:
    return [c.url for c in select_candidates(listing, min_score=min_score)]
