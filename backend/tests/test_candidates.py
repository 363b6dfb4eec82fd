from __future__ import annotations

import pytest

from spinner.core.errors import EmptyCandidateSetError
from spinner.reddit.candidates import (
    guess_content_type_from_url,
    is_image_post,
    resolve_post_url,
    select_candidate_urls,
    select_candidates,
)


def _listing(*posts: dict) -> dict:
    return {"kind": "Listing", "data": {"children": [{"kind": "t3", "data": p} for p in posts]}}


def _img(name: str, score: int) -> dict:
    return {"url": f"https://i.redd.it/{name}.jpg", "score": score}


def test_only_posts_meeting_threshold_are_candidates() -> None:
    listing = _listing(_img("a", 10), _img("b", 60), _img("c", 200))
    urls = select_candidate_urls(listing, min_score=50)
    assert urls == ["https://i.redd.it/b.jpg", "https://i.redd.it/c.jpg"]


def test_falls_back_to_all_image_posts_when_none_meet_threshold() -> None:
    listing = _listing(_img("a", 10), _img("b", 20))
    urls = select_candidate_urls(listing, min_score=50)
    assert urls == ["https://i.redd.it/a.jpg", "https://i.redd.it/b.jpg"]


def test_threshold_is_inclusive() -> None:
    listing = _listing(_img("a", 49), _img("b", 50))
    assert select_candidate_urls(listing, min_score=50) == ["https://i.redd.it/b.jpg"]


def test_missing_or_non_numeric_score_never_meets_threshold() -> None:
    listing = _listing(
        {"url": "https://i.redd.it/none.png"},
        {"url": "https://i.redd.it/str.png", "score": "500"},
        {"url": "https://i.redd.it/bool.png", "score": True},
        _img("ok", 75),
    )
    assert select_candidate_urls(listing, min_score=1) == ["https://i.redd.it/ok.jpg"]


def test_candidates_carry_scores() -> None:
    listing = _listing(_img("a", 60))
    candidates = select_candidates(listing, min_score=50)
    assert len(candidates) == 1
    assert candidates[0].score == 60.0


def test_prefers_overridden_url_and_decodes_amp() -> None:
    post = {
        "url": "https://www.reddit.com/gallery/abc",
        "url_overridden_by_dest": "https://i.redd.it/x.png?width=640&amp;format=png&amp;s=1",
        "score": 100,
    }
    assert resolve_post_url(post) == "https://i.redd.it/x.png?width=640&format=png&s=1"
    assert select_candidate_urls(_listing(post), min_score=50) == [
        "https://i.redd.it/x.png?width=640&format=png&s=1"
    ]


def test_image_detection_by_extension_hint_or_preview() -> None:
    assert is_image_post({"url": "https://i.imgur.com/a.JPEG"})
    assert is_image_post({"url": "https://i.imgur.com/a.webp?x=1"})
    assert is_image_post({"url": "https://example.test/post", "post_hint": "image"})
    assert is_image_post(
        {
            "url": "https://example.test/post",
            "preview": {"images": [{"source": {"url": "https://preview.redd.it/p.jpg?a=1&amp;b=2"}}]},
        }
    )
    assert not is_image_post({"url": "https://example.test/post.html", "post_hint": "link"})
    assert not is_image_post({"url": "https://example.test/a.jpgx"})
    assert not is_image_post({"post_hint": "image"})


def test_self_posts_and_links_are_excluded() -> None:
    listing = _listing(
        {"url": "https://www.reddit.com/r/BLAHAJ/comments/1/text/", "post_hint": "self", "score": 900},
        _img("shark", 3),
    )
    assert select_candidate_urls(listing, min_score=50) == ["https://i.redd.it/shark.jpg"]


@pytest.mark.parametrize(
    "listing",
    [
        {},
        {"data": None},
        {"data": {"children": None}},
        {"data": {"children": []}},
        {"data": {"children": [{"data": None}, "junk", {"kind": "t3"}]}},
        [],
        None,
    ],
)
def test_malformed_or_empty_listing_raises_empty_candidate_set(listing) -> None:
    with pytest.raises(EmptyCandidateSetError):
        select_candidate_urls(listing, min_score=50)


def test_no_image_posts_raises_empty_candidate_set() -> None:
    listing = _listing({"url": "https://example.test/article", "score": 1000})
    with pytest.raises(EmptyCandidateSetError):
        select_candidate_urls(listing, min_score=50)


def test_guess_content_type_from_url() -> None:
    assert guess_content_type_from_url("https://i.redd.it/a.jpg") == "image/jpeg"
    assert guess_content_type_from_url("https://i.redd.it/a.JPEG?x=1") == "image/jpeg"
    assert guess_content_type_from_url("https://i.redd.it/a.png") == "image/png"
    assert guess_content_type_from_url("https://i.redd.it/a.gif") == "image/gif"
    assert guess_content_type_from_url("https://i.redd.it/a.webp") == "image/webp"
    assert guess_content_type_from_url("https://i.redd.it/a") is None
