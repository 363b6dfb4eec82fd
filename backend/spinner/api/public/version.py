from __future__ import annotations

import os
from importlib import metadata
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from spinner.cache.local import CACHE_TTL_S
from spinner.core.request_id import get_or_create_request_id, set_request_id_header, set_request_id_on_state
from spinner.reddit.listing import REDDIT_LIST_URL

router = APIRouter()

DISTRIBUTION_NAME = "blahaj-spinner"


def package_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return "dev"


@router.get("/version")
async def version(request: Request) -> Any:
    rid = get_or_create_request_id(request)
    set_request_id_on_state(request, rid)

    # APP_VERSION overrides the installed distribution version.
    app_version = os.environ.get("APP_VERSION", "").strip() or package_version()
    resp = JSONResponse(
        status_code=200,
        content={
            "ok": True,
            "version": app_version,
            "build_time": os.environ.get("APP_BUILD_TIME", "").strip(),
            "git_commit": os.environ.get("APP_COMMIT", "").strip(),
            "feed": REDDIT_LIST_URL,
            "cache_ttl_s": CACHE_TTL_S,
            "request_id": rid,
        },
    )
    set_request_id_header(resp, rid)
    return resp
