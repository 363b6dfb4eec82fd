from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from spinner.core.errors import LiveFetchError, default_message
from spinner.core.spinner import ImageSource, ImageSpinner

router = APIRouter()

CDN_CACHE_CONTROL = "public, s-maxage=600, stale-while-revalidate=60"
CACHE_SOURCE_HEADER = "X-Cache-Source"
CACHE_STATUS_HEADER = "X-Cache-Status"


@router.get("/")
async def random_image(request: Request) -> Response:
    spinner: ImageSpinner = request.app.state.spinner

    try:
        image = await spinner.serve()
    except LiveFetchError as exc:
        return PlainTextResponse(default_message(exc.code), status_code=502)

    headers: dict[str, str] = {"Content-Type": image.content_type}
    if image.source == ImageSource.STALE:
        headers[CACHE_STATUS_HEADER] = "stale"
    else:
        headers["Cache-Control"] = CDN_CACHE_CONTROL
        if image.source == ImageSource.SHARED:
            headers[CACHE_SOURCE_HEADER] = "shared"

    return Response(content=image.data, status_code=200, headers=headers)
