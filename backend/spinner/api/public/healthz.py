from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from spinner.core.errors import ErrorCode, error_body
from spinner.core.request_id import get_or_create_request_id, set_request_id_header, set_request_id_on_state
from spinner.core.spinner import ImageSpinner

router = APIRouter()


def _local_cache_status(spinner: ImageSpinner) -> dict[str, Any]:
    current = spinner.local.get()
    if current is None:
        return {"present": False, "fresh": False, "age_s": None}
    now = spinner.local.now()
    return {
        "present": True,
        "fresh": current.is_fresh(now=now, ttl_s=spinner.local.ttl_s),
        "age_s": round(current.age_s(now=now), 3),
    }


@router.get("/healthz")
async def healthz(request: Request) -> Any:
    rid = get_or_create_request_id(request)
    set_request_id_on_state(request, rid)

    spinner: ImageSpinner | None = getattr(request.app.state, "spinner", None)
    if spinner is None:
        resp = JSONResponse(
            status_code=503,
            content=error_body(code=ErrorCode.INTERNAL_ERROR, message="Spinner not configured", request_id=rid),
        )
        set_request_id_header(resp, rid)
        return resp

    shared_enabled = bool(spinner.shared.enabled)
    shared_ok = await spinner.shared.ping() if shared_enabled else True

    if shared_ok:
        resp = JSONResponse(
            status_code=200,
            content={
                "ok": True,
                "shared_cache": {"enabled": shared_enabled, "ok": True},
                "local_cache": _local_cache_status(spinner),
                "request_id": rid,
            },
        )
    else:
        resp = JSONResponse(
            status_code=503,
            content=error_body(
                code=ErrorCode.SHARED_CACHE_FAILED,
                message="Shared cache unavailable",
                request_id=rid,
                details={"shared_cache": {"enabled": True, "ok": False}},
            ),
        )

    set_request_id_header(resp, rid)
    return resp
