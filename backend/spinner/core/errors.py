from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UPSTREAM_LISTING_FAILED = "UPSTREAM_LISTING_FAILED"
    EMPTY_CANDIDATE_SET = "EMPTY_CANDIDATE_SET"
    UPSTREAM_IMAGE_FAILED = "UPSTREAM_IMAGE_FAILED"
    SHARED_CACHE_FAILED = "SHARED_CACHE_FAILED"
    LIVE_FETCH_FAILED = "LIVE_FETCH_FAILED"


UNKNOWN_REQUEST_ID = "req_unknown"

_DEFAULT_MESSAGE_BY_CODE: dict[ErrorCode, str] = {
    ErrorCode.INTERNAL_ERROR: "Internal server error",
    ErrorCode.UPSTREAM_LISTING_FAILED: "Failed to fetch subreddit listing",
    ErrorCode.EMPTY_CANDIDATE_SET: "No image posts found in subreddit",
    ErrorCode.UPSTREAM_IMAGE_FAILED: "Failed to fetch image",
    ErrorCode.SHARED_CACHE_FAILED: "Shared cache unavailable",
    ErrorCode.LIVE_FETCH_FAILED: "Could not fetch image",
}


def default_message(code: ErrorCode) -> str:
    return _DEFAULT_MESSAGE_BY_CODE.get(code, "Request failed")


class SpinnerError(RuntimeError):
    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message or default_message(self.code))
        self.status_code = status_code


class UpstreamListingError(SpinnerError):
    code = ErrorCode.UPSTREAM_LISTING_FAILED


class EmptyCandidateSetError(SpinnerError):
    code = ErrorCode.EMPTY_CANDIDATE_SET


class UpstreamImageError(SpinnerError):
    code = ErrorCode.UPSTREAM_IMAGE_FAILED


class SharedCacheError(SpinnerError):
    code = ErrorCode.SHARED_CACHE_FAILED


class LiveFetchError(SpinnerError):
    """Live fetch failed and there was nothing cached to fall back on."""

    code = ErrorCode.LIVE_FETCH_FAILED


def _coerce_request_id(request_id: str | None) -> str:
    request_id = (request_id or "").strip()
    return request_id if request_id else UNKNOWN_REQUEST_ID


def _request_id_from_request(request: Any | None) -> str | None:
    if request is None:
        return None
    request_id = getattr(getattr(request, "state", None), "request_id", None)
    if request_id:
        return str(request_id)
    header = request.headers.get("X-Request-Id")
    return header.strip() if header else None


def error_body(
    *,
    code: ErrorCode,
    message: str,
    request_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "ok": False,
        "code": code.value,
        "message": str(message or "").strip() or default_message(code),
        "request_id": _coerce_request_id(request_id),
        "details": details or {},
    }


def json_error_response(
    *,
    code: ErrorCode,
    message: str,
    status_code: int,
    request: Any | None = None,
    request_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Any:
    if request_id is None:
        request_id = _request_id_from_request(request)
    from fastapi.responses import JSONResponse

    return JSONResponse(
        status_code=status_code,
        content=error_body(code=code, message=message, request_id=request_id, details=details),
    )
