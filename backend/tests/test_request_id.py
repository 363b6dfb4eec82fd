from __future__ import annotations

from types import SimpleNamespace

from fastapi import FastAPI
from fastapi.testclient import TestClient

from spinner.core.request_id import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    get_or_create_request_id,
    get_request_id_from_headers,
    new_request_id,
)


def test_new_request_id_format() -> None:
    rid = new_request_id()
    assert rid.startswith("req_")
    assert len(rid) == len("req_") + 16


def test_get_request_id_from_headers_strips_and_truncates() -> None:
    assert get_request_id_from_headers({REQUEST_ID_HEADER: " req_1 "}) == "req_1"
    assert get_request_id_from_headers({REQUEST_ID_HEADER: "   "}) is None
    assert get_request_id_from_headers({}) is None
    assert len(get_request_id_from_headers({REQUEST_ID_HEADER: "x" * 500}) or "") == 128


def test_get_or_create_request_id_prefers_state() -> None:
    req = SimpleNamespace(headers={REQUEST_ID_HEADER: "req_header"}, state=SimpleNamespace(request_id="req_state"))
    assert get_or_create_request_id(req) == "req_state"

    req = SimpleNamespace(headers={REQUEST_ID_HEADER: "req_header"}, state=SimpleNamespace())
    assert get_or_create_request_id(req) == "req_header"


def test_middleware_echoes_request_id() -> None:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/ping")
    async def ping() -> dict:
        return {"ok": True}

    client = TestClient(app)
    assert client.get("/ping", headers={REQUEST_ID_HEADER: "req_abc"}).headers[REQUEST_ID_HEADER] == "req_abc"
    assert client.get("/ping").headers[REQUEST_ID_HEADER].startswith("req_")
