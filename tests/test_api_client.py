"""Tests for the async blog service HTTP client."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from draftdesk.services.api_client import (
    BlogApiClient,
    ClientSettings,
    apply_review_path,
    restore_version_path,
    review_path,
)
from draftdesk.services.errors import LocalValidationError, RemoteServiceError

BASE_URL = "https://api.example.com/api/v1"


class _Recorder:
    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []
        self._responder = responder

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    def body(self, index: int = -1) -> Any:
        content = self.requests[index].content
        return json.loads(content) if content else None


def _make_client(
    responder: Callable[[httpx.Request], httpx.Response],
    *,
    token: str = "secret-token",
) -> tuple[BlogApiClient, _Recorder]:
    recorder = _Recorder(responder)
    settings = ClientSettings(base_url=BASE_URL, access_token=token)
    http = httpx.AsyncClient(
        base_url=BASE_URL,
        transport=httpx.MockTransport(recorder),
        headers={"Authorization": f"Bearer {token}"},
    )
    return BlogApiClient(settings, client=http), recorder


def _ok(data: Any) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(200, json={"message": "ok", "data": data})


def test_path_helpers() -> None:
    assert review_path() == "/blogs/review"
    assert review_path("abc") == "/blogs/abc/review"
    assert apply_review_path("a/b") == "/blogs/a%2Fb/apply-review"
    assert restore_version_path("abc", 3) == "/blogs/abc/versions/3/restore"


@pytest.mark.asyncio
async def test_analyze_posts_prompt_and_unwraps_envelope() -> None:
    client, recorder = _make_client(_ok({"topic": "cats"}))

    result = await client.analyze_prompt("write about cats")

    assert result == {"topic": "cats"}
    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/api/v1/blogs/generate/analyze"
    assert recorder.body() == {"prompt": "write about cats"}
    assert request.headers["Authorization"] == "Bearer secret-token"


@pytest.mark.asyncio
async def test_generate_sends_analysis_only_when_given() -> None:
    client, recorder = _make_client(_ok({"title": "Cats"}))

    await client.generate_blog("cats")
    await client.generate_blog("cats", {"topic": "cats"})

    assert recorder.body(0) == {"prompt": "cats"}
    assert recorder.body(1) == {"prompt": "cats", "analysis": {"topic": "cats"}}


@pytest.mark.asyncio
async def test_review_routes_by_content_id() -> None:
    client, recorder = _make_client(_ok({"overall_score": 70}))

    await client.review_blog("blog-1")
    await client.review_blog(None, {"title": "T", "content": "C"})

    assert recorder.requests[0].url.path == "/api/v1/blogs/blog-1/review"
    assert recorder.body(0) == {}
    assert recorder.requests[1].url.path == "/api/v1/blogs/review"
    assert recorder.body(1) == {"title": "T", "content": "C"}


@pytest.mark.asyncio
async def test_apply_review_and_restore_version_paths() -> None:
    client, recorder = _make_client(_ok({"id": "blog-1"}))

    await client.apply_review("blog-1", {"suggestions": ["0", "2"]})
    await client.restore_version("blog-1", 5)

    assert recorder.requests[0].url.path == "/api/v1/blogs/blog-1/apply-review"
    assert recorder.body(0) == {"suggestions": ["0", "2"]}
    assert recorder.requests[1].url.path == "/api/v1/blogs/blog-1/versions/5/restore"


@pytest.mark.asyncio
async def test_restore_version_rejects_non_integer_before_request() -> None:
    client, recorder = _make_client(_ok(None))

    with pytest.raises(LocalValidationError):
        await client.restore_version("blog-1", "5")  # type: ignore[arg-type]

    assert recorder.requests == []


@pytest.mark.asyncio
async def test_error_status_carries_server_message() -> None:
    client, _ = _make_client(
        lambda request: httpx.Response(422, json={"message": "Prompt is too short", "data": None})
    )

    with pytest.raises(RemoteServiceError) as excinfo:
        await client.analyze_prompt("hi")

    error = excinfo.value
    assert error.status_code == 422
    assert error.server_message == "Prompt is too short"
    assert error.is_network_error is False


@pytest.mark.asyncio
async def test_error_status_without_json_body() -> None:
    client, _ = _make_client(lambda request: httpx.Response(502, text="Bad gateway"))

    with pytest.raises(RemoteServiceError) as excinfo:
        await client.generate_blog("cats")

    assert excinfo.value.status_code == 502
    assert excinfo.value.server_message is None


@pytest.mark.asyncio
async def test_transport_failure_is_network_error() -> None:
    def _raise(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = _make_client(_raise)

    with pytest.raises(RemoteServiceError) as excinfo:
        await client.analyze_prompt("cats")

    assert excinfo.value.is_network_error is True


@pytest.mark.asyncio
async def test_timeout_is_reported() -> None:
    def _timeout(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    client, _ = _make_client(_timeout)

    with pytest.raises(RemoteServiceError, match="timed out"):
        await client.analyze_prompt("cats")


@pytest.mark.asyncio
async def test_non_json_success_body_is_rejected() -> None:
    client, _ = _make_client(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(RemoteServiceError):
        await client.analyze_prompt("cats")


@pytest.mark.asyncio
async def test_default_client_sets_headers() -> None:
    client = BlogApiClient(
        ClientSettings(base_url=BASE_URL, access_token="tok", default_headers={"X-Client": "cli"})
    )
    try:
        http = client._client
        assert http.headers["Authorization"] == "Bearer tok"
        assert http.headers["X-Client"] == "cli"
        assert str(http.base_url).rstrip("/") == BASE_URL
    finally:
        await client.aclose()
