"""Async HTTP client for the blog generation and review services."""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping
from urllib.parse import quote

import httpx

from .errors import LocalValidationError, RemoteServiceError

LOGGER = logging.getLogger(__name__)

ANALYZE_PATH = "/blogs/generate/analyze"
GENERATE_PATH = "/blogs/generate"
REVIEW_PATH = "/blogs/review"


def review_path(content_id: str | None = None) -> str:
    if content_id:
        return f"/blogs/{quote(str(content_id), safe='')}/review"
    return REVIEW_PATH


def apply_review_path(content_id: str) -> str:
    return f"/blogs/{quote(str(content_id), safe='')}/apply-review"


def restore_version_path(content_id: str, version: int) -> str:
    return f"/blogs/{quote(str(content_id), safe='')}/versions/{int(version)}/restore"


@dataclass(slots=True)
class ClientSettings:
    """Subset of settings required to configure the API client."""

    base_url: str
    access_token: str = ""
    request_timeout: float | None = 30.0
    default_headers: Mapping[str, str] | None = None


class BlogApiClient:
    """Thin async wrapper over the blog service endpoints.

    Every method returns the ``data`` member of the service's
    ``{"message": ..., "data": ...}`` envelope. Transport and HTTP errors
    are raised as :class:`RemoteServiceError`; ``asyncio.CancelledError``
    is never caught so request tasks stay cancellable.
    """

    def __init__(
        self,
        settings: ClientSettings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or self._build_client(settings)

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Generation service
    # ------------------------------------------------------------------

    async def analyze_prompt(self, prompt: str) -> Any:
        return await self._post(ANALYZE_PATH, {"prompt": prompt})

    async def generate_blog(self, prompt: str, analysis: Mapping[str, Any] | None = None) -> Any:
        body: Dict[str, Any] = {"prompt": prompt}
        if analysis is not None:
            body["analysis"] = dict(analysis)
        return await self._post(GENERATE_PATH, body)

    # ------------------------------------------------------------------
    # Review service
    # ------------------------------------------------------------------

    async def review_blog(
        self,
        content_id: str | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self._post(review_path(content_id), dict(payload or {}))

    async def apply_review(self, content_id: str, payload: Mapping[str, Any]) -> Any:
        return await self._post(apply_review_path(content_id), dict(payload))

    async def restore_version(self, content_id: str, version: int) -> Any:
        if isinstance(version, bool) or not isinstance(version, int):
            raise LocalValidationError(
                message=f"Version must be an integer, got {version!r}",
                parameter="version",
            )
        return await self._post(restore_version_path(content_id, version), None)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _post(self, path: str, body: Mapping[str, Any] | None) -> Any:
        LOGGER.debug("POST %s", path)
        try:
            if body is None:
                response = await self._client.post(path)
            else:
                response = await self._client.post(path, json=body)
        except httpx.TimeoutException as exc:
            raise RemoteServiceError(
                message=f"Request to {path} timed out",
                details={"path": path},
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteServiceError(
                message=f"Request to {path} failed: {exc}",
                details={"path": path},
            ) from exc

        envelope = self._decode(response, path)
        if response.is_error:
            server_message = _extract_message(envelope)
            LOGGER.debug(
                "POST %s failed: status=%s, message=%s",
                path,
                response.status_code,
                server_message,
            )
            raise RemoteServiceError(
                message=server_message or f"{path} returned HTTP {response.status_code}",
                details={"path": path},
                status_code=response.status_code,
                server_message=server_message,
            )

        if isinstance(envelope, Mapping) and "data" in envelope:
            return envelope["data"]
        return envelope

    @staticmethod
    def _decode(response: httpx.Response, path: str) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            if response.is_error:
                return None
            raise RemoteServiceError(
                message=f"{path} returned a non-JSON body",
                details={"path": path},
                status_code=response.status_code,
            ) from exc

    def _build_client(self, settings: ClientSettings) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if settings.default_headers:
            headers.update(settings.default_headers)
        if settings.access_token:
            headers["Authorization"] = f"Bearer {settings.access_token}"
        return httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            headers=headers,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client to release network resources."""

        close = getattr(self._client, "aclose", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result


def _extract_message(envelope: Any) -> str | None:
    if isinstance(envelope, Mapping):
        message = envelope.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


__all__ = [
    "BlogApiClient",
    "ClientSettings",
    "review_path",
    "apply_review_path",
    "restore_version_path",
]
