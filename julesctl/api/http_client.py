from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..config import DEFAULT_BASE_URL, JulesConfig
from ..errors import HttpError, NetworkError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Goog-Api-Key"


def build_url(base_url: str, path: str) -> str:
    base = base_url.strip().rstrip("/")
    return f"{base}/{path.lstrip('/')}"


def _body_snippet(text: str, limit: int = 240) -> str:
    snippet = text.strip()
    if len(snippet) > limit:
        return f"{snippet[:limit]}..."
    return snippet


class JulesClient:
    """Single-shot JSON requests against the Jules API.

    Every request carries the API key header. Failures are never retried:
    a non-2xx response raises :class:`HttpError`, a transport failure raises
    :class:`NetworkError`.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self._api_key = api_key
        self._client = httpx.Client(timeout=timeout_s, transport=transport)

    @classmethod
    def from_config(
        cls, config: JulesConfig, *, transport: httpx.BaseTransport | None = None
    ) -> JulesClient:
        return cls(
            config.require_api_key(),
            base_url=config.base_url,
            timeout_s=float(config.timeout_s),
            transport=transport,
        )

    def __enter__(self) -> JulesClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _headers(self, has_body: bool) -> dict[str, str]:
        headers = {"Accept": "application/json", API_KEY_HEADER: self._api_key}
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    def request(
        self, path: str, method: str = "GET", body: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        url = build_url(self.base_url, path)
        content = None
        if body is not None:
            content = json.dumps(body, ensure_ascii=False).encode("utf-8")
        try:
            response = self._client.request(
                method, url, content=content, headers=self._headers(content is not None)
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "jules request failed: %s",
                exc,
                extra={"method": method, "path": path, "status": None},
            )
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

        if not response.is_success:
            body_text = response.text
            logger.warning(
                "jules request returned %s",
                response.status_code,
                extra={"method": method, "path": path, "status": response.status_code},
            )
            raise HttpError(response.status_code, response.reason_phrase, body_text)

        raw = response.content
        if not raw or not raw.strip():
            return {}
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise HttpError(
                response.status_code,
                "non_json_response",
                _body_snippet(raw.decode("utf-8", errors="replace")),
            ) from exc
        if not isinstance(payload, dict):
            raise HttpError(
                response.status_code,
                f"unexpected_json_type: {type(payload).__name__}",
            )
        return payload

    def get(self, path: str) -> dict[str, Any]:
        return self.request(path, "GET")

    def post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        return self.request(path, "POST", body)
