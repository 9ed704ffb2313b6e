"""Internal HTTP transport, not part of the public API."""
from __future__ import annotations

import json
import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, NamedTuple, Optional

import httpx

from ._clock import CancelToken
from ._ratelimit import RateLimiter
from .exceptions import APIError, DecodeError, StatusCodeError, TransportError

if TYPE_CHECKING:
    from .auth import TokenManager

logger = logging.getLogger("leonai")

APP_URL = "https://app.leonardo.ai"
API_URL = "https://api.leonardo.ai/v1"

_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)
_SEC_CH_UA = '"Not A(Brand";v="99", "Google Chrome";v="121", "Chromium";v="121"'
_BOUNDARY_CHARS = string.ascii_letters + string.digits
_LOG_LIMIT = 100


def _truncate(text: str, limit: int = _LOG_LIMIT) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def webkit_boundary(length: int = 16) -> str:
    suffix = "".join(secrets.choice(_BOUNDARY_CHARS) for _ in range(length))
    return f"----WebKitFormBoundary{suffix}"


@dataclass
class MultipartForm:
    """A signed-policy upload: form fields in order, then one ``file`` part.

    httpx does the encoding. The fields keep their order and the boundary
    is taken from :attr:`content_type`.
    """

    fields: list[tuple[str, str]]
    filename: str
    content: bytes
    mime_type: str = "application/octet-stream"
    boundary: str = ""

    def __post_init__(self) -> None:
        if not self.boundary:
            self.boundary = webkit_boundary()

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    @property
    def data(self) -> dict[str, str]:
        return dict(self.fields)

    @property
    def files(self) -> dict[str, tuple[str, bytes, str]]:
        return {"file": (self.filename, self.content, self.mime_type)}


class Reply(NamedTuple):
    raw: bytes
    value: Any


def resolve_url(path: str) -> str:
    if path.startswith("http"):
        return path
    if path.startswith("api"):
        return f"{APP_URL}/{path}"
    return f"{API_URL}/{path}"


def requires_bearer(path: str) -> bool:
    return not path.startswith("http") and not path.startswith("api")


def build_headers(path: str, content_type: str, token: str = "") -> dict[str, str]:
    """Browser header profile for *path*. Requests without it are rejected as bot traffic."""
    if content_type.startswith("multipart/form-data"):
        return {
            "Accept": "*",
            "Accept-Language": "en-US,en;q=0.9",
            "Connection": "keep-alive",
            "Content-Type": content_type,
            "Origin": APP_URL,
            "Referer": f"{APP_URL}/",
            "Sec-Fetch-Dest": "empty",
            "Sec-Fetch-Mode": "cors",
            "User-Agent": _USER_AGENT,
            "sec-ch-ua": _SEC_CH_UA,
            "sec-ch-ua-mobile": "?0",
            "sec-ch-ua-platform": '"Windows"',
        }
    if path.startswith("api"):
        return {
            "Authority": "app.leonardo.ai",
            "Accept": "*/*",
            "Accept-Language": "en-US,en;q=0.9",
            "Content-Type": content_type,
            "Origin": APP_URL,
            "Referer": f"{APP_URL}/",
            "sec-ch-ua": _SEC_CH_UA,
            "sec-ch-ua-mobile": "?0",
            "sec-ch-ua-platform": '"Windows"',
            "sec-fetch-dest": "empty",
            "sec-fetch-mode": "cors",
            "sec-fetch-site": "same-origin",
            "user-agent": _USER_AGENT,
        }
    return {
        "authority": "api.leonardo.ai",
        "accept": "*/*",
        "accept-language": "en-US,en;q=0.9",
        "authorization": f"Bearer {token}",
        "content-type": content_type,
        "origin": APP_URL,
        "referer": f"{APP_URL}/",
        "sec-fetch-dest": "empty",
        "sec-fetch-mode": "cors",
        "sec-fetch-site": "same-site",
        "user-agent": _USER_AGENT,
        "sec-ch-ua": _SEC_CH_UA,
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
    }


class Transport:
    """Performs exactly one HTTP exchange per :meth:`send`."""

    def __init__(
        self,
        http_client: httpx.Client,
        limiter: RateLimiter,
        tokens: Optional["TokenManager"] = None,
        debug_dir: Optional[Path] = None,
    ):
        self._client = http_client
        self._limiter = limiter
        self._tokens = tokens
        self._debug_dir = Path(debug_dir) if debug_dir is not None else Path("logs")

    def send(
        self,
        cancel: CancelToken,
        method: str,
        path: str,
        body: Any = None,
        target: Optional[Callable[[Any], Any]] = None,
    ) -> Reply:
        content_type = "application/json"
        content: bytes | None = None
        data: dict[str, str] | None = None
        files: dict[str, Any] | None = None
        if isinstance(body, MultipartForm):
            data = body.data
            files = body.files
            content_type = body.content_type
        elif body is not None:
            content = json.dumps(body).encode()

        url = resolve_url(path)
        if not isinstance(body, MultipartForm):
            logger.debug("%s %s  body=%s", method, path, _truncate((content or b"").decode()))

        with self._limiter.acquire(cancel):
            token = self._tokens.bearer_token if self._tokens is not None else ""
            headers = build_headers(path, content_type, token)
            try:
                response = self._client.request(
                    method, url, content=content, data=data, files=files, headers=headers
                )
            except httpx.TimeoutException as exc:
                raise TransportError(f"{method} {url} timed out: {exc}", timeout=True) from exc
            except httpx.TransportError as exc:
                raise TransportError(f"couldn't {method} {url}: {exc}") from exc

        raw = response.content
        logger.debug("← %s %s %s", response.status_code, path, _truncate(response.text))

        if not response.is_success:
            self._dump(raw)
            snippet = _truncate(response.text)
            raise StatusCodeError(
                f"{method} {url} returned {response.status_code} ({snippet})",
                status_code=response.status_code,
                detail=response.text,
            )

        if target is None:
            return Reply(raw, None)

        try:
            payload = json.loads(raw)
        except ValueError as exc:
            self._dump(raw)
            raise DecodeError(f"couldn't decode response of {method} {path}: {exc}") from exc

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            self._dump(raw)
            raise self._api_error(errors, token)

        try:
            value = target(payload)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            self._dump(raw)
            raise DecodeError(
                f"couldn't decode response of {method} {path}: {exc!r}", detail=_truncate(response.text)
            ) from exc
        return Reply(raw, value)

    @staticmethod
    def _api_error(errors: list[Any], token: str) -> APIError:
        messages = []
        codes = []
        for err in errors:
            err = err if isinstance(err, dict) else {}
            code = (err.get("extensions") or {}).get("code") or ""
            codes.append(code)
            messages.append(f"{err.get('message', '')} ({code})")
        return APIError(", ".join(messages), code=codes[0], token=token)

    def _dump(self, raw: bytes) -> None:
        path = self._debug_dir / f"debug_{datetime.now():%Y%m%d_%H%M%S}.json"
        try:
            self._debug_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(raw)
        except OSError as exc:
            logger.warning("couldn't write debug dump %s: %s", path, exc)
