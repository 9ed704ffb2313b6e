"""Shared test fixtures."""

import base64
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Union

import httpx
import pytest

from leonai import Leonardo
from leonai._clock import CancelToken, Clock

START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
GENERATION_ID = "gen-1"
UPLOAD_URL = "https://storage.example/upload"


class FakeClock(Clock):
    """Clock whose sleeps return at once and advance time."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start
        self.mono = 0.0
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.current

    def monotonic(self) -> float:
        return self.mono

    def sleep(self, seconds: float, cancel: CancelToken | None = None) -> None:
        if cancel is not None:
            cancel.raise_if_cancelled()
        self.sleeps.append(seconds)
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)
        self.mono += seconds


class MemoryCookieStore:
    def __init__(self, cookie: str = "session-token=abc") -> None:
        self.cookie = cookie
        self.saved: list[str] = []

    def get_cookie(self) -> str:
        return self.cookie

    def set_cookie(self, cookie: str) -> None:
        self.saved.append(cookie)


def make_token(subject: str = "sub-1", user_id: str = "user-1") -> str:
    def segment(data: dict[str, Any]) -> str:
        return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()

    payload = {
        "sub": subject,
        "https://hasura.io/jwt/claims": json.dumps({"x-hasura-user-id": user_id}),
    }
    return f"{segment({'alg': 'RS256'})}.{segment(payload)}.signature"


def gql(data: dict[str, Any]) -> httpx.Response:
    return httpx.Response(200, json={"data": data})


def gql_error(code: str, message: str = "boom") -> httpx.Response:
    return httpx.Response(
        200, json={"errors": [{"message": message, "extensions": {"code": code}}]}
    )


def statuses(*entries: tuple[str, str]) -> httpx.Response:
    return gql({"generations": [{"id": i, "status": s, "__typename": "generations"} for i, s in entries]})


def feed_entry(
    generation_id: str = GENERATION_ID,
    status: str = "COMPLETE",
    image_id: str = "img-1",
    mp4: str | None = "https://cdn.example/x.mp4",
) -> dict[str, Any]:
    return {
        "id": generation_id,
        "status": status,
        "prompt": "",
        "motion": True,
        "seed": 6000000000000000,
        "generated_images": [
            {
                "id": image_id,
                "url": "https://cdn.example/x.jpg",
                "motionGIFURL": None,
                "motionMP4URL": mp4,
                "likeCount": 0,
                "__typename": "generated_images",
            }
        ],
        "__typename": "generations",
    }


def feed(*entries: dict[str, Any]) -> httpx.Response:
    return gql({"generations": list(entries)})


Reply = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeBackend:
    """Scripted stand-in for the session host, the GraphQL API and storage.

    Responses queued per key are served in order; the last one repeats.
    Keys are ``session``, ``upload`` or a GraphQL operation name.
    """

    def __init__(self, clock: FakeClock, subject: str = "sub-1", user_id: str = "user-1") -> None:
        self.clock = clock
        self.calls: list[str] = []
        self.requests: list[httpx.Request] = []
        self.token = make_token(subject, user_id)
        self.scripts: dict[str, list[Reply]] = {
            "GetUserDetails": [gql({"users": [{"id": user_id, "__typename": "users"}]})],
            "CreateUploadInitImage": [
                gql(
                    {
                        "uploadInitImage": {
                            "id": "asset-1",
                            "fields": json.dumps(
                                {
                                    "key": "uploads/asset-1.png",
                                    "Policy": "policy",
                                    "X-Amz-Signature": "sig",
                                    "bucket": "bucket",
                                    "Content-Type": "image/png",
                                    "X-Amz-Algorithm": "AWS4-HMAC-SHA256",
                                    "X-Amz-Credential": "cred",
                                    "X-Amz-Date": "20260101T000000Z",
                                    "X-Amz-Security-Token": "sec",
                                }
                            ),
                            "key": "uploads/asset-1.png",
                            "url": UPLOAD_URL,
                            "__typename": "UploadInitImageOutput",
                        }
                    }
                )
            ],
            "upload": [httpx.Response(204)],
            "CreateMotionSvdGenerationJob": [
                gql({"motionSvdGenerationJob": {"apiCreditCost": 25, "generationId": GENERATION_ID}})
            ],
        }

    def session_response(self, lifetime: float = 3600) -> httpx.Response:
        expiry = self.clock.now() + timedelta(seconds=lifetime)
        return httpx.Response(
            200,
            json={
                "user": {"name": "someone", "sub": "sub-1"},
                "accessToken": self.token,
                "accessTokenExpiry": int(expiry.timestamp()),
            },
        )

    def script(self, key: str, *replies: Reply) -> None:
        self.scripts[key] = list(replies)

    def count(self, key: str) -> int:
        return self.calls.count(key)

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "app.leonardo.ai" and request.url.path == "/api/auth/session":
            key = "session"
        elif request.url.host == "api.leonardo.ai" and request.url.path == "/v1/graphql":
            key = json.loads(request.content)["operationName"]
        else:
            key = "upload"
        self.calls.append(key)
        self.requests.append(request)

        if key == "session" and key not in self.scripts:
            return self.session_response()
        queue = self.scripts.get(key)
        if not queue:
            return httpx.Response(404, text=f"nothing scripted for {key}")
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(reply):
            return reply(request)
        # Served responses are bound to their request, so hand out copies.
        return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend(clock: FakeClock) -> FakeBackend:
    return FakeBackend(clock)


@pytest.fixture
def cookie_store() -> MemoryCookieStore:
    return MemoryCookieStore()


@pytest.fixture
def client(backend, clock, cookie_store, tmp_path):
    http = httpx.Client(transport=httpx.MockTransport(backend.handler))
    leonardo = Leonardo(
        cookie_store=cookie_store,
        wait=0,
        http_client=http,
        clock=clock,
        debug_dir=tmp_path / "logs",
    )
    yield leonardo
    http.close()


@pytest.fixture
def image(tmp_path):
    path = tmp_path / "cat.png"
    path.write_bytes(b"\x89PNG fake image bytes")
    return path
