"""Response shapes consulted by the client.

Only the fields the client actually reads are typed. Everything else the
backend sends is kept untouched in ``raw`` for diagnostics, so schema drift in
unrelated fields never breaks decoding.
"""
from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from typing import Any, Optional

# Field order of the signed upload policy. The storage endpoint validates
# the multipart body against the policy, file part last.
UPLOAD_FIELD_ORDER = (
    "Content-Type",
    "bucket",
    "X-Amz-Algorithm",
    "X-Amz-Credential",
    "X-Amz-Date",
    "X-Amz-Security-Token",
    "key",
    "Policy",
    "X-Amz-Signature",
)

STATUS_PENDING = "PENDING"
STATUS_COMPLETE = "COMPLETE"
STATUS_FAILED = "FAILED"


def _data(payload: Any) -> dict[str, Any]:
    data = payload["data"]
    if not isinstance(data, dict):
        raise TypeError(f"expected an object under 'data', got {type(data).__name__}")
    return data


@dataclass(frozen=True)
class SessionDescriptor:
    """``GET api/auth/session`` response."""

    access_token: str
    access_token_expiry: int
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, payload: Any) -> "SessionDescriptor":
        return cls(
            access_token=payload.get("accessToken") or "",
            access_token_expiry=int(payload.get("accessTokenExpiry") or 0),
            raw=payload,
        )


@dataclass(frozen=True)
class UserLookup:
    user_ids: list[str]

    @classmethod
    def from_payload(cls, payload: Any) -> "UserLookup":
        users = _data(payload).get("users") or []
        return cls(user_ids=[u.get("id") or "" for u in users])


@dataclass(frozen=True)
class UploadTarget:
    """A signed direct-to-storage upload slot."""

    asset_id: str
    upload_url: str
    signed_form_fields: dict[str, str]

    @classmethod
    def from_payload(cls, payload: Any) -> "UploadTarget":
        upload = _data(payload).get("uploadInitImage") or {}
        raw_fields = upload.get("fields") or "{}"
        fields = json.loads(raw_fields)
        if not isinstance(fields, dict):
            raise TypeError("upload fields are not an object")
        return cls(
            asset_id=upload.get("id") or "",
            upload_url=upload.get("url") or "",
            signed_form_fields={k: str(v) for k, v in fields.items()},
        )

    def ordered_fields(self) -> list[tuple[str, str]]:
        return [(name, self.signed_form_fields.get(name, "")) for name in UPLOAD_FIELD_ORDER]


@dataclass(frozen=True)
class SubmittedJob:
    generation_id: str
    api_credit_cost: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "SubmittedJob":
        job = _data(payload).get("motionSvdGenerationJob") or {}
        return cls(
            generation_id=job.get("generationId") or "",
            api_credit_cost=job.get("apiCreditCost"),
        )


@dataclass(frozen=True)
class GenerationStatus:
    id: str
    status: str

    @classmethod
    def list_from_payload(cls, payload: Any) -> list["GenerationStatus"]:
        return [
            cls(id=g.get("id") or "", status=g.get("status") or "")
            for g in _data(payload).get("generations") or []
        ]


@dataclass(frozen=True)
class GeneratedImage:
    id: str
    motion_mp4_url: Optional[str]
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class Generation:
    """One entry of the generation feed."""

    id: str
    status: str
    generated_images: list[GeneratedImage]
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Generation":
        images = [
            GeneratedImage(
                id=img.get("id") or "",
                motion_mp4_url=img.get("motionMP4URL"),
                raw=img,
            )
            for img in data.get("generated_images") or []
        ]
        return cls(
            id=data.get("id") or "",
            status=data.get("status") or "",
            generated_images=images,
            raw=data,
        )

    @classmethod
    def list_from_payload(cls, payload: Any) -> list["Generation"]:
        return [cls.from_dict(g) for g in _data(payload).get("generations") or []]


class JobState(str, enum.Enum):
    CREATED = "created"
    UPLOADING = "uploading"
    SUBMITTED = "submitted"
    POLLING_STATUS = "polling_status"
    POLLING_FEED = "polling_feed"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class GenerationJob:
    """Client-side view of one backend generation.

    Never transitioned locally: each new instance is derived from a backend
    response by the step functions in :mod:`leonai.resources.motion`.
    """

    generation_id: str
    state: JobState = JobState.SUBMITTED
    status: str = STATUS_PENDING
    result_asset_id: str = ""
    result_url: str = ""
    last_response: Optional[bytes] = field(default=None, repr=False)


@dataclass(frozen=True)
class MotionResult:
    generation_id: str
    asset_id: str
    url: str
