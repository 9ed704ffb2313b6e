from __future__ import annotations

import base64
import binascii
import dataclasses
import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from ._clock import CancelToken, Clock
from .exceptions import AuthError, IdentityMismatchError
from .models import SessionDescriptor

logger = logging.getLogger("leonai")

_HASURA_CLAIMS = "https://hasura.io/jwt/claims"
_HASURA_USER_ID = "x-hasura-user-id"

# Share of the remaining token lifetime we are willing to use.
_LIFETIME_RATIO = 0.9


@dataclass(frozen=True)
class Session:
    bearer_token: str
    expires_at: datetime
    user_id: Optional[str] = None


@dataclass(frozen=True)
class Claims:
    subject: str
    user_id: str


def decode_claims(token: str) -> Claims:
    """Decode the subject and Hasura user id from a bearer token.

    The signature is not verified; the claims are only used to cross-check
    the account the cookie belongs to.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise AuthError("invalid access token")
    segment = parts[1]
    try:
        payload = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
        outer = json.loads(payload)
        # The Hasura claims block is a JSON document embedded as a string.
        nested = outer.get(_HASURA_CLAIMS) or "{}"
        if isinstance(nested, str):
            nested = json.loads(nested)
        subject = outer.get("sub") or ""
        user_id = nested.get(_HASURA_USER_ID) or ""
    except (binascii.Error, ValueError, AttributeError) as exc:
        raise AuthError(f"couldn't decode access token: {exc}") from exc

    if not user_id:
        raise AuthError("empty hasura user id")
    if not subject:
        raise AuthError("empty sub")
    return Claims(subject=subject, user_id=user_id)


class TokenManager:
    """Owns the bearer token and its renewal.

    *fetch_session* retrieves a fresh :class:`SessionDescriptor` and
    *lookup_user* resolves a token subject to the canonical user id. Both are
    supplied by the client so this class never touches the network itself.
    """

    def __init__(
        self,
        fetch_session: Callable[[CancelToken], SessionDescriptor],
        lookup_user: Callable[[CancelToken, str], str],
        clock: Optional[Clock] = None,
    ):
        self._fetch_session = fetch_session
        self._lookup_user = lookup_user
        self._clock = clock or Clock()
        self._session: Session | None = None
        self._lock = threading.Lock()
        self._identity_lock = threading.Lock()

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def bearer_token(self) -> str:
        return self._session.bearer_token if self._session else ""

    @property
    def user_id(self) -> str | None:
        return self._session.user_id if self._session else None

    def is_valid(self) -> bool:
        session = self._session
        return (
            session is not None
            and bool(session.bearer_token)
            and self._clock.now() < session.expires_at
        )

    def ensure_authenticated(self, cancel: CancelToken) -> None:
        """Make sure a valid token is held and the account has been verified."""
        self.ensure_token(cancel)
        if self.user_id is None:
            self._establish_identity(cancel)

    def ensure_token(self, cancel: CancelToken) -> None:
        with self._lock:
            if self.is_valid():
                return
            self._refresh(cancel)

    def renew(self, cancel: CancelToken, rejected: Optional[str] = None) -> None:
        """Discard the current token and fetch a new one.

        When *rejected* is given and another caller has already replaced that
        token with a valid one, nothing is fetched.
        """
        with self._lock:
            if rejected is not None and self.bearer_token != rejected and self.is_valid():
                logger.debug("bearer token already renewed")
                return
            self._refresh(cancel)

    def _refresh(self, cancel: CancelToken) -> None:
        descriptor = self._fetch_session(cancel)
        if not descriptor.access_token:
            raise AuthError("empty access token")

        now = self._clock.now()
        stated = datetime.fromtimestamp(descriptor.access_token_expiry, tz=timezone.utc)
        expires_at = now + (stated - now) * _LIFETIME_RATIO

        if self._session is None:
            self._session = Session(bearer_token=descriptor.access_token, expires_at=expires_at)
        else:
            self._session = dataclasses.replace(
                self._session, bearer_token=descriptor.access_token, expires_at=expires_at
            )
        logger.debug("bearer token renewed, valid until %s", expires_at.isoformat())

    def _establish_identity(self, cancel: CancelToken) -> None:
        with self._identity_lock:
            if self.user_id is not None:
                return
            claims = decode_claims(self.bearer_token)
            resolved = self._lookup_user(cancel, claims.subject)
            if resolved != claims.user_id:
                raise IdentityMismatchError(claimed=claims.user_id, resolved=resolved)
            with self._lock:
                assert self._session is not None
                self._session = dataclasses.replace(self._session, user_id=resolved)
            logger.info("authenticated as user %s", resolved)
