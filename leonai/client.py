from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx

from . import queries
from ._clock import CancelToken, Clock
from ._http import APP_URL, Reply, Transport
from ._ratelimit import RateLimiter
from ._retry import RetryPolicy
from .auth import TokenManager
from .cookies import CookieStore, dump_cookies, load_cookies
from .exceptions import AuthError
from .models import SessionDescriptor, UserLookup
from .resources.motion import MotionResource

logger = logging.getLogger("leonai")

_COOKIE_DOMAIN = "app.leonardo.ai"
_DEFAULT_TIMEOUT = 120.0


class Leonardo:
    """Top-level Leonardo.ai web client.

    Authenticates with a browser session cookie, then drives the internal
    GraphQL API the web app uses. Always pair :meth:`start` with
    :meth:`close` so a renewed cookie is written back to the store::

        with Leonardo(cookie_store=FileCookieStore("cookie.txt")) as client:
            result = client.motion.create("cat.png", motion_strength=5)
            client.download(result.url, "cat.mp4")

    Every request goes through one rate limiter, so a single client may be
    shared across threads running independent jobs.
    """

    motion: MotionResource
    """Entry point for image-to-video generations. See :class:`MotionResource`."""

    def __init__(
        self,
        cookie_store: CookieStore,
        wait: Optional[float] = None,
        timeout: float = _DEFAULT_TIMEOUT,
        proxy: Optional[str] = None,
        debug: bool = False,
        debug_dir: Union[str, Path] = "logs",
        http_client: Optional[httpx.Client] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            cookie_store: Source of the browser session cookie. It is read
                by :meth:`start` and written back by :meth:`close`.
            wait: Minimum seconds between two requests. Defaults to 1.
            timeout: HTTP timeout in seconds for a single request.
                Defaults to 120.
            proxy: Optional proxy URL for all requests.
            debug: Set to ``True`` to log every request and response via
                the ``leonai`` logger.
            debug_dir: Directory receiving raw bodies of failed responses.
            http_client: Pre-configured client, mainly for tests. *timeout*
                and *proxy* are ignored when given.
            clock: Time source used for token expiry and every wait.
        """
        if debug:
            logging.getLogger("leonai").setLevel(logging.DEBUG)
            if not logging.getLogger("leonai").handlers:
                logging.getLogger("leonai").addHandler(logging.StreamHandler())

        self._cookie_store = cookie_store
        self._clock = clock or Clock()
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout, proxy=proxy)

        self.limiter = RateLimiter(wait, clock=self._clock)
        self.tokens = TokenManager(self._fetch_session, self._lookup_user, clock=self._clock)
        self._transport = Transport(self._http, self.limiter, self.tokens, debug_dir=Path(debug_dir))
        self._retry = RetryPolicy(self._transport, self.tokens, clock=self._clock)
        self.motion = MotionResource(self, clock=self._clock)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start(self, cancel: Optional[CancelToken] = None) -> None:
        """Load the session cookie, authenticate and verify the account.

        Raises:
            AuthError: if the cookie is empty or yields no usable token.
            IdentityMismatchError: if the token belongs to another user than
                the account lookup reports.
        """
        cancel = cancel or CancelToken()
        cookie = self._cookie_store.get_cookie()
        if not cookie:
            raise AuthError("cookie is empty")
        try:
            load_cookies(self._http.cookies, cookie, _COOKIE_DOMAIN)
        except ValueError as exc:
            raise AuthError(f"couldn't set cookie: {exc}") from exc
        self.tokens.ensure_authenticated(cancel)

    def close(self) -> None:
        """Write the (possibly refreshed) cookie back and release connections."""
        try:
            cookie = dump_cookies(self._http.cookies, _COOKIE_DOMAIN)
            if cookie:
                self._cookie_store.set_cookie(cookie)
        finally:
            if self._owns_http:
                self._http.close()

    def __enter__(self) -> "Leonardo":
        try:
            self.start()
        except BaseException:
            if self._owns_http:
                self._http.close()
            raise
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Backend calls
    # ------------------------------------------------------------------

    def request(
        self,
        cancel: CancelToken,
        method: str,
        path: str,
        body: Any = None,
        target: Optional[Callable[[Any], Any]] = None,
    ) -> Reply:
        return self._retry.call(cancel, method, path, body, target)

    def graphql(
        self,
        cancel: CancelToken,
        operation: str,
        query: str,
        variables: dict[str, Any],
        target: Callable[[Any], Any],
    ) -> Reply:
        """Run one of the fixed GraphQL operations with a fresh bearer token."""
        self.tokens.ensure_token(cancel)
        body = {"operationName": operation, "variables": variables, "query": query}
        return self._retry.call(cancel, "POST", "graphql", body, target)

    def _fetch_session(self, cancel: CancelToken) -> SessionDescriptor:
        reply = self._retry.call(cancel, "GET", "api/auth/session", None, SessionDescriptor.from_payload)
        return reply.value

    def _lookup_user(self, cancel: CancelToken, subject: str) -> str:
        reply = self.graphql(
            cancel,
            "GetUserDetails",
            queries.GET_USER_DETAILS,
            {"userSub": subject},
            UserLookup.from_payload,
        )
        users: UserLookup = reply.value
        if not users.user_ids:
            raise AuthError("no users found")
        if not users.user_ids[0]:
            raise AuthError("empty user id")
        return users.user_ids[0]

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def download(
        self,
        url: str,
        output: Union[str, Path],
        cancel: Optional[CancelToken] = None,
    ) -> Path:
        """Stream a generated video to *output* and return its path."""
        cancel = cancel or CancelToken()
        output = Path(output)
        logger.debug("downloading %s to %s", url, output)
        with self._http.stream("GET", url) as response:
            response.raise_for_status()
            with output.open("wb") as f:
                for chunk in response.iter_bytes():
                    cancel.raise_if_cancelled()
                    f.write(chunk)
        return output

    def __repr__(self) -> str:
        return f"<Leonardo app={APP_URL!r} user_id={self.tokens.user_id!r}>"
