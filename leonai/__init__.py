"""leonai
======

Drive Leonardo.ai's image-to-video ("motion") generation from Python,
using the same internal endpoints the web app uses.

One call to :meth:`MotionResource.create` goes through these stages in order:

1. **Authenticate**: exchange the browser session cookie for a short-lived
   bearer token and check that it belongs to the expected account.
2. **Upload**: request a signed storage slot and post the source image to it.
3. **Submit**: queue a motion generation for the uploaded image.
4. **Poll**: wait on a cheap status query until the job finishes, then on the
   generation feed until the video URL shows up.

Quick start::

    from leonai import FileCookieStore, Leonardo

    with Leonardo(cookie_store=FileCookieStore("cookie.txt")) as client:
        result = client.motion.create("cat.png", motion_strength=5)
        client.download(result.url, "cat.mp4")

Every request is spaced by a rate limiter and retried on transient failures
(timeouts, 429/502/503/504, GraphQL errors). An expired bearer token is
renewed transparently.

Exceptions
----------

All errors inherit from :class:`LeonardoError`. Errors raised while a job is
in flight carry ``phase`` and ``generation_id`` so a submitted job can still
be looked up by hand.
"""

from .client import Leonardo
from ._clock import CancelToken, Clock
from .cookies import CookieStore, FileCookieStore
from .exceptions import (
    APIError,
    AuthError,
    CancellationError,
    DecodeError,
    GenerationFailedError,
    GenerationNotFoundError,
    IdentityMismatchError,
    LeonardoError,
    MissingFieldError,
    NoGenerationsError,
    StatusCodeError,
    SubmissionError,
    TransportError,
    UnsupportedFormatError,
)
from .models import GenerationJob, JobState, MotionResult
from .resources import MotionResource

__version__ = "0.1.0"
__all__ = [
    "Leonardo",
    "MotionResource",
    "MotionResult",
    "GenerationJob",
    "JobState",
    "CancelToken",
    "Clock",
    "CookieStore",
    "FileCookieStore",
    "LeonardoError",
    "TransportError",
    "StatusCodeError",
    "APIError",
    "DecodeError",
    "AuthError",
    "IdentityMismatchError",
    "UnsupportedFormatError",
    "SubmissionError",
    "GenerationFailedError",
    "NoGenerationsError",
    "GenerationNotFoundError",
    "MissingFieldError",
    "CancellationError",
]
