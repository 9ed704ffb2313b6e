from __future__ import annotations


class LeonardoError(Exception):
    """Base exception for all leonai errors.

    Errors escaping a motion job are annotated with the lifecycle ``phase``,
    the ``generation_id`` (once the backend has issued one) and the last raw
    backend response, so a failed job can be inspected without re-running it.
    """

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.detail = detail
        self.phase: str | None = None
        self.generation_id: str | None = None
        self.last_response: bytes | None = None

    def __str__(self) -> str:
        message = super().__str__()
        context = []
        if self.phase:
            context.append(f"phase={self.phase}")
        if self.generation_id:
            context.append(f"generation_id={self.generation_id}")
        if context:
            message = f"{message} [{' '.join(context)}]"
        return message


class TransportError(LeonardoError):
    """The request never produced an HTTP response."""

    def __init__(self, message: str, timeout: bool = False):
        super().__init__(message)
        self.timeout = timeout


class StatusCodeError(LeonardoError):
    """The backend answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int, detail: str | None = None):
        super().__init__(message, detail=detail)
        self.status_code = status_code


class APIError(LeonardoError):
    """A 2xx GraphQL response carried a non-empty ``errors`` list.

    ``code`` is ``errors[0].extensions.code``. ``token`` is the bearer token
    the rejected request carried.
    """

    def __init__(self, message: str, code: str, token: str | None = None):
        super().__init__(message)
        self.code = code
        self.token = token


class DecodeError(LeonardoError):
    """The response body did not match the expected shape."""


class AuthError(LeonardoError):
    """The session cookie or the token it yields is unusable."""


class IdentityMismatchError(AuthError):
    """Token claims and the user lookup disagree about who we are."""

    def __init__(self, claimed: str, resolved: str):
        super().__init__(f"user id mismatch: {resolved} != {claimed}")
        self.claimed = claimed
        self.resolved = resolved


class UnsupportedFormatError(LeonardoError):
    """The source image is not a .jpg, .jpeg or .png file."""

    def __init__(self, extension: str):
        super().__init__(f"unsupported file extension: {extension!r}")
        self.extension = extension


class SubmissionError(LeonardoError):
    """The generation job was not accepted."""


class GenerationFailedError(LeonardoError):
    """The backend reported a terminal status other than COMPLETE."""

    def __init__(self, message: str, status: str):
        super().__init__(message)
        self.status = status


class NoGenerationsError(LeonardoError):
    """The generation feed came back empty."""


class GenerationNotFoundError(NoGenerationsError):
    """The generation feed does not list the submitted job."""

    def __init__(self, generation_id: str):
        super().__init__(f"couldn't find generation {generation_id}")
        self.generation_id = generation_id


class MissingFieldError(LeonardoError):
    """A field needed to resolve the result is absent or empty."""

    def __init__(self, field: str):
        super().__init__(f"missing field: {field}")
        self.field = field


class CancellationError(LeonardoError):
    """The caller cancelled the operation while it was waiting."""
