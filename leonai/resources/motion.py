from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from .. import queries
from .._clock import CancelToken, Clock
from .._http import MultipartForm
from ..exceptions import (
    AuthError,
    GenerationFailedError,
    GenerationNotFoundError,
    LeonardoError,
    MissingFieldError,
    NoGenerationsError,
    SubmissionError,
    UnsupportedFormatError,
)
from ..models import (
    STATUS_COMPLETE,
    STATUS_FAILED,
    STATUS_PENDING,
    Generation,
    GenerationJob,
    GenerationStatus,
    JobState,
    MotionResult,
    SubmittedJob,
    UploadTarget,
)

if TYPE_CHECKING:
    from ..client import Leonardo

logger = logging.getLogger("leonai")

DEFAULT_MOTION_STRENGTH = 5
STATUS_POLL_INTERVAL = 5.0
FEED_FIRST_WAIT = 1.0
FEED_POLL_INTERVAL = 5.0
FEED_PAGE_SIZE = 10

_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
}


def mime_type_for(path: Union[str, Path]) -> tuple[str, str]:
    """Return ``(extension, mime_type)`` for a supported source image."""
    extension = Path(path).suffix.lstrip(".").lower()
    try:
        return extension, _MIME_TYPES[extension]
    except KeyError:
        raise UnsupportedFormatError(extension) from None


# ----------------------------------------------------------------------
# Poll steps: (job, backend response) -> next job, or raise when terminal
# ----------------------------------------------------------------------


def advance_status(
    job: GenerationJob,
    statuses: list[GenerationStatus],
    raw: Optional[bytes] = None,
) -> GenerationJob:
    """Evaluate one status-only poll.

    The query only returns generations already in COMPLETE or FAILED, so an
    empty answer means the job is still running.
    """
    match = next((s for s in statuses if s.id == job.generation_id), None)
    if match is None:
        return dataclasses.replace(job, state=JobState.POLLING_STATUS, last_response=raw)
    if match.status != STATUS_COMPLETE:
        raise GenerationFailedError(f"status generation {match.status}", status=match.status)
    return dataclasses.replace(
        job, state=JobState.POLLING_FEED, status=match.status, last_response=raw
    )


def advance_feed(
    job: GenerationJob,
    generations: list[Generation],
    raw: Optional[bytes] = None,
) -> GenerationJob:
    """Evaluate one feed poll; resolves the job once its entry is COMPLETE."""
    if not generations:
        raise NoGenerationsError("no generations found")

    entry = next((g for g in generations if g.id == job.generation_id), None)
    if entry is None:
        raise GenerationNotFoundError(job.generation_id)
    if entry.status == STATUS_PENDING:
        return dataclasses.replace(
            job, state=JobState.POLLING_FEED, status=entry.status, last_response=raw
        )
    if entry.status != STATUS_COMPLETE:
        raise GenerationFailedError(f"feed generation {entry.status}", status=entry.status)

    if not entry.generated_images:
        raise MissingFieldError("generated_images")
    image = entry.generated_images[0]
    if not image.motion_mp4_url:
        raise MissingFieldError("motionMP4URL")
    if not image.id:
        raise MissingFieldError("generated_images.id")
    return dataclasses.replace(
        job,
        state=JobState.RESOLVED,
        status=entry.status,
        result_asset_id=image.id,
        result_url=image.motion_mp4_url,
        last_response=raw,
    )


@dataclass
class _Progress:
    state: JobState = JobState.CREATED
    job: Optional[GenerationJob] = None


class MotionResource:
    """Accessed via client.motion: turns a still image into a motion video."""

    def __init__(self, client: "Leonardo", clock: Optional[Clock] = None):
        self._client = client
        self._clock = clock or Clock()

    def create(
        self,
        image_path: Union[str, Path],
        motion_strength: Optional[int] = None,
        cancel: Optional[CancelToken] = None,
    ) -> MotionResult:
        """Upload *image_path*, animate it and wait for the video.

        Blocks until the backend has rendered the video, polling every few
        seconds. Use *cancel* to abort from another thread.

        Args:
            image_path: Local ``.jpg``, ``.jpeg`` or ``.png`` file.
            motion_strength: How much the image moves. Defaults to 5.
            cancel: Token that aborts every pending wait when cancelled.

        Returns:
            A :class:`MotionResult` with the generation id, the generated
            asset id and the MP4 URL.

        Raises:
            UnsupportedFormatError: before any request, for other file types.
            FileNotFoundError: if *image_path* does not exist.
            GenerationFailedError: if the backend reports a failed job.
            CancellationError: if *cancel* fired while waiting.
        """
        cancel = cancel or CancelToken()
        mime_type_for(image_path)
        progress = _Progress()
        try:
            return self._run(progress, image_path, motion_strength, cancel)
        except LeonardoError as exc:
            if exc.phase is None:
                exc.phase = progress.state.value
            if progress.job is not None:
                exc.generation_id = exc.generation_id or progress.job.generation_id
                if exc.last_response is None:
                    exc.last_response = progress.job.last_response
            logger.error("motion job failed: %s", exc)
            raise

    def _run(
        self,
        progress: _Progress,
        image_path: Union[str, Path],
        motion_strength: Optional[int],
        cancel: CancelToken,
    ) -> MotionResult:
        self._client.tokens.ensure_authenticated(cancel)

        progress.state = JobState.UPLOADING
        asset_id = self.upload(image_path, cancel=cancel)

        progress.state = JobState.SUBMITTED
        progress.job = self.submit(asset_id, motion_strength, cancel=cancel)
        logger.info("generation %s submitted", progress.job.generation_id)

        progress.state = JobState.POLLING_STATUS
        self._poll_status(progress, cancel)

        progress.state = JobState.POLLING_FEED
        job = self._poll_feed(progress, cancel)

        progress.state = JobState.RESOLVED
        logger.info("generation %s ready: %s", job.generation_id, job.result_url)
        return MotionResult(
            generation_id=job.generation_id,
            asset_id=job.result_asset_id,
            url=job.result_url,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def upload(self, image_path: Union[str, Path], cancel: Optional[CancelToken] = None) -> str:
        """Upload a source image and return its init-image asset id.

        Raises:
            UnsupportedFormatError: for anything but jpg, jpeg and png.
            FileNotFoundError: if *image_path* does not exist on disk.
        """
        cancel = cancel or CancelToken()
        path = Path(image_path)
        extension, file_type = mime_type_for(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image file not found: {path}")

        logger.debug("requesting upload target for %s", path.name)
        reply = self._client.graphql(
            cancel,
            "CreateUploadInitImage",
            queries.UPLOAD_INIT_IMAGE,
            {"arg1": {"fileType": file_type, "extension": extension}},
            UploadTarget.from_payload,
        )
        target: UploadTarget = reply.value
        if not target.upload_url:
            raise MissingFieldError("uploadInitImage.url")
        if not target.signed_form_fields.get("key"):
            raise MissingFieldError("uploadInitImage.fields.key")

        with path.open("rb") as f:
            content = f.read()
        form = MultipartForm(
            fields=target.ordered_fields(), filename=path.name, content=content, mime_type=file_type
        )
        self._client.request(cancel, "POST", target.upload_url, form)
        logger.debug("uploaded %s as asset %s", path.name, target.asset_id)
        return target.asset_id

    def submit(
        self,
        asset_id: str,
        motion_strength: Optional[int] = None,
        cancel: Optional[CancelToken] = None,
    ) -> GenerationJob:
        """Queue a motion generation for an uploaded image."""
        cancel = cancel or CancelToken()
        reply = self._client.graphql(
            cancel,
            "CreateMotionSvdGenerationJob",
            queries.CREATE_MOTION_SVD_GENERATION_JOB,
            {
                "arg1": {
                    "imageId": asset_id,
                    "isPublic": False,
                    "isInitImage": True,
                    "isVariation": False,
                    "motionStrength": motion_strength or DEFAULT_MOTION_STRENGTH,
                }
            },
            SubmittedJob.from_payload,
        )
        submitted: SubmittedJob = reply.value
        if not submitted.generation_id:
            error = SubmissionError("couldn't get generation id")
            error.last_response = reply.raw
            raise error
        return GenerationJob(
            generation_id=submitted.generation_id,
            state=JobState.SUBMITTED,
            last_response=reply.raw,
        )

    def _poll_status(self, progress: _Progress, cancel: CancelToken) -> GenerationJob:
        assert progress.job is not None
        variables = {
            "where": {
                "status": {"_in": [STATUS_COMPLETE, STATUS_FAILED]},
                "id": {"_in": [progress.job.generation_id]},
            },
        }
        while True:
            self._clock.sleep(STATUS_POLL_INTERVAL, cancel)
            reply = self._client.graphql(
                cancel,
                "GetAIGenerationFeedStatuses",
                queries.GET_GENERATION_STATUSES,
                variables,
                GenerationStatus.list_from_payload,
            )
            progress.job = dataclasses.replace(progress.job, last_response=reply.raw)
            progress.job = advance_status(progress.job, reply.value, reply.raw)
            if progress.job.state is not JobState.POLLING_STATUS:
                return progress.job

    def _poll_feed(self, progress: _Progress, cancel: CancelToken) -> GenerationJob:
        assert progress.job is not None
        user_id = self._client.tokens.user_id
        if not user_id:
            raise AuthError("empty user id")
        variables = {
            "where": {
                "userId": {"_eq": user_id},
                "teamId": {"_is_null": True},
                "canvasRequest": {"_eq": False},
                "universalUpscaler": {"_is_null": True},
                "isStoryboard": {"_eq": False},
            },
            "offset": 0,
            "limit": FEED_PAGE_SIZE,
        }
        wait = FEED_FIRST_WAIT
        while True:
            self._clock.sleep(wait, cancel)
            wait = FEED_POLL_INTERVAL
            reply = self._client.graphql(
                cancel,
                "GetAIGenerationFeed",
                queries.GET_GENERATION_FEED,
                variables,
                Generation.list_from_payload,
            )
            progress.job = dataclasses.replace(progress.job, last_response=reply.raw)
            progress.job = advance_feed(progress.job, reply.value, reply.raw)
            if progress.job.state is JobState.RESOLVED:
                return progress.job
