"""Map every pipeline failure onto the closed :class:`ErrorKind` taxonomy."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

import httpx
from pydantic import ValidationError

from sitesmith.generation.extractor import NoRecognizableOutputError
from sitesmith.generation.normalizer import UnrecognizedPayloadError
from sitesmith.generation.upstream import MissingCredentialError, UpstreamStatusError
from sitesmith.models.artifact import Artifact
from sitesmith.models.errors import ClassifiedError, ErrorKind

logger = logging.getLogger("sitesmith.generation.classifier")


class Stage(StrEnum):
    """Where in a generation a failure happened."""

    VALIDATING = "validating"
    REQUESTING = "requesting"
    PERSISTING = "persisting"


@dataclass(frozen=True)
class _Template:
    message: str
    retriable: bool
    http_status: int


_SIMPLER_PROMPT_HINT = (
    "Try a simpler, more specific prompt, for example "
    "'Create a simple landing page with a hero section'."
)

TEMPLATES: dict[ErrorKind, _Template] = {
    ErrorKind.CONFIGURATION: _Template(
        "The AI service is not configured. An operator must set the service API key.",
        retriable=False,
        http_status=500,
    ),
    ErrorKind.TRANSPORT: _Template(
        "Could not connect to the AI service. Please try again in a moment.",
        retriable=True,
        http_status=502,
    ),
    ErrorKind.TIMEOUT: _Template(
        "The AI service took longer than {timeout:g} seconds to generate your website. "
        + _SIMPLER_PROMPT_HINT,
        retriable=True,
        http_status=504,
    ),
    ErrorKind.UPSTREAM_RATE_LIMITED: _Template(
        "The AI service is currently rate limited (status {status}). "
        "Please wait a moment and try again.",
        retriable=True,
        http_status=503,
    ),
    ErrorKind.UPSTREAM_AUTH_FAILED: _Template(
        "The AI service rejected our credentials (status {status}). "
        "Please contact support to resolve this issue.",
        retriable=False,
        http_status=502,
    ),
    ErrorKind.UPSTREAM_SERVER_ERROR: _Template(
        "The AI service is experiencing issues (status {status}). Please try again later.",
        retriable=True,
        http_status=502,
    ),
    ErrorKind.MALFORMED_UPSTREAM_PAYLOAD: _Template(
        "The AI service returned a response in an unexpected format. Please try again.",
        retriable=True,
        http_status=502,
    ),
    ErrorKind.NO_RECOGNIZABLE_OUTPUT: _Template(
        "The AI did not return any recognizable code. " + _SIMPLER_PROMPT_HINT,
        retriable=True,
        http_status=502,
    ),
    ErrorKind.VALIDATION: _Template(
        "Invalid request: {detail}",
        retriable=False,
        http_status=422,
    ),
    ErrorKind.PERSISTENCE: _Template(
        "Your website was generated but could not be saved. "
        "The generated files are included; try saving again.",
        retriable=True,
        http_status=500,
    ),
    ErrorKind.NOT_FOUND: _Template(
        "Project {project_id} was not found.",
        retriable=False,
        http_status=404,
    ),
}

_RATE_LIMIT_STATUSES = frozenset({402, 429})
_AUTH_STATUSES = frozenset({401, 403})


class GenerationFailed(Exception):
    """The single exception type that leaves the generation boundary.

    ``artifacts`` is non-empty only for persistence failures, where the
    generation itself succeeded.
    """

    def __init__(
        self, error: ClassifiedError, *, artifacts: Sequence[Artifact] = ()
    ) -> None:
        self.error = error
        self.artifacts = tuple(artifacts)
        super().__init__(error.message)

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def http_status(self) -> int:
        return http_status_for(self.error.kind)


def http_status_for(kind: ErrorKind) -> int:
    return TEMPLATES[kind].http_status


def make_error(kind: ErrorKind, **params: object) -> ClassifiedError:
    """Render the stable message for *kind*."""
    template = TEMPLATES[kind]
    return ClassifiedError(
        kind=kind,
        message=template.message.format(**params) if params else template.message,
        retriable=template.retriable,
    )


def classify_status(status_code: int) -> ErrorKind:
    if status_code in _RATE_LIMIT_STATUSES:
        return ErrorKind.UPSTREAM_RATE_LIMITED
    if status_code in _AUTH_STATUSES:
        return ErrorKind.UPSTREAM_AUTH_FAILED
    return ErrorKind.UPSTREAM_SERVER_ERROR


def validation_detail(exc: BaseException) -> str:
    """First validation message, prefixed with its field location.

    Works for pydantic's ``ValidationError`` and FastAPI's
    ``RequestValidationError``, which share the ``errors()`` shape.
    """
    errors = exc.errors() if hasattr(exc, "errors") else []
    if not errors:
        return "request failed validation"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def classify(
    exc: BaseException,
    *,
    stage: Stage = Stage.REQUESTING,
    timeout_seconds: float = 0.0,
) -> ClassifiedError:
    """Return the taxonomy member for *exc*.

    Exceptions the pipeline does not know about fall back on the stage they
    happened in: persisting → persistence error, anything else → malformed
    upstream payload.
    """
    if isinstance(exc, MissingCredentialError):
        return make_error(ErrorKind.CONFIGURATION)
    if isinstance(exc, ValidationError) or stage is Stage.VALIDATING:
        return make_error(ErrorKind.VALIDATION, detail=validation_detail(exc))
    if stage is Stage.PERSISTING:
        return make_error(ErrorKind.PERSISTENCE)
    # httpx.TimeoutException subclasses TransportError, so check it first.
    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return make_error(ErrorKind.TIMEOUT, timeout=timeout_seconds)
    if isinstance(exc, httpx.TransportError):
        return make_error(ErrorKind.TRANSPORT)
    if isinstance(exc, UpstreamStatusError):
        return make_error(classify_status(exc.status_code), status=exc.status_code)
    if isinstance(exc, UnrecognizedPayloadError):
        return make_error(ErrorKind.MALFORMED_UPSTREAM_PAYLOAD)
    if isinstance(exc, NoRecognizableOutputError):
        return make_error(ErrorKind.NO_RECOGNIZABLE_OUTPUT)
    logger.warning(
        "Unexpected %s during %s classified as malformed payload", type(exc).__name__, stage
    )
    return make_error(ErrorKind.MALFORMED_UPSTREAM_PAYLOAD)
