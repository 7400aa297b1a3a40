"""Drives one end-to-end generation attempt.

State machine::

    idle ──► requesting ──► succeeded ──► persisting ──► succeeded
                 │                            │
                 └──────────► failed ◄────────┘

Request validation and the credential check happen before a run starts, so
neither can cost a network call.  The orchestrator never retries; every
failure is reported to the caller as a :class:`GenerationFailed`.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import MutableMapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from sitesmith.generation.classifier import GenerationFailed, Stage, classify
from sitesmith.generation.extractor import extract_artifacts
from sitesmith.generation.normalizer import locate_text
from sitesmith.generation.prompt import build_prompt
from sitesmith.generation.upstream import MissingCredentialError, UpstreamClient
from sitesmith.models.artifact import Artifact
from sitesmith.models.errors import ErrorKind
from sitesmith.models.project import NewProject
from sitesmith.settings import Settings
from sitesmith.storage.repository import ProjectRepository

logger = logging.getLogger("sitesmith.generation.orchestrator")

MIN_PROMPT_LENGTH = 10
DEFAULT_TITLE = "Untitled Project"


class GenerationRequest(BaseModel):
    """Input of one generation.  ``saveProject`` is accepted for ``persist``."""

    prompt: str = Field(min_length=MIN_PROMPT_LENGTH)
    persist: bool = Field(
        default=False, validation_alias=AliasChoices("persist", "saveProject")
    )
    title: str = Field(default=DEFAULT_TITLE, min_length=1)


@dataclass(frozen=True)
class GenerationResult:
    """Terminal value of a successful run."""

    artifacts: tuple[Artifact, ...]
    saved_project_id: int | None = None
    run_id: str = ""


class GenerationState(StrEnum):
    IDLE = "idle"
    REQUESTING = "requesting"
    SUCCEEDED = "succeeded"
    PERSISTING = "persisting"
    FAILED = "failed"


_TRANSITIONS: dict[GenerationState, frozenset[GenerationState]] = {
    GenerationState.IDLE: frozenset({GenerationState.REQUESTING}),
    GenerationState.REQUESTING: frozenset({GenerationState.SUCCEEDED, GenerationState.FAILED}),
    GenerationState.SUCCEEDED: frozenset({GenerationState.PERSISTING}),
    GenerationState.PERSISTING: frozenset({GenerationState.SUCCEEDED, GenerationState.FAILED}),
    GenerationState.FAILED: frozenset(),
}


class InvalidTransitionError(RuntimeError):
    """Raised on a state change the generation state machine does not allow."""

    def __init__(self, current: GenerationState, target: GenerationState) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid generation transition {current} -> {target}")


class RunLogger(logging.LoggerAdapter):
    """Prefixes records with the run id and attaches it as ``record.run_id``."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        run_id = self.extra["run_id"] if self.extra else "-"
        kwargs.setdefault("extra", {})["run_id"] = run_id
        return f"[run {run_id}] {msg}", kwargs


@dataclass
class GenerationRun:
    """State and log scope of a single attempt."""

    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    state: GenerationState = GenerationState.IDLE
    history: list[GenerationState] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.log = RunLogger(logger, {"run_id": self.run_id})
        self.history.append(self.state)

    def advance(self, target: GenerationState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.state, target)
        self.log.info("%s -> %s", self.state, target)
        self.state = target
        self.history.append(target)

    def fail(
        self,
        exc: BaseException,
        *,
        stage: Stage,
        timeout_seconds: float = 0.0,
        artifacts: Sequence[Artifact] = (),
    ) -> GenerationFailed:
        """Move to ``failed`` and return the classified exception to raise."""
        error = classify(exc, stage=stage, timeout_seconds=timeout_seconds)
        self.advance(GenerationState.FAILED)
        if error.kind is ErrorKind.MALFORMED_UPSTREAM_PAYLOAD:
            # Repeated occurrences point at upstream contract drift.
            self.log.warning("Upstream payload not recognized: %s", exc)
        else:
            self.log.warning("Generation failed (%s): %s: %s", error.kind, type(exc).__name__, exc)
        return GenerationFailed(error, artifacts=artifacts)


class GenerationOrchestrator:
    """Runs generations against the upstream service.

    Holds no per-run state, so concurrent :meth:`generate` calls are
    independent of each other.
    """

    def __init__(
        self,
        settings: Settings,
        upstream: UpstreamClient,
        repository: ProjectRepository,
    ) -> None:
        self._settings = settings
        self._upstream = upstream
        self._repository = repository
        self._timeout = settings.upstream_timeout_seconds

    def _require_credential(self) -> str:
        key = self._settings.upstream_api_key
        if key is None or not key.get_secret_value().strip():
            exc = MissingCredentialError()
            logger.error("%s", exc)
            raise GenerationFailed(classify(exc))
        return key.get_secret_value()

    async def _request_artifacts(
        self, run: GenerationRun, prompt: str, api_key: str
    ) -> list[Artifact]:
        async with asyncio.timeout(self._timeout):
            payload = await self._upstream.complete(build_prompt(prompt), api_key=api_key)
        rule, text = locate_text(payload)
        run.log.info("Upstream text located via %s (%d chars)", rule, len(text))
        artifacts = extract_artifacts(text)
        run.log.info(
            "Extracted %d artifact(s): %s",
            len(artifacts),
            ", ".join(f"{a.path} ({a.kind})" for a in artifacts),
        )
        return artifacts

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Run one generation.

        Raises:
            GenerationFailed: carrying exactly one classified error.
        """
        api_key = self._require_credential()
        run = GenerationRun()
        run.log.info(
            "Generation started (prompt length=%d, persist=%s)",
            len(request.prompt),
            request.persist,
        )

        run.advance(GenerationState.REQUESTING)
        try:
            artifacts = await self._request_artifacts(run, request.prompt, api_key)
        except Exception as exc:
            raise run.fail(exc, stage=Stage.REQUESTING, timeout_seconds=self._timeout) from None
        run.advance(GenerationState.SUCCEEDED)

        if not request.persist:
            return GenerationResult(artifacts=tuple(artifacts), run_id=run.run_id)

        run.advance(GenerationState.PERSISTING)
        project = NewProject(
            prompt=request.prompt,
            title=request.title,
            description=f'Website generated from prompt: "{request.prompt}"',
        )
        try:
            saved = await self._repository.create(project, artifacts)
        except Exception as exc:
            raise run.fail(exc, stage=Stage.PERSISTING, artifacts=artifacts) from None
        run.advance(GenerationState.SUCCEEDED)
        run.log.info("Project %d saved with %d file(s)", saved.id, len(artifacts))
        return GenerationResult(
            artifacts=tuple(artifacts), saved_project_id=saved.id, run_id=run.run_id
        )
