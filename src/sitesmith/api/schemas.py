"""API request/response Pydantic schemas."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from sitesmith.models.artifact import Artifact
from sitesmith.models.errors import ClassifiedError, ErrorKind


class FileSchema(BaseModel):
    """One generated or saved file."""

    path: str = Field(min_length=1, description="Relative file path, e.g. index.html")
    content: str = ""
    kind: str = Field(min_length=1, description="Lower-cased language tag, e.g. html")

    @classmethod
    def from_artifact(cls, artifact: Artifact) -> FileSchema:
        return cls(path=artifact.path, content=artifact.content, kind=artifact.kind)

    def to_artifact(self) -> Artifact:
        return Artifact(path=self.path, content=self.content, kind=self.kind.lower())


class GenerateResponse(BaseModel):
    """Response body for POST /projects/generate."""

    model_config = ConfigDict(populate_by_name=True)

    files: list[FileSchema]
    saved_project_id: int | None = Field(default=None, alias="savedProjectId")


class ErrorResponse(BaseModel):
    """Failure body shared by every endpoint."""

    error: str
    kind: ErrorKind
    retriable: bool
    files: list[FileSchema] | None = None

    @classmethod
    def from_error(
        cls, error: ClassifiedError, artifacts: Sequence[Artifact] = ()
    ) -> ErrorResponse:
        return cls(
            error=error.message,
            kind=error.kind,
            retriable=error.retriable,
            files=[FileSchema.from_artifact(a) for a in artifacts] if artifacts else None,
        )

    def to_content(self) -> dict[str, object]:
        return self.model_dump(mode="json", exclude_none=True)


class ProjectCreateRequest(BaseModel):
    """Request body for POST /projects."""

    prompt: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str | None = None
    files: list[FileSchema] = Field(default_factory=list)


class ProjectCreateResponse(BaseModel):
    """Response body for POST /projects."""

    model_config = ConfigDict(populate_by_name=True)

    project_id: int = Field(alias="projectId")


class ProjectResponse(BaseModel):
    """A saved project without its files."""

    id: int
    prompt: str
    title: str
    description: str | None = None
    created_at: datetime


class ProjectDetailResponse(ProjectResponse):
    """A saved project with its files."""

    files: list[FileSchema] = []


class PreviewRequest(BaseModel):
    """Request body for POST /preview."""

    files: list[FileSchema] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = ""
