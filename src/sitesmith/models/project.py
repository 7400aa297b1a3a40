"""Saved project and project file models."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


class NewProject(BaseModel):
    """Fields supplied by the caller when creating a project."""

    prompt: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str | None = None


class Project(BaseModel):
    """A saved generation: the prompt plus the files it produced."""

    id: int
    prompt: str
    title: str
    description: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class ProjectFile(BaseModel):
    """A file row owned by a project.  Written once, never updated."""

    id: int
    project_id: int
    path: str
    content: str
    kind: str
