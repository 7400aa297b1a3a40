"""Abstract repository interface for project persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from sitesmith.models.artifact import Artifact
from sitesmith.models.project import NewProject, Project, ProjectFile


class ProjectRepository(ABC):
    """Projects and their files.

    :meth:`create` writes the project row and all of its file rows in one
    transaction: either everything is stored or nothing is.
    """

    @abstractmethod
    async def create(self, project: NewProject, files: Sequence[Artifact]) -> Project: ...

    @abstractmethod
    async def get(self, project_id: int) -> Project | None: ...

    @abstractmethod
    async def list(self) -> list[Project]:
        """All projects, newest first."""

    @abstractmethod
    async def list_files(self, project_id: int) -> list[ProjectFile]: ...
