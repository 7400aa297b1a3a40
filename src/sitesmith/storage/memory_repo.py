"""In-memory project repository for development/testing."""

from __future__ import annotations

import threading
from collections.abc import Sequence

from sitesmith.models.artifact import Artifact
from sitesmith.models.project import NewProject, Project, ProjectFile
from sitesmith.storage.repository import ProjectRepository


class InMemoryProjectRepository(ProjectRepository):
    """Thread-safe via ``threading.Lock``.

    All rows of a create are built before any shared state changes, so a
    failed create leaves no trace.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._projects: dict[int, Project] = {}
        self._files: dict[int, list[ProjectFile]] = {}
        self._next_project_id = 1
        self._next_file_id = 1

    async def create(self, project: NewProject, files: Sequence[Artifact]) -> Project:
        with self._lock:
            project_id = self._next_project_id
            file_id = self._next_file_id
            row = Project(id=project_id, **project.model_dump())
            file_rows = [
                ProjectFile(
                    id=file_id + offset,
                    project_id=project_id,
                    path=f.path,
                    content=f.content,
                    kind=f.kind,
                )
                for offset, f in enumerate(files)
            ]
            # Commit point: nothing above touched shared state.
            self._projects[project_id] = row
            self._files[project_id] = file_rows
            self._next_project_id += 1
            self._next_file_id += len(file_rows)
        return row

    async def get(self, project_id: int) -> Project | None:
        return self._projects.get(project_id)

    async def list(self) -> list[Project]:
        with self._lock:
            projects = list(self._projects.values())
        return sorted(projects, key=lambda p: (p.created_at, p.id), reverse=True)

    async def list_files(self, project_id: int) -> list[ProjectFile]:
        with self._lock:
            return list(self._files.get(project_id, []))
