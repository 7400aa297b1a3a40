"""SQLAlchemy-backed project repository."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    relationship,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool
from starlette.concurrency import run_in_threadpool

from sitesmith.models.artifact import Artifact
from sitesmith.models.project import NewProject, Project, ProjectFile
from sitesmith.storage.repository import ProjectRepository

logger = logging.getLogger("sitesmith.storage")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class EntityBase(DeclarativeBase):
    pass


class ProjectEntity(EntityBase):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    files: Mapped[list[ProjectFileEntity]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectFileEntity.id",
    )

    def to_domain(self) -> Project:
        created_at = self.created_at
        if created_at.tzinfo is None:  # SQLite drops the offset
            created_at = created_at.replace(tzinfo=UTC)
        return Project(
            id=self.id,
            prompt=self.prompt,
            title=self.title,
            description=self.description,
            created_at=created_at,
        )


class ProjectFileEntity(EntityBase):
    __tablename__ = "project_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False, index=True)
    path: Mapped[str] = mapped_column(String(1024), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    kind: Mapped[str] = mapped_column(String(64), nullable=False)

    project: Mapped[ProjectEntity] = relationship(back_populates="files")

    def to_domain(self) -> ProjectFile:
        return ProjectFile(
            id=self.id,
            project_id=self.project_id,
            path=self.path,
            content=self.content,
            kind=self.kind,
        )


def create_engine_for_url(url: str) -> Engine:
    """Engine for *url*; SQLite connections are made shareable across threads."""
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False)
    connect_args = {"check_same_thread": False}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every thread sees an empty database.
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, connect_args=connect_args)


class SqlProjectRepository(ProjectRepository):
    """Relational store.  Each save runs in exactly one transaction.

    SQLAlchemy sessions are synchronous; every call runs in Starlette's
    worker thread pool so the event loop is never blocked.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)
        EntityBase.metadata.create_all(engine)

    @classmethod
    def from_url(cls, url: str) -> SqlProjectRepository:
        return cls(create_engine_for_url(url))

    def _file_entities(self, project_id: int, files: Sequence[Artifact]) -> list[ProjectFileEntity]:
        return [
            ProjectFileEntity(project_id=project_id, path=f.path, content=f.content, kind=f.kind)
            for f in files
        ]

    def _create(self, project: NewProject, files: Sequence[Artifact]) -> Project:
        with self._sessions.begin() as session:
            entity = ProjectEntity(
                prompt=project.prompt,
                title=project.title,
                description=project.description,
            )
            session.add(entity)
            session.flush()  # assigns entity.id
            session.add_all(self._file_entities(entity.id, files))
            saved = entity.to_domain()
        logger.debug("Stored project %d with %d file(s)", saved.id, len(files))
        return saved

    async def create(self, project: NewProject, files: Sequence[Artifact]) -> Project:
        return await run_in_threadpool(self._create, project, files)

    def _get(self, project_id: int) -> Project | None:
        with Session(self._engine) as session:
            entity = session.get(ProjectEntity, project_id)
            return entity.to_domain() if entity is not None else None

    async def get(self, project_id: int) -> Project | None:
        return await run_in_threadpool(self._get, project_id)

    def _list(self) -> list[Project]:
        stmt = select(ProjectEntity).order_by(
            ProjectEntity.created_at.desc(), ProjectEntity.id.desc()
        )
        with Session(self._engine) as session:
            return [entity.to_domain() for entity in session.scalars(stmt)]

    async def list(self) -> list[Project]:
        return await run_in_threadpool(self._list)

    def _list_files(self, project_id: int) -> list[ProjectFile]:
        stmt = (
            select(ProjectFileEntity)
            .where(ProjectFileEntity.project_id == project_id)
            .order_by(ProjectFileEntity.id)
        )
        with Session(self._engine) as session:
            return [entity.to_domain() for entity in session.scalars(stmt)]

    async def list_files(self, project_id: int) -> list[ProjectFile]:
        return await run_in_threadpool(self._list_files, project_id)

    def dispose(self) -> None:
        self._engine.dispose()
