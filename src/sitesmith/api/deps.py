"""Dependency injection for FastAPI: generation and storage singletons."""

from __future__ import annotations

from sitesmith.generation.orchestrator import GenerationOrchestrator
from sitesmith.storage.repository import ProjectRepository

_orchestrator: GenerationOrchestrator | None = None
_repository: ProjectRepository | None = None


def init_services(orchestrator: GenerationOrchestrator, repository: ProjectRepository) -> None:
    """Set the global orchestrator and repository (called at app startup)."""
    global _orchestrator, _repository  # noqa: PLW0603
    _orchestrator = orchestrator
    _repository = repository


def get_orchestrator() -> GenerationOrchestrator:
    """FastAPI ``Depends`` provider for the GenerationOrchestrator."""
    if _orchestrator is None:
        raise RuntimeError("GenerationOrchestrator not initialised; call init_services() first")
    return _orchestrator


def get_repository() -> ProjectRepository:
    """FastAPI ``Depends`` provider for the ProjectRepository."""
    if _repository is None:
        raise RuntimeError("ProjectRepository not initialised; call init_services() first")
    return _repository


def reset_services() -> None:
    """Clear the global services (for tests)."""
    global _orchestrator, _repository  # noqa: PLW0603
    _orchestrator = None
    _repository = None
