"""Project endpoints: generate, save, list, fetch."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from sitesmith.api.deps import get_orchestrator, get_repository
from sitesmith.api.schemas import (
    ErrorResponse,
    FileSchema,
    GenerateResponse,
    ProjectCreateRequest,
    ProjectCreateResponse,
    ProjectDetailResponse,
    ProjectResponse,
)
from sitesmith.generation.classifier import (
    GenerationFailed,
    Stage,
    classify,
    http_status_for,
    make_error,
)
from sitesmith.generation.orchestrator import GenerationOrchestrator, GenerationRequest
from sitesmith.models.errors import ErrorKind
from sitesmith.models.project import NewProject, Project
from sitesmith.storage.repository import ProjectRepository

logger = logging.getLogger("sitesmith.api")

router = APIRouter()

_ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def _project_response(project: Project) -> ProjectResponse:
    return ProjectResponse(**project.model_dump())


@router.post("/generate", response_model=GenerateResponse, responses=_ERROR_RESPONSES)
async def generate_project(
    body: GenerationRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),  # noqa: B008
) -> GenerateResponse:
    """Generate website files from a prompt, optionally saving them as a project."""
    result = await orchestrator.generate(body)
    return GenerateResponse(
        files=[FileSchema.from_artifact(a) for a in result.artifacts],
        saved_project_id=result.saved_project_id,
    )


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    repository: ProjectRepository = Depends(get_repository),  # noqa: B008
) -> list[ProjectResponse]:
    """List all saved projects, newest first."""
    return [_project_response(p) for p in await repository.list()]


@router.post("", response_model=ProjectCreateResponse, status_code=201, responses=_ERROR_RESPONSES)
async def create_project(
    body: ProjectCreateRequest,
    repository: ProjectRepository = Depends(get_repository),  # noqa: B008
) -> ProjectCreateResponse:
    """Save a project and its files in one transaction."""
    project = NewProject(prompt=body.prompt, title=body.title, description=body.description)
    artifacts = [f.to_artifact() for f in body.files]
    try:
        saved = await repository.create(project, artifacts)
    except Exception as exc:
        logger.warning("Saving project failed: %s: %s", type(exc).__name__, exc)
        raise GenerationFailed(classify(exc, stage=Stage.PERSISTING), artifacts=artifacts) from None
    return ProjectCreateResponse(project_id=saved.id)


@router.get("/{project_id}", response_model=ProjectDetailResponse, responses=_ERROR_RESPONSES)
async def get_project(
    project_id: int,
    repository: ProjectRepository = Depends(get_repository),  # noqa: B008
) -> ProjectDetailResponse | JSONResponse:
    """Get a saved project with its files."""
    project = await repository.get(project_id)
    if project is None:
        error = make_error(ErrorKind.NOT_FOUND, project_id=project_id)
        return JSONResponse(
            status_code=http_status_for(error.kind),
            content=ErrorResponse.from_error(error).to_content(),
        )
    files = await repository.list_files(project_id)
    return ProjectDetailResponse(
        **project.model_dump(),
        files=[FileSchema(path=f.path, content=f.content, kind=f.kind) for f in files],
    )
