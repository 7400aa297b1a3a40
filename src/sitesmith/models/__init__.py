"""Pydantic domain models for Sitesmith."""

from sitesmith.models.artifact import Artifact, ArtifactCategory
from sitesmith.models.errors import ClassifiedError, ErrorKind
from sitesmith.models.project import NewProject, Project, ProjectFile

__all__ = [
    "Artifact",
    "ArtifactCategory",
    "ClassifiedError",
    "ErrorKind",
    "NewProject",
    "Project",
    "ProjectFile",
]
