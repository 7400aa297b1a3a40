"""Project persistence."""

from sitesmith.storage.memory_repo import InMemoryProjectRepository
from sitesmith.storage.repository import ProjectRepository
from sitesmith.storage.sql_repo import SqlProjectRepository

__all__ = [
    "InMemoryProjectRepository",
    "ProjectRepository",
    "SqlProjectRepository",
]
