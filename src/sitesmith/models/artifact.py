"""Generated file artifacts."""

from __future__ import annotations

from enum import StrEnum
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field


class ArtifactCategory(StrEnum):
    MARKUP = "markup"
    STYLE = "style"
    SCRIPT = "script"
    OTHER = "other"


_CATEGORY_BY_KIND: dict[str, ArtifactCategory] = {
    "html": ArtifactCategory.MARKUP,
    "htm": ArtifactCategory.MARKUP,
    "css": ArtifactCategory.STYLE,
    "javascript": ArtifactCategory.SCRIPT,
    "js": ArtifactCategory.SCRIPT,
}

_CATEGORY_BY_SUFFIX: dict[str, ArtifactCategory] = {
    ".html": ArtifactCategory.MARKUP,
    ".htm": ArtifactCategory.MARKUP,
    ".css": ArtifactCategory.STYLE,
    ".js": ArtifactCategory.SCRIPT,
    ".mjs": ArtifactCategory.SCRIPT,
}


class Artifact(BaseModel):
    """One generated file.

    ``kind`` is the lower-cased language tag the file was declared with
    (``html``, ``css``, ``javascript`` …).  The coarser :attr:`category` is
    what the preview uses to pick its markup/style/script sources.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    content: str = ""
    kind: str = Field(min_length=1)

    @property
    def category(self) -> ArtifactCategory:
        by_kind = _CATEGORY_BY_KIND.get(self.kind.lower())
        if by_kind is not None:
            return by_kind
        suffix = PurePosixPath(self.path).suffix.lower()
        return _CATEGORY_BY_SUFFIX.get(suffix, ArtifactCategory.OTHER)

    def as_tuple(self) -> tuple[str, str, str]:
        return (self.path, self.content, self.kind)
