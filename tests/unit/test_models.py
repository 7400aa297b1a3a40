"""Tests for the domain models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from sitesmith.models.artifact import Artifact, ArtifactCategory
from sitesmith.models.errors import ClassifiedError, ErrorKind


@pytest.mark.parametrize(
    "path, kind, category",
    [
        ("index.html", "html", ArtifactCategory.MARKUP),
        ("page.htm", "HTML", ArtifactCategory.MARKUP),
        ("style.css", "css", ArtifactCategory.STYLE),
        ("script.js", "javascript", ArtifactCategory.SCRIPT),
        ("app.js", "js", ArtifactCategory.SCRIPT),
        ("main.mjs", "module", ArtifactCategory.SCRIPT),
        ("README.md", "markdown", ArtifactCategory.OTHER),
    ],
)
def test_artifact_category(path: str, kind: str, category: ArtifactCategory) -> None:
    assert Artifact(path=path, content="", kind=kind).category is category


def test_artifact_is_frozen() -> None:
    artifact = Artifact(path="index.html", content="<p/>", kind="html")
    with pytest.raises(ValidationError):
        artifact.content = "changed"


@pytest.mark.parametrize("field", ["path", "kind"])
def test_artifact_requires_path_and_kind(field: str) -> None:
    values = {"path": "index.html", "content": "", "kind": "html", field: ""}
    with pytest.raises(ValidationError):
        Artifact(**values)


def test_error_kind_values_are_stable() -> None:
    assert ErrorKind.UPSTREAM_RATE_LIMITED == "upstream_rate_limited"
    error = ClassifiedError(kind=ErrorKind.TIMEOUT, message="slow", retriable=True)
    assert error.model_dump(mode="json") == {
        "kind": "timeout_error",
        "message": "slow",
        "retriable": True,
    }
