"""Preview endpoint: compose generated files into one sandboxed document."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from sitesmith.api.schemas import PreviewRequest
from sitesmith.preview.compositor import PreviewSources, compose_document

router = APIRouter()


@router.post("", response_class=HTMLResponse)
async def preview_document(body: PreviewRequest) -> HTMLResponse:
    """Return the composed preview document for a set of files.

    The response carries a ``sandbox`` CSP (see SecurityHeadersMiddleware),
    so it can be loaded directly into a frame without sharing the host's
    origin.
    """
    sources = PreviewSources.from_artifacts(f.to_artifact() for f in body.files)
    return HTMLResponse(compose_document(sources))
