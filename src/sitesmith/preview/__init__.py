"""Live preview composition."""

from sitesmith.preview.compositor import (
    PreviewChannel,
    PreviewCompositor,
    PreviewSources,
    compose_document,
    sandboxed_frame,
)

__all__ = [
    "PreviewChannel",
    "PreviewCompositor",
    "PreviewSources",
    "compose_document",
    "sandboxed_frame",
]
