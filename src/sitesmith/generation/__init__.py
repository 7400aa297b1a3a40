"""Generation pipeline: upstream call → normalization → extraction."""

from sitesmith.generation.classifier import GenerationFailed
from sitesmith.generation.extractor import extract_artifacts
from sitesmith.generation.normalizer import normalize_payload
from sitesmith.generation.orchestrator import (
    GenerationOrchestrator,
    GenerationRequest,
    GenerationResult,
)

__all__ = [
    "GenerationFailed",
    "GenerationOrchestrator",
    "GenerationRequest",
    "GenerationResult",
    "extract_artifacts",
    "normalize_payload",
]
