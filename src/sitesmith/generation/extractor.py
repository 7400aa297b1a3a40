"""Turn normalized upstream text into file artifacts."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sitesmith.generation.scanner import FencedBlock, scan_fenced_blocks
from sitesmith.models.artifact import Artifact

logger = logging.getLogger("sitesmith.generation.extractor")

DEFAULT_PATHS: dict[str, str] = {
    "html": "index.html",
    "css": "style.css",
    "javascript": "script.js",
    "js": "script.js",
}

# -- loose recognition (no fenced blocks at all) ----------------------------

_DOCTYPE_RE = re.compile(r"<!doctype\s+html\s*>", re.IGNORECASE)
_HTML_CLOSE = "</html>"

# A selector-like token directly followed by a brace-delimited rule.
_STYLE_RULE_RE = re.compile(
    r"(?:\bbody|\bhtml|\.[A-Za-z_][\w-]*|#[A-Za-z_][\w-]*)\s*\{[^{}]*\}"
)

# Statement-like tokens that open a script span.
_SCRIPT_START_RE = re.compile(
    r"\bfunction\s+[A-Za-z_$][\w$]*\s*\("
    r"|\b(?:const|let|var)\s+[A-Za-z_$][\w$]*\s*="
    r"|\bdocument\.[A-Za-z_$]"
    r"|\bconsole\.[A-Za-z_$]"
)


class NoRecognizableOutputError(Exception):
    """Raised when neither fenced blocks nor loose code spans are found."""

    def __init__(self, text_length: int) -> None:
        self.text_length = text_length
        super().__init__(f"No recognizable code found in {text_length} characters of output")


def default_path(language: str) -> str:
    """Canonical file path for a block that did not name one."""
    language = language.lower()
    return DEFAULT_PATHS.get(language, f"file.{language}")


def artifact_from_block(block: FencedBlock) -> Artifact | None:
    """Build the artifact for one block, or ``None`` when its body is blank."""
    content = block.body.strip()
    if not content:
        return None
    hint = (block.path_hint or "").strip()
    return Artifact(
        path=hint or default_path(block.language),
        content=content,
        kind=block.language.lower(),
    )


@dataclass(frozen=True)
class _Span:
    start: int
    kind: str
    path: str


def _find_markup(text: str) -> tuple[int, int] | None:
    opening = _DOCTYPE_RE.search(text)
    if opening is None:
        return None
    close = text.lower().find(_HTML_CLOSE, opening.end())
    if close == -1:
        return None
    return opening.start(), close + len(_HTML_CLOSE)


def _next_boundary(text: str, start: int, starts: list[int]) -> int:
    """End of a loose span: the next recognized span start, a doctype, or ``<script``."""
    candidates = [s for s in starts if s > start]
    lowered = text.lower()
    for marker in ("<!doctype", "<script"):
        found = lowered.find(marker, start + 1)
        if found != -1:
            candidates.append(found)
    return min(candidates, default=len(text))


def recognize_loose_code(text: str) -> list[Artifact]:
    """Heuristic recognition for output that carries no fenced blocks.

    Looks for a full ``<!DOCTYPE html> … </html>`` document, a style rule
    span and a script span.  The style and script heuristics only look at
    the text outside the document, so a lone document yields one artifact.
    """
    artifacts: list[Artifact] = []
    remainder = text
    markup = _find_markup(text)
    if markup is not None:
        start, end = markup
        artifacts.append(
            Artifact(path=DEFAULT_PATHS["html"], content=text[start:end].strip(), kind="html")
        )
        remainder = text[:start] + "\n" + text[end:]

    spans: list[_Span] = []
    style = _STYLE_RULE_RE.search(remainder)
    if style is not None:
        spans.append(_Span(style.start(), "css", DEFAULT_PATHS["css"]))
    script = _SCRIPT_START_RE.search(remainder)
    if script is not None:
        spans.append(_Span(script.start(), "javascript", DEFAULT_PATHS["javascript"]))

    starts = [span.start for span in spans]
    for span in spans:
        end = _next_boundary(remainder, span.start, starts)
        content = remainder[span.start : end].strip()
        if content:
            artifacts.append(Artifact(path=span.path, content=content, kind=span.kind))
    return artifacts


def extract_artifacts(text: str) -> list[Artifact]:
    """Return the artifacts found in *text*, in source order.

    Fenced blocks are the primary source.  Only when the text holds no
    complete tagged block is :func:`recognize_loose_code` consulted.

    Raises:
        NoRecognizableOutputError: nothing usable was found.
    """
    blocks = scan_fenced_blocks(text)
    if blocks:
        artifacts = [a for a in (artifact_from_block(b) for b in blocks) if a is not None]
        logger.debug(
            "Found %d fenced block(s), %d non-empty", len(blocks), len(artifacts)
        )
    else:
        artifacts = recognize_loose_code(text)
        logger.debug("No fenced blocks; loose recognition found %d artifact(s)", len(artifacts))

    if not artifacts:
        raise NoRecognizableOutputError(len(text))
    return artifacts
