"""Compose markup, style and script into one sandboxed preview document.

Composition itself is a pure function.  :class:`PreviewCompositor` adds the
debounce: every channel has its own quiet-interval timer and the document is
rebuilt only once no timer is pending.
"""

from __future__ import annotations

import asyncio
import html
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from enum import StrEnum

from sitesmith.models.artifact import Artifact, ArtifactCategory
from sitesmith.settings import Settings

logger = logging.getLogger("sitesmith.preview")

DEFAULT_QUIET_INTERVAL = 0.3  # seconds

# Scripts may run; same-origin access to the host page is not granted.
SANDBOX_POLICY = "allow-scripts"
SANDBOX_CSP = f"sandbox {SANDBOX_POLICY}"

_DOCUMENT_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Preview</title>
<style>{style}</style>
</head>
<body>
{markup}
<script>{script}</script>
</body>
</html>
"""


class PreviewChannel(StrEnum):
    MARKUP = "markup"
    STYLE = "style"
    SCRIPT = "script"


_CHANNEL_BY_CATEGORY = {
    ArtifactCategory.MARKUP: PreviewChannel.MARKUP,
    ArtifactCategory.STYLE: PreviewChannel.STYLE,
    ArtifactCategory.SCRIPT: PreviewChannel.SCRIPT,
}


@dataclass(frozen=True)
class PreviewSources:
    """The three bodies a preview is built from.  Each may be empty."""

    markup: str = ""
    style: str = ""
    script: str = ""

    @classmethod
    def from_artifacts(cls, artifacts: Iterable[Artifact]) -> PreviewSources:
        """Pick the last artifact of each category (later overwrites earlier)."""
        bodies: dict[PreviewChannel, str] = {}
        for artifact in artifacts:
            channel = _CHANNEL_BY_CATEGORY.get(artifact.category)
            if channel is not None:
                bodies[channel] = artifact.content
        return cls(**{channel.value: body for channel, body in bodies.items()})

    def get(self, channel: PreviewChannel) -> str:
        return getattr(self, channel.value)

    def with_channel(self, channel: PreviewChannel, body: str) -> PreviewSources:
        return replace(self, **{channel.value: body})


def compose_document(sources: PreviewSources) -> str:
    """Build the self-contained preview document.

    Style goes inline in the head; script goes inline at the end of the
    body, after the markup, so it runs against a fully parsed DOM.
    """
    return _DOCUMENT_TEMPLATE.format(
        style=sources.style,
        markup=sources.markup,
        script=sources.script,
    )


def sandboxed_frame(document: str, *, title: str = "Preview") -> str:
    """Wrap *document* in an isolated ``<iframe srcdoc>``."""
    return (
        f'<iframe sandbox="{SANDBOX_POLICY}" title="{html.escape(title)}" '
        f'srcdoc="{html.escape(document, quote=True)}"></iframe>'
    )


class PreviewCompositor:
    """Debounced recomposition into an isolated rendering context.

    *sink* receives each newly composed document (for example a function
    that writes it into a sandboxed frame).  It is called only when the
    document actually changed.  Updates must be made from a running event
    loop; they never block.
    """

    def __init__(
        self,
        sink: Callable[[str], None],
        *,
        quiet_interval: float = DEFAULT_QUIET_INTERVAL,
    ) -> None:
        self._sink = sink
        self._quiet_interval = quiet_interval
        self._stable = PreviewSources()
        self._pending: dict[PreviewChannel, str] = {}
        self._timers: dict[PreviewChannel, asyncio.TimerHandle] = {}
        self._document: str | None = None
        self.compositions = 0

    @classmethod
    def from_settings(cls, sink: Callable[[str], None], settings: Settings) -> PreviewCompositor:
        return cls(sink, quiet_interval=settings.preview_quiet_interval_ms / 1000)

    @property
    def document(self) -> str | None:
        """The last document written to the sink."""
        return self._document

    @property
    def sources(self) -> PreviewSources:
        """The settled inputs of the last recomposition."""
        return self._stable

    @property
    def quiet_interval(self) -> float:
        return self._quiet_interval

    @property
    def is_settled(self) -> bool:
        return not self._timers

    def update(self, channel: PreviewChannel, body: str) -> None:
        """Record a new body for *channel* and restart that channel's timer."""
        loop = asyncio.get_running_loop()
        self._pending[channel] = body
        timer = self._timers.pop(channel, None)
        if timer is not None:
            timer.cancel()
        self._timers[channel] = loop.call_later(self._quiet_interval, self._settle, channel)

    def update_from_artifacts(self, artifacts: Iterable[Artifact]) -> None:
        """Feed a fresh artifact list; channels without an artifact become empty."""
        sources = PreviewSources.from_artifacts(artifacts)
        for channel in PreviewChannel:
            self.update(channel, sources.get(channel))

    def flush(self) -> str:
        """Settle every pending channel now and recompose."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._apply_pending()
        return self._recompose()

    def close(self) -> None:
        """Drop pending updates without recomposing."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._pending.clear()

    def _settle(self, channel: PreviewChannel) -> None:
        self._timers.pop(channel, None)
        if self._timers:
            return
        self._apply_pending()
        self._recompose()

    def _apply_pending(self) -> None:
        for channel, body in self._pending.items():
            self._stable = self._stable.with_channel(channel, body)
        self._pending.clear()

    def _recompose(self) -> str:
        document = compose_document(self._stable)
        if document != self._document:
            self._document = document
            self.compositions += 1
            logger.debug("Preview recomposed (%d chars)", len(document))
            self._sink(document)
        return document
