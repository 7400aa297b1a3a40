"""Line-oriented tokenizer for fenced code blocks in generated text.

The grammar is deliberately small::

    block   := FENCE_OPEN [PATH_COMMENT] BODY* FENCE_CLOSE
    FENCE_OPEN    ```<language> [<path comment>]
    PATH_COMMENT  first non-blank line of the block, a one-line <!-- -->, /* */ or // comment
    FENCE_CLOSE   a line starting with ``` (or a body line ending with ```)

Scanning is a single pass over the lines with no backtracking, so the cost
is linear in the input whatever the upstream service sends.
"""

from __future__ import annotations

import re
from collections.abc import Generator, Iterator
from dataclasses import dataclass, field
from enum import Enum, StrEnum

FENCE = "```"

# Language tags: word characters plus the punctuation of c++, c# and objective-c.
_LANGUAGE_RE = re.compile(r"[\w+#-]+")

# (opener, closer) pairs accepted as a single-line path comment.
_COMMENT_DELIMITERS: tuple[tuple[str, str], ...] = (
    ("<!--", "-->"),
    ("/*", "*/"),
    ("//", ""),
)


class TokenType(StrEnum):
    TEXT = "text"
    FENCE_OPEN = "fence_open"
    PATH_COMMENT = "path_comment"
    BODY = "body"
    FENCE_CLOSE = "fence_close"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    line: int  # 1-based


@dataclass(frozen=True)
class FencedBlock:
    """A complete, language-tagged block."""

    language: str
    path_hint: str | None
    body: str
    line: int  # line of the opening fence


class _State(Enum):
    OUTSIDE = "outside"
    HEAD = "head"  # inside a tagged block, path comment still possible
    BODY = "body"


def parse_path_comment(text: str) -> str | None:
    """Return the path named by a single-line comment, or ``None`` if *text* is not one.

    A comment that is not closed on the same line, or that names nothing,
    is ordinary content and stays in the body.
    """
    stripped = text.strip()
    for opener, closer in _COMMENT_DELIMITERS:
        if not stripped.startswith(opener):
            continue
        inner = stripped[len(opener) :]
        if closer:
            if not inner.endswith(closer):
                return None
            inner = inner[: -len(closer)]
        return inner.strip() or None
    return None


def fence_language(line: str) -> str:
    """Language tag of a fence line (``""`` for an untagged fence)."""
    match = _LANGUAGE_RE.match(line.strip()[len(FENCE) :])
    return match.group(0) if match else ""


class FenceScanner:
    """Turns text into a stream of :class:`Token`.

    Untagged fences are tokenized like any other block; deciding what to
    keep is left to :func:`scan_fenced_blocks`.
    """

    def __init__(self, text: str) -> None:
        self._lines = text.splitlines()

    def tokens(self) -> Iterator[Token]:
        state = _State.OUTSIDE
        for number, line in enumerate(self._lines, start=1):
            stripped = line.strip()

            if state is _State.OUTSIDE:
                if stripped.startswith(FENCE):
                    state = yield from self._open(stripped, number)
                else:
                    yield Token(TokenType.TEXT, line, number)
                continue

            if stripped.startswith(FENCE):
                yield Token(TokenType.FENCE_CLOSE, "", number)
                state = _State.OUTSIDE
                # A tagged closing line means the next block starts here.
                if fence_language(stripped):
                    state = yield from self._open(stripped, number)
                continue

            trailing = line.rstrip()
            if trailing.endswith(FENCE):
                head = trailing[: -len(FENCE)]
                if head.strip():
                    yield Token(TokenType.BODY, head, number)
                yield Token(TokenType.FENCE_CLOSE, "", number)
                state = _State.OUTSIDE
                continue

            if state is _State.HEAD and stripped:
                state = _State.BODY
                path = parse_path_comment(stripped)
                if path is not None:
                    yield Token(TokenType.PATH_COMMENT, path, number)
                    continue
            yield Token(TokenType.BODY, line, number)

    @staticmethod
    def _open(stripped: str, number: int) -> Generator[Token, None, _State]:
        language = fence_language(stripped)
        yield Token(TokenType.FENCE_OPEN, language, number)
        if not language:
            return _State.BODY
        rest = stripped[len(FENCE) + len(language) :]
        path = parse_path_comment(rest)
        if path is not None:
            yield Token(TokenType.PATH_COMMENT, path, number)
            return _State.BODY
        return _State.HEAD


@dataclass
class _PendingBlock:
    language: str
    line: int
    path_hint: str | None = None
    lines: list[str] = field(default_factory=list)

    def finish(self) -> FencedBlock:
        return FencedBlock(
            language=self.language,
            path_hint=self.path_hint,
            body="\n".join(self.lines),
            line=self.line,
        )


def scan_fenced_blocks(text: str) -> list[FencedBlock]:
    """Return the complete, language-tagged blocks of *text* in source order.

    Untagged blocks and a block still open at end of input are dropped.
    """
    blocks: list[FencedBlock] = []
    pending: _PendingBlock | None = None
    for token in FenceScanner(text).tokens():
        if token.type is TokenType.FENCE_OPEN:
            pending = _PendingBlock(language=token.value, line=token.line)
        elif pending is None:
            continue
        elif token.type is TokenType.PATH_COMMENT:
            pending.path_hint = token.value
        elif token.type is TokenType.BODY:
            pending.lines.append(token.value)
        elif token.type is TokenType.FENCE_CLOSE:
            if pending.language:
                blocks.append(pending.finish())
            pending = None
    return blocks
