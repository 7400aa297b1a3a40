"""Locate the generated text inside an upstream payload of unknown shape.

The upstream contract is not fixed, so the payload is probed with an
ordered list of rules.  Each rule either returns the value at its location
or ``None`` (no match); the first match wins and later rules are never
consulted.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("sitesmith.generation.normalizer")


class UnrecognizedPayloadError(Exception):
    """Raised when no rule yields usable text from the upstream payload."""

    def __init__(self, reason: str, *, rule: str | None = None, shape: str = "") -> None:
        self.reason = reason
        self.rule = rule
        self.shape = shape
        super().__init__(f"Unrecognized upstream payload: {reason}")


@dataclass(frozen=True)
class PayloadRule:
    """A named probe returning the candidate value, or ``None`` for no match."""

    name: str
    probe: Callable[[Any], Any]


def _field(name: str) -> Callable[[Any], Any]:
    def probe(payload: Any) -> Any:
        if isinstance(payload, dict):
            return payload.get(name) or None
        return None

    return probe


def _openai_choice(payload: Any) -> Any:
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    return message.get("content") or None


def _data_field(payload: Any) -> Any:
    data = _field("data")(payload)
    if data is None or isinstance(data, str):
        return data
    return json.dumps(data)


def _bare_string(payload: Any) -> Any:
    return payload if isinstance(payload, str) and payload else None


PAYLOAD_RULES: tuple[PayloadRule, ...] = (
    PayloadRule("choices[0].message.content", _openai_choice),
    PayloadRule("response", _field("response")),
    PayloadRule("content", _field("content")),
    PayloadRule("data", _data_field),
    PayloadRule("payload", _bare_string),
    PayloadRule("message", _field("message")),
)


def describe_shape(payload: Any) -> str:
    """Short description of a payload for diagnostics (never its content)."""
    if isinstance(payload, dict):
        if not payload:
            return "empty object"
        return "object with keys " + ", ".join(sorted(str(k) for k in payload))
    return type(payload).__name__


def locate_text(payload: Any) -> tuple[str, str]:
    """Return ``(rule name, text)`` for the first rule that matches *payload*.

    Raises:
        UnrecognizedPayloadError: no rule matched, or the matched value is
            not a string.  Whitespace-only text is returned as is; it is
            the extractor that finds nothing in it.
    """
    shape = describe_shape(payload)
    for rule in PAYLOAD_RULES:
        value = rule.probe(payload)
        if value is None:
            continue
        if not isinstance(value, str):
            raise UnrecognizedPayloadError(
                f"'{rule.name}' holds {type(value).__name__}, not text", rule=rule.name, shape=shape
            )
        logger.debug("Upstream text located via %s (%d chars)", rule.name, len(value))
        return rule.name, value
    raise UnrecognizedPayloadError("no known field holds generated text", shape=shape)


def normalize_payload(payload: Any) -> str:
    """Return the generated text held by *payload*."""
    return locate_text(payload)[1]
