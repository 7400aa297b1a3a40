"""Closed error taxonomy surfaced to callers of the generation pipeline."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ErrorKind(StrEnum):
    CONFIGURATION = "configuration_error"
    TRANSPORT = "transport_error"
    TIMEOUT = "timeout_error"
    UPSTREAM_RATE_LIMITED = "upstream_rate_limited"
    UPSTREAM_AUTH_FAILED = "upstream_auth_failed"
    UPSTREAM_SERVER_ERROR = "upstream_server_error"
    MALFORMED_UPSTREAM_PAYLOAD = "malformed_upstream_payload"
    NO_RECOGNIZABLE_OUTPUT = "no_recognizable_output"
    VALIDATION = "validation_error"
    PERSISTENCE = "persistence_error"
    NOT_FOUND = "not_found"


class ClassifiedError(BaseModel):
    """A taxonomy member with a user-facing message and a retry hint.

    Carries no raw exception detail; that stays in the logs.
    """

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    retriable: bool
