"""Validation helpers for envelope metadata."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from packages.newsdesk_shared.errors import ErrorDetail, codes, validation_error

from .meta import EnvelopeKind, EnvelopeMeta


class _ValidatedEnvelopeMeta(BaseModel):
    """Validation-only envelope metadata model used by ``validate_meta``."""

    model_config = ConfigDict(extra="forbid")

    envelope_id: str = Field(min_length=1)
    trace_id: str = Field(min_length=1)
    parent_id: str
    timestamp: datetime
    kind: EnvelopeKind
    source: str = Field(min_length=1)
    principal: str = Field(min_length=1)

    @field_validator("kind")
    @classmethod
    def _enforce_kind(cls, value: EnvelopeKind) -> EnvelopeKind:
        """Reject unspecified envelope kinds."""
        if value == EnvelopeKind.UNSPECIFIED:
            raise ValueError("metadata.kind must be specified")
        return value


def validate_meta(meta: EnvelopeMeta) -> list[ErrorDetail]:
    """Validate required envelope metadata fields.

    Returns an empty list for valid metadata, otherwise one validation error
    describing the first offending field.
    """
    try:
        _ValidatedEnvelopeMeta.model_validate(asdict(meta))
    except ValidationError as exc:
        return [
            validation_error(
                _map_meta_validation_error(exc),
                code=codes.INVALID_ARGUMENT,
            )
        ]
    return []


def _map_meta_validation_error(error: ValidationError) -> str:
    """Map Pydantic metadata validation failures to stable public messages."""
    first_error = error.errors()[0]
    location = first_error.get("loc", ())
    if not location:
        return str(first_error.get("msg", "invalid metadata"))

    field_name = str(location[0])
    if field_name in {"envelope_id", "trace_id", "timestamp", "source", "principal"}:
        return f"metadata.{field_name} is required"
    if field_name == "kind":
        return "metadata.kind must be specified"
    return str(first_error.get("msg", "invalid metadata"))
