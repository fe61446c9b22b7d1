"""SQLAlchemy helpers for ULID-backed primary keys."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Column
from sqlalchemy.dialects.postgresql import BYTEA


ULID_BYTES_LENGTH = 16


def ulid_primary_key_column(name: str = "id", *, table_name: str) -> Column[bytes]:
    """Return a BYTEA primary-key column constrained to 16-byte ULIDs."""
    return Column(
        name,
        BYTEA,
        CheckConstraint(
            f"octet_length({name}) = {ULID_BYTES_LENGTH}",
            name=f"ck_{table_name}_{name}_ulid_16",
        ),
        primary_key=True,
        nullable=False,
    )
