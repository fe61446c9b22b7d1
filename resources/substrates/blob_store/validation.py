"""Validation helpers for blob store keys and prefixes."""

from __future__ import annotations

from urllib.parse import urlsplit


def normalize_blob_key(value: str, *, field_name: str = "key") -> str:
    """Return one object key without leading slashes, rejecting traversal."""
    normalized = value.strip().lstrip("/")
    if normalized == "":
        raise ValueError(f"{field_name} is required")
    if any(part in {"", ".", ".."} for part in normalized.split("/")):
        raise ValueError(f"{field_name} must not contain empty or relative segments")
    return normalized


def normalize_prefix(value: str) -> str:
    """Return a list prefix without leading slashes; empty means everything."""
    normalized = value.strip().lstrip("/")
    if ".." in normalized.split("/"):
        raise ValueError("prefix must not contain relative segments")
    return normalized


def key_from_url(url: str) -> str:
    """Return the object key of one blob URL, i.e. its path without leading slashes."""
    return urlsplit(url.strip()).path.lstrip("/")
