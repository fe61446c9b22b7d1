"""Managed-URL classification and reference extraction.

Both helpers are pure: they never touch the registry or the object store, so
they can run before a transaction opens.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit, urlunsplit

from services.state.asset_authority.domain import EntityFields


class BlobUrlClassifier:
    """Decide whether a URL belongs to the managed blob namespace."""

    def __init__(self, host_suffix: str) -> None:
        self._host_suffix = host_suffix.strip().strip(".").lower()
        self._pattern = re.compile(
            r"https?://(?:[a-z0-9-]+\.)?"
            + re.escape(self._host_suffix)
            + r"/[^\s\"'()<>]+",
            re.IGNORECASE,
        )

    @property
    def host_suffix(self) -> str:
        """Return the normalized managed hostname suffix."""
        return self._host_suffix

    @property
    def pattern(self) -> re.Pattern[str]:
        """Return the body-scanning pattern for managed URLs."""
        return self._pattern

    def is_managed(self, url: str | None) -> bool:
        """Return ``True`` only for http(s) URLs on the managed host suffix."""
        if not url:
            return False
        try:
            parts = urlsplit(url.strip())
            hostname = parts.hostname
        except ValueError:
            return False
        if parts.scheme.lower() not in {"http", "https"} or not hostname:
            return False
        hostname = hostname.lower()
        return hostname == self._host_suffix or hostname.endswith(
            "." + self._host_suffix
        )

    def canonicalize(self, url: str | None) -> str | None:
        """Return the registry form of one managed URL, or ``None`` when unmanaged.

        Scheme and host are lowercased and the query and fragment are dropped, so
        every variant that addresses one stored object maps to one asset.
        """
        if url is None or not self.is_managed(url):
            return None
        parts = urlsplit(url.strip())
        if parts.path in {"", "/"}:
            return None
        return urlunsplit(
            (parts.scheme.lower(), parts.netloc.lower(), parts.path, "", "")
        )


def extract_references(
    fields: EntityFields, *, classifier: BlobUrlClassifier
) -> frozenset[str]:
    """Return the de-duplicated canonical managed URLs referenced by one entity."""
    urls: set[str] = set()

    cover = classifier.canonicalize(fields.cover_url)
    if cover is not None:
        urls.add(cover)

    for body in (fields.content, fields.story_content):
        if not body:
            continue
        for match in classifier.pattern.finditer(body):
            candidate = classifier.canonicalize(match.group(0))
            if candidate is not None:
                urls.add(candidate)

    return frozenset(urls)

