from __future__ import annotations

import hashlib

from .formats import parse_schema
from .types import DEFAULT_SCHEMA_NAME, DatabaseSchema, SchemaFormat


class SchemaCache:
    """Memoizes parse_schema results for one owner.

    Keyed by a SHA-256 digest of the format, name and text. Schemas are
    immutable, so cached values are handed out as-is.
    """

    def __init__(self) -> None:
        self._entries: dict[str, DatabaseSchema | None] = {}
        self.hits = 0
        self.misses = 0

    def parse(
        self,
        text: str,
        format_hint: SchemaFormat | None = None,
        name: str = DEFAULT_SCHEMA_NAME,
    ) -> DatabaseSchema | None:
        key = self.key(text, format_hint, name)
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        schema = parse_schema(text, format_hint, name)
        self._entries[key] = schema
        return schema

    @staticmethod
    def key(text: str, format_hint: str | None = None, name: str = DEFAULT_SCHEMA_NAME) -> str:
        digest = hashlib.sha256()
        for part in (format_hint or "", name, text):
            digest.update(part.encode("utf-8"))
            digest.update(b"\0")
        return digest.hexdigest()

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def contains(
        self,
        text: str,
        format_hint: SchemaFormat | None = None,
        name: str = DEFAULT_SCHEMA_NAME,
    ) -> bool:
        """Whether parse(text, format_hint, name) would be a cache hit."""
        return self.key(text, format_hint, name) in self._entries
