"""Core data models for stored proverbs.

Key components:
- Proverb: Immutable text record with a set of case-sensitive tags
- SourceRecord: One unparsed row of an import file
- parse_tags: Split a delimited tags field into distinct tag tokens
"""

from typing import Any

import msgspec

TAG_DELIMITER = "|"

# Longest tag in UTF-8 bytes; every backend must be able to index it
MAX_TAG_BYTES = 255


def parse_tags(raw: str | None, delimiter: str = TAG_DELIMITER) -> tuple[str, ...]:
    """Split a delimited tags field into distinct tags.

    Whitespace around each token is trimmed and repeated tokens collapse to
    their first occurrence. A blank field yields no tags.

    Args:
        raw: The tags field as read from the source.
        delimiter: Separator between tag tokens.

    Returns:
        Tuple of tags in order of first appearance.

    Raises:
        ValueError: If the field contains an empty token, as in ``a||b``.
    """
    if raw is None or not raw.strip():
        return ()

    tags: list[str] = []
    for token in raw.split(delimiter):
        tag = token.strip()
        if not tag:
            raise ValueError(f"empty tag in {raw!r}")
        if tag not in tags:
            tags.append(tag)
    return tuple(tags)


class Proverb(msgspec.Struct, frozen=True, kw_only=True):
    """A short text record with a set of tags.

    The identity is assigned by the backend when the proverb is inserted
    and is ``None`` until then. Tags are compared case-sensitively; their
    order is kept only for display.
    """

    text: str
    tags: tuple[str, ...] = ()
    id: str | None = None

    def __post_init__(self):
        """Enforce the record invariants."""
        if not self.text or not self.text.strip():
            raise ValueError("proverb text must not be empty")
        if any(not tag for tag in self.tags):
            raise ValueError("tags must not be empty strings")
        for tag in self.tags:
            if len(tag.encode("utf-8")) > MAX_TAG_BYTES:
                raise ValueError(f"tag exceeds {MAX_TAG_BYTES} bytes: {tag[:20]!r}")
        if len(set(self.tags)) != len(self.tags):
            raise ValueError(f"duplicate tags: {self.tags!r}")

    @property
    def content(self) -> tuple[str, frozenset[str]]:
        """Identity-free value used to compare proverbs across stores."""
        return (self.text, frozenset(self.tags))

    def has_tag(self, tag: str) -> bool:
        """Check for an exact, case-sensitive tag match."""
        return tag in self.tags

    def matches(self, substring: str) -> bool:
        """Check for a case-insensitive, unanchored text match."""
        return substring.lower() in self.text.lower()

    def with_id(self, identity: str) -> "Proverb":
        """Return a copy carrying a backend-assigned identity."""
        return msgspec.structs.replace(self, id=identity)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary."""
        return msgspec.to_builtins(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Proverb":
        """Create a Proverb from its dictionary representation."""
        if isinstance(data.get("tags"), list):
            data = {**data, "tags": tuple(data["tags"])}
        return msgspec.convert(data, cls)


class SourceRecord(msgspec.Struct, frozen=True):
    """One data row of an import file, before tag parsing."""

    line: int
    text: str
    raw_tags: str = ""

    def to_proverb(self) -> Proverb:
        """Parse the row into a Proverb.

        Raises:
            ValueError: If the tags field is malformed or the text is empty.
        """
        return Proverb(text=self.text.strip(), tags=parse_tags(self.raw_tags))
