"""Borrowed text spans over an input buffer.

A SourceSpan names a substring of the parsed input by its bounds instead of
copying it. Spans compare and hash like the text they denote, so a borrowed
tree can be queried with plain strings.
"""

from typing import Union


class SourceSpan:
    """A half-open ``[start, end)`` slice of a source string."""

    __slots__ = ("source", "start", "end")

    def __init__(self, source: str, start: int, end: int) -> None:
        if not (0 <= start <= end <= len(source)):
            raise ValueError("Span bounds must satisfy 0 <= start <= end <= len(source)")
        self.source = source
        self.start = start
        self.end = end

    def __str__(self) -> str:
        return self.source[self.start:self.end]

    def __len__(self) -> int:
        return self.end - self.start

    def __bool__(self) -> bool:
        return self.end > self.start

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SourceSpan):
            if other.source is self.source and other.start == self.start:
                return other.end == self.end
            other = str(other)
        if isinstance(other, str):
            return len(other) == len(self) and self.source.startswith(other, self.start)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))

    def __repr__(self) -> str:
        return f"SourceSpan({str(self)!r}, {self.start}, {self.end})"

    def to_owned(self) -> str:
        """Copy the denoted text out of the source buffer."""
        return str(self)


TextValue = Union[SourceSpan, str]


def text_of(value: TextValue) -> str:
    """Materialize a span or pass a string through."""
    if isinstance(value, str):
        return value
    return str(value)
