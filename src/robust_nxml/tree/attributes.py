"""Attribute maps for NXML elements.

Both implementations share one mapping interface and guarantee unique keys.
OrderedAttributes keeps insertion order and replaces re-inserted keys in
place; UnorderedAttributes makes no order promise. Keys and values may be
borrowed SourceSpans or plain strings; spans compare equal to their text, so
a string key replaces a span key with the same text.
"""

from typing import Iterable, Iterator, Mapping, MutableMapping, Optional, Tuple, Type, Union

from robust_nxml.shared.config import ParserConfig
from robust_nxml.shared.span import SourceSpan, TextValue, text_of

AttributeItems = Union[Mapping[TextValue, TextValue], Iterable[Tuple[TextValue, TextValue]]]


def _check_text(value: object, what: str) -> None:
    if not isinstance(value, (str, SourceSpan)):
        raise TypeError(f"Attribute {what} must be a str, got {type(value).__name__}")


class AttributeMap(MutableMapping):
    """Key-unique mapping from attribute name to attribute value."""

    ordered = True

    def __init__(self, items: Optional[AttributeItems] = None) -> None:
        self._data: dict = {}
        if items is not None:
            self.update(items)

    def __getitem__(self, key: TextValue) -> TextValue:
        return self._data[key]

    def __setitem__(self, key: TextValue, value: TextValue) -> None:
        _check_text(key, "name")
        _check_text(value, "value")
        if not key:
            raise ValueError("Attribute name cannot be empty")
        self._store(key, value)

    def __delitem__(self, key: TextValue) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[TextValue]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        pairs = ", ".join(f"{text_of(k)!r}: {text_of(v)!r}" for k, v in self._data.items())
        return f"{type(self).__name__}({{{pairs}}})"

    def _store(self, key: TextValue, value: TextValue) -> None:
        self._data[key] = value

    def insert(self, key: TextValue, value: TextValue) -> Optional[TextValue]:
        """Set ``key`` and return the value it replaced, if any."""
        previous = self._data.get(key)
        self[key] = value
        return previous

    def get_text(self, key: TextValue) -> Optional[str]:
        """Attribute value as a plain string, or None when absent."""
        value = self._data.get(key)
        if value is None:
            return None
        return text_of(value)

    def text_items(self) -> Iterator[Tuple[str, str]]:
        """Iterate ``(name, value)`` pairs as plain strings."""
        for key, value in self._data.items():
            yield text_of(key), text_of(value)

    def to_dict(self) -> dict:
        return dict(self.text_items())

    def owned_copy(self) -> "AttributeMap":
        """Same map type with every span copied into a plain string."""
        copy = type(self)()
        for key, value in self.text_items():
            copy._store(key, value)
        return copy


class OrderedAttributes(AttributeMap):
    """Attributes kept in insertion order; re-inserting keeps the position."""

    ordered = True


class UnorderedAttributes(AttributeMap):
    """Attributes with no order guarantee.

    Re-inserting an existing key moves it, so iteration order depends on the
    mutation history and must not be relied upon.
    """

    ordered = False

    def _store(self, key: TextValue, value: TextValue) -> None:
        self._data.pop(key, None)
        self._data[key] = value


def attribute_map_type(config: Optional[ParserConfig] = None) -> Type[AttributeMap]:
    """Attribute map class selected by the configuration."""
    if config is None or config.preserve_attribute_order:
        return OrderedAttributes
    return UnorderedAttributes


def new_attribute_map(config: Optional[ParserConfig] = None) -> AttributeMap:
    return attribute_map_type(config)()
