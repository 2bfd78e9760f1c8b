"""Element tree layer for NXML documents.

Key Components:
    ElementRef: Borrowed element produced by parsing
    Element: Owned, freely mutable element
    OrderedAttributes / UnorderedAttributes: Key-unique attribute maps
    ElementBuilder / E: Programmatic tree construction
    NxmlSerializer: Compact and pretty rendering
"""

from .attributes import (
    AttributeMap,
    OrderedAttributes,
    UnorderedAttributes,
    attribute_map_type,
    new_attribute_map,
)
from .builder import E, ElementBuilder
from .element import Element, ElementRef
from .serializer import NxmlSerializer, to_compact_string, to_pretty_string, to_string

__all__ = [
    "AttributeMap",
    "OrderedAttributes",
    "UnorderedAttributes",
    "attribute_map_type",
    "new_attribute_map",
    "E",
    "ElementBuilder",
    "Element",
    "ElementRef",
    "NxmlSerializer",
    "to_compact_string",
    "to_pretty_string",
    "to_string",
]
