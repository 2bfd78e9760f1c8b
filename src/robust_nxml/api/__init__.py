"""Public parsing API and library integration adapters."""

from .adapters import (
    ADAPTERS,
    AdapterMetadata,
    ConversionResult,
    ElementTreeAdapter,
    IntegrationAdapter,
    LxmlAdapter,
    get_adapter,
    list_available_adapters,
)
from .parser import (
    InputType,
    LenientForestResult,
    LenientParseResult,
    NxmlParser,
    parse_all_lenient,
    parse_all_strict,
    parse_lenient,
    parse_strict,
)

__all__ = [
    "ADAPTERS",
    "AdapterMetadata",
    "ConversionResult",
    "ElementTreeAdapter",
    "IntegrationAdapter",
    "LxmlAdapter",
    "get_adapter",
    "list_available_adapters",
    "InputType",
    "LenientForestResult",
    "LenientParseResult",
    "NxmlParser",
    "parse_all_lenient",
    "parse_all_strict",
    "parse_lenient",
    "parse_strict",
]
