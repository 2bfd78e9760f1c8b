"""Robust NXML.

Parser and serializer for the pseudo-XML "NXML" dialect used by game engine
entity and configuration files. The dialect looks like XML but has no
escaping, tolerates malformed markup and has its own whitespace rules.

API levels:
- Level 1: Functions - parse_strict(), parse_lenient(), to_string()
- Level 2: Tree editing - Element, ElementBuilder and the E tree literal
- Level 3: Configured parser - NxmlParser with ParserConfig
"""

__version__ = "0.1.0"
__author__ = "Robust NXML Team"

from .api import (
    LenientForestResult,
    LenientParseResult,
    NxmlParser,
    parse_all_lenient,
    parse_all_strict,
    parse_lenient,
    parse_strict,
)
from .shared import (
    Diagnostic,
    DiagnosticCategory,
    DiagnosticKind,
    DiagnosticSeverity,
    ElementLookupError,
    LexicalError,
    NxmlError,
    NxmlParseError,
    ParserConfig,
    RecoveryAction,
    SourceSpan,
    StructuralError,
    TokenPosition,
)
from .tokenization import RECOVERY_POLICY
from .tree import (
    E,
    Element,
    ElementBuilder,
    ElementRef,
    NxmlSerializer,
    OrderedAttributes,
    UnorderedAttributes,
    to_compact_string,
    to_pretty_string,
    to_string,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",
    # Parsing
    "LenientForestResult",
    "LenientParseResult",
    "NxmlParser",
    "parse_all_lenient",
    "parse_all_strict",
    "parse_lenient",
    "parse_strict",
    # Configuration, diagnostics and errors
    "Diagnostic",
    "DiagnosticCategory",
    "DiagnosticKind",
    "DiagnosticSeverity",
    "ElementLookupError",
    "LexicalError",
    "NxmlError",
    "NxmlParseError",
    "ParserConfig",
    "RECOVERY_POLICY",
    "RecoveryAction",
    "SourceSpan",
    "StructuralError",
    "TokenPosition",
    # Tree model and serialization
    "E",
    "Element",
    "ElementBuilder",
    "ElementRef",
    "NxmlSerializer",
    "OrderedAttributes",
    "UnorderedAttributes",
    "to_compact_string",
    "to_pretty_string",
    "to_string",
]
