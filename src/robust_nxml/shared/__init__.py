"""Shared utilities for NXML parsing.

This module provides the data structures used across the scanner, parser,
tree model and serializer: source spans, diagnostics and error types,
configuration, and logging helpers.
"""

from .config import DEFAULT_CONFIG, ParserConfig
from .logging import CorrelationLogger, get_logger
from .result import (
    Diagnostic,
    DiagnosticCategory,
    DiagnosticKind,
    DiagnosticSeverity,
    ElementLookupError,
    LexicalError,
    NxmlError,
    NxmlParseError,
    RecoveryAction,
    StructuralError,
    TokenPosition,
    error_for,
)
from .span import SourceSpan, TextValue, text_of

__all__ = [
    "DEFAULT_CONFIG",
    "ParserConfig",
    "CorrelationLogger",
    "get_logger",
    "Diagnostic",
    "DiagnosticCategory",
    "DiagnosticKind",
    "DiagnosticSeverity",
    "ElementLookupError",
    "LexicalError",
    "NxmlError",
    "NxmlParseError",
    "RecoveryAction",
    "StructuralError",
    "TokenPosition",
    "error_for",
    "SourceSpan",
    "TextValue",
    "text_of",
]
