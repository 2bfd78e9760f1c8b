"""Diagnostic records and error types for NXML parsing.

Every malformed construct the parser meets is described by a Diagnostic. In
lenient mode diagnostics are collected next to a best-effort tree; in strict
mode the first one is raised inside a LexicalError or StructuralError.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    WARNING = auto()    # Irregular input that lost no data
    ERROR = auto()      # Irregular input recovered by guessing


class DiagnosticCategory(Enum):
    """Taxonomy of parse irregularities."""

    LEXICAL = auto()     # Malformed token
    STRUCTURAL = auto()  # Malformed nesting or attribute set


class RecoveryAction(Enum):
    """What lenient parsing does after recording an irregularity."""

    SKIP_TO_TAG = auto()            # Drop input until a tag starts
    USE_EMPTY_NAME = auto()         # Keep the element with an empty name
    TAKE_LITERAL = auto()           # Keep the best-effort literal value
    DISCARD = auto()                # Drop the construct entirely
    DECODE_WITH_REPLACEMENT = auto()  # Replace undecodable bytes with U+FFFD
    DROP_ATTRIBUTE = auto()         # Forget the attribute being read
    LAST_VALUE_WINS = auto()        # Replace the earlier value in place
    SKIP_TOKEN = auto()             # Ignore one token
    ASSUME_TAG_END = auto()         # Act as if '>' had been seen
    ASSUME_CLOSED = auto()          # Act as if the element were closed
    ACCEPT_MISMATCH = auto()        # Close the current element anyway
    SKIP_TO_TAG_END = auto()        # Drop tokens up to the next '>'
    CLOSE_AT_EOF = auto()           # Close open elements at end of input
    IGNORE_REST = auto()            # Stop reading


class DiagnosticKind(Enum):
    """Every irregularity the parser recognizes, with its message template."""

    MISSING_OPENING_SYMBOL = (
        DiagnosticCategory.LEXICAL,
        "Couldn't find a '<' to start parsing with, found {found}",
    )
    MISSING_ELEMENT_NAME = (
        DiagnosticCategory.LEXICAL,
        "Expected a name of the element after <, found {found}",
    )
    UNTERMINATED_ATTRIBUTE_VALUE = (
        DiagnosticCategory.LEXICAL,
        "parsing tag '{tag}', attribute '{attribute}' - value is missing its closing '\"'",
    )
    UNQUOTED_ATTRIBUTE_VALUE = (
        DiagnosticCategory.LEXICAL,
        "parsing tag '{tag}', attribute '{attribute}' - value {found} is not quoted",
    )
    UNTERMINATED_MARKUP = (
        DiagnosticCategory.LEXICAL,
        "Comment, declaration or processing instruction is never closed, expected '{expected}'",
    )
    INVALID_ENCODING = (
        DiagnosticCategory.LEXICAL,
        "Input is not valid UTF-8: {found}",
    )
    MISSING_EQUALS_SIGN = (
        DiagnosticCategory.STRUCTURAL,
        "parsing tag '{tag}', attribute '{attribute}' - expected '=', found {found}",
    )
    MISSING_ATTRIBUTE_VALUE = (
        DiagnosticCategory.STRUCTURAL,
        "parsing tag '{tag}', attribute '{attribute}' - expected a \"string\" after =, "
        "found {found}",
    )
    DUPLICATE_ATTRIBUTE = (
        DiagnosticCategory.STRUCTURAL,
        "parsing tag '{tag}', attribute '{attribute}' is defined more than once",
    )
    UNEXPECTED_TOKEN = (
        DiagnosticCategory.STRUCTURAL,
        "parsing tag '{tag}' - unexpected {found}",
    )
    UNCLOSED_TAG = (
        DiagnosticCategory.STRUCTURAL,
        "Tag '<{tag}' is not closed with '>' before the next tag",
    )
    UNEXPECTED_EOF_IN_TAG = (
        DiagnosticCategory.STRUCTURAL,
        "Input ended inside tag '<{tag}'",
    )
    MISMATCHED_CLOSING_TAG = (
        DiagnosticCategory.STRUCTURAL,
        "Closing element is in wrong order. Expected '</{expected}>', but instead got '{found}'",
    )
    MISSING_CLOSING_SYMBOL = (
        DiagnosticCategory.STRUCTURAL,
        "No closing '>' found for ending element </{tag}>, found {found}",
    )
    UNCLOSED_ELEMENT = (
        DiagnosticCategory.STRUCTURAL,
        "Input ended before element '{tag}' was closed, expected '</{tag}>'",
    )
    TRAILING_CONTENT = (
        DiagnosticCategory.STRUCTURAL,
        "Unexpected {found} after the root element",
    )

    def __init__(self, category: DiagnosticCategory, template: str) -> None:
        self.category = category
        self.template = template

    def describe(self, **details: Any) -> str:
        """Render the message template, leaving unknown fields empty."""
        present = {key: value for key, value in details.items() if value is not None}
        return self.template.format_map(_BlankDefaults(present))


class _BlankDefaults(dict):
    def __missing__(self, key: str) -> str:
        return ""


@dataclass(frozen=True)
class TokenPosition:
    """Position information for tokens and diagnostics."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass
class Diagnostic:
    """One recoverable irregularity met while parsing."""

    kind: DiagnosticKind
    message: str
    position: TokenPosition
    recovery: RecoveryAction
    severity: DiagnosticSeverity = DiagnosticSeverity.ERROR
    expected: Optional[str] = None
    found: Optional[str] = None
    details: Dict[str, str] = field(default_factory=dict)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")

    @property
    def category(self) -> DiagnosticCategory:
        return self.kind.category

    @property
    def is_lexical(self) -> bool:
        return self.kind.category is DiagnosticCategory.LEXICAL

    @property
    def is_structural(self) -> bool:
        return self.kind.category is DiagnosticCategory.STRUCTURAL

    def __str__(self) -> str:
        return f"{self.message} [{self.position}]"

    def to_dict(self) -> Dict[str, Any]:
        """Convert diagnostic to a JSON-friendly dictionary."""
        return {
            "kind": self.kind.name,
            "category": self.kind.category.name,
            "severity": self.severity.name,
            "message": self.message,
            "line": self.position.line,
            "column": self.position.column,
            "offset": self.position.offset,
            "recovery": self.recovery.name,
            "expected": self.expected,
            "found": self.found,
        }


class NxmlError(Exception):
    """Base exception for this package."""


class NxmlParseError(NxmlError):
    """Raised by strict parsing on the first irregularity."""

    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(str(diagnostic))
        self.diagnostic = diagnostic

    @property
    def kind(self) -> DiagnosticKind:
        return self.diagnostic.kind

    @property
    def position(self) -> TokenPosition:
        return self.diagnostic.position

    @property
    def offset(self) -> int:
        return self.diagnostic.position.offset

    @property
    def expected(self) -> Optional[str]:
        return self.diagnostic.expected

    @property
    def found(self) -> Optional[str]:
        return self.diagnostic.found


class LexicalError(NxmlParseError):
    """Malformed token, e.g. an attribute value missing its closing quote."""


class StructuralError(NxmlParseError):
    """Malformed nesting or attribute set, e.g. a mismatched closing tag."""


class ElementLookupError(NxmlError, KeyError):
    """A required child element or attribute does not exist."""

    def __init__(self, message: str, key: str) -> None:
        super().__init__(message)
        self.message = message
        self.key = key

    def __str__(self) -> str:
        return self.message


def error_for(diagnostic: Diagnostic) -> NxmlParseError:
    """Wrap a diagnostic in the exception class matching its category."""
    if diagnostic.is_lexical:
        return LexicalError(diagnostic)
    return StructuralError(diagnostic)
