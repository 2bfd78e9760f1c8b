"""Error recovery policy for malformed NXML.

Each irregularity class maps to exactly one recovery action, so lenient
parsing is deterministic. The DiagnosticCollector is the single place where
an irregularity becomes either a raised error (strict mode) or a recorded
diagnostic (lenient mode).
"""

from typing import Dict, List, Optional

from robust_nxml.shared.logging import get_logger
from robust_nxml.shared.result import (
    Diagnostic,
    DiagnosticKind,
    DiagnosticSeverity,
    RecoveryAction,
    error_for,
)

from .tokenizer import NxmlTokenizer

RECOVERY_POLICY: Dict[DiagnosticKind, RecoveryAction] = {
    DiagnosticKind.MISSING_OPENING_SYMBOL: RecoveryAction.SKIP_TO_TAG,
    DiagnosticKind.MISSING_ELEMENT_NAME: RecoveryAction.USE_EMPTY_NAME,
    DiagnosticKind.UNTERMINATED_ATTRIBUTE_VALUE: RecoveryAction.TAKE_LITERAL,
    DiagnosticKind.UNQUOTED_ATTRIBUTE_VALUE: RecoveryAction.TAKE_LITERAL,
    DiagnosticKind.UNTERMINATED_MARKUP: RecoveryAction.DISCARD,
    DiagnosticKind.INVALID_ENCODING: RecoveryAction.DECODE_WITH_REPLACEMENT,
    DiagnosticKind.MISSING_EQUALS_SIGN: RecoveryAction.DROP_ATTRIBUTE,
    DiagnosticKind.MISSING_ATTRIBUTE_VALUE: RecoveryAction.DROP_ATTRIBUTE,
    DiagnosticKind.DUPLICATE_ATTRIBUTE: RecoveryAction.LAST_VALUE_WINS,
    DiagnosticKind.UNEXPECTED_TOKEN: RecoveryAction.SKIP_TOKEN,
    DiagnosticKind.UNCLOSED_TAG: RecoveryAction.ASSUME_TAG_END,
    DiagnosticKind.UNEXPECTED_EOF_IN_TAG: RecoveryAction.ASSUME_CLOSED,
    DiagnosticKind.MISMATCHED_CLOSING_TAG: RecoveryAction.ACCEPT_MISMATCH,
    DiagnosticKind.MISSING_CLOSING_SYMBOL: RecoveryAction.SKIP_TO_TAG_END,
    DiagnosticKind.UNCLOSED_ELEMENT: RecoveryAction.CLOSE_AT_EOF,
    DiagnosticKind.TRAILING_CONTENT: RecoveryAction.IGNORE_REST,
}

# Irregularities that lose no information from the input
_WARNING_KINDS = frozenset({
    DiagnosticKind.UNQUOTED_ATTRIBUTE_VALUE,
    DiagnosticKind.MISMATCHED_CLOSING_TAG,
    DiagnosticKind.UNCLOSED_ELEMENT,
})


def recovery_for(kind: DiagnosticKind) -> RecoveryAction:
    """Look up the recovery action for an irregularity class."""
    return RECOVERY_POLICY[kind]


def severity_for(kind: DiagnosticKind) -> DiagnosticSeverity:
    if kind in _WARNING_KINDS:
        return DiagnosticSeverity.WARNING
    return DiagnosticSeverity.ERROR


class DiagnosticCollector:
    """Accumulates diagnostics for one parse run.

    In strict mode ``report`` raises the matching NxmlParseError subclass
    instead of recording anything.
    """

    def __init__(
        self,
        tokenizer: NxmlTokenizer,
        strict: bool = False,
        correlation_id: Optional[str] = None
    ) -> None:
        self.tokenizer = tokenizer
        self.strict = strict
        self.correlation_id = correlation_id
        self.diagnostics: List[Diagnostic] = []
        self.logger = get_logger(__name__, correlation_id, "recovery")

    def __len__(self) -> int:
        return len(self.diagnostics)

    def report(
        self,
        kind: DiagnosticKind,
        offset: int,
        expected: Optional[str] = None,
        found: Optional[str] = None,
        **details: str
    ) -> RecoveryAction:
        """Record an irregularity at ``offset`` and return the recovery to apply.

        Raises:
            LexicalError: In strict mode, for lexical irregularities
            StructuralError: In strict mode, for structural irregularities
        """
        diagnostic = Diagnostic(
            kind=kind,
            message=kind.describe(expected=expected, found=found, **details),
            position=self.tokenizer.position_at(offset),
            recovery=recovery_for(kind),
            severity=severity_for(kind),
            expected=expected,
            found=found,
            details=dict(details),
            correlation_id=self.correlation_id,
        )
        if self.strict:
            raise error_for(diagnostic)

        self.diagnostics.append(diagnostic)
        self.logger.debug(
            "Recovered from malformed input",
            extra={
                "diagnostic_kind": kind.name,
                "recovery": diagnostic.recovery.name,
                "line": diagnostic.position.line,
                "column": diagnostic.position.column,
            }
        )
        return diagnostic.recovery
