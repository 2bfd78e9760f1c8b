"""Tokenization layer for NXML parsing.

Key Components:
    NxmlTokenizer: Cursor-based scanner producing span-backed tokens
    Token: A single token with its type, span and start offset
    TokenType: Enumeration of all token types
    DiagnosticCollector: Strict/lenient sink for parse irregularities
    RECOVERY_POLICY: Recovery action applied to each irregularity class
"""

from .recovery import (
    RECOVERY_POLICY,
    DiagnosticCollector,
    recovery_for,
    severity_for,
)
from .tokenizer import (
    SKIPPED_TOKENS,
    NxmlTokenizer,
    ScannerMode,
    Token,
    TokenType,
    tokenize,
)

__all__ = [
    "RECOVERY_POLICY",
    "DiagnosticCollector",
    "recovery_for",
    "severity_for",
    "SKIPPED_TOKENS",
    "NxmlTokenizer",
    "ScannerMode",
    "Token",
    "TokenType",
    "tokenize",
]
