"""Lexical scanner for the NXML dialect.

Splits an input string into tag punctuation, names, attribute values, text
runs and skipped markup (comments, declarations, processing instructions).
Tokens reference the input through SourceSpan objects; the scanner never
copies text and performs no validation beyond recognizing delimiters.
"""

import bisect
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List, Optional, Tuple

from robust_nxml.shared.result import TokenPosition
from robust_nxml.shared.span import SourceSpan

WHITESPACE = frozenset(" \t\r\n")
# Characters that end a bare word inside a tag
NAME_DELIMITERS = frozenset(" \t\r\n<>=/\"")
# Characters that end an unquoted attribute value ("/>" is checked separately)
VALUE_DELIMITERS = frozenset(" \t\r\n<>\"")
BYTE_ORDER_MARK = "\ufeff"

CDATA_OPEN = "<![CDATA["
CDATA_CLOSE = "]]>"
COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"


class TokenType(Enum):
    """Token types produced by the scanner."""

    TAG_OPEN = auto()                # <
    CLOSE_TAG_OPEN = auto()          # </
    NAME = auto()                    # Element or attribute name inside a tag
    EQUALS = auto()                  # =
    QUOTED_VALUE = auto()            # "value", span excludes the quotes
    UNQUOTED_VALUE = auto()          # Bare attribute value literal
    SELF_CLOSE = auto()              # />
    TAG_END = auto()                 # >
    SLASH = auto()                   # / not followed by >
    TEXT = auto()                    # Character content between tags
    COMMENT = auto()                 # <!-- ... -->
    DECLARATION = auto()             # <! ... >
    PROCESSING_INSTRUCTION = auto()  # <? ... ?>
    EOF = auto()


SKIPPED_TOKENS = frozenset({
    TokenType.COMMENT,
    TokenType.DECLARATION,
    TokenType.PROCESSING_INSTRUCTION,
})

_CLOSERS = {
    TokenType.COMMENT: COMMENT_CLOSE,
    TokenType.DECLARATION: ">",
    TokenType.PROCESSING_INSTRUCTION: "?>",
}


class ScannerMode(Enum):
    """Lexical context of the cursor."""

    CONTENT = auto()  # Between tags
    TAG = auto()      # After '<' or '</', before '>' or '/>'


@dataclass(frozen=True)
class Token:
    """A single token with its span in the source."""

    type: TokenType
    span: SourceSpan
    start: int
    terminated: bool = True

    @property
    def value(self) -> str:
        return str(self.span)

    @property
    def is_skipped(self) -> bool:
        """Comments, declarations and processing instructions carry no data."""
        return self.type in SKIPPED_TOKENS

    @property
    def closer(self) -> str:
        """Delimiter that should have ended a skipped construct."""
        return _CLOSERS.get(self.type, "")

    def describe(self) -> str:
        """Human-readable form used in diagnostics."""
        if self.type is TokenType.EOF:
            return "end of input"
        if self.type is TokenType.QUOTED_VALUE:
            return f'"{self.value}"'
        return repr(self.value)


_ScanResult = Tuple[Token, int, ScannerMode]


class NxmlTokenizer:
    """Cursor-based scanner over an in-memory NXML string.

    The scanner keeps one token of lookahead. ``peek`` computes the next token
    without moving the cursor, ``next_token`` consumes it, and
    ``take_value`` consumes an attribute value when one follows.
    """

    def __init__(self, source: str) -> None:
        if not isinstance(source, str):
            raise TypeError("Tokenizer source must be a str")
        self.source = source
        self._length = len(source)
        self._pos = 1 if source.startswith(BYTE_ORDER_MARK) else 0
        self._mode = ScannerMode.CONTENT
        self._peeked: Optional[_ScanResult] = None
        self._line_starts: Optional[List[int]] = None
        self.tokens_scanned = 0

    @property
    def offset(self) -> int:
        """Offset of the first character not yet consumed."""
        return self._pos

    @property
    def mode(self) -> ScannerMode:
        return self._mode

    @property
    def at_eof(self) -> bool:
        return self.peek().type is TokenType.EOF

    def position(self) -> TokenPosition:
        """Position of the cursor, for diagnostics."""
        return self.position_at(self._pos)

    def position_at(self, offset: int) -> TokenPosition:
        """Translate a character offset into a 1-based line and column."""
        offset = max(0, min(offset, self._length))
        if self._line_starts is None:
            starts = [0]
            index = self.source.find("\n")
            while index != -1:
                starts.append(index + 1)
                index = self.source.find("\n", index + 1)
            self._line_starts = starts
        line = bisect.bisect_right(self._line_starts, offset)
        column = offset - self._line_starts[line - 1] + 1
        return TokenPosition(line=line, column=column, offset=offset)

    def peek(self) -> Token:
        """Return the next token without consuming it."""
        if self._peeked is None:
            self._peeked = self._scan(self._pos, self._mode)
        return self._peeked[0]

    def next_token(self) -> Token:
        """Consume and return the next token."""
        if self._peeked is not None:
            token, pos, mode = self._peeked
            self._peeked = None
        else:
            token, pos, mode = self._scan(self._pos, self._mode)
        self._pos = pos
        self._mode = mode
        self.tokens_scanned += 1
        return token

    def take_value(self) -> Token:
        """Consume an attribute value if one follows the cursor.

        A double-quoted value yields QUOTED_VALUE; any other run of
        characters up to whitespace, a quote, '<', '>' or '/>' yields
        UNQUOTED_VALUE. When no value follows, the upcoming token is returned
        without being consumed.
        """
        if self._mode is ScannerMode.TAG:
            pos = self._skip_whitespace(self._pos)
            if pos < self._length:
                char = self.source[pos]
                if char not in VALUE_DELIMITERS and not self.source.startswith("/>", pos):
                    end = pos
                    while (
                        end < self._length
                        and self.source[end] not in VALUE_DELIMITERS
                        and not self.source.startswith("/>", end)
                    ):
                        end += 1
                    self._peeked = None
                    self._pos = end
                    self.tokens_scanned += 1
                    return Token(TokenType.UNQUOTED_VALUE, self._span(pos, end), pos)
        token = self.peek()
        if token.type is TokenType.QUOTED_VALUE:
            return self.next_token()
        return token

    def __iter__(self) -> Iterator[Token]:
        """Yield tokens up to and including EOF."""
        while True:
            token = self.next_token()
            yield token
            if token.type is TokenType.EOF:
                return

    def _span(self, start: int, end: int) -> SourceSpan:
        return SourceSpan(self.source, start, end)

    def _skip_whitespace(self, pos: int) -> int:
        while pos < self._length and self.source[pos] in WHITESPACE:
            pos += 1
        return pos

    def _scan(self, pos: int, mode: ScannerMode) -> _ScanResult:
        if mode is ScannerMode.TAG:
            return self._scan_tag(pos)
        return self._scan_content(pos)

    def _eof(self, mode: ScannerMode) -> _ScanResult:
        end = self._length
        return Token(TokenType.EOF, self._span(end, end), end), end, mode

    def _scan_content(self, pos: int) -> _ScanResult:
        source = self.source
        while True:
            if pos >= self._length:
                return self._eof(ScannerMode.CONTENT)
            if source[pos] == "<" and not source.startswith(CDATA_OPEN, pos):
                return self._scan_markup(pos, ScannerMode.CONTENT)

            end = self._find_text_end(pos)
            start, stop = pos, end
            while start < stop and source[start] in WHITESPACE:
                start += 1
            while stop > start and source[stop - 1] in WHITESPACE:
                stop -= 1
            if start < stop:
                token = Token(TokenType.TEXT, self._span(start, stop), start)
                return token, end, ScannerMode.CONTENT
            pos = end

    def _find_text_end(self, pos: int) -> int:
        """Text runs stop at the next '<', passing CDATA sections through literally."""
        source = self.source
        while True:
            if source.startswith(CDATA_OPEN, pos):
                close = source.find(CDATA_CLOSE, pos + len(CDATA_OPEN))
                if close == -1:
                    return self._length
                pos = close + len(CDATA_CLOSE)
                continue
            end = source.find("<", pos)
            if end == -1:
                return self._length
            if not source.startswith(CDATA_OPEN, end):
                return end
            pos = end

    def _scan_markup(self, pos: int, mode: ScannerMode) -> _ScanResult:
        source = self.source
        if source.startswith(COMMENT_OPEN, pos):
            return self._scan_delimited(
                TokenType.COMMENT, pos, len(COMMENT_OPEN), COMMENT_CLOSE, mode
            )
        if source.startswith("<!", pos):
            return self._scan_delimited(TokenType.DECLARATION, pos, 2, ">", mode)
        if source.startswith("<?", pos):
            return self._scan_delimited(TokenType.PROCESSING_INSTRUCTION, pos, 2, "?>", mode)
        if source.startswith("</", pos):
            token = Token(TokenType.CLOSE_TAG_OPEN, self._span(pos, pos + 2), pos)
            return token, pos + 2, ScannerMode.TAG
        token = Token(TokenType.TAG_OPEN, self._span(pos, pos + 1), pos)
        return token, pos + 1, ScannerMode.TAG

    def _scan_delimited(
        self,
        token_type: TokenType,
        pos: int,
        opener_length: int,
        closer: str,
        mode: ScannerMode
    ) -> _ScanResult:
        body_start = pos + opener_length
        close = self.source.find(closer, body_start)
        if close == -1:
            token = Token(token_type, self._span(body_start, self._length), pos, terminated=False)
            return token, self._length, mode
        token = Token(token_type, self._span(body_start, close), pos)
        return token, close + len(closer), mode

    def _scan_tag(self, pos: int) -> _ScanResult:
        source = self.source
        pos = self._skip_whitespace(pos)
        if pos >= self._length:
            return self._eof(ScannerMode.TAG)

        char = source[pos]
        if char == ">":
            token = Token(TokenType.TAG_END, self._span(pos, pos + 1), pos)
            return token, pos + 1, ScannerMode.CONTENT
        if char == "/":
            if source.startswith("/>", pos):
                token = Token(TokenType.SELF_CLOSE, self._span(pos, pos + 2), pos)
                return token, pos + 2, ScannerMode.CONTENT
            token = Token(TokenType.SLASH, self._span(pos, pos + 1), pos)
            return token, pos + 1, ScannerMode.TAG
        if char == "=":
            token = Token(TokenType.EQUALS, self._span(pos, pos + 1), pos)
            return token, pos + 1, ScannerMode.TAG
        if char == '"':
            close = source.find('"', pos + 1)
            if close == -1:
                span = self._span(pos + 1, self._length)
                token = Token(TokenType.QUOTED_VALUE, span, pos, terminated=False)
                return token, self._length, ScannerMode.TAG
            token = Token(TokenType.QUOTED_VALUE, self._span(pos + 1, close), pos)
            return token, close + 1, ScannerMode.TAG
        if char == "<":
            return self._scan_markup(pos, ScannerMode.TAG)

        end = pos + 1
        while end < self._length and source[end] not in NAME_DELIMITERS:
            end += 1
        return Token(TokenType.NAME, self._span(pos, end), pos), end, ScannerMode.TAG


def tokenize(source: str) -> List[Token]:
    """Scan a whole string into a token list ending with EOF.

    Attribute values are only recognized in their quoted form here; bare
    values come out as NAME tokens.
    """
    return list(NxmlTokenizer(source))
