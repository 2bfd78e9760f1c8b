"""Parser API for the NXML dialect.

This module provides the entry points that turn NXML text into borrowed
element trees:

- ``parse_strict`` raises on the first irregularity.
- ``parse_lenient`` never raises for text or bytes input; it returns a
  best-effort tree together with every diagnostic that was recorded.
- ``parse_all_strict`` / ``parse_all_lenient`` accept several top-level
  elements and return them as a list.

Both modes share one forward pass over the scanner with a single token of
lookahead. Open elements are kept on an explicit stack, so nesting depth is
bounded by memory rather than by the interpreter's recursion limit.
"""

import codecs
from typing import List, NamedTuple, Optional, Tuple, Union

from robust_nxml.shared import (
    DEFAULT_CONFIG,
    Diagnostic,
    DiagnosticKind,
    DiagnosticSeverity,
    ParserConfig,
    SourceSpan,
    get_logger,
    text_of,
)
from robust_nxml.tokenization import DiagnosticCollector, NxmlTokenizer, Token, TokenType
from robust_nxml.tree import ElementRef, attribute_map_type

# Type definitions for input data
InputType = Union[str, bytes, bytearray, memoryview]

_TAG_STARTS = frozenset({TokenType.TAG_OPEN, TokenType.CLOSE_TAG_OPEN})


class LenientParseResult(NamedTuple):
    """Outcome of a lenient parse, unpackable as ``(element, diagnostics)``."""

    element: ElementRef
    diagnostics: List[Diagnostic]

    @property
    def has_errors(self) -> bool:
        """True when any recorded irregularity needed a guess to recover."""
        return any(d.severity is DiagnosticSeverity.ERROR for d in self.diagnostics)


class LenientForestResult(NamedTuple):
    """Outcome of a lenient multi-root parse."""

    elements: List[ElementRef]
    diagnostics: List[Diagnostic]

    @property
    def has_errors(self) -> bool:
        return any(d.severity is DiagnosticSeverity.ERROR for d in self.diagnostics)


def _decode_input(data: InputType) -> Tuple[str, Optional[Tuple[int, str]]]:
    """Decode the input to text.

    Returns:
        The text and, for undecodable bytes, the character offset and reason
        of the first bad sequence
    """
    if isinstance(data, str):
        return data, None
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"Input must be str or bytes, got {type(data).__name__}")

    raw = bytes(data)
    if raw.startswith(codecs.BOM_UTF8):
        raw = raw[len(codecs.BOM_UTF8):]
    try:
        return raw.decode("utf-8"), None
    except UnicodeDecodeError as e:
        offset = len(raw[:e.start].decode("utf-8", errors="replace"))
        return raw.decode("utf-8", errors="replace"), (offset, e.reason)


class _OpenElement:
    """An element whose closing tag has not been seen yet."""

    __slots__ = ("element", "runs")

    def __init__(self, element: ElementRef) -> None:
        self.element = element
        self.runs: List[SourceSpan] = []


class _ParseRun:
    """State for parsing one input; discarded afterwards."""

    def __init__(
        self,
        data: InputType,
        config: ParserConfig,
        strict: bool,
        correlation_id: Optional[str]
    ) -> None:
        text, encoding_error = _decode_input(data)
        self.source = text
        self.tokenizer = NxmlTokenizer(text)
        self.collector = DiagnosticCollector(self.tokenizer, strict, correlation_id)
        self.attribute_type = attribute_map_type(config)
        self.elements = 0
        if encoding_error is not None:
            offset, reason = encoding_error
            self.collector.report(DiagnosticKind.INVALID_ENCODING, offset, found=reason)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return self.collector.diagnostics

    def parse_document(self) -> ElementRef:
        root = self._parse_top_level(require_root=True)
        if root is None:
            end = len(self.source)
            return ElementRef(name=SourceSpan(self.source, end, end), attributes=self.attribute_type())
        self._check_trailing()
        return root

    def parse_forest(self) -> List[ElementRef]:
        roots: List[ElementRef] = []
        while True:
            root = self._parse_top_level(require_root=not roots)
            if root is None:
                return roots
            roots.append(root)

    def _report(self, kind: DiagnosticKind, token: Token, **details: Optional[str]) -> None:
        details.setdefault("found", token.describe())
        self.collector.report(kind, token.start, **details)

    def _skip_markup(self) -> None:
        token = self.tokenizer.next_token()
        if not token.terminated:
            self._report(DiagnosticKind.UNTERMINATED_MARKUP, token, expected=token.closer)

    def _parse_top_level(self, require_root: bool) -> Optional[ElementRef]:
        """Skip to the next top-level element and parse it."""
        reported = False
        while True:
            token = self.tokenizer.peek()
            if token.type is TokenType.TAG_OPEN:
                return self._parse_element()
            if token.type is TokenType.EOF:
                if require_root and not reported:
                    self._report(DiagnosticKind.MISSING_OPENING_SYMBOL, token, expected="'<'")
                return None
            if token.is_skipped:
                self._skip_markup()
                continue
            if not reported:
                self._report(DiagnosticKind.MISSING_OPENING_SYMBOL, token, expected="'<'")
                reported = True
            self.tokenizer.next_token()

    def _check_trailing(self) -> None:
        while True:
            token = self.tokenizer.peek()
            if token.type is TokenType.EOF:
                return
            if token.is_skipped:
                self._skip_markup()
                continue
            self._report(DiagnosticKind.TRAILING_CONTENT, token, expected="end of input")
            return

    def _parse_element(self) -> ElementRef:
        root, closed = self._parse_open_tag()
        if closed:
            return root

        stack = [_OpenElement(root)]
        while stack:
            frame = stack[-1]
            token = self.tokenizer.peek()
            if token.type is TokenType.TEXT:
                self.tokenizer.next_token()
                frame.runs.append(token.span)
            elif token.is_skipped:
                self._skip_markup()
            elif token.type is TokenType.TAG_OPEN:
                child, closed = self._parse_open_tag()
                child.parent = frame.element
                frame.element.children.append(child)
                if not closed:
                    stack.append(_OpenElement(child))
            elif token.type is TokenType.CLOSE_TAG_OPEN:
                self._parse_close_tag(frame.element)
                self._close(stack.pop())
            elif token.type is TokenType.EOF:
                for open_frame in reversed(stack):
                    tag = text_of(open_frame.element.name)
                    self._report(
                        DiagnosticKind.UNCLOSED_ELEMENT, token, expected=f"</{tag}>", tag=tag
                    )
                while stack:
                    self._close(stack.pop())
            else:
                self.tokenizer.next_token()
        return root

    def _close(self, frame: _OpenElement) -> None:
        """Attach merged text runs to a finished element."""
        runs = frame.runs
        if len(runs) == 1:
            frame.element.text_content = runs[0]
        elif runs:
            frame.element.text_content = "".join(str(run) for run in runs)

    def _parse_open_tag(self) -> Tuple[ElementRef, bool]:
        """Parse ``<name attr="v" ...>``.

        Returns:
            The element and whether it is already closed (``/>`` or end of input)
        """
        self.tokenizer.next_token()
        token = self.tokenizer.peek()
        if token.type is TokenType.NAME:
            self.tokenizer.next_token()
            name = token.span
        else:
            self._report(DiagnosticKind.MISSING_ELEMENT_NAME, token)
            name = SourceSpan(self.source, token.start, token.start)

        element = ElementRef(name=name, attributes=self.attribute_type())
        self.elements += 1
        tag = str(name)
        while True:
            token = self.tokenizer.peek()
            if token.type is TokenType.TAG_END:
                self.tokenizer.next_token()
                return element, False
            if token.type is TokenType.SELF_CLOSE:
                self.tokenizer.next_token()
                return element, True
            if token.type is TokenType.EOF:
                self._report(DiagnosticKind.UNEXPECTED_EOF_IN_TAG, token, expected="'>'", tag=tag)
                return element, True
            if token.type in _TAG_STARTS:
                self._report(DiagnosticKind.UNCLOSED_TAG, token, expected="'>'", tag=tag)
                return element, False
            if token.is_skipped:
                self._skip_markup()
                continue
            self.tokenizer.next_token()
            if token.type is TokenType.NAME:
                self._parse_attribute(element, token)
            else:
                self._report(DiagnosticKind.UNEXPECTED_TOKEN, token, tag=tag)

    def _parse_attribute(self, element: ElementRef, name: Token) -> None:
        tag = text_of(element.name)
        attribute = name.value
        token = self.tokenizer.peek()
        if token.type is not TokenType.EQUALS:
            self._report(
                DiagnosticKind.MISSING_EQUALS_SIGN, token,
                expected="'='", tag=tag, attribute=attribute
            )
            return
        self.tokenizer.next_token()

        value = self.tokenizer.take_value()
        if value.type is TokenType.QUOTED_VALUE:
            if not value.terminated:
                self._report(
                    DiagnosticKind.UNTERMINATED_ATTRIBUTE_VALUE, value,
                    expected="'\"'", found="end of input", tag=tag, attribute=attribute
                )
        elif value.type is TokenType.UNQUOTED_VALUE:
            self._report(
                DiagnosticKind.UNQUOTED_ATTRIBUTE_VALUE, value,
                expected='"string"', tag=tag, attribute=attribute
            )
        else:
            self._report(
                DiagnosticKind.MISSING_ATTRIBUTE_VALUE, value,
                expected='"string"', tag=tag, attribute=attribute
            )
            return

        if name.span in element.attributes:
            self._report(DiagnosticKind.DUPLICATE_ATTRIBUTE, name, tag=tag, attribute=attribute)
        element.attributes[name.span] = value.span

    def _parse_close_tag(self, element: ElementRef) -> None:
        """Parse ``</name>`` for the innermost open element."""
        self.tokenizer.next_token()
        expected = text_of(element.name)
        token = self.tokenizer.peek()
        closing = expected
        if token.type is TokenType.NAME:
            self.tokenizer.next_token()
            closing = token.value
            if token.span != element.name:
                self._report(
                    DiagnosticKind.MISMATCHED_CLOSING_TAG, token,
                    expected=expected, found=closing
                )
        else:
            self._report(DiagnosticKind.MISSING_ELEMENT_NAME, token, expected=expected)

        token = self.tokenizer.peek()
        if token.type is TokenType.TAG_END:
            self.tokenizer.next_token()
            return
        self._report(DiagnosticKind.MISSING_CLOSING_SYMBOL, token, expected="'>'", tag=closing)
        while True:
            token = self.tokenizer.peek()
            if token.type in (TokenType.TAG_END, TokenType.SELF_CLOSE):
                self.tokenizer.next_token()
                return
            if token.type is TokenType.EOF or token.type in _TAG_STARTS:
                return
            self.tokenizer.next_token()


class NxmlParser:
    """Reusable parser bound to one configuration.

    Examples:
        >>> parser = NxmlParser(ParserConfig.unordered())
        >>> parser.parse_strict('<Entity name="a"/>').attr("name")
        'a'
        >>> element, diagnostics = parser.parse_lenient('<Entity name=a/>')
        >>> len(diagnostics)
        1
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "parser")

    def _run(self, data: InputType, strict: bool) -> _ParseRun:
        run = _ParseRun(data, self.config, strict, self.correlation_id)
        self.logger.debug(
            "Starting parse",
            extra={
                "input_type": type(data).__name__,
                "input_length": len(run.source),
                "strict": strict,
            }
        )
        return run

    def _finished(self, run: _ParseRun) -> None:
        self.logger.debug(
            "Parse completed",
            extra={
                "elements": run.elements,
                "diagnostics": len(run.diagnostics),
                "tokens": run.tokenizer.tokens_scanned,
            }
        )

    def parse_strict(self, data: InputType) -> ElementRef:
        """Parse exactly one root element, rejecting any irregularity.

        Raises:
            LexicalError: For a malformed token
            StructuralError: For malformed nesting or attributes
            TypeError: If ``data`` is not text or bytes
        """
        run = self._run(data, strict=True)
        element = run.parse_document()
        self._finished(run)
        return element

    def parse_lenient(self, data: InputType) -> LenientParseResult:
        """Parse one root element, recovering from every irregularity.

        Raises:
            TypeError: If ``data`` is not text or bytes
        """
        run = self._run(data, strict=False)
        element = run.parse_document()
        self._finished(run)
        return LenientParseResult(element, run.diagnostics)

    def parse_all_strict(self, data: InputType) -> List[ElementRef]:
        """Parse one or more sibling root elements, rejecting any irregularity."""
        run = self._run(data, strict=True)
        elements = run.parse_forest()
        self._finished(run)
        return elements

    def parse_all_lenient(self, data: InputType) -> LenientForestResult:
        """Parse any number of sibling root elements, recovering from irregularities."""
        run = self._run(data, strict=False)
        elements = run.parse_forest()
        self._finished(run)
        return LenientForestResult(elements, run.diagnostics)


def parse_strict(data: InputType, config: Optional[ParserConfig] = None) -> ElementRef:
    """Parse NXML text, raising on the first irregularity.

    Args:
        data: NXML as ``str`` or UTF-8 bytes
        config: Optional parser configuration

    Returns:
        The root element, borrowing from the input text

    Examples:
        >>> root = parse_strict('<Entity><Sprite file="a.png"/></Entity>')
        >>> root.require_child("Sprite").attr("file")
        'a.png'
    """
    return NxmlParser(config).parse_strict(data)


def parse_lenient(data: InputType, config: Optional[ParserConfig] = None) -> LenientParseResult:
    """Parse NXML text, recovering from malformed markup.

    Returns:
        ``(element, diagnostics)``; diagnostics is empty for regular input

    Examples:
        >>> element, diagnostics = parse_lenient('<Entity name="a></Entity>')
        >>> diagnostics[0].kind.name
        'UNTERMINATED_ATTRIBUTE_VALUE'
    """
    return NxmlParser(config).parse_lenient(data)


def parse_all_strict(data: InputType, config: Optional[ParserConfig] = None) -> List[ElementRef]:
    return NxmlParser(config).parse_all_strict(data)


def parse_all_lenient(
    data: InputType,
    config: Optional[ParserConfig] = None
) -> LenientForestResult:
    return NxmlParser(config).parse_all_lenient(data)
