"""Tests for the strict and lenient parser API."""

import logging

import pytest

from robust_nxml import (
    E,
    Element,
    ElementRef,
    LenientParseResult,
    NxmlParser,
    ParserConfig,
    parse_all_lenient,
    parse_all_strict,
    parse_lenient,
    parse_strict,
    to_string,
)
from robust_nxml.shared import (
    DiagnosticKind,
    DiagnosticSeverity,
    LexicalError,
    NxmlParseError,
    RecoveryAction,
    StructuralError,
    TokenPosition,
)
from robust_nxml.tree import OrderedAttributes, UnorderedAttributes

ENTITY = (
    '<Entity><LuaComponent script_source_file="a.lua" execute_every_n_frame="-1">'
    '</LuaComponent><TestComponent blah="blah"/></Entity>'
)

MALFORMED_INPUTS = [
    "",
    "<",
    ">",
    "</",
    "<a",
    '<a b="',
    "<a b=",
    "<a b",
    "</a>",
    "<a></b>",
    "<<<>>>",
    "<a/><",
    '="',
    "<!--",
    "<?",
    "<!",
    "<a><b><c>",
    '"',
    "text",
    "<a x=1 x=2 / = >",
    "<a></a",
    "<a b c d/>",
    "<a><!-- never closed</a>",
]


def kinds(diagnostics):
    return [diagnostic.kind for diagnostic in diagnostics]


class TestStrictParsing:
    """Tests for parse_strict on regular input."""

    def test_entity_example(self):
        """Test parsing and re-serializing the entity example."""
        root = parse_strict(ENTITY)

        assert isinstance(root, ElementRef)
        assert root.tag == "Entity"
        assert [child.tag for child in root.children] == ["LuaComponent", "TestComponent"]
        assert root.require_child("LuaComponent").attr("execute_every_n_frame") == "-1"
        assert to_string(root) == (
            '<Entity><LuaComponent script_source_file="a.lua" execute_every_n_frame="-1"/>'
            '<TestComponent blah="blah"/></Entity>'
        )

    def test_borrowed_values_reference_input(self):
        """Test that names, attributes and single text runs are spans."""
        source = '<a key="value"> some text </a>'
        root = parse_strict(source)

        assert root.name.source is source
        assert root.text == "some text"
        assert root.is_text_borrowed
        assert root.text_content.source is source
        key, value = next(iter(root.attributes.items()))
        assert key.source is source
        assert value.source is source

    def test_non_contiguous_text_is_merged(self):
        """Test text runs split by a child element."""
        for _ in range(3):
            root = parse_strict("<a>hello<b/>world</a>")

            assert root.text == "helloworld"
            assert [child.tag for child in root.children] == ["b"]
            assert not root.is_text_borrowed

    def test_markup_is_skipped(self):
        """Test that comments, declarations and instructions carry no data."""
        root = parse_strict(
            '<?xml version="1.0"?><!DOCTYPE e><!-- top -->'
            "<a><!-- inner --><b/>text<?pi data?></a><!-- trailing -->"
        )

        assert root.tag == "a"
        assert root.text == "text"
        assert len(root.children) == 1

    def test_cdata_kept_literally(self):
        """Test that CDATA sections stay in the text verbatim."""
        assert parse_strict("<a><![CDATA[1 < 2]]></a>").text == "<![CDATA[1 < 2]]>"

    def test_parent_links(self):
        """Test that parsed children know their parent."""
        root = parse_strict("<a><b><c/></b></a>")

        assert root.parent is None
        assert root.children[0].parent is root
        assert root.find("c").get_depth() == 2

    def test_bytes_input(self):
        """Test UTF-8 bytes with and without a byte order mark."""
        assert parse_strict(b'\xef\xbb\xbf<a x="1"/>').attr("x") == "1"
        assert parse_strict(bytearray("<a>café</a>", "utf-8")).text == "café"
        assert parse_strict(memoryview(b"<a/>")).tag == "a"

    def test_unordered_configuration(self):
        """Test that the configuration selects the attribute map."""
        assert isinstance(parse_strict('<a x="1"/>').attributes, OrderedAttributes)
        root = parse_strict('<a x="1"/>', ParserConfig.unordered())
        assert isinstance(root.attributes, UnorderedAttributes)

    def test_deep_nesting(self):
        """Test nesting far beyond the interpreter recursion limit."""
        depth = 5000
        root = parse_strict("<n>" * depth + "</n>" * depth)

        node = root
        for _ in range(depth - 1):
            node = node.children[0]
        assert node.children == []
        assert to_string(root).count("<n>") == depth - 1


class TestStrictRejection:
    """Tests for parse_strict on irregular input."""

    def test_missing_closing_quote(self):
        """Test that an unterminated value is a lexical error."""
        with pytest.raises(LexicalError) as exc_info:
            parse_strict('<a b="c></a>')

        error = exc_info.value
        assert error.kind is DiagnosticKind.UNTERMINATED_ATTRIBUTE_VALUE
        assert error.position == TokenPosition(1, 6, 5)
        assert str(error).endswith("[1:6]")

    def test_missing_opening_symbol(self):
        """Test input that does not start with a tag."""
        with pytest.raises(LexicalError) as exc_info:
            parse_strict('"')

        assert exc_info.value.kind is DiagnosticKind.MISSING_OPENING_SYMBOL

    @pytest.mark.parametrize("source,kind", [
        ("<a><b></c></a>", DiagnosticKind.MISMATCHED_CLOSING_TAG),
        ("<a b/>", DiagnosticKind.MISSING_EQUALS_SIGN),
        ("<a b=/>", DiagnosticKind.MISSING_ATTRIBUTE_VALUE),
        ('<a x="1" x="2"/>', DiagnosticKind.DUPLICATE_ATTRIBUTE),
        ("<a/><b/>", DiagnosticKind.TRAILING_CONTENT),
        ("<a><b>", DiagnosticKind.UNCLOSED_ELEMENT),
        ("<a></a", DiagnosticKind.MISSING_CLOSING_SYMBOL),
    ])
    def test_structural_errors(self, source, kind):
        """Test that structural irregularities raise StructuralError."""
        with pytest.raises(StructuralError) as exc_info:
            parse_strict(source)

        assert exc_info.value.kind is kind
        assert exc_info.value.diagnostic.is_structural

    @pytest.mark.parametrize("source", ["", "<a b=c/>", "<>", "<a><!-- x</a>"])
    def test_lexical_errors(self, source):
        """Test that lexical irregularities raise LexicalError."""
        with pytest.raises(LexicalError):
            parse_strict(source)

    def test_invalid_utf8(self):
        """Test that undecodable bytes are rejected."""
        with pytest.raises(LexicalError) as exc_info:
            parse_strict(b"<a>caf\xe9</a>")

        assert exc_info.value.kind is DiagnosticKind.INVALID_ENCODING
        assert exc_info.value.offset == 6

    def test_invalid_input_type(self):
        """Test that non-text input raises TypeError in both modes."""
        with pytest.raises(TypeError, match="Input must be str or bytes"):
            parse_strict(42)  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            parse_lenient(None)  # type: ignore[arg-type]

    def test_errors_share_base_class(self):
        """Test catching every parse error through the base class."""
        for source in ['<a b="c', "<a></b>"]:
            with pytest.raises(NxmlParseError):
                parse_strict(source)


class TestLenientParsing:
    """Tests for parse_lenient recovery."""

    def test_regular_input_has_no_diagnostics(self):
        """Test that well-formed input parses cleanly."""
        result = parse_lenient(ENTITY)

        assert isinstance(result, LenientParseResult)
        assert result.diagnostics == []
        assert not result.has_errors
        assert result.element == parse_strict(ENTITY)

    def test_missing_closing_quote(self):
        """Test recovery from an unterminated value."""
        element, diagnostics = parse_lenient('<a b="c></a>')

        assert element.tag == "a"
        assert element.attr("b") == "c></a>"
        assert kinds(diagnostics) == [
            DiagnosticKind.UNTERMINATED_ATTRIBUTE_VALUE,
            DiagnosticKind.UNEXPECTED_EOF_IN_TAG,
        ]
        assert diagnostics[0].recovery is RecoveryAction.TAKE_LITERAL
        assert diagnostics[0].is_lexical

    def test_mismatched_closing_tag_is_accepted(self):
        """Test that a wrong closing name closes the current element."""
        element, diagnostics = parse_lenient("<a><b></c><d/></a>")

        assert [child.tag for child in element.children] == ["b", "d"]
        assert kinds(diagnostics) == [DiagnosticKind.MISMATCHED_CLOSING_TAG]
        assert diagnostics[0].expected == "b"
        assert diagnostics[0].found == "c"
        assert diagnostics[0].severity is DiagnosticSeverity.WARNING

    def test_unclosed_elements_closed_at_end(self):
        """Test that open elements are closed at end of input."""
        result = parse_lenient("<a><b>text")

        assert result.element.require_child("b").text == "text"
        assert kinds(result.diagnostics) == [DiagnosticKind.UNCLOSED_ELEMENT] * 2
        assert [d.details["tag"] for d in result.diagnostics] == ["b", "a"]
        assert not result.has_errors

    def test_leading_garbage_skipped(self):
        """Test that content before the first tag is dropped once."""
        element, diagnostics = parse_lenient("junk = more <a/>")

        assert element.tag == "a"
        assert kinds(diagnostics) == [DiagnosticKind.MISSING_OPENING_SYMBOL]
        assert diagnostics[0].position == TokenPosition(1, 1, 0)

    def test_empty_input(self):
        """Test that empty input yields an empty-named element."""
        element, diagnostics = parse_lenient("")

        assert element.tag == ""
        assert element.is_empty
        assert kinds(diagnostics) == [DiagnosticKind.MISSING_OPENING_SYMBOL]

    def test_missing_element_names(self):
        """Test that nameless tags get an empty name."""
        element, diagnostics = parse_lenient("<>text</>")

        assert element.tag == ""
        assert element.text == "text"
        assert kinds(diagnostics) == [DiagnosticKind.MISSING_ELEMENT_NAME] * 2

    def test_missing_equals_drops_attribute(self):
        """Test that an attribute without '=' is dropped."""
        element, diagnostics = parse_lenient('<a b c="1"/>')

        assert element.attributes.to_dict() == {"c": "1"}
        assert kinds(diagnostics) == [DiagnosticKind.MISSING_EQUALS_SIGN]
        assert diagnostics[0].details == {"tag": "a", "attribute": "b"}

    def test_missing_value_drops_attribute(self):
        """Test that an attribute without a value is dropped."""
        element, diagnostics = parse_lenient("<a b=/>")

        assert len(element.attributes) == 0
        assert kinds(diagnostics) == [DiagnosticKind.MISSING_ATTRIBUTE_VALUE]

    def test_unquoted_value_taken_literally(self):
        """Test that a bare value is kept."""
        element, diagnostics = parse_lenient("<a b=c d=-1/>")

        assert element.attributes.to_dict() == {"b": "c", "d": "-1"}
        assert kinds(diagnostics) == [DiagnosticKind.UNQUOTED_ATTRIBUTE_VALUE] * 2

    def test_duplicate_attribute_last_value_wins(self):
        """Test that duplicates keep the first position and last value."""
        element, diagnostics = parse_lenient('<a x="1" y="2" x="3"/>')

        assert list(element.attributes.text_items()) == [("x", "3"), ("y", "2")]
        assert kinds(diagnostics) == [DiagnosticKind.DUPLICATE_ATTRIBUTE]

    def test_unexpected_tokens_skipped(self):
        """Test that stray punctuation and values inside a tag are ignored."""
        element, diagnostics = parse_lenient('<a = "v" b="1"/>')

        assert element.attributes.to_dict() == {"b": "1"}
        assert kinds(diagnostics) == [DiagnosticKind.UNEXPECTED_TOKEN] * 2

    def test_unclosed_tag(self):
        """Test that a tag interrupted by '<' is treated as opened."""
        element, diagnostics = parse_lenient("<a<b/></a>")

        assert element.tag == "a"
        assert [child.tag for child in element.children] == ["b"]
        assert kinds(diagnostics) == [DiagnosticKind.UNCLOSED_TAG]

    def test_missing_closing_symbol(self):
        """Test that junk in a closing tag is skipped up to '>'."""
        element, diagnostics = parse_lenient("<a><b></b x><c/></a>")

        assert [child.tag for child in element.children] == ["b", "c"]
        assert kinds(diagnostics) == [DiagnosticKind.MISSING_CLOSING_SYMBOL]

    def test_trailing_content_ignored(self):
        """Test that content after the root is reported and dropped."""
        element, diagnostics = parse_lenient("<a/><b/>")

        assert element.tag == "a"
        assert kinds(diagnostics) == [DiagnosticKind.TRAILING_CONTENT]
        assert diagnostics[0].recovery is RecoveryAction.IGNORE_REST

    def test_unterminated_comment(self):
        """Test that an unclosed comment swallows the rest of the input."""
        element, diagnostics = parse_lenient("<a><b/><!-- never closed</a>")

        assert [child.tag for child in element.children] == ["b"]
        assert kinds(diagnostics) == [
            DiagnosticKind.UNTERMINATED_MARKUP,
            DiagnosticKind.UNCLOSED_ELEMENT,
        ]
        assert diagnostics[0].expected == "-->"

    def test_invalid_utf8_replaced(self):
        """Test that undecodable bytes become replacement characters."""
        element, diagnostics = parse_lenient(b"<a>caf\xe9</a>")

        assert element.text == "caf\ufffd"
        assert kinds(diagnostics) == [DiagnosticKind.INVALID_ENCODING]
        assert diagnostics[0].position.offset == 6
        assert diagnostics[0].recovery is RecoveryAction.DECODE_WITH_REPLACEMENT

    def test_diagnostic_positions(self):
        """Test line and column of a reported irregularity."""
        _, diagnostics = parse_lenient("<a>\n  <b x></b>\n</a>")

        assert diagnostics[0].position == TokenPosition(2, 7, 10)
        assert str(diagnostics[0]).endswith("[2:7]")

    @pytest.mark.parametrize("source", MALFORMED_INPUTS)
    def test_forward_progress(self, source):
        """Test that lenient parsing terminates and reports irregularities."""
        element, diagnostics = parse_lenient(source)

        assert isinstance(element, ElementRef)
        assert diagnostics
        with pytest.raises(NxmlParseError):
            parse_strict(source)


class TestForestParsing:
    """Tests for parsing several top-level elements."""

    def test_parse_all_strict(self):
        """Test sibling roots in strict mode."""
        roots = parse_all_strict('<a/>\n<!-- sep -->\n<b x="1">t</b>')

        assert [root.tag for root in roots] == ["a", "b"]
        assert roots[1].text == "t"

    def test_parse_all_strict_requires_a_root(self):
        """Test that an empty forest is rejected in strict mode."""
        with pytest.raises(LexicalError):
            parse_all_strict("   ")

    def test_parse_all_lenient(self):
        """Test junk between roots in lenient mode."""
        result = parse_all_lenient("<a/> junk <b/> more")

        assert [root.tag for root in result.elements] == ["a", "b"]
        assert kinds(result.diagnostics) == [DiagnosticKind.MISSING_OPENING_SYMBOL] * 2
        assert result.has_errors

    def test_parse_all_lenient_empty(self):
        """Test that empty input gives no roots and one diagnostic."""
        elements, diagnostics = parse_all_lenient("")

        assert elements == []
        assert kinds(diagnostics) == [DiagnosticKind.MISSING_OPENING_SYMBOL]


class TestRoundTrip:
    """Tests for parse/serialize equivalence."""

    TREES = [
        E.Entity(
            E.LuaComponent(script_source_file="a.lua", execute_every_n_frame="-1"),
            E.TestComponent(blah="blah"),
        ),
        E.Config(
            E.Item("first value", key="1"),
            E.Item(E.Nested(E.Leaf(weight="0.5")), "inner   spacing kept", key="2"),
            version="3",
            title="with spaces",
        ),
        E.Single(),
        E.Text("only text"),
    ]

    @pytest.mark.parametrize("tree", TREES)
    @pytest.mark.parametrize("pretty", [False, True])
    def test_round_trip(self, tree, pretty):
        """Test that serialized trees parse back to equal trees."""
        parsed = parse_strict(to_string(tree, pretty=pretty))

        assert parsed == tree
        assert parsed.into_owned() == tree

    def test_mutation_round_trip(self):
        """Test editing a parsed tree and serializing it again."""
        owned = parse_strict(ENTITY).into_owned()
        owned.require_child("TestComponent").set_attr("blah", "changed")
        owned.add_child(Element("Extra").with_text("new"))

        assert parse_strict(str(owned)) == owned


class TestNxmlParser:
    """Tests for the configured parser class."""

    def test_parser_reuse(self):
        """Test that one parser handles several inputs independently."""
        parser = NxmlParser(ParserConfig.unordered())

        first = parser.parse_strict("<a/>")
        element, diagnostics = parser.parse_lenient("<b c=d/>")

        assert first.tag == "a"
        assert element.tag == "b"
        assert len(diagnostics) == 1
        assert isinstance(element.attributes, UnorderedAttributes)

    def test_correlation_id_reaches_diagnostics(self):
        """Test that diagnostics carry the parser's correlation ID."""
        parser = NxmlParser(ParserConfig().with_correlation_id("file-7"))

        _, diagnostics = parser.parse_lenient("<a b/>")

        assert parser.correlation_id == "file-7"
        assert diagnostics[0].correlation_id == "file-7"

    def test_parse_logged_at_debug(self, caplog):
        """Test the debug records written around a parse."""
        with caplog.at_level(logging.DEBUG, logger="robust_nxml.api.parser"):
            NxmlParser(correlation_id="req-1").parse_lenient("<a><b/></a>")

        records = [r for r in caplog.records if r.name == "robust_nxml.api.parser"]
        assert [r.getMessage() for r in records] == ["Starting parse", "Parse completed"]
        assert records[1].elements == 2
        assert records[1].diagnostics == 0
        assert records[1].correlation_id == "req-1"
