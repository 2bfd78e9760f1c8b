"""Serialization of NXML element trees.

Output reproduces the engine's own formatting. Nothing is escaped: text and
attribute values are written verbatim between the delimiters, so values that
contain ``"`` or ``<`` do not survive a round trip. Pretty output places text
on its own line one level deeper than the opening tag, follows every child
with a newline and puts the closing tag at the element's own indent.
"""

from typing import Any, List, Optional, Union

from robust_nxml.shared.config import DEFAULT_CONFIG, ParserConfig
from robust_nxml.shared.logging import get_logger
from robust_nxml.shared.span import text_of

# Work items: an element still to be opened, or literal output
_WorkItem = Union[str, tuple]


class NxmlSerializer:
    """Renders element trees as compact or pretty NXML text.

    Both layouts walk the tree with an explicit stack, so arbitrarily deep
    trees serialize without recursion.
    """

    def __init__(
        self,
        indent_width: int = DEFAULT_CONFIG.indent_width,
        correlation_id: Optional[str] = None
    ) -> None:
        if indent_width < 0:
            raise ValueError("Indent width cannot be negative")
        self.indent_width = indent_width
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "serializer")

    @classmethod
    def from_config(cls, config: Optional[ParserConfig] = None) -> "NxmlSerializer":
        config = config or DEFAULT_CONFIG
        return cls(indent_width=config.indent_width, correlation_id=config.correlation_id)

    def serialize(self, element: Any, pretty: bool = False) -> str:
        """Render ``element`` and its subtree.

        Args:
            element: Element or ElementRef to render
            pretty: Use the indented multi-line layout instead of compact

        Returns:
            The rendered document as a string
        """
        parts: List[str] = []
        stack: List[_WorkItem] = [(element, 0)]
        elements = 0
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                parts.append(item)
                continue

            node, indent = item
            elements += 1
            pad = " " * indent if pretty else ""
            parts.append(self._open_tag(node, pad))
            if node.is_empty:
                parts.append("/>")
                continue

            name = text_of(node.name)
            if pretty:
                parts.append(">\n")
                if node.text_content:
                    parts.append(" " * (indent + self.indent_width))
                    parts.append(text_of(node.text_content))
                    parts.append("\n")
                stack.append(f"{pad}</{name}>")
                for child in reversed(node.children):
                    stack.append("\n")
                    stack.append((child, indent + self.indent_width))
            else:
                parts.append(">")
                parts.append(text_of(node.text_content))
                stack.append(f"</{name}>")
                stack.extend((child, 0) for child in reversed(node.children))

        self.logger.debug(
            "Serialized element tree",
            extra={"elements": elements, "pretty": pretty}
        )
        return "".join(parts)

    def _open_tag(self, node: Any, pad: str) -> str:
        attributes = "".join(
            f' {key}="{value}"' for key, value in node.attributes.text_items()
        )
        return f"{pad}<{text_of(node.name)}{attributes}"


def to_string(element: Any, pretty: bool = False, config: Optional[ParserConfig] = None) -> str:
    """Render an element with the layout options from ``config``."""
    return NxmlSerializer.from_config(config).serialize(element, pretty=pretty)


def to_compact_string(element: Any) -> str:
    return to_string(element)


def to_pretty_string(element: Any, config: Optional[ParserConfig] = None) -> str:
    return to_string(element, pretty=True, config=config)
