"""Programmatic construction of NXML element trees.

ElementBuilder is the fluent way to assemble an owned Element. The ``E``
tree literal is thin sugar over it::

    E.Entity(
        E.LuaComponent(script_source_file="a.lua", execute_every_n_frame="-1"),
        E.TestComponent(blah="blah"),
    )

Positional arguments to ``E`` are dispatched by type: mappings become
attributes, elements and builders become children, lists and tuples are
flattened, and anything else becomes text. Several text parts are joined
with single spaces.
"""

from functools import partial
from typing import Any, Iterable, List, Mapping, Optional, Union

from robust_nxml.shared.config import ParserConfig
from robust_nxml.tokenization.tokenizer import NAME_DELIMITERS

from .attributes import new_attribute_map
from .element import Element

ChildLike = Union[Element, "ElementBuilder"]


class ElementBuilder:
    """Fluent builder for a single owned element.

    A builder produces exactly one element; calling ``build`` twice raises
    RuntimeError so that one builder cannot hand out shared state.
    """

    def __init__(self, name: str, config: Optional[ParserConfig] = None) -> None:
        if not isinstance(name, str):
            raise TypeError("Element name must be a str")
        if not name:
            raise ValueError("Element name cannot be empty")
        if any(char in NAME_DELIMITERS for char in name):
            raise ValueError(f"Element name contains a delimiter: {name!r}")
        self.name = name
        self.config = config
        self._attributes = new_attribute_map(config)
        self._children: List[Element] = []
        self._text = ""
        self._built = False

    def attr(self, key: str, value: Any) -> "ElementBuilder":
        """Set an attribute; non-string values are converted with ``str``."""
        self._check_open()
        self._attributes[key] = value if isinstance(value, str) else str(value)
        return self

    def attrs(self, attributes: Mapping[str, Any]) -> "ElementBuilder":
        for key, value in attributes.items():
            self.attr(key, value)
        return self

    def text(self, text: Any) -> "ElementBuilder":
        """Set the text content, replacing any previous text."""
        self._check_open()
        self._text = text if isinstance(text, str) else str(text)
        return self

    def child(self, child: ChildLike) -> "ElementBuilder":
        """Append a child element; a builder is built first."""
        self._check_open()
        if isinstance(child, ElementBuilder):
            child = child.build()
        if not isinstance(child, Element):
            raise TypeError("Child must be an Element or ElementBuilder")
        self._children.append(child)
        return self

    def children(self, children: Iterable[ChildLike]) -> "ElementBuilder":
        for child in children:
            self.child(child)
        return self

    def build(self) -> Element:
        """Produce the element.

        Raises:
            RuntimeError: If this builder was already used
        """
        self._check_open()
        self._built = True
        element = Element(name=self.name, attributes=self._attributes, text_content=self._text)
        for child in self._children:
            element.add_child(child)
        return element

    def _check_open(self) -> None:
        if self._built:
            raise RuntimeError(f"Builder for '{self.name}' has already been built")


class _ElementMaker:
    """Tree literal factory, exposed as ``E``.

    Element names that clash with methods of this class (``with_config``) must
    be spelled with the call form, e.g. ``E("with_config")``.
    """

    def __init__(self, config: Optional[ParserConfig] = None) -> None:
        self._config = config

    def __call__(self, name: str, /, *content: Any, **attributes: Any) -> Element:
        builder = ElementBuilder(name, self._config)
        text_parts: List[str] = []
        pending = list(reversed(content))
        while pending:
            item = pending.pop()
            if isinstance(item, Mapping):
                builder.attrs(item)
            elif isinstance(item, (Element, ElementBuilder)):
                builder.child(item)
            elif isinstance(item, (list, tuple)):
                pending.extend(reversed(item))
            elif item is not None:
                text_parts.append(str(item))
        # Trailing underscore lets callers spell reserved words, e.g. class_="x"
        for key, value in attributes.items():
            builder.attr(key[:-1] if key.endswith("_") else key, value)
        if text_parts:
            builder.text(" ".join(text_parts))
        return builder.build()

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return partial(self, name)

    def with_config(self, config: ParserConfig) -> "_ElementMaker":
        """Tree literal whose attribute maps follow ``config``."""
        return _ElementMaker(config)


E = _ElementMaker()
