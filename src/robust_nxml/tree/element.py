"""Element tree model for NXML documents.

Two element classes share one interface:

* ``ElementRef`` is what the parser produces. Its name, attribute keys and
  values, and usually its text are SourceSpans into the parsed input, so no
  text is copied. Text is an owned ``str`` only when several text runs
  separated by child elements were merged into one logical value.
* ``Element`` owns plain strings and is the natural type for building and
  editing trees. ``ElementRef.into_owned()`` converts one into the other.

Equality is semantic: two elements are equal when their names, attribute
sets (ignoring order), effective text and child sequences are equal, whatever
their classes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, TypeVar, Union

from robust_nxml.shared.config import ParserConfig
from robust_nxml.shared.result import ElementLookupError
from robust_nxml.shared.span import SourceSpan, TextValue, text_of

from .attributes import AttributeMap, OrderedAttributes

ElementT = TypeVar("ElementT", bound="_ElementBase")


class _ElementBase:
    """Navigation, mutation and rendering shared by both element classes."""

    name: Any
    attributes: AttributeMap
    children: List[Any]
    text_content: Any
    parent: Any

    # Navigation

    @property
    def tag(self) -> str:
        """Element name as a plain string."""
        return text_of(self.name)

    @property
    def text(self) -> str:
        """Effective text content as a plain string."""
        return text_of(self.text_content)

    @property
    def is_empty(self) -> bool:
        """True when the element renders as a self-closing tag."""
        return not self.children and not self.text_content

    def attr(self, name: str) -> Optional[str]:
        """Attribute value, or None when the attribute does not exist."""
        return self.attributes.get_text(name)

    def has_attr(self, name: str) -> bool:
        return name in self.attributes

    def require_attr(self, name: str) -> str:
        """Attribute value.

        Raises:
            ElementLookupError: When the attribute does not exist
        """
        value = self.attributes.get_text(name)
        if value is None:
            raise ElementLookupError(
                f"attribute '{name}' not found on element '{self.tag}'", name
            )
        return value

    def child(self: ElementT, name: str) -> Optional[ElementT]:
        """Find the first direct child with the given name."""
        for child in self.children:
            if child.name == name:
                return child
        return None

    def require_child(self: ElementT, name: str) -> ElementT:
        """Find the first direct child with the given name.

        Raises:
            ElementLookupError: When no such child exists
        """
        found = self.child(name)
        if found is None:
            raise ElementLookupError(
                f"child element '{name}' not found in element '{self.tag}'", name
            )
        return found

    def children_named(self: ElementT, name: str) -> Iterator[ElementT]:
        """Iterate over all direct children with the given name."""
        return (child for child in self.children if child.name == name)

    def iter(self: ElementT) -> Iterator[ElementT]:
        """Iterate over this element and all descendants in document order."""
        stack = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(reversed(element.children))

    def find(self: ElementT, name: str) -> Optional[ElementT]:
        """Find the first descendant (excluding self) with the given name."""
        for element in self.iter():
            if element is not self and element.name == name:
                return element
        return None

    def find_all(self: ElementT, name: str) -> List[ElementT]:
        """Find all descendants (excluding self) with the given name."""
        return [
            element for element in self.iter()
            if element is not self and element.name == name
        ]

    def get_depth(self) -> int:
        """Depth of this element in its tree (root = 0)."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    # Mutation

    def set_attr(self, key: str, value: Any) -> None:
        """Set an attribute, replacing any existing value for the same key.

        New values are always stored as plain strings, also on ``ElementRef``.
        """
        if not isinstance(key, (str, SourceSpan)):
            raise TypeError("Attribute name must be a str")
        self.attributes[text_of(key)] = _as_text(value)

    def remove_attr(self, key: str) -> Optional[str]:
        """Remove an attribute and return its value, or None when absent."""
        value = self.attributes.pop(key, None)
        if value is None:
            return None
        return text_of(value)

    def set_text(self, text: Any) -> None:
        self.text_content = _as_text(text)

    def add_child(self, child: ElementT) -> None:
        """Append a child; a child attached elsewhere is moved, not shared."""
        self._adopt(child)
        self.children.append(child)

    def insert_child(self, index: int, child: ElementT) -> None:
        """Insert a child at a specific index."""
        if not (0 <= index <= len(self.children)):
            raise IndexError("Child index out of range")
        self._adopt(child)
        self.children.insert(index, child)

    def remove_child(self, child: ElementT) -> bool:
        """Detach a child (matched by identity); False when it is not a child."""
        for index, existing in enumerate(self.children):
            if existing is child:
                del self.children[index]
                child.parent = None
                return True
        return False

    def pop_child(self: ElementT, index: int = -1) -> ElementT:
        """Detach and return the child at ``index``."""
        child = self.children.pop(index)
        child.parent = None
        return child

    def with_attr(self: ElementT, key: str, value: Any) -> ElementT:
        self.set_attr(key, value)
        return self

    def with_text(self: ElementT, text: Any) -> ElementT:
        self.set_text(text)
        return self

    def with_child(self: ElementT, child: ElementT) -> ElementT:
        self.add_child(child)
        return self

    def _attach_children(self) -> None:
        # Constructor children obey the same rules as add_child
        children, self.children = list(self.children), []
        for child in children:
            self.add_child(child)

    def _adopt(self, child: Any) -> None:
        if not isinstance(child, type(self)):
            raise TypeError(f"Child must be an {type(self).__name__} instance")
        node = self
        while node is not None:
            if node is child:
                raise ValueError("Element cannot be added to its own subtree")
            node = node.parent
        if child.parent is not None:
            child.parent.remove_child(child)
        child.parent = self

    # Rendering

    def to_string(self, pretty: bool = False, config: Optional[ParserConfig] = None) -> str:
        """Render the element in the NXML dialect."""
        from .serializer import to_string

        return to_string(self, pretty=pretty, config=config)

    def __str__(self) -> str:
        return self.to_string()

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result: Dict[str, Any] = {
            "name": self.tag,
            "attributes": self.attributes.to_dict(),
        }
        if self.text_content:
            result["text"] = self.text
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _ElementBase):
            return NotImplemented
        pairs = [(self, other)]
        while pairs:
            left, right = pairs.pop()
            if left.name != right.name or left.text != right.text:
                return False
            if len(left.children) != len(right.children):
                return False
            if left.attributes != right.attributes:
                return False
            pairs.extend(zip(left.children, right.children))
        return True

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self.tag!r} attributes={len(self.attributes)} "
            f"children={len(self.children)} text={self.text!r}>"
        )


def _as_text(value: Any) -> str:
    if isinstance(value, SourceSpan):
        return str(value)
    return value if isinstance(value, str) else str(value)


def _coerce_attributes(attributes: Union[AttributeMap, Mapping, None]) -> AttributeMap:
    if isinstance(attributes, AttributeMap):
        return attributes
    return OrderedAttributes(attributes)


@dataclass(eq=False, repr=False)
class Element(_ElementBase):
    """An owned NXML element, easy to create and manipulate."""

    name: str
    attributes: AttributeMap = field(default_factory=OrderedAttributes)
    children: List["Element"] = field(default_factory=list)
    text_content: str = ""
    parent: Optional["Element"] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        """Validate values and establish parent-child relationships."""
        if not isinstance(self.name, str):
            raise TypeError("Element name must be a str")
        self.attributes = _coerce_attributes(self.attributes)
        self._attach_children()

    def copy(self) -> "Element":
        """Deep copy of this subtree, detached from any parent."""
        return _copy_tree(self, Element, lambda value: value)


@dataclass(eq=False, repr=False)
class ElementRef(_ElementBase):
    """A borrowed NXML element produced by zero-copy parsing.

    Valid as long as the input string it references is; call ``into_owned``
    to get an independent ``Element``.
    """

    name: TextValue
    attributes: AttributeMap = field(default_factory=OrderedAttributes)
    children: List["ElementRef"] = field(default_factory=list)
    text_content: TextValue = ""
    parent: Optional["ElementRef"] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        """Validate values and establish parent-child relationships."""
        if not isinstance(self.name, (str, SourceSpan)):
            raise TypeError("Element name must be a str or SourceSpan")
        self.attributes = _coerce_attributes(self.attributes)
        self._attach_children()

    @property
    def is_text_borrowed(self) -> bool:
        """True when the text is a slice of the input rather than an owned copy."""
        return isinstance(self.text_content, SourceSpan)

    def into_owned(self) -> Element:
        """Deep-copy every referenced span into an independent ``Element`` tree."""
        return _copy_tree(self, Element, text_of)


def _copy_tree(root: Any, target: type, convert: Any) -> Any:
    def shallow(node: Any) -> Any:
        copy = target(
            name=convert(node.name),
            attributes=node.attributes.owned_copy(),
            text_content=convert(node.text_content),
        )
        return copy

    new_root = shallow(root)
    stack = [(root, new_root)]
    while stack:
        source, copy = stack.pop()
        for child in source.children:
            child_copy = shallow(child)
            child_copy.parent = copy
            copy.children.append(child_copy)
            stack.append((child, child_copy))
    return new_root
