"""Integration adapters for exchanging NXML trees with other XML libraries.

Adapters convert in both directions between this package's elements and the
element types of ``xml.etree.ElementTree`` and ``lxml.etree``. Conversions
never raise for bad data; failures are reported through ConversionResult.

Text mapping: an element's text becomes the target element's ``.text``.
Coming back, ``.text`` and the ``.tail`` of every child are trimmed and
concatenated into the element's single logical text, matching how the
parser merges text runs around child elements. Comments and processing
instructions in the target tree are dropped.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Dict, List, Optional, Type

from robust_nxml.shared import get_logger
from robust_nxml.tree import Element

MS_PER_SECOND = 1000


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    target_library: str
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters.

    Subclasses convert between ``Element`` trees and one target library's
    element objects.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        """Initialize the integration adapter.

        Args:
            correlation_id: Optional correlation ID for request tracking
        """
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def to_target(self, element: Any) -> ConversionResult:
        """Convert an Element or ElementRef tree to the target format."""

    @abstractmethod
    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert a target element tree to an owned Element tree."""

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        self._logger.debug(
            "Conversion failed",
            extra={"adapter": self.metadata.name, "error": error_message}
        )
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
        )


class _EtreeStyleAdapter(IntegrationAdapter):
    """Shared conversion for libraries exposing the ElementTree API."""

    @abstractmethod
    def _etree(self) -> ModuleType:
        """Import and return the target etree module."""

    def is_available(self) -> bool:
        try:
            self._etree()
        except ImportError:
            return False
        return True

    def to_target(self, element: Any) -> ConversionResult:
        """Convert an element tree to target library elements.

        Args:
            element: Element or ElementRef root

        Returns:
            ConversionResult containing the target root element
        """
        start_time = time.time()
        try:
            etree = self._etree()
        except ImportError as e:
            return self._create_error_result(
                f"{self.metadata.target_library} is not available: {e}", element
            )

        try:
            target_root = etree.Element(element.tag)
            stack = [(element, target_root)]
            count = 0
            while stack:
                node, target = stack.pop()
                count += 1
                for key, value in node.attributes.text_items():
                    target.set(key, value)
                if node.text_content:
                    target.text = node.text
                for child in node.children:
                    target_child = etree.SubElement(target, child.tag)
                    stack.append((child, target_child))
        except (ValueError, TypeError) as e:
            return self._create_error_result(
                f"Failed to convert to {self.metadata.target_library}: {e}",
                element,
                (time.time() - start_time) * MS_PER_SECOND
            )

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        self._logger.debug(
            "Converted tree to target",
            extra={"adapter": self.metadata.name, "elements": count}
        )
        return ConversionResult(
            success=True,
            converted_data=target_root,
            original_data=element,
            conversion_time_ms=processing_time,
            metadata={"element_count": count},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert a target element tree to an owned Element tree.

        Args:
            target_data: Root element of the target library

        Returns:
            ConversionResult containing an Element
        """
        start_time = time.time()
        if not isinstance(getattr(target_data, "tag", None), str):
            return self._create_error_result(
                f"Target data is not a valid {self.metadata.target_library} element",
                target_data
            )

        try:
            root = self._convert_node(target_data)
            stack = [(target_data, root)]
            count = 0
            while stack:
                node, element = stack.pop()
                count += 1
                for child in node:
                    if not isinstance(child.tag, str):
                        continue
                    converted = self._convert_node(child)
                    element.add_child(converted)
                    stack.append((child, converted))
        except (ValueError, TypeError) as e:
            return self._create_error_result(
                f"Failed to convert from {self.metadata.target_library}: {e}",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND
            )

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        return ConversionResult(
            success=True,
            converted_data=root,
            original_data=target_data,
            conversion_time_ms=processing_time,
            metadata={"original_tag": target_data.tag, "element_count": count},
        )

    def _convert_node(self, node: Any) -> Element:
        """Convert one target element, without its children."""
        runs = [node.text] + [child.tail for child in node]
        text = "".join(run.strip() for run in runs if run)
        return Element(
            name=node.tag,
            attributes={str(key): str(value) for key, value in node.attrib.items()},
            text_content=text,
        )


class ElementTreeAdapter(_EtreeStyleAdapter):
    """Adapter for bidirectional conversion with xml.etree.ElementTree."""

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="elementtree",
            target_library="xml.etree.ElementTree",
            description="Bidirectional conversion between Element and ElementTree"
        )

    def _etree(self) -> ModuleType:
        import xml.etree.ElementTree as ET
        return ET


class LxmlAdapter(_EtreeStyleAdapter):
    """Adapter for bidirectional conversion with lxml.etree."""

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="lxml",
            target_library="lxml",
            description="Bidirectional conversion between Element and lxml.etree"
        )

    def _etree(self) -> ModuleType:
        import lxml.etree
        return lxml.etree


ADAPTERS: Dict[str, Type[IntegrationAdapter]] = {
    "elementtree": ElementTreeAdapter,
    "lxml": LxmlAdapter,
}


def get_adapter(name: str, correlation_id: Optional[str] = None) -> Optional[IntegrationAdapter]:
    """Get an adapter instance by name.

    Returns:
        The adapter, or None when the name is unknown or its library is missing
    """
    adapter_class = ADAPTERS.get(name)
    if adapter_class is None:
        return None
    adapter = adapter_class(correlation_id)
    if not adapter.is_available():
        return None
    return adapter


def list_available_adapters() -> List[AdapterMetadata]:
    """List metadata of every adapter whose library can be imported."""
    adapters = (adapter_class() for adapter_class in ADAPTERS.values())
    return [adapter.metadata for adapter in adapters if adapter.is_available()]
