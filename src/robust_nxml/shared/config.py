"""Configuration for NXML parsing and serialization.

The only behavioural choice the dialect leaves open is whether attribute maps
keep insertion order; the rest is output cosmetics and log correlation.
"""

from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_INDENT_WIDTH = 4
MAX_INDENT_WIDTH = 16


@dataclass(frozen=True)
class ParserConfig:
    """Immutable configuration shared by the parser, tree model and serializer."""

    preserve_attribute_order: bool = True
    indent_width: int = DEFAULT_INDENT_WIDTH
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate parser configuration."""
        if not isinstance(self.preserve_attribute_order, bool):
            raise ValueError("preserve_attribute_order must be a bool")
        if not (0 <= self.indent_width <= MAX_INDENT_WIDTH):
            raise ValueError(f"indent_width must be between 0 and {MAX_INDENT_WIDTH}")

    @classmethod
    def ordered(cls) -> "ParserConfig":
        """Create configuration that keeps attributes in insertion order."""
        return cls(preserve_attribute_order=True)

    @classmethod
    def unordered(cls) -> "ParserConfig":
        """Create configuration with no attribute order guarantee."""
        return cls(preserve_attribute_order=False)

    def with_correlation_id(self, correlation_id: Optional[str]) -> "ParserConfig":
        return replace(self, correlation_id=correlation_id)


DEFAULT_CONFIG = ParserConfig()
