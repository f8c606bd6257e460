"""Interfaces (Protocols) consumed by the renderer.

The renderer never owns prompt definitions. It asks a Resolver for them,
which keeps storage swappable and makes tests easy to set up.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from promptgen.core.models import PromptDataType, PromptSection, SeparatorSet


@runtime_checkable
class Resolver(Protocol):
    """Maps an id or name to a stored definition.

    Implementations:
    - InMemoryResolver: dictionary-backed, loadable from a package export
    """

    def resolve_section(self, section_id: str) -> Optional["PromptSection"]:
        """Find a section by id or name, or ``namespace:id``. None if not found."""
        ...

    def resolve_separator_set(self, set_id: str) -> Optional["SeparatorSet"]:
        """Find a user-defined separator set by id or name. None if not found."""
        ...

    def resolve_data_type(self, type_id: str) -> Optional["PromptDataType"]:
        """Find a data type by id or name. None if not found."""
        ...
