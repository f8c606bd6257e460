"""Resolver implementations.

This module provides the reference Resolver used by the CLI, the HTTP API
and the tests:
- InMemoryResolver: list-backed definitions with namespace-aware lookup,
  loadable from a package export document
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, TypeVar, Union

from pydantic import ValidationError

from promptgen.core.exceptions import PackageLoadError
from promptgen.core.models import (
    PackageExport,
    PromptDataType,
    PromptSection,
    SeparatorSet,
    StoredEntity,
)
from promptgen.utils.logging import get_logger

logger = get_logger(__name__)

E = TypeVar("E", bound=StoredEntity)


def split_scoped_id(key: str) -> tuple[Optional[str], str]:
    """Split ``namespace:id`` on the first colon. Unscoped keys give (None, key)."""
    if ":" in key:
        namespace, _, local = key.partition(":")
        return namespace, local
    return None, key


def _first(entities: Iterable[E], predicate) -> Optional[E]:
    return next((e for e in entities if predicate(e)), None)


class InMemoryResolver:
    """In-memory Resolver.

    Lookup rules:
    - ``namespace:id`` matches an id or name inside that namespace only
    - Unscoped section lookups try ``current_namespace`` first, then any
      namespace but only among exportable sections
    - Unscoped separator set and data type lookups match any namespace

    Earlier additions win when two definitions match the same key.
    """

    def __init__(self, current_namespace: Optional[str] = None):
        self.current_namespace = current_namespace
        self._sections: List[PromptSection] = []
        self._separator_sets: List[SeparatorSet] = []
        self._data_types: List[PromptDataType] = []

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def add_section(self, section: Union[PromptSection, Mapping[str, Any]]) -> PromptSection:
        section = PromptSection.model_validate(section)
        self._replace(self._sections, section)
        return section

    def add_separator_set(self, separator_set: Union[SeparatorSet, Mapping[str, Any]]) -> SeparatorSet:
        separator_set = SeparatorSet.model_validate(separator_set)
        self._replace(self._separator_sets, separator_set)
        return separator_set

    def add_data_type(self, data_type: Union[PromptDataType, Mapping[str, Any]]) -> PromptDataType:
        data_type = PromptDataType.model_validate(data_type)
        self._replace(self._data_types, data_type)
        return data_type

    @staticmethod
    def _replace(entities: List[E], entity: E) -> None:
        for i, existing in enumerate(entities):
            if existing.id == entity.id and existing.namespace == entity.namespace:
                entities[i] = entity
                return
        entities.append(entity)

    # -------------------------------------------------------------------------
    # Resolver protocol
    # -------------------------------------------------------------------------

    def resolve_section(self, section_id: str) -> Optional[PromptSection]:
        namespace, local = split_scoped_id(section_id)
        if namespace is not None:
            return _first(self._sections, lambda s: s.namespace == namespace and s.matches(local))

        if self.current_namespace:
            found = _first(
                self._sections,
                lambda s: s.namespace == self.current_namespace and s.matches(section_id),
            )
            if found is not None:
                return found

        return _first(self._sections, lambda s: s.exportable and s.matches(section_id))

    def resolve_separator_set(self, set_id: str) -> Optional[SeparatorSet]:
        return self._resolve_any(self._separator_sets, set_id)

    def resolve_data_type(self, type_id: str) -> Optional[PromptDataType]:
        return self._resolve_any(self._data_types, type_id)

    @staticmethod
    def _resolve_any(entities: List[E], key: str) -> Optional[E]:
        namespace, local = split_scoped_id(key)
        if namespace is not None:
            return _first(entities, lambda e: e.namespace == namespace and e.matches(local))
        return _first(entities, lambda e: e.matches(key))

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    def list_sections(self) -> List[PromptSection]:
        return list(self._sections)

    def list_entry_points(self) -> List[PromptSection]:
        """Entry point sections, current namespace first."""
        entry_points = [s for s in self._sections if s.is_entry_point]
        entry_points.sort(key=lambda s: s.namespace != self.current_namespace)
        return entry_points

    def list_separator_sets(self) -> List[SeparatorSet]:
        return list(self._separator_sets)

    # -------------------------------------------------------------------------
    # Package loading
    # -------------------------------------------------------------------------

    @classmethod
    def from_export(cls, export: Union[PackageExport, Mapping[str, Any]]) -> "InMemoryResolver":
        """Build a resolver from a package export.

        Definitions without a namespace inherit the package namespace, which
        also becomes the resolver's current namespace.

        Raises:
            PackageLoadError: If the document is not a valid package export.
        """
        if not isinstance(export, PackageExport):
            try:
                export = PackageExport.model_validate(export)
            except ValidationError as e:
                raise PackageLoadError(
                    f"Invalid package export: {e.error_count()} validation error(s)",
                    context={"errors": e.errors(include_url=False, include_context=False)},
                )

        package = export.package
        resolver = cls(current_namespace=package.namespace)

        def own(entity: E) -> E:
            updates = {}
            if not entity.namespace:
                updates["namespace"] = package.namespace
            if not entity.package_id:
                updates["package_id"] = package.id
            return entity.model_copy(update=updates) if updates else entity

        for section in export.sections:
            resolver.add_section(own(section))
        for separator_set in export.separator_sets:
            resolver.add_separator_set(own(separator_set))
        for data_type in export.data_types:
            resolver.add_data_type(own(data_type))

        logger.debug(
            "Loaded package export",
            extra={
                "namespace": package.namespace,
                "sections": len(export.sections),
                "separator_sets": len(export.separator_sets),
                "data_types": len(export.data_types),
            },
        )
        return resolver


def load_package(path: Union[str, Path]) -> InMemoryResolver:
    """Load a package export JSON file into an InMemoryResolver.

    Raises:
        PackageLoadError: If the file cannot be read or is not a valid export.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise PackageLoadError(f"Cannot read package file: {path}", context={"error": str(e)})
    except json.JSONDecodeError as e:
        raise PackageLoadError(f"Package file is not valid JSON: {path}", context={"error": str(e)})

    return InMemoryResolver.from_export(data)
