"""Stored prompt entities.

These are the definitions a Resolver hands to the renderer:
- PromptSection: a named content tree (entry point or reusable fragment)
- SeparatorSet: user-defined list joining rules
- PromptDataType: custom type whose enum values can feed random-value nodes

PackageExport bundles them for file-based exchange.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from promptgen.core.content import FormatOptions, PromptContent, SeparatorRules


def generate_id() -> str:
    """Generate a unique ID for stored entities."""
    return uuid4().hex[:12]


def id_string(value: Any) -> str:
    """Normalize a stored record id to a plain string.

    Database record ids may arrive as ``{"tb": "section", "id": "abc"}`` or
    ``{"tb": ..., "id": {"String": "abc"}}``.
    """
    if not value:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and "id" in value:
        inner = value["id"]
        if isinstance(inner, str):
            return inner
        if isinstance(inner, dict) and "String" in inner:
            return str(inner["String"])
        return json.dumps(inner)
    return str(value)


class StoredEntity(BaseModel):
    """Fields shared by every namespaced definition."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=generate_id)
    package_id: str = ""
    namespace: str = ""
    name: str = ""
    description: str = ""

    @field_validator("id", "package_id", mode="before")
    @classmethod
    def normalize_id(cls, v: Any) -> str:
        return id_string(v)

    def matches(self, key: str) -> bool:
        """True when ``key`` is this entity's id or name."""
        return self.id == key or (bool(self.name) and self.name == key)

    @property
    def scoped_id(self) -> str:
        """``namespace:id`` key, unique across namespaces."""
        return f"{self.namespace}:{self.id}"


# -----------------------------------------------------------------------------
# Sections
# -----------------------------------------------------------------------------


class VariableDefinition(BaseModel):
    """Declared input variable of an entry point."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    description: str = ""
    type: str = "string"
    data_type_id: Optional[str] = None
    required: bool = False
    default_value: Any = None
    enum_values: Optional[List[str]] = None


class PromptExample(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    description: str = ""
    variables: Dict[str, Any] = Field(default_factory=dict)
    expected_output: str = ""


class PromptSection(StoredEntity):
    """The unified content unit.

    With ``is_entry_point`` set, a section is a renderable template;
    otherwise it is a fragment reached only through ``section-ref`` nodes.
    ``exportable`` sections can be referenced from other namespaces.
    """

    content: PromptContent
    is_entry_point: bool = False
    exportable: bool = False
    required_variables: List[str] = Field(default_factory=list)
    variables: List[VariableDefinition] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    examples: List[PromptExample] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Separator sets and data types
# -----------------------------------------------------------------------------


class SeparatorSet(StoredEntity):
    rules: SeparatorRules


class ValidationRules(BaseModel):
    model_config = ConfigDict(extra="ignore")

    pattern: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    enum_values: Optional[List[str]] = None
    required: Optional[bool] = None


class PromptDataType(StoredEntity):
    base_type: str = "string"
    validation: Optional[ValidationRules] = None
    format: Optional[FormatOptions] = None
    examples: List[Any] = Field(default_factory=list)

    @property
    def enum_values(self) -> List[str]:
        if self.validation and self.validation.enum_values:
            return list(self.validation.enum_values)
        return []


# -----------------------------------------------------------------------------
# Packages
# -----------------------------------------------------------------------------


class PromptPackage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=generate_id)
    namespace: str
    additional_namespaces: List[str] = Field(default_factory=list)
    name: str = ""
    version: str = "0.1.0"
    description: str = ""
    author: str = ""
    dependencies: List[str] = Field(default_factory=list)
    exports: List[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v: Any) -> str:
        return id_string(v)


class PackageExport(BaseModel):
    """File format for exchanging a package and its definitions."""

    model_config = ConfigDict(extra="ignore")

    format_version: str = "1.0"
    exported_at: Optional[str] = None
    package: PromptPackage
    sections: List[PromptSection] = Field(default_factory=list)
    separator_sets: List[SeparatorSet] = Field(default_factory=list)
    data_types: List[PromptDataType] = Field(default_factory=list)
