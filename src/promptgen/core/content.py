"""Prompt content tree models.

A prompt is a tree of content nodes. Every node is a JSON object tagged by
its ``type`` field; this module defines one pydantic model per node kind
and the ``PromptContent`` union that dispatches on the tag:

- Structural: text, variable, section-ref, composite, conditional, list, context
- Grammatical: plural, article, count-switch, switch
- Random selection: pick-one, pick-many, random-value, weighted-pick, shuffle

It also defines the shared value objects the nodes carry: ``Condition``,
``FormatOptions`` and ``SeparatorRules``.

Unknown tags do not fail deserialization. They are kept as
``UnknownContent`` so the renderer can degrade gracefully and the
validator can report them.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from promptgen.core.exceptions import ContentParseError


CONTENT_TYPES = (
    "text",
    "variable",
    "section-ref",
    "composite",
    "conditional",
    "list",
    "context",
    "plural",
    "article",
    "count-switch",
    "switch",
    "pick-one",
    "pick-many",
    "random-value",
    "weighted-pick",
    "shuffle",
)

CONDITION_OPERATORS = (
    "exists",
    "not_exists",
    "equals",
    "not_equals",
    "contains",
    "starts_with",
    "ends_with",
    "greater_than",
    "less_than",
    "has_items",
    "is_empty",
    "matches",
)


# -----------------------------------------------------------------------------
# Formatting
# -----------------------------------------------------------------------------


class ReplacePair(BaseModel):
    """A literal search/replace step. Applied to every occurrence."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str = ""


class FormatOptions(BaseModel):
    """Transforms applied to a resolved string value."""

    model_config = ConfigDict(extra="ignore")

    trim: bool = False
    case: Optional[Literal["upper", "lower", "title", "sentence"]] = None
    replace: Optional[List[ReplacePair]] = None
    truncate: Optional[int] = Field(default=None, ge=0)
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    placeholder: Optional[str] = None


# -----------------------------------------------------------------------------
# Conditions
# -----------------------------------------------------------------------------


class Condition(BaseModel):
    """Boolean predicate used by conditional nodes.

    Either compound (``and`` / ``or`` / ``not``) or a leaf that reads a
    variable (optionally drilling into ``path``) or a ``context_key`` and
    applies ``operator`` with an optional comparison ``value``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    variable: Optional[str] = None
    path: Optional[str] = None
    context_key: Optional[str] = None

    operator: Optional[str] = None
    value: Any = None

    and_: Optional[List[Condition]] = Field(default=None, alias="and")
    or_: Optional[List[Condition]] = Field(default=None, alias="or")
    not_: Optional[Condition] = Field(default=None, alias="not")


# -----------------------------------------------------------------------------
# Separator rules
# -----------------------------------------------------------------------------


class SingleItemRule(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    template: str


class TwoItemRule(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    separator: str
    template: str


class ManyItemRule(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    item_separator: str
    last_separator: str
    template: str
    numbered: bool = False


class SeparatorRules(BaseModel):
    """How to join one, two, or many items into natural-language text.

    All three tiers are required; a rule set missing any of them is invalid.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    single: SingleItemRule
    two: TwoItemRule
    many: ManyItemRule


# -----------------------------------------------------------------------------
# Content nodes
# -----------------------------------------------------------------------------


class ContentBase(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TextContent(ContentBase):
    type: Literal["text"] = "text"
    value: str


class VariableContent(ContentBase):
    """Variable lookup, e.g. ``{"variable_id": "user", "path": "address.city"}``."""

    type: Literal["variable"] = "variable"
    variable_id: str
    path: Optional[str] = None
    format: Optional[FormatOptions] = None


class SectionRefContent(ContentBase):
    """Reference to another section; ``section_id`` may be ``namespace:id``."""

    type: Literal["section-ref"] = "section-ref"
    section_id: str


class CompositeContent(ContentBase):
    type: Literal["composite"] = "composite"
    parts: List[PromptContent] = Field(default_factory=list)


class ConditionalContent(ContentBase):
    type: Literal["conditional"] = "conditional"
    condition: Condition
    then_content: PromptContent
    else_content: Optional[PromptContent] = None


class ListContent(ContentBase):
    type: Literal["list"] = "list"
    variable_id: str
    separator_set_id: str
    item_template: Optional[PromptContent] = None


class ContextContent(ContentBase):
    """Reads ``system.*``, ``constraints.*`` or ``variables.*`` values."""

    type: Literal["context"] = "context"
    context_key: str
    fallback: Optional[PromptContent] = None


class PluralContent(ContentBase):
    """Count-driven template choice. Templates may contain ``{count}``."""

    type: Literal["plural"] = "plural"
    count_variable: str
    zero: Optional[str] = None
    one: str
    two: Optional[str] = None
    few: Optional[str] = None
    many: Optional[str] = None
    other: str


class ArticleContent(ContentBase):
    type: Literal["article"] = "article"
    word_variable: Optional[str] = None
    word_content: Optional[PromptContent] = None
    style: Literal["indefinite", "definite"] = "indefinite"
    capitalize: bool = False


class CountCase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    count: Union[int, Literal["zero", "one", "other"]]
    content: PromptContent


class CountSwitchContent(ContentBase):
    type: Literal["count-switch"] = "count-switch"
    count_variable: str
    cases: List[CountCase] = Field(default_factory=list)
    default_content: Optional[PromptContent] = None


class SwitchCase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: Union[bool, int, float, str]
    content: PromptContent


class SwitchContent(ContentBase):
    type: Literal["switch"] = "switch"
    variable_id: str
    cases: List[SwitchCase] = Field(default_factory=list)
    default_content: Optional[PromptContent] = None


class PickOneContent(ContentBase):
    type: Literal["pick-one"] = "pick-one"
    candidates: List[PromptContent] = Field(default_factory=list)
    weights: Optional[List[float]] = None


class CountRange(BaseModel):
    """Inclusive range for how many items to pick."""

    min: int = Field(ge=0)
    max: int = Field(ge=0)

    @model_validator(mode="after")
    def validate_range(self) -> "CountRange":
        if self.min > self.max:
            raise ValueError(f"min ({self.min}) cannot be greater than max ({self.max})")
        return self


class PickManyContent(ContentBase):
    type: Literal["pick-many"] = "pick-many"
    candidates: List[PromptContent] = Field(default_factory=list)
    count: Union[int, CountRange]
    separator_set_id: Optional[str] = None
    allow_duplicates: bool = False


class RandomValueContent(ContentBase):
    """Random value from an inline pool, a variable, or a data type's enum."""

    type: Literal["random-value"] = "random-value"
    pool: Optional[List[str]] = None
    pool_variable: Optional[str] = None
    data_type_id: Optional[str] = None
    format: Optional[FormatOptions] = None


class WeightedOption(BaseModel):
    model_config = ConfigDict(extra="ignore")

    weight: float
    content: PromptContent


class WeightedPickContent(ContentBase):
    type: Literal["weighted-pick"] = "weighted-pick"
    options: List[WeightedOption] = Field(default_factory=list)


class ShuffleContent(ContentBase):
    type: Literal["shuffle"] = "shuffle"
    variable_id: str
    count: Optional[int] = None
    separator_set_id: Optional[str] = None
    item_template: Optional[PromptContent] = None


class UnknownContent(BaseModel):
    """A node whose ``type`` tag is not recognised. Extra fields are kept."""

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None


def _content_tag(value: Any) -> str:
    if isinstance(value, dict):
        tag = value.get("type")
    else:
        tag = getattr(value, "type", None)
    return tag if tag in CONTENT_TYPES else "unknown"


PromptContent = Annotated[
    Union[
        Annotated[TextContent, Tag("text")],
        Annotated[VariableContent, Tag("variable")],
        Annotated[SectionRefContent, Tag("section-ref")],
        Annotated[CompositeContent, Tag("composite")],
        Annotated[ConditionalContent, Tag("conditional")],
        Annotated[ListContent, Tag("list")],
        Annotated[ContextContent, Tag("context")],
        Annotated[PluralContent, Tag("plural")],
        Annotated[ArticleContent, Tag("article")],
        Annotated[CountSwitchContent, Tag("count-switch")],
        Annotated[SwitchContent, Tag("switch")],
        Annotated[PickOneContent, Tag("pick-one")],
        Annotated[PickManyContent, Tag("pick-many")],
        Annotated[RandomValueContent, Tag("random-value")],
        Annotated[WeightedPickContent, Tag("weighted-pick")],
        Annotated[ShuffleContent, Tag("shuffle")],
        Annotated[UnknownContent, Tag("unknown")],
    ],
    Discriminator(_content_tag),
]

CONTENT_MODELS = (
    TextContent,
    VariableContent,
    SectionRefContent,
    CompositeContent,
    ConditionalContent,
    ListContent,
    ContextContent,
    PluralContent,
    ArticleContent,
    CountSwitchContent,
    SwitchContent,
    PickOneContent,
    PickManyContent,
    RandomValueContent,
    WeightedPickContent,
    ShuffleContent,
    UnknownContent,
)

for _model in (Condition, CountCase, SwitchCase, WeightedOption) + CONTENT_MODELS:
    _model.model_rebuild()

_CONTENT_ADAPTER: TypeAdapter = TypeAdapter(PromptContent)


def parse_content(data: Any) -> Any:
    """Turn a serialized content tree into node models.

    Node models pass through unchanged.

    Raises:
        ContentParseError: If the tree does not match any node shape.
    """
    if isinstance(data, CONTENT_MODELS):
        return data
    try:
        return _CONTENT_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise ContentParseError(
            f"Invalid prompt content: {e.error_count()} validation error(s)",
            context={"errors": e.errors(include_url=False, include_context=False)},
        )


def dump_content(node: Any) -> Dict[str, Any]:
    """Serialize a node model back to its JSON-compatible tagged shape."""
    return node.model_dump(mode="json", by_alias=True, exclude_none=True)
