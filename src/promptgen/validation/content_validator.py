"""Static structural validation for prompt content trees."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel

from promptgen.core.content import CONDITION_OPERATORS, CONTENT_TYPES, dump_content

# Fields every node kind must carry, besides ``type``
REQUIRED_FIELDS: Dict[str, tuple] = {
    "text": ("value",),
    "variable": ("variable_id",),
    "section-ref": ("section_id",),
    "composite": ("parts",),
    "conditional": ("condition", "then_content"),
    "list": ("variable_id", "separator_set_id"),
    "context": ("context_key",),
    "plural": ("count_variable", "one", "other"),
    "article": (),
    "count-switch": ("count_variable", "cases"),
    "switch": ("variable_id", "cases"),
    "pick-one": ("candidates",),
    "pick-many": ("candidates", "count"),
    "random-value": (),
    "weighted-pick": ("options",),
    "shuffle": ("variable_id",),
}

# Single nested child fields, checked when present
CHILD_FIELDS = {
    "then_content": "then",
    "else_content": "else",
    "item_template": "item_template",
    "fallback": "fallback",
    "word_content": "word_content",
    "default_content": "default",
}

VALUELESS_OPERATORS = {"exists", "not_exists", "has_items", "is_empty"}
COUNT_KEYWORDS = {"zero", "one", "other"}


@dataclass
class ContentValidationError:
    """Represents a content tree validation error."""

    code: str
    message: str
    path: str = "root"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ContentValidator:
    """Validates content tree structure independent of variable bindings."""

    def validate(self, content: Any) -> List[ContentValidationError]:
        """
        Validate a content tree and return every problem found.

        Rules:
        1. Every node is a mapping with a known ``type``
        2. Each node kind carries its required fields
        3. Nested children (parts, branches, templates, cases, candidates,
           options) are validated recursively
        4. Conditions are either compound (and/or/not) or a leaf with a
           source (variable or context_key) and a known operator
        5. pick-one weights match the candidate count and are non-negative
        6. pick-many counts are non-negative; ranges have min <= max
        7. weighted-pick weights are non-negative numbers
        8. random-value names exactly one value source
        """
        if isinstance(content, BaseModel):
            content = dump_content(content)

        errors: List[ContentValidationError] = []
        self._validate_node(content, "root", errors)
        return errors

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def _validate_node(self, node: Any, path: str, errors: List[ContentValidationError]) -> None:
        if not isinstance(node, Mapping):
            errors.append(
                ContentValidationError(
                    code="INVALID_NODE",
                    message=f"Content node must be an object, got {type(node).__name__}",
                    path=path,
                )
            )
            return

        node_type = node.get("type")
        if node_type not in CONTENT_TYPES:
            errors.append(
                ContentValidationError(
                    code="UNKNOWN_CONTENT_TYPE",
                    message=f"Unknown content type: {node_type}",
                    path=path,
                )
            )
            return

        missing = [f for f in REQUIRED_FIELDS[node_type] if node.get(f) is None]
        for field_name in missing:
            errors.append(
                ContentValidationError(
                    code="MISSING_FIELD",
                    message=f"'{node_type}' node is missing required field '{field_name}'",
                    path=path,
                )
            )

        for field_name, label in CHILD_FIELDS.items():
            child = node.get(field_name)
            if child is not None:
                self._validate_node(child, f"{path}.{label}", errors)

        for i, part in enumerate(self._as_list(node, "parts", path, errors)):
            self._validate_node(part, f"{path}.parts[{i}]", errors)

        check = getattr(self, "_check_" + node_type.replace("-", "_"), None)
        if check is not None:
            check(node, path, errors)

    def _check_conditional(self, node: Mapping, path: str, errors: List[ContentValidationError]) -> None:
        condition = node.get("condition")
        if condition is not None:
            self._validate_condition(condition, f"{path}.condition", errors)

    def _check_article(self, node: Mapping, path: str, errors: List[ContentValidationError]) -> None:
        if not node.get("word_variable") and node.get("word_content") is None:
            errors.append(
                ContentValidationError(
                    code="MISSING_FIELD",
                    message="'article' node needs word_variable or word_content",
                    path=path,
                )
            )
        style = node.get("style")
        if style is not None and style not in ("indefinite", "definite"):
            errors.append(
                ContentValidationError(
                    code="INVALID_VALUE",
                    message=f"Invalid article style '{style}'",
                    path=f"{path}.style",
                )
            )

    def _check_count_switch(self, node: Mapping, path: str, errors: List[ContentValidationError]) -> None:
        for i, case in enumerate(self._as_list(node, "cases", path, errors)):
            case_path = f"{path}.cases[{i}]"
            if not isinstance(case, Mapping):
                errors.append(ContentValidationError("INVALID_NODE", "Case must be an object", case_path))
                continue
            count = case.get("count")
            if not (isinstance(count, int) and not isinstance(count, bool)) and count not in COUNT_KEYWORDS:
                errors.append(
                    ContentValidationError(
                        code="INVALID_VALUE",
                        message=f"Case count must be an integer or one of zero/one/other, got {count!r}",
                        path=f"{case_path}.count",
                    )
                )
            self._validate_case_content(case, case_path, errors)

    def _check_switch(self, node: Mapping, path: str, errors: List[ContentValidationError]) -> None:
        for i, case in enumerate(self._as_list(node, "cases", path, errors)):
            case_path = f"{path}.cases[{i}]"
            if not isinstance(case, Mapping):
                errors.append(ContentValidationError("INVALID_NODE", "Case must be an object", case_path))
                continue
            if case.get("value") is None:
                errors.append(
                    ContentValidationError(
                        code="MISSING_FIELD",
                        message="Switch case is missing required field 'value'",
                        path=case_path,
                    )
                )
            self._validate_case_content(case, case_path, errors)

    def _check_pick_one(self, node: Mapping, path: str, errors: List[ContentValidationError]) -> None:
        candidates = self._as_list(node, "candidates", path, errors)
        for i, candidate in enumerate(candidates):
            self._validate_node(candidate, f"{path}.candidates[{i}]", errors)

        weights = node.get("weights")
        if weights is None:
            return
        if not isinstance(weights, list):
            errors.append(ContentValidationError("INVALID_VALUE", "weights must be a list", f"{path}.weights"))
            return
        if len(weights) != len(candidates):
            errors.append(
                ContentValidationError(
                    code="WEIGHT_COUNT_MISMATCH",
                    message=f"{len(weights)} weights given for {len(candidates)} candidates",
                    path=f"{path}.weights",
                )
            )
        for i, weight in enumerate(weights):
            self._validate_weight(weight, f"{path}.weights[{i}]", errors)

    def _check_pick_many(self, node: Mapping, path: str, errors: List[ContentValidationError]) -> None:
        for i, candidate in enumerate(self._as_list(node, "candidates", path, errors)):
            self._validate_node(candidate, f"{path}.candidates[{i}]", errors)

        count = node.get("count")
        count_path = f"{path}.count"
        if count is None:
            return
        if isinstance(count, Mapping):
            low, high = count.get("min"), count.get("max")
            if not all(isinstance(v, int) and not isinstance(v, bool) for v in (low, high)):
                errors.append(
                    ContentValidationError("INVALID_COUNT", "Count range needs integer min and max", count_path)
                )
            elif low < 0 or high < 0:
                errors.append(
                    ContentValidationError("INVALID_COUNT", "Count range must be non-negative", count_path)
                )
            elif low > high:
                errors.append(
                    ContentValidationError(
                        code="INVALID_COUNT",
                        message=f"Count range min ({low}) is greater than max ({high})",
                        path=count_path,
                    )
                )
        elif not isinstance(count, int) or isinstance(count, bool) or count < 0:
            errors.append(
                ContentValidationError(
                    code="INVALID_COUNT",
                    message=f"Count must be a non-negative integer or a min/max range, got {count!r}",
                    path=count_path,
                )
            )

    def _check_random_value(self, node: Mapping, path: str, errors: List[ContentValidationError]) -> None:
        sources = [key for key in ("pool", "pool_variable", "data_type_id") if node.get(key) is not None]
        if not sources:
            errors.append(
                ContentValidationError(
                    code="MISSING_FIELD",
                    message="'random-value' node needs pool, pool_variable or data_type_id",
                    path=path,
                )
            )
        elif len(sources) > 1:
            errors.append(
                ContentValidationError(
                    code="AMBIGUOUS_SOURCE",
                    message=f"'random-value' node has several sources; only {sources[0]} is used",
                    path=path,
                )
            )

    def _check_weighted_pick(self, node: Mapping, path: str, errors: List[ContentValidationError]) -> None:
        for i, option in enumerate(self._as_list(node, "options", path, errors)):
            option_path = f"{path}.options[{i}]"
            if not isinstance(option, Mapping):
                errors.append(ContentValidationError("INVALID_NODE", "Option must be an object", option_path))
                continue
            self._validate_weight(option.get("weight"), f"{option_path}.weight", errors)
            self._validate_case_content(option, option_path, errors)

    def _check_shuffle(self, node: Mapping, path: str, errors: List[ContentValidationError]) -> None:
        count = node.get("count")
        if count is not None and (not isinstance(count, int) or isinstance(count, bool) or count < 0):
            errors.append(
                ContentValidationError(
                    code="INVALID_COUNT",
                    message=f"Shuffle count must be a non-negative integer, got {count!r}",
                    path=f"{path}.count",
                )
            )

    # -------------------------------------------------------------------------
    # Conditions
    # -------------------------------------------------------------------------

    def _validate_condition(self, condition: Any, path: str, errors: List[ContentValidationError]) -> None:
        if not isinstance(condition, Mapping):
            errors.append(ContentValidationError("INVALID_CONDITION", "Condition must be an object", path))
            return

        compound = False
        for key in ("and", "or"):
            children = condition.get(key)
            if children is None:
                continue
            compound = True
            if not isinstance(children, list) or not children:
                errors.append(
                    ContentValidationError(
                        code="INVALID_CONDITION",
                        message=f"'{key}' must be a non-empty list of conditions",
                        path=f"{path}.{key}",
                    )
                )
                continue
            for i, child in enumerate(children):
                self._validate_condition(child, f"{path}.{key}[{i}]", errors)

        if condition.get("not") is not None:
            compound = True
            self._validate_condition(condition["not"], f"{path}.not", errors)

        if compound:
            return

        if not condition.get("variable") and not condition.get("context_key"):
            errors.append(
                ContentValidationError(
                    code="INVALID_CONDITION",
                    message="Condition needs a variable, a context_key, or and/or/not",
                    path=path,
                )
            )

        operator = condition.get("operator")
        if operator is None:
            errors.append(ContentValidationError("MISSING_FIELD", "Condition is missing an operator", path))
        elif operator not in CONDITION_OPERATORS:
            errors.append(
                ContentValidationError(
                    code="UNKNOWN_OPERATOR",
                    message=f"Unknown condition operator '{operator}'",
                    path=f"{path}.operator",
                )
            )
        elif operator not in VALUELESS_OPERATORS and condition.get("value") is None:
            errors.append(
                ContentValidationError(
                    code="MISSING_FIELD",
                    message=f"Operator '{operator}' needs a comparison value",
                    path=path,
                )
            )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _as_list(
        self, node: Mapping, field_name: str, path: str, errors: List[ContentValidationError]
    ) -> List[Any]:
        value = node.get(field_name)
        if value is None:
            return []
        if not isinstance(value, list):
            errors.append(
                ContentValidationError(
                    code="INVALID_VALUE",
                    message=f"'{field_name}' must be a list",
                    path=f"{path}.{field_name}",
                )
            )
            return []
        return value

    def _validate_case_content(
        self, case: Mapping, path: str, errors: List[ContentValidationError]
    ) -> None:
        content = case.get("content")
        if content is None:
            errors.append(ContentValidationError("MISSING_FIELD", "Missing required field 'content'", path))
        else:
            self._validate_node(content, f"{path}.content", errors)

    @staticmethod
    def _validate_weight(weight: Any, path: str, errors: List[ContentValidationError]) -> None:
        if not _is_number(weight):
            errors.append(ContentValidationError("INVALID_WEIGHT", f"Weight must be a number, got {weight!r}", path))
        elif weight < 0:
            errors.append(ContentValidationError("INVALID_WEIGHT", f"Weight must be non-negative, got {weight}", path))


_default_validator = ContentValidator()


def validate_content(content: Any) -> List[ContentValidationError]:
    """Validate a content tree (raw mapping or node model)."""
    return _default_validator.validate(content)
