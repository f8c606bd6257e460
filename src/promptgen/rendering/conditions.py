"""Condition evaluation for conditional content.

Conditions are structured, not parsed from strings:
- Compound: ``and`` (all true), ``or`` (any true), ``not`` (negation)
- Leaf: a value read from a variable (with optional dotted ``path``) or a
  ``context_key`` such as ``system.role``, tested with an operator

Operators are exact about types. A value of the wrong type for an
operator makes the condition false; evaluation never raises on bad data.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, Optional

from promptgen.core.content import Condition
from promptgen.rendering.context import RenderContext
from promptgen.utils.logging import get_logger
from promptgen.utils.values import is_number, is_sequence, resolve_path, strict_equals, to_text

logger = get_logger(__name__)

CONTEXT_CATEGORIES = ("system", "constraints")


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _contains(value: Any, expected: Any) -> bool:
    if is_sequence(value):
        return any(strict_equals(item, expected) for item in value)
    if isinstance(value, str) and expected is not None:
        return to_text(expected) in value
    return False


def _is_empty(value: Any) -> bool:
    if is_sequence(value) or isinstance(value, (str, dict)):
        return len(value) == 0
    return not value


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(value: Any, expected: Any) -> bool:
        return is_number(value) and is_number(expected) and op(value, expected)

    return check


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "exists": lambda value, _: not _is_blank(value),
    "not_exists": lambda value, _: _is_blank(value),
    "equals": strict_equals,
    "not_equals": lambda value, expected: not strict_equals(value, expected),
    "contains": _contains,
    "starts_with": lambda value, expected: (
        isinstance(value, str) and expected is not None and value.startswith(to_text(expected))
    ),
    "ends_with": lambda value, expected: (
        isinstance(value, str) and expected is not None and value.endswith(to_text(expected))
    ),
    "greater_than": _compare(lambda a, b: a > b),
    "less_than": _compare(lambda a, b: a < b),
    "has_items": lambda value, _: is_sequence(value) and len(value) > 0,
    "is_empty": lambda value, _: _is_empty(value),
}


class ConditionEvaluator:
    """Evaluate structured conditions against a render context.

    Usage:
        evaluator = ConditionEvaluator()
        condition = Condition(variable="age", operator="greater_than", value=18)
        evaluator.evaluate(condition, context)
    """

    def evaluate(self, condition: Condition, context: RenderContext) -> bool:
        if condition.and_ is not None:
            return all(self.evaluate(c, context) for c in condition.and_)
        if condition.or_ is not None:
            return any(self.evaluate(c, context) for c in condition.or_)
        if condition.not_ is not None:
            return not self.evaluate(condition.not_, context)

        value = self.resolve_value(condition, context)
        operator = condition.operator

        if operator == "matches":
            return self._matches(value, condition.value, context)

        check = OPERATORS.get(operator or "")
        if check is None:
            return False
        return bool(check(value, condition.value))

    def resolve_value(self, condition: Condition, context: RenderContext) -> Any:
        """Read the value a leaf condition tests."""
        if condition.variable:
            context.use_variable(condition.variable)
            return resolve_path(context.variables.get(condition.variable), condition.path)

        if condition.context_key:
            category, _, key = condition.context_key.partition(".")
            # Only the first segment after the category is a key
            key = key.split(".", 1)[0]
            if category == "system":
                return context.system.get(key)
            if category == "constraints":
                return context.constraints.get(key)

        return None

    def _matches(self, value: Any, pattern: Any, context: RenderContext) -> bool:
        if not isinstance(value, str) or not pattern:
            return False
        try:
            return re.search(to_text(pattern), value) is not None
        except re.error as e:
            logger.debug("Invalid condition pattern", extra={"pattern": pattern, "error": str(e)})
            context.warn("INVALID_PATTERN", f"Invalid pattern in condition: {pattern} ({e})")
            return False


_default_evaluator = ConditionEvaluator()


def evaluate_condition(condition: Condition, context: Optional[RenderContext] = None) -> bool:
    """Evaluate a condition with the shared evaluator."""
    return _default_evaluator.evaluate(condition, context or RenderContext())
