"""Prompt rendering engine."""

from promptgen.rendering.conditions import ConditionEvaluator, evaluate_condition
from promptgen.rendering.context import RenderContext
from promptgen.rendering.engine import PromptRenderer, preview_separator, quick_render, render_prompt
from promptgen.rendering.evaluator import ContentRenderer
from promptgen.rendering.separators import BUILTIN_SEPARATOR_SETS, join_with_separators

__all__ = [
    "BUILTIN_SEPARATOR_SETS",
    "ConditionEvaluator",
    "ContentRenderer",
    "PromptRenderer",
    "RenderContext",
    "evaluate_condition",
    "join_with_separators",
    "preview_separator",
    "quick_render",
    "render_prompt",
]
