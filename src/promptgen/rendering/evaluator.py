"""Content tree renderer: turns a content tree into text by walking it.

Every node kind renders to a string. Nothing here raises for bad or
missing data; problems degrade to "" (or a documented fallback) and are
recorded on the context:

- Missing variables render as "" (or the format placeholder), silently
- Unresolved section refs, separator sets and data types are recorded
- Unknown node kinds are recorded and render as ""
- Section reference cycles are cut and recorded

Section references:
- Resolved through the context's Resolver
- A stack of sections being expanded detects cycles (A -> B -> A)
- Nesting deeper than ``max_section_depth`` is cut off
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from promptgen.core.content import (
    ArticleContent,
    CompositeContent,
    ConditionalContent,
    ContextContent,
    CountSwitchContent,
    ListContent,
    PickManyContent,
    PickOneContent,
    PluralContent,
    RandomValueContent,
    SectionRefContent,
    ShuffleContent,
    SwitchContent,
    TextContent,
    VariableContent,
    WeightedPickContent,
)
from promptgen.rendering.conditions import ConditionEvaluator
from promptgen.rendering.context import RenderContext
from promptgen.rendering.formatting import apply_format
from promptgen.rendering.grammar import choose_article, count_of, render_plural
from promptgen.rendering.randomness import (
    fisher_yates,
    inclusive_range,
    sample_indices,
    uniform_index,
    weighted_index,
)
from promptgen.rendering.separators import get_separator_rules, join_with_separators
from promptgen.utils.logging import get_logger
from promptgen.utils.values import is_sequence, resolve_path, strict_equals, to_text

logger = get_logger(__name__)


class ContentRenderer:
    """Renders prompt content trees against a RenderContext.

    Usage:
        renderer = ContentRenderer()
        context = RenderContext(variables={"name": "Ada"})
        text = renderer.render(parse_content({"type": "variable", "variable_id": "name"}), context)
        # text == "Ada"
    """

    def __init__(self, condition_evaluator: Optional[ConditionEvaluator] = None):
        self.conditions = condition_evaluator or ConditionEvaluator()
        self._handlers: Dict[type, Callable[[Any, RenderContext], str]] = {
            TextContent: self._render_text,
            VariableContent: self._render_variable,
            SectionRefContent: self._render_section_ref,
            CompositeContent: self._render_composite,
            ConditionalContent: self._render_conditional,
            ListContent: self._render_list,
            ContextContent: self._render_context,
            PluralContent: self._render_plural,
            ArticleContent: self._render_article,
            CountSwitchContent: self._render_count_switch,
            SwitchContent: self._render_switch,
            PickOneContent: self._render_pick_one,
            PickManyContent: self._render_pick_many,
            RandomValueContent: self._render_random_value,
            WeightedPickContent: self._render_weighted_pick,
            ShuffleContent: self._render_shuffle,
        }

    def render(self, content: Any, context: RenderContext) -> str:
        """Render one node (and its subtree) to text."""
        handler = self._handlers.get(type(content))
        if handler is None:
            node_type = getattr(content, "type", None)
            if node_type is None and isinstance(content, Mapping):
                node_type = content.get("type")
            logger.debug("Unknown content type", extra={"node_type": node_type})
            context.warn("UNKNOWN_CONTENT_TYPE", f"Unknown content type: {node_type}")
            return ""
        return handler(content, context)

    # -------------------------------------------------------------------------
    # Structural nodes
    # -------------------------------------------------------------------------

    def _render_text(self, content: TextContent, context: RenderContext) -> str:
        return content.value

    def _render_variable(self, content: VariableContent, context: RenderContext) -> str:
        context.use_variable(content.variable_id)
        value = resolve_path(context.variables.get(content.variable_id), content.path)

        if value is None:
            if content.format and content.format.placeholder:
                return content.format.placeholder
            return ""

        return apply_format(to_text(value), content.format)

    def _render_section_ref(self, content: SectionRefContent, context: RenderContext) -> str:
        section_id = content.section_id
        section = context.resolver.resolve_section(section_id) if context.resolver else None

        if section is None:
            context.warn("SECTION_NOT_FOUND", f"Section not found: {section_id}")
            return ""

        key = section.scoped_id
        if key in context.section_stack:
            cycle = " -> ".join(context.section_stack + [key])
            context.warn("CYCLE_DETECTED", f"Circular section reference: {cycle}")
            return ""
        if len(context.section_stack) >= context.max_section_depth:
            context.warn(
                "MAX_DEPTH_EXCEEDED",
                f"Section nesting deeper than {context.max_section_depth} at: {section_id}",
            )
            return ""

        context.sections_used.add(section_id)
        context.section_stack.append(key)
        try:
            return self.render(section.content, context)
        finally:
            context.section_stack.pop()

    def _render_composite(self, content: CompositeContent, context: RenderContext) -> str:
        return "".join(self.render(part, context) for part in content.parts)

    def _render_conditional(self, content: ConditionalContent, context: RenderContext) -> str:
        if self.conditions.evaluate(content.condition, context):
            return self.render(content.then_content, context)
        if content.else_content is not None:
            return self.render(content.else_content, context)
        return ""

    def _render_list(self, content: ListContent, context: RenderContext) -> str:
        context.use_variable(content.variable_id)
        items = context.variables.get(content.variable_id)
        if not is_sequence(items) or not items:
            return ""

        rules = get_separator_rules(content.separator_set_id, context.resolver)
        if rules is None:
            context.warn(
                "SEPARATOR_NOT_FOUND", f"Separator set not found: {content.separator_set_id}"
            )
            return ", ".join(to_text(item) for item in items)

        rendered = self._render_items(items, content.item_template, context)
        return join_with_separators(rendered, rules)

    def _render_context(self, content: ContextContent, context: RenderContext) -> str:
        category, _, key = content.context_key.partition(".")
        namespaces = {
            "system": context.system,
            "constraints": context.constraints,
            "variables": context.variables,
        }

        value = None
        source = namespaces.get(category)
        if source is not None:
            value = source.get(key) if key else source
            if category == "variables" and key:
                context.use_variable(key)

        if value is not None:
            return to_text(value)
        if content.fallback is not None:
            return self.render(content.fallback, context)
        return ""

    # -------------------------------------------------------------------------
    # Grammatical nodes
    # -------------------------------------------------------------------------

    def _render_plural(self, content: PluralContent, context: RenderContext) -> str:
        context.use_variable(content.count_variable)
        count = count_of(context.variables.get(content.count_variable))
        return render_plural(content, count)

    def _render_article(self, content: ArticleContent, context: RenderContext) -> str:
        if content.word_variable:
            context.use_variable(content.word_variable)
            value = context.variables.get(content.word_variable)
            word = to_text(value) if value else ""
        elif content.word_content is not None:
            word = self.render(content.word_content, context)
        else:
            return ""

        return choose_article(word, content.style, content.capitalize)

    def _render_count_switch(self, content: CountSwitchContent, context: RenderContext) -> str:
        context.use_variable(content.count_variable)
        count = count_of(context.variables.get(content.count_variable))

        for case in content.cases:
            if case.count == "zero":
                matched = count == 0
            elif case.count == "one":
                matched = count == 1
            elif case.count == "other":
                matched = count > 1
            else:
                matched = case.count == count
            if matched:
                return self.render(case.content, context)

        if content.default_content is not None:
            return self.render(content.default_content, context)
        return ""

    def _render_switch(self, content: SwitchContent, context: RenderContext) -> str:
        context.use_variable(content.variable_id)
        value = context.variables.get(content.variable_id)

        for case in content.cases:
            if strict_equals(case.value, value):
                return self.render(case.content, context)

        if content.default_content is not None:
            return self.render(content.default_content, context)
        return ""

    # -------------------------------------------------------------------------
    # Random selection nodes
    # -------------------------------------------------------------------------

    def _render_pick_one(self, content: PickOneContent, context: RenderContext) -> str:
        candidates = content.candidates
        if not candidates:
            return ""

        rng = context.random.generator()
        index = None
        if content.weights and len(content.weights) == len(candidates):
            index = weighted_index(rng, content.weights)
        if index is None:
            index = uniform_index(rng, len(candidates))

        return self.render(candidates[index], context)

    def _render_pick_many(self, content: PickManyContent, context: RenderContext) -> str:
        candidates = content.candidates
        if not candidates:
            return ""

        rng = context.random.generator()
        if isinstance(content.count, int):
            pick_count = content.count
        else:
            pick_count = inclusive_range(rng, content.count.min, content.count.max)

        indices = sample_indices(
            rng, len(candidates), pick_count, allow_duplicates=content.allow_duplicates
        )
        rendered = [self.render(candidates[i], context) for i in indices]
        return self._join(rendered, content.separator_set_id, context)

    def _render_random_value(self, content: RandomValueContent, context: RenderContext) -> str:
        pool: List[str] = []
        format_options = content.format

        if content.pool is not None:
            pool = list(content.pool)
        elif content.pool_variable:
            context.use_variable(content.pool_variable)
            values = context.variables.get(content.pool_variable)
            if is_sequence(values):
                pool = [to_text(v) for v in values]
        elif content.data_type_id:
            data_type = (
                context.resolver.resolve_data_type(content.data_type_id)
                if context.resolver
                else None
            )
            if data_type is None:
                context.warn("DATA_TYPE_NOT_FOUND", f"Data type not found: {content.data_type_id}")
            else:
                pool = data_type.enum_values
                format_options = format_options or data_type.format

        if not pool:
            return ""

        rng = context.random.generator()
        value = pool[uniform_index(rng, len(pool))]
        return apply_format(value, format_options)

    def _render_weighted_pick(self, content: WeightedPickContent, context: RenderContext) -> str:
        options = content.options
        if not options:
            return ""

        rng = context.random.generator()
        index = weighted_index(rng, [option.weight for option in options])
        if index is None:
            index = len(options) - 1

        return self.render(options[index].content, context)

    def _render_shuffle(self, content: ShuffleContent, context: RenderContext) -> str:
        context.use_variable(content.variable_id)
        items = context.variables.get(content.variable_id)
        if not is_sequence(items) or not items:
            return ""

        rng = context.random.generator()
        shuffled = fisher_yates(rng, items)
        selected = shuffled[: content.count] if content.count else shuffled

        rendered = self._render_items(selected, content.item_template, context)
        return self._join(rendered, content.separator_set_id, context)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _render_items(
        self, items: Sequence[Any], template: Any, context: RenderContext
    ) -> List[str]:
        """Render list items, through ``template`` when one is given.

        The template sees ``item`` and ``index``; mapping items also expose
        their fields as top-level bindings.
        """
        if template is None:
            return [to_text(item) for item in items]

        rendered = []
        for index, item in enumerate(items):
            bindings: Dict[str, Any] = {"item": item, "index": index}
            if isinstance(item, Mapping):
                bindings.update(item)
            rendered.append(self.render(template, context.with_variables(bindings)))
        return rendered

    def _join(self, rendered: List[str], set_id: Optional[str], context: RenderContext) -> str:
        set_id = set_id or context.default_separator_set
        rules = get_separator_rules(set_id, context.resolver)
        if rules is None:
            context.warn("SEPARATOR_NOT_FOUND", f"Separator set not found: {set_id}")
            return ", ".join(rendered)
        return join_with_separators(rendered, rules)
