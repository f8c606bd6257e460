"""Prompt rendering entry points.

``render_prompt`` renders an entry point section one or more times:
1. Resolves the entry point through the Resolver
2. Builds a fresh RenderContext per requested output
3. Renders each output, isolating failures to that output
4. Collects texts, warnings, and usage metadata

Errors come in three tiers:
- Fatal (invalid request, entry point missing, not an entry point, too
  many outputs):
  ``success=False``, no outputs, one ``FATAL_ERROR``
- Per-output (an exception while rendering output k): a ``RENDER_ERROR``
  tagged ``output k``; other outputs still render
- Graceful (missing variable, unknown separator set, ...): the output
  renders with a fallback and carries the issue in ``warnings``
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Set, Union

from pydantic import ValidationError

from promptgen.config.settings import Settings, get_settings
from promptgen.core.content import parse_content
from promptgen.core.exceptions import (
    EntryPointNotFoundError,
    NotAnEntryPointError,
    OutputLimitError,
    RenderFailure,
)
from promptgen.core.interfaces import Resolver
from promptgen.core.models import PromptSection
from promptgen.core.render_models import (
    RenderedPrompt,
    RenderError,
    RenderMetadata,
    RenderRequest,
    RenderResult,
)
from promptgen.rendering.context import RenderContext
from promptgen.rendering.evaluator import ContentRenderer
from promptgen.rendering.randomness import RandomSource
from promptgen.rendering.separators import (
    coerce_rules,
    get_separator_rules,
    join_with_separators,
)
from promptgen.utils.logging import get_logger

logger = get_logger(__name__)


class PromptRenderer:
    """Renders entry point sections resolved through a Resolver.

    Usage:
        renderer = PromptRenderer(resolver)
        result = renderer.render(RenderRequest(template_id="greeting"))
        if result.success:
            print(result.outputs[0].text)
    """

    def __init__(
        self,
        resolver: Optional[Resolver] = None,
        settings: Optional[Settings] = None,
        content_renderer: Optional[ContentRenderer] = None,
    ):
        self.resolver = resolver
        self.settings = settings or get_settings()
        self.content_renderer = content_renderer or ContentRenderer()

    def render(self, request: Union[RenderRequest, Mapping[str, Any]]) -> RenderResult:
        """Render ``request.options.count`` outputs of the requested entry point."""
        started = time.perf_counter()
        if not isinstance(request, RenderRequest):
            try:
                request = RenderRequest.model_validate(request)
            except ValidationError as e:
                raw_id = request.get("template_id") if isinstance(request, Mapping) else None
                template_id = raw_id if isinstance(raw_id, str) else ""
                logger.warning(
                    "Render request rejected",
                    extra={"template_id": template_id, "errors": e.error_count()},
                )
                return self._fatal(template_id, started, f"Invalid render request: {e}")

        template_id = request.template_id
        logger.debug(
            "Render started",
            extra={"template_id": template_id, "count": request.options.count},
        )

        try:
            self._check_output_count(request.options.count)
            entry_point = self._resolve_entry_point(template_id)
        except RenderFailure as e:
            logger.warning("Render aborted", extra={"template_id": template_id, "error": e.message})
            return self._fatal(template_id, started, e.message)
        except Exception as e:
            logger.exception("Entry point resolution failed", extra={"template_id": template_id})
            return self._fatal(template_id, started, str(e))

        outputs = []
        errors = []
        variables_used: Set[str] = set()
        sections_used: Set[str] = set()

        for index in range(request.options.count):
            context = self._build_context(request, entry_point, index)
            try:
                text = self.content_renderer.render(entry_point.content, context)
            except Exception as e:
                logger.exception(
                    "Output render failed",
                    extra={"template_id": template_id, "output_index": index},
                )
                errors.append(
                    RenderError(code="RENDER_ERROR", message=str(e), location=f"output {index + 1}")
                )
                continue
            finally:
                variables_used |= context.variables_used
                sections_used |= context.sections_used

            outputs.append(
                RenderedPrompt(
                    text=text,
                    variable_values=dict(request.context.variables),
                    warnings=context.warnings or None,
                )
            )

        result = RenderResult(
            success=not errors,
            outputs=outputs,
            errors=errors or None,
            metadata=self._metadata(template_id, started, variables_used, sections_used),
        )
        logger.info(
            "Render finished",
            extra={
                "template_id": template_id,
                "outputs": len(outputs),
                "errors": len(errors),
                "duration_ms": result.metadata.duration_ms,
            },
        )
        return result

    def render_content(
        self,
        content: Any,
        variables: Optional[Mapping[str, Any]] = None,
        *,
        system: Optional[Mapping[str, Any]] = None,
        constraints: Optional[Mapping[str, Any]] = None,
        seed: Optional[int] = None,
    ) -> RenderedPrompt:
        """Render a content tree, or a section's content outside a request.

        A section counts as already expanded, so references back to it
        are reported as cycles.
        """
        section_stack = []
        if isinstance(content, PromptSection):
            section_stack.append(content.scoped_id)
            content = content.content

        context = RenderContext(
            variables=dict(variables or {}),
            system=dict(system or {}),
            constraints=dict(constraints or {}),
            resolver=self.resolver,
            random=RandomSource(seed),
            max_section_depth=self.settings.max_section_depth,
            default_separator_set=self.settings.default_separator_set,
            section_stack=section_stack,
        )
        text = self.content_renderer.render(parse_content(content), context)
        return RenderedPrompt(
            text=text,
            variable_values=dict(context.variables),
            warnings=context.warnings or None,
        )

    def preview_separator(self, rules: Any, items: Iterable[str]) -> str:
        """Join sample items with built-in, inline, or resolver-defined rules."""
        if isinstance(rules, str) and self.resolver is not None:
            resolved = get_separator_rules(rules, self.resolver)
            if resolved is not None:
                rules = resolved
        return preview_separator(rules, items)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _resolve_entry_point(self, template_id: str) -> PromptSection:
        section = self.resolver.resolve_section(template_id) if self.resolver else None
        if section is None:
            raise EntryPointNotFoundError(f"Entry point not found: {template_id}")
        if not section.is_entry_point:
            raise NotAnEntryPointError(f"Section is not an entry point: {template_id}")
        return section

    def _check_output_count(self, count: int) -> None:
        limit = self.settings.max_output_count
        if count > limit:
            raise OutputLimitError(f"Requested {count} outputs; the maximum is {limit}")

    def _build_context(
        self, request: RenderRequest, entry_point: PromptSection, output_index: int
    ) -> RenderContext:
        randomize = request.options.randomize
        return RenderContext(
            variables=dict(request.context.variables),
            system=dict(request.context.system),
            constraints=dict(request.context.constraints),
            resolver=self.resolver,
            random=RandomSource.for_output(
                request.options.seed,
                output_index,
                legacy_reseed=bool(randomize and randomize.legacy_reseed),
            ),
            max_section_depth=self.settings.max_section_depth,
            default_separator_set=self.settings.default_separator_set,
            section_stack=[entry_point.scoped_id],
        )

    def _fatal(self, template_id: str, started: float, message: str) -> RenderResult:
        return RenderResult(
            success=False,
            outputs=[],
            errors=[RenderError(code="FATAL_ERROR", message=message)],
            metadata=self._metadata(template_id, started, set(), set()),
        )

    @staticmethod
    def _metadata(
        template_id: str, started: float, variables_used: Set[str], sections_used: Set[str]
    ) -> RenderMetadata:
        return RenderMetadata(
            template_id=template_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
            duration_ms=round((time.perf_counter() - started) * 1000, 3),
            variables_used=sorted(variables_used),
            sections_used=sorted(sections_used),
        )


# -----------------------------------------------------------------------------
# Module-level conveniences
# -----------------------------------------------------------------------------

_quick_renderer = ContentRenderer()


def render_prompt(
    request: Union[RenderRequest, Mapping[str, Any]],
    resolver: Resolver,
    settings: Optional[Settings] = None,
) -> RenderResult:
    """Render an entry point. See ``PromptRenderer.render``."""
    return PromptRenderer(resolver, settings).render(request)


def quick_render(content: Any, variables: Optional[Mapping[str, Any]] = None) -> str:
    """Render a content tree once, with no resolver and no seed.

    Section references cannot resolve here and render as "".

    Example:
        >>> quick_render({"type": "text", "value": "Hello"}, {})
        'Hello'
    """
    context = RenderContext(variables=dict(variables or {}))
    return _quick_renderer.render(parse_content(content), context)


def preview_separator(rules: Any, items: Iterable[str]) -> str:
    """Join sample items with a rule set (model, mapping, or built-in name)."""
    return join_with_separators([str(item) for item in items], coerce_rules(rules))
