"""Tests for render_prompt and the PromptRenderer entry points.

Tests cover:
- Successful renders and metadata
- Fatal request errors
- Per-output failure isolation
- Graceful warnings attached to outputs
- Seeded batches
- quick_render and preview helpers
"""

import pytest

from promptgen.core.render_models import RenderRequest
from promptgen.rendering.engine import PromptRenderer, quick_render, render_prompt
from promptgen.rendering.evaluator import ContentRenderer

PICK = {
    "type": "pick-one",
    "candidates": [{"type": "text", "value": str(i)} for i in range(10)],
}


@pytest.fixture
def add_entry(resolver):
    def _add(section_id, content):
        resolver.add_section({
            "id": section_id,
            "namespace": "demo",
            "is_entry_point": True,
            "content": content,
        })

    return _add


def request_for(template_id, variables=None, count=1, seed=None, legacy_reseed=False):
    options = {"count": count}
    if seed is not None:
        options["randomize"] = {"seed": seed, "legacy_reseed": legacy_reseed}
    return RenderRequest.model_validate({
        "template_id": template_id,
        "context": {"variables": variables or {}},
        "options": options,
    })


# -----------------------------------------------------------------------------
# Success path
# -----------------------------------------------------------------------------


class TestRenderPrompt:
    """Tests for successful renders."""

    def test_greeting(self, resolver, settings):
        result = render_prompt(request_for("greeting", {"name": "Ada"}), resolver, settings)
        assert result.success is True
        assert result.texts == ["Hello, Ada!"]
        assert result.errors is None
        assert result.outputs[0].warnings is None
        assert result.outputs[0].variable_values == {"name": "Ada"}

    def test_resolve_by_name(self, resolver, settings):
        result = render_prompt(request_for("Greeting", {"name": "Ada"}), resolver, settings)
        assert result.texts == ["Hello, Ada!"]

    def test_metadata(self, resolver, settings):
        result = render_prompt(request_for("greeting", {"name": "Ada"}), resolver, settings)
        metadata = result.metadata
        assert metadata.template_id == "greeting"
        assert metadata.variables_used == ["name"]
        assert metadata.sections_used == []
        assert metadata.duration_ms >= 0
        assert metadata.timestamp

    def test_metadata_is_sorted_union(self, resolver, settings, add_entry):
        add_entry("usage", {
            "type": "composite",
            "parts": [
                {"type": "variable", "variable_id": "zeta"},
                {"type": "variable", "variable_id": "alpha"},
                {"type": "section-ref", "section_id": "signature"},
                {"type": "section-ref", "section_id": "fragment"},
            ],
        })
        result = render_prompt(request_for("usage", count=2), resolver, settings)
        assert result.metadata.variables_used == ["alpha", "zeta"]
        assert result.metadata.sections_used == ["fragment", "signature"]

    def test_idempotent(self, resolver, settings):
        request = request_for("greeting", {"name": "Ada"})
        first = render_prompt(request, resolver, settings)
        second = render_prompt(request, resolver, settings)
        assert first.texts == second.texts

    def test_accepts_mapping(self, resolver, settings):
        result = render_prompt(
            {"template_id": "greeting", "context": {"variables": {"name": "Bo"}}},
            resolver,
            settings,
        )
        assert result.texts == ["Hello, Bo!"]

    def test_missing_variable_renders_empty(self, resolver, settings):
        result = render_prompt(request_for("greeting"), resolver, settings)
        assert result.success is True
        assert result.texts == ["Hello, !"]


# -----------------------------------------------------------------------------
# Error tiers
# -----------------------------------------------------------------------------


class TestFatalErrors:
    """Tests for request-level failures."""

    @pytest.mark.parametrize("template_id", ["does-not-exist", "fragment"])
    def test_not_renderable(self, resolver, settings, template_id):
        result = render_prompt(request_for(template_id), resolver, settings)
        assert result.success is False
        assert result.outputs == []
        assert [e.code for e in result.errors] == ["FATAL_ERROR"]
        assert result.metadata.variables_used == []

    def test_not_an_entry_point_message(self, resolver, settings):
        result = render_prompt(request_for("fragment"), resolver, settings)
        assert "not an entry point" in result.errors[0].message

    def test_too_many_outputs(self, resolver, settings):
        result = render_prompt(request_for("greeting", count=settings.max_output_count + 1), resolver, settings)
        assert result.success is False
        assert result.errors[0].code == "FATAL_ERROR"

    def test_no_resolver(self, settings):
        result = PromptRenderer(settings=settings).render(request_for("greeting"))
        assert result.success is False

    def test_invalid_mapping_request(self, resolver, settings):
        result = render_prompt({"template_id": "greeting", "options": {"count": 0}}, resolver, settings)
        assert result.success is False
        assert result.outputs == []
        assert [e.code for e in result.errors] == ["FATAL_ERROR"]
        assert result.metadata.template_id == "greeting"

    def test_mapping_request_without_template_id(self, resolver, settings):
        result = render_prompt({"context": {"variables": {}}}, resolver, settings)
        assert result.success is False
        assert "Invalid render request" in result.errors[0].message
        assert result.metadata.template_id == ""


class TestWarnings:
    """Tests for graceful issues attached to outputs."""

    def test_missing_section_is_isolated(self, resolver, settings):
        result = render_prompt(request_for("with-missing"), resolver, settings)
        assert result.success is True
        assert result.texts == ["AB"]
        warnings = result.outputs[0].warnings
        assert len(warnings) == 1
        assert "nope" in warnings[0]

    def test_cycle_warning(self, resolver, settings):
        result = render_prompt(request_for("loop-a"), resolver, settings)
        assert result.success is True
        assert result.texts == ["ab"]
        assert len(result.outputs[0].warnings) == 1

    def test_cycle_back_to_entry_point(self, resolver, settings):
        result = render_prompt(request_for("loop-a"), resolver, settings)
        [warning] = result.outputs[0].warnings
        assert "demo:loop-a -> demo:loop-b -> demo:loop-a" in warning
        assert result.metadata.sections_used == ["loop-b"]

    def test_self_reference(self, resolver, settings, add_entry):
        add_entry("mirror", {"type": "composite", "parts": [
            {"type": "text", "value": "m"},
            {"type": "section-ref", "section_id": "mirror"},
        ]})
        result = render_prompt(request_for("mirror"), resolver, settings)
        assert result.texts == ["m"]
        assert result.outputs[0].warnings == ["Circular section reference: demo:mirror -> demo:mirror"]


class ExplodingRenderer(ContentRenderer):
    """Fails any output whose generator was seeded with 11."""

    def _render_text(self, content, context):
        if context.random.seed == 11:
            raise RuntimeError("boom")
        return super()._render_text(content, context)


class TestOutputIsolation:
    """Tests for per-output failures."""

    def test_failed_output_is_reported(self, resolver, settings):
        renderer = PromptRenderer(resolver, settings, content_renderer=ExplodingRenderer())
        result = renderer.render(request_for("greeting", {"name": "Ada"}, count=3, seed=10))
        assert result.success is False
        assert result.texts == ["Hello, Ada!", "Hello, Ada!"]
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.code == "RENDER_ERROR"
        assert error.location == "output 2"
        assert error.message == "boom"


# -----------------------------------------------------------------------------
# Randomness across outputs
# -----------------------------------------------------------------------------


class TestSeededBatches:
    """Tests for seeded multi-output renders."""

    def test_reproducible(self, resolver, settings, add_entry):
        add_entry("pick", PICK)
        request = request_for("pick", count=5, seed=99)
        assert render_prompt(request, resolver, settings).texts == render_prompt(request, resolver, settings).texts

    def test_outputs_use_offset_seeds(self, resolver, settings, add_entry):
        add_entry("pick", PICK)
        batch = render_prompt(request_for("pick", count=3, seed=40), resolver, settings).texts
        singles = [render_prompt(request_for("pick", seed=40 + k), resolver, settings).texts[0] for k in range(3)]
        assert batch == singles

    def test_legacy_reseed_repeats(self, resolver, settings, add_entry):
        add_entry("pair", {"type": "composite", "parts": [PICK, PICK]})
        result = render_prompt(request_for("pair", count=3, seed=5, legacy_reseed=True), resolver, settings)
        assert len(set(result.texts)) == 1
        text = result.texts[0]
        assert text[0] == text[1]

    def test_nodes_draw_independently(self, resolver, settings, add_entry):
        add_entry("pair", {"type": "composite", "parts": [PICK, PICK]})
        texts = [render_prompt(request_for("pair", seed=s), resolver, settings).texts[0] for s in range(30)]
        assert any(t[0] != t[1] for t in texts)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


class TestHelpers:
    """Tests for quick_render, render_content and preview_separator."""

    def test_quick_render(self):
        content = {
            "type": "composite",
            "parts": [
                {"type": "text", "value": "I like "},
                {"type": "list", "variable_id": "fruits", "separator_set_id": "oxford-comma"},
            ],
        }
        assert quick_render(content, {"fruits": ["apples", "pears"]}) == "I like apples and pears"

    def test_quick_render_has_no_resolver(self):
        assert quick_render({"type": "section-ref", "section_id": "greeting"}, {}) == ""

    def test_render_content(self, resolver, settings):
        rendered = PromptRenderer(resolver, settings).render_content(
            {"type": "section-ref", "section_id": "fragment"}
        )
        assert rendered.text == "a fragment"
        assert rendered.warnings is None

    def test_render_content_of_section(self, resolver, settings):
        section = resolver.resolve_section("loop-a")
        rendered = PromptRenderer(resolver, settings).render_content(section)
        assert rendered.text == "ab"
        assert len(rendered.warnings) == 1

    def test_render_content_system(self, settings):
        rendered = PromptRenderer(settings=settings).render_content(
            {"type": "context", "context_key": "system.role"}, system={"role": "tutor"}
        )
        assert rendered.text == "tutor"

    def test_preview_user_defined_set(self, resolver, settings):
        renderer = PromptRenderer(resolver, settings)
        assert renderer.preview_separator("semicolons", ["a", "b"]) == "a; b"
        assert renderer.preview_separator("or-list", ["a", "b"]) == "a or b"
