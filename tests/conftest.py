"""Shared fixtures for promptgen tests.

The ``resolver`` fixture holds a small package in the ``demo`` namespace
plus an exportable library section in ``lib``.
"""

from typing import Any, Dict

import pytest

from promptgen.config.settings import Settings
from promptgen.rendering.context import RenderContext
from promptgen.storage.resolver import InMemoryResolver


def text(value: str) -> Dict[str, Any]:
    return {"type": "text", "value": value}


def var(variable_id: str, **extra: Any) -> Dict[str, Any]:
    return {"type": "variable", "variable_id": variable_id, **extra}


def ref(section_id: str) -> Dict[str, Any]:
    return {"type": "section-ref", "section_id": section_id}


def composite(*parts: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "composite", "parts": list(parts)}


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults, independent of the environment."""
    return Settings(
        log_level="INFO",
        json_logs=False,
        max_section_depth=32,
        max_output_count=50,
        default_separator_set="oxford-comma",
    )


@pytest.fixture
def context() -> RenderContext:
    return RenderContext()


@pytest.fixture
def resolver() -> InMemoryResolver:
    resolver = InMemoryResolver(current_namespace="demo")

    resolver.add_section({
        "id": "greeting",
        "namespace": "demo",
        "name": "Greeting",
        "is_entry_point": True,
        "content": composite(text("Hello, "), var("name"), text("!")),
    })
    resolver.add_section({
        "id": "fragment",
        "namespace": "demo",
        "content": text("a fragment"),
    })
    resolver.add_section({
        "id": "with-missing",
        "namespace": "demo",
        "is_entry_point": True,
        "content": composite(text("A"), ref("nope"), text("B")),
    })
    resolver.add_section({
        "id": "uses-fragment",
        "namespace": "demo",
        "is_entry_point": True,
        "content": composite(text("["), ref("fragment"), text("] ["), ref("fragment"), text("]")),
    })
    resolver.add_section({
        "id": "loop-a",
        "namespace": "demo",
        "is_entry_point": True,
        "content": composite(text("a"), ref("loop-b")),
    })
    resolver.add_section({
        "id": "loop-b",
        "namespace": "demo",
        "content": composite(text("b"), ref("loop-a")),
    })
    resolver.add_section({
        "id": "signature",
        "namespace": "lib",
        "exportable": True,
        "content": text("-- Bot"),
    })
    resolver.add_section({
        "id": "private",
        "namespace": "lib",
        "content": text("secret"),
    })
    resolver.add_separator_set({
        "id": "semicolons",
        "namespace": "demo",
        "name": "Semicolons",
        "rules": {
            "single": {"template": "{item}"},
            "two": {"separator": "; ", "template": "{first}{separator}{second}"},
            "many": {"item_separator": "; ", "last_separator": "; ", "template": "{items}{last_separator}{last}"},
        },
    })
    resolver.add_data_type({
        "id": "color",
        "namespace": "demo",
        "name": "Color",
        "validation": {"enum_values": ["red", "green", "blue"]},
    })
    return resolver
