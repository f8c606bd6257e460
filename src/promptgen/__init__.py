"""promptgen - structured prompt template rendering."""

from typing import TYPE_CHECKING

__all__ = ["Settings", "PromptRenderer", "render_prompt", "quick_render", "InMemoryResolver"]

if TYPE_CHECKING:
    from .config.settings import Settings
    from .rendering.engine import PromptRenderer, quick_render, render_prompt
    from .storage.resolver import InMemoryResolver


def __getattr__(name: str):
    if name == "Settings":
        from .config.settings import Settings

        return Settings
    if name in ("PromptRenderer", "render_prompt", "quick_render"):
        from .rendering import engine

        return getattr(engine, name)
    if name == "InMemoryResolver":
        from .storage.resolver import InMemoryResolver

        return InMemoryResolver
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
