"""Resolver implementations for promptgen."""

from promptgen.storage.resolver import InMemoryResolver, load_package

__all__ = ["InMemoryResolver", "load_package"]
