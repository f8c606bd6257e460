"""Custom exception hierarchy for promptgen."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class PromptGenException(Exception):
    """Base exception type for all promptgen errors."""

    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"


class ContentParseError(PromptGenException):
    """Raised when a serialized content tree cannot be turned into nodes."""


class PackageLoadError(PromptGenException):
    """Raised when a package export document cannot be loaded."""


class SeparatorRulesError(PromptGenException):
    """Raised when separator rules are incomplete or cannot be resolved."""


# -----------------------------------------------------------------------------
# Render-time exceptions
# -----------------------------------------------------------------------------


class RenderFailure(PromptGenException):
    """Raised when a render request cannot proceed at all."""


class EntryPointNotFoundError(RenderFailure):
    """Raised when the requested entry point does not resolve."""


class NotAnEntryPointError(RenderFailure):
    """Raised when the requested section is a fragment, not an entry point."""


class OutputLimitError(RenderFailure):
    """Raised when more outputs are requested than the configured maximum."""
