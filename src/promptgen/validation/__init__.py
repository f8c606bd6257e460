"""Content validation module."""

from .content_validator import ContentValidationError, ContentValidator, validate_content

__all__ = ["ContentValidationError", "ContentValidator", "validate_content"]
