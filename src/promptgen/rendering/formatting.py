"""Formatting pipeline for resolved string values.

Steps run in a fixed order so renders are reproducible:
trim -> case -> replace (in list order) -> truncate -> prefix -> suffix
"""

from __future__ import annotations

import re
from typing import Optional

from promptgen.core.content import FormatOptions

ELLIPSIS = "..."

_WORD_PATTERN = re.compile(r"\w\S*")


def _title_case(value: str) -> str:
    return _WORD_PATTERN.sub(lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), value)


def _sentence_case(value: str) -> str:
    return value[:1].upper() + value[1:].lower()


_CASE_TRANSFORMS = {
    "upper": str.upper,
    "lower": str.lower,
    "title": _title_case,
    "sentence": _sentence_case,
}


def apply_format(value: str, options: Optional[FormatOptions]) -> str:
    """Apply format options to a string.

    Args:
        value: The already-stringified value.
        options: Format options; None or unset fields are no-ops.

    Returns:
        The formatted string.

    Example:
        >>> apply_format(" Hello ", FormatOptions(trim=True, case="upper", suffix="!"))
        'HELLO!'
    """
    if options is None:
        return value

    result = value

    if options.trim:
        result = result.strip()

    if options.case:
        result = _CASE_TRANSFORMS[options.case](result)

    for pair in options.replace or []:
        result = result.replace(pair.from_, pair.to)

    # Reserve room for the ellipsis
    if options.truncate and len(result) > options.truncate:
        result = result[: max(options.truncate - len(ELLIPSIS), 0)] + ELLIPSIS

    if options.prefix:
        result = options.prefix + result
    if options.suffix:
        result = result + options.suffix

    return result
