"""English grammar helpers: plural forms and articles."""

from __future__ import annotations

import re
from typing import Any

from promptgen.core.content import PluralContent
from promptgen.utils.values import is_number, is_sequence

# Words that take "an" despite not starting with a vowel letter
AN_WORDS = frozenset(
    {
        "hour",
        "hours",
        "honest",
        "honor",
        "honour",
        "heir",
        "heirloom",
        "herb",
        "herbs",
        # Acronyms pronounced with a leading vowel sound
        "html",
        "http",
        "sql",
        "mri",
        "fbi",
        "nba",
        "nfl",
        "mba",
    }
)

# Words that take "a" despite starting with a vowel letter
A_WORDS = frozenset(
    {
        "one",
        "once",
        "university",
        "unicorn",
        "uniform",
        "union",
        "unique",
        "unit",
        "united",
        "universe",
        "universal",
        "use",
        "used",
        "useful",
        "user",
        "usual",
        "usually",
        "utility",
        "utensil",
        "euphoria",
        "european",
        "eucalyptus",
        "ewe",
    }
)

VOWELS = "aeiou"

_COUNT_PLACEHOLDER = re.compile(r"\{count\}")


def count_of(value: Any) -> float:
    """Count for plural logic: list length, numeric value, or 0."""
    if is_sequence(value):
        return len(value)
    if is_number(value):
        return value
    return 0


def _format_count(count: float) -> str:
    if isinstance(count, float) and count.is_integer():
        return str(int(count))
    return str(count)


def select_plural_form(content: PluralContent, count: float) -> str:
    """Choose the template for ``count``.

    Order: zero, one, two, few (3-4), many (5+), then other. Optional forms
    are skipped when absent; ``one`` always wins for a count of 1.
    """
    if count == 0 and content.zero is not None:
        return content.zero
    if count == 1:
        return content.one
    if count == 2 and content.two is not None:
        return content.two
    if 3 <= count <= 4 and content.few is not None:
        return content.few
    if count >= 5 and content.many is not None:
        return content.many
    return content.other


def render_plural(content: PluralContent, count: float) -> str:
    template = select_plural_form(content, count)
    text = _format_count(count)
    return _COUNT_PLACEHOLDER.sub(lambda _: text, template)


def indefinite_article(word: str) -> str:
    """``a`` or ``an`` for an already lower-cased, trimmed word or phrase."""
    words = word.split()
    first_word = words[0] if words else ""
    if first_word in AN_WORDS:
        return "an"
    if first_word in A_WORDS:
        return "a"
    return "an" if first_word and first_word[0] in VOWELS else "a"


def choose_article(word: str, style: str = "indefinite", capitalize: bool = False) -> str:
    """Article for ``word``, or "" when there is no word.

    Example:
        >>> choose_article("Ogre")
        'an'
        >>> choose_article("university", capitalize=True)
        'A'
    """
    normalized = word.strip().lower()
    if not normalized:
        return ""

    if style == "definite":
        article = "the"
    else:
        article = indefinite_article(normalized)

    if capitalize:
        article = article[:1].upper() + article[1:]
    return article
