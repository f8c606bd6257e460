"""Separator rule sets and list joining.

Natural-language lists need different grammar for one, two and many items
("X", "X and Y", "X, Y, and Z"), so joining is three-tiered rather than a
plain ``str.join``. Built-in rule sets are module constants consulted
before any Resolver, so user-defined sets can never shadow them.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from promptgen.core.content import SeparatorRules
from promptgen.core.exceptions import SeparatorRulesError
from promptgen.core.interfaces import Resolver


def _rules(single: str, two_sep: str, two_tpl: str, item_sep: str, last_sep: str,
           many_tpl: str = "{items}{last_separator}{last}", numbered: bool = False) -> SeparatorRules:
    return SeparatorRules.model_validate(
        {
            "single": {"template": single},
            "two": {"separator": two_sep, "template": two_tpl},
            "many": {
                "item_separator": item_sep,
                "last_separator": last_sep,
                "template": many_tpl,
                "numbered": numbered,
            },
        }
    )


_PAIR = "{first}{separator}{second}"

BUILTIN_SEPARATOR_SETS: Mapping[str, SeparatorRules] = MappingProxyType(
    {
        "oxford-comma": _rules("{item}", " and ", _PAIR, ", ", ", and "),
        "simple-comma": _rules("{item}", ", ", _PAIR, ", ", ", "),
        "or-list": _rules("{item}", " or ", _PAIR, ", ", ", or "),
        "and-list-no-oxford": _rules("{item}", " and ", _PAIR, ", ", " and "),
        "bullet-list": _rules(
            "• {item}", "\n• ", "• {first}{separator}{second}", "\n• ", "\n• ",
            "• {items}{last_separator}{last}",
        ),
        "numbered-list": _rules(
            "1. {item}", "\n", "1. {first}\n2. {second}", "\n", "\n", "{numbered}", numbered=True,
        ),
        "newline": _rules("{item}", "\n", _PAIR, "\n", "\n"),
        "space": _rules("{item}", " ", _PAIR, " ", " "),
    }
)

_PLACEHOLDER = re.compile(r"\{(item|first|separator|second|items|last_separator|last)\}")


def _fill(template: str, values: Dict[str, str]) -> str:
    # Single pass, so placeholder-like text inside items is left alone
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def join_with_separators(items: Sequence[str], rules: SeparatorRules) -> str:
    """Join already-rendered items using a three-tier rule set.

    Example:
        >>> join_with_separators(["apple", "banana", "cherry"], BUILTIN_SEPARATOR_SETS["oxford-comma"])
        'apple, banana, and cherry'
    """
    if not items:
        return ""

    if len(items) == 1:
        return _fill(rules.single.template, {"item": items[0]})

    if len(items) == 2:
        return _fill(
            rules.two.template,
            {"first": items[0], "separator": rules.two.separator, "second": items[1]},
        )

    if rules.many.numbered:
        return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))

    return _fill(
        rules.many.template,
        {
            "items": rules.many.item_separator.join(items[:-1]),
            "last_separator": rules.many.last_separator,
            "last": items[-1],
        },
    )


def coerce_rules(rules: Any) -> SeparatorRules:
    """Accept a SeparatorRules model, a raw mapping, or a built-in set name.

    Raises:
        SeparatorRulesError: If the rules are incomplete or the name is unknown.
    """
    if isinstance(rules, SeparatorRules):
        return rules
    if isinstance(rules, str):
        builtin = BUILTIN_SEPARATOR_SETS.get(rules)
        if builtin is None:
            raise SeparatorRulesError(
                f"Unknown built-in separator set: {rules}",
                context={"available": sorted(BUILTIN_SEPARATOR_SETS)},
            )
        return builtin
    try:
        return SeparatorRules.model_validate(rules)
    except ValidationError as e:
        raise SeparatorRulesError(
            "Separator rules must define single, two and many",
            context={"errors": e.errors(include_url=False, include_context=False)},
        )


def get_separator_rules(set_id: str, resolver: Optional[Resolver] = None) -> Optional[SeparatorRules]:
    """Look up rules by id or name: built-ins first, then the resolver."""
    builtin = BUILTIN_SEPARATOR_SETS.get(set_id)
    if builtin is not None:
        return builtin
    if resolver is None:
        return None
    separator_set = resolver.resolve_separator_set(set_id)
    return separator_set.rules if separator_set is not None else None


def builtin_separator_names() -> List[str]:
    return list(BUILTIN_SEPARATOR_SETS)
