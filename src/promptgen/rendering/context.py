"""Per-render mutable state."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Set

from promptgen.core.interfaces import Resolver
from promptgen.core.render_models import RenderError
from promptgen.rendering.randomness import RandomSource

DEFAULT_MAX_SECTION_DEPTH = 32
DEFAULT_SEPARATOR_SET = "oxford-comma"


@dataclass
class RenderContext:
    """Bindings plus accumulators for one rendered output.

    A context is never shared between outputs. Child contexts created with
    ``with_variables`` see extra bindings but write to the same
    accumulators (usage sets, issues, section stack).
    """

    variables: Dict[str, Any] = field(default_factory=dict)
    system: Dict[str, Any] = field(default_factory=dict)
    constraints: Dict[str, Any] = field(default_factory=dict)

    resolver: Optional[Resolver] = None
    random: RandomSource = field(default_factory=RandomSource)
    max_section_depth: int = DEFAULT_MAX_SECTION_DEPTH
    default_separator_set: str = DEFAULT_SEPARATOR_SET

    variables_used: Set[str] = field(default_factory=set)
    sections_used: Set[str] = field(default_factory=set)
    errors: List[RenderError] = field(default_factory=list)
    section_stack: List[str] = field(default_factory=list)

    def with_variables(self, extra: Mapping[str, Any]) -> "RenderContext":
        return replace(self, variables={**self.variables, **extra})

    def use_variable(self, variable_id: Optional[str]) -> None:
        if variable_id:
            self.variables_used.add(variable_id)

    def warn(self, code: str, message: str, location: Optional[str] = None) -> None:
        self.errors.append(
            RenderError(code=code, message=message, location=location, severity="warning")
        )

    @property
    def warnings(self) -> List[str]:
        return [e.message for e in self.errors]
