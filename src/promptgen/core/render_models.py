"""Render request and result models."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class RenderingContext(BaseModel):
    """Bindings available to a render."""

    model_config = ConfigDict(extra="ignore")

    variables: Dict[str, Any] = Field(default_factory=dict)
    system: Dict[str, Any] = Field(default_factory=dict)
    constraints: Dict[str, Any] = Field(default_factory=dict)


class RandomizeOptions(BaseModel):
    """Randomization controls.

    With ``seed`` set, renders are reproducible. Each output gets its own
    generator seeded with ``seed + output_index``. ``legacy_reseed``
    restores the older behaviour where every random node restarts from
    ``seed``.
    """

    model_config = ConfigDict(extra="ignore")

    seed: Optional[int] = None
    legacy_reseed: bool = False


class RenderOptions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    count: int = Field(default=1, ge=1)
    randomize: Optional[RandomizeOptions] = None

    @property
    def seed(self) -> Optional[int]:
        return self.randomize.seed if self.randomize else None


class RenderRequest(BaseModel):
    """What to render: an entry point id plus bindings and options."""

    model_config = ConfigDict(extra="ignore")

    template_id: str
    context: RenderingContext = Field(default_factory=RenderingContext)
    options: RenderOptions = Field(default_factory=RenderOptions)


class RenderError(BaseModel):
    """A problem recorded during rendering.

    Request-level entries carry ``severity="error"``; issues attached to a
    single output as warnings use whatever severity the renderer assigned.
    """

    code: str
    message: str
    location: Optional[str] = None
    suggestion: Optional[str] = None
    severity: Literal["error", "warning"] = "error"


class RenderedPrompt(BaseModel):
    text: str
    variable_values: Dict[str, Any] = Field(default_factory=dict)
    warnings: Optional[List[str]] = None


class RenderMetadata(BaseModel):
    template_id: str
    timestamp: str
    duration_ms: float
    variables_used: List[str] = Field(default_factory=list)
    sections_used: List[str] = Field(default_factory=list)


class RenderResult(BaseModel):
    success: bool
    outputs: List[RenderedPrompt] = Field(default_factory=list)
    errors: Optional[List[RenderError]] = None
    metadata: RenderMetadata

    @property
    def texts(self) -> List[str]:
        return [output.text for output in self.outputs]
