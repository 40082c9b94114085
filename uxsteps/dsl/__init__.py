"""Step vocabulary: models, selector heuristics and the step parser."""

from .models import (
    DEFAULT_VIEWPORTS,
    ActionDescriptor,
    ActionKind,
    Scenario,
    ScenarioStepResult,
    StepOutcome,
    Viewport,
)
from .parser import StepParser, StepRule, parse_step, parse_steps
from .selectors import resolve, resolve_field

__all__ = [
    "DEFAULT_VIEWPORTS",
    "ActionDescriptor",
    "ActionKind",
    "Scenario",
    "ScenarioStepResult",
    "StepOutcome",
    "StepParser",
    "StepRule",
    "Viewport",
    "parse_step",
    "parse_steps",
    "resolve",
    "resolve_field",
]
