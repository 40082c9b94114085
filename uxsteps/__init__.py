"""Natural-language UX steps compiled to browser actions."""

from .dsl import models, parser, selectors
from .dsl import parse_step, parse_steps, resolve, resolve_field

__all__ = ["models", "parser", "selectors", "parse_step", "parse_steps", "resolve", "resolve_field"]
