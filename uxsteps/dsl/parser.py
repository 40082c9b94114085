"""Compile free-text UX steps into :class:`ActionDescriptor` objects.

Rules are evaluated in a fixed order and the first matching rule wins, so an
instruction such as "click the verify button" compiles to a click even though
it also mentions "verify".  Unrecognised text never raises; it degrades to a
short network-idle wait so a scenario keeps going.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .models import (
    CLICK_TIMEOUT_MS,
    EXPECT_TIMEOUT_MS,
    FALLBACK_WAIT_TIMEOUT_MS,
    FILL_TIMEOUT_MS,
    LOAD_STATE_TIMEOUT_MS,
    NAVIGATE_TIMEOUT_MS,
    WAIT_SELECTOR_TIMEOUT_MS,
    ActionDescriptor,
    ActionKind,
)
from .selectors import resolve, resolve_field

log = logging.getLogger(__name__)

_NAVIGATE_RE = re.compile(r"navigate to\s*(.*)$", re.IGNORECASE | re.DOTALL)
# Non-greedy field: the value starts after the first " with ".
_FILL_RE = re.compile(r"\bfill\s+(.*?)\s+with\s+(.*)$", re.IGNORECASE | re.DOTALL)
_WAIT_FOR_RE = re.compile(r"wait for\s+(.*?)(?:\s+to\b.*)?$", re.IGNORECASE | re.DOTALL)
_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
_ARTICLE_RE = re.compile(r"^(?:the|a|an)\s+", re.IGNORECASE)

Predicate = Callable[[str], bool]
Builder = Callable[[str, str], ActionDescriptor]


@dataclass(frozen=True)
class StepRule:
    """One ``(predicate, builder)`` entry of the parser's dispatch table.

    ``predicate`` receives the lower-cased instruction; ``builder`` receives
    the original instruction and the scenario base URL.
    """

    name: str
    predicate: Predicate
    builder: Builder


def join_url(base_url: str, value: str) -> str:
    value = value.strip()
    if _SCHEME_RE.match(value):
        return value
    if not base_url:
        return value
    if not value:
        return base_url
    return f"{base_url.rstrip('/')}/{value.lstrip('/')}"


def _build_navigate(instruction: str, base_url: str) -> ActionDescriptor:
    match = _NAVIGATE_RE.search(instruction)
    remainder = match.group(1) if match else ""
    return ActionDescriptor(
        kind=ActionKind.NAVIGATE,
        target=join_url(base_url, remainder),
        timeout_ms=NAVIGATE_TIMEOUT_MS,
        source=instruction,
    )


def _build_click(instruction: str, base_url: str) -> ActionDescriptor:
    return ActionDescriptor(
        kind=ActionKind.CLICK,
        target=instruction,
        selectors=tuple(resolve(instruction)),
        timeout_ms=CLICK_TIMEOUT_MS,
        source=instruction,
    )


def split_fill(instruction: str) -> Optional[Tuple[str, str]]:
    """Split ``fill <field> with <value>`` on the first " with "."""

    match = _FILL_RE.search(instruction)
    if not match:
        return None
    field = _ARTICLE_RE.sub("", match.group(1).strip())
    return field, match.group(2).strip()


def _build_fill(instruction: str, base_url: str) -> ActionDescriptor:
    parts = split_fill(instruction)
    if parts is None:
        log.warning("Fill step %r has no '<field> with <value>' part; it will be skipped", instruction)
        return ActionDescriptor(kind=ActionKind.FILL, timeout_ms=FILL_TIMEOUT_MS, source=instruction)
    field, value = parts
    return ActionDescriptor(
        kind=ActionKind.FILL,
        target=field,
        selectors=tuple(resolve_field(field)),
        value=value,
        timeout_ms=FILL_TIMEOUT_MS,
        source=instruction,
    )


def _build_wait_for(instruction: str, base_url: str) -> ActionDescriptor:
    lowered = instruction.lower()
    if "page to load" in lowered:
        return ActionDescriptor(
            kind=ActionKind.WAIT, target="load", timeout_ms=LOAD_STATE_TIMEOUT_MS, source=instruction
        )
    if "network" in lowered:
        return ActionDescriptor(
            kind=ActionKind.WAIT, target="networkidle", timeout_ms=LOAD_STATE_TIMEOUT_MS, source=instruction
        )
    match = _WAIT_FOR_RE.search(instruction)
    description = match.group(1).strip() if match else ""
    return ActionDescriptor(
        kind=ActionKind.WAIT,
        target=description,
        selectors=tuple(resolve(description)),
        timeout_ms=WAIT_SELECTOR_TIMEOUT_MS,
        source=instruction,
    )


def _build_screenshot(instruction: str, base_url: str) -> ActionDescriptor:
    return ActionDescriptor(kind=ActionKind.SCREENSHOT, source=instruction)


def _build_expect(instruction: str, base_url: str) -> ActionDescriptor:
    return ActionDescriptor(
        kind=ActionKind.EXPECT,
        target=instruction,
        selectors=tuple(resolve(instruction)),
        timeout_ms=EXPECT_TIMEOUT_MS,
        source=instruction,
    )


def _build_fallback(instruction: str, base_url: str) -> ActionDescriptor:
    return ActionDescriptor(
        kind=ActionKind.WAIT,
        target="networkidle",
        timeout_ms=FALLBACK_WAIT_TIMEOUT_MS,
        source=instruction,
    )


DEFAULT_RULES: Tuple[StepRule, ...] = (
    StepRule("navigate", lambda text: "navigate to" in text, _build_navigate),
    StepRule("click", lambda text: "click" in text, _build_click),
    StepRule("fill", lambda text: "fill" in text and "with" in text, _build_fill),
    StepRule("wait_for", lambda text: "wait for" in text, _build_wait_for),
    StepRule("screenshot", lambda text: "screenshot" in text, _build_screenshot),
    StepRule("expect", lambda text: "check" in text or "verify" in text, _build_expect),
)

FALLBACK_RULE = StepRule("fallback", lambda text: True, _build_fallback)


class StepParser:
    """Ordered rule table; the first rule whose predicate holds builds the action."""

    def __init__(self, rules: Sequence[StepRule] = DEFAULT_RULES, fallback: StepRule = FALLBACK_RULE) -> None:
        self.rules = tuple(rules)
        self.fallback = fallback

    def match(self, instruction: str) -> StepRule:
        lowered = (instruction or "").lower()
        for rule in self.rules:
            if rule.predicate(lowered):
                return rule
        return self.fallback

    def parse(self, instruction: str, base_url: str = "") -> ActionDescriptor:
        instruction = (instruction or "").strip()
        rule = self.match(instruction)
        descriptor = rule.builder(instruction, base_url or "")
        log.debug("Parsed step %r with rule %s -> %s", instruction, rule.name, descriptor.kind.value)
        return descriptor

    def parse_all(self, instructions: Iterable[str], base_url: str = "") -> List[ActionDescriptor]:
        return [self.parse(instruction, base_url) for instruction in instructions]


default_parser = StepParser()


def parse_step(instruction: str, base_url: str = "") -> ActionDescriptor:
    return default_parser.parse(instruction, base_url)


def parse_steps(instructions: Iterable[str], base_url: str = "") -> List[ActionDescriptor]:
    return default_parser.parse_all(instructions, base_url)
