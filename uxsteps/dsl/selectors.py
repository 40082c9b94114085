"""Heuristic selector candidates for natural-language element descriptions.

Priority, most specific first:
 1) data-testid
 2) semantic attributes (name / type / role)
 3) visible text, placeholder
 4) generic tag fallback ("button", "link", "form", "input")
 5) text content / aria-label of the literal description

Every candidate is a Playwright selector string, so the list can be tried
against a live page as-is.  The functions here are pure and never raise.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Tuple

# Iteration order matters: the first phrase contained in the description wins.
_ROLE_SELECTORS: Dict[str, Tuple[str, ...]] = {
    "submit button": (
        '[data-testid*="submit" i]',
        'button[type="submit"]',
        'input[type="submit"]',
        'button:has-text("Submit")',
    ),
    "login button": (
        '[data-testid*="login" i]',
        'button[name="login"]',
        'button:has-text("Log in")',
        'button:has-text("Sign in")',
    ),
    "primary button": (
        '[data-testid*="primary" i]',
        "button.btn-primary",
        'button[class*="primary"]',
        '[role="button"][class*="primary"]',
    ),
    "email field": (
        '[data-testid*="email" i]',
        'input[type="email"]',
        'input[name="email"]',
        'input[placeholder*="email" i]',
    ),
    "password field": (
        '[data-testid*="password" i]',
        'input[type="password"]',
        'input[name="password"]',
        'input[placeholder*="password" i]',
    ),
    "username field": (
        '[data-testid*="username" i]',
        'input[name="username"]',
        'input[autocomplete="username"]',
        'input[placeholder*="username" i]',
    ),
    "search field": (
        '[data-testid*="search" i]',
        'input[type="search"]',
        '[role="searchbox"]',
        'input[placeholder*="search" i]',
    ),
    "navigation menu": (
        '[data-testid*="nav" i]',
        "nav",
        '[role="navigation"]',
        "header nav",
    ),
    "mobile menu toggle": (
        '[data-testid*="menu-toggle" i]',
        'button[aria-label*="menu" i]',
        '[aria-controls*="menu" i]',
        "button.hamburger",
    ),
    "main content": (
        '[data-testid="main-content"]',
        "main",
        '[role="main"]',
        "#main",
    ),
    "hero section": (
        '[data-testid*="hero" i]',
        "section.hero",
        '[class*="hero"]',
    ),
    "footer": (
        '[data-testid*="footer" i]',
        "footer",
        '[role="contentinfo"]',
    ),
}

# Form-field semantics used by fill steps.  Same first-match rule.
_FIELD_SELECTORS: Dict[str, Tuple[str, ...]] = {
    "email": (
        'input[type="email"]',
        'input[name="email"]',
        '[data-testid*="email" i]',
        'input[placeholder*="email" i]',
    ),
    "password": (
        'input[type="password"]',
        'input[name="password"]',
        '[data-testid*="password" i]',
        'input[placeholder*="password" i]',
    ),
    "username": (
        'input[name="username"]',
        'input[autocomplete="username"]',
        '[data-testid*="username" i]',
        'input[placeholder*="username" i]',
    ),
    "first name": (
        'input[name="firstName"]',
        'input[name="first_name"]',
        'input[autocomplete="given-name"]',
        'input[placeholder*="first name" i]',
    ),
    "last name": (
        'input[name="lastName"]',
        'input[name="last_name"]',
        'input[autocomplete="family-name"]',
        'input[placeholder*="last name" i]',
    ),
}

# Checked in order; the first keyword found picks the group.
_TAG_FALLBACKS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("button",), ("button", '[role="button"]', 'input[type="button"]', 'input[type="submit"]')),
    (("link",), ("a", '[role="link"]')),
    (("form",), ("form", '[role="form"]')),
    (("input", "field"), ("input", "textarea", "select", '[role="textbox"]')),
)

_QUOTED_RE = re.compile(r'"([^"]+)"')


def _css_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _dedupe(candidates: Iterable[str]) -> List[str]:
    ordered: List[str] = []
    seen: set[str] = set()
    for candidate in candidates:
        if candidate and candidate not in seen:
            seen.add(candidate)
            ordered.append(candidate)
    return ordered


def _match_phrase(description: str, table: Dict[str, Tuple[str, ...]]) -> Tuple[str, ...]:
    lowered = description.lower()
    for phrase, candidates in table.items():
        if phrase in lowered:
            return candidates
    return ()


def universal_fallback(description: str) -> List[str]:
    """Text-content and aria-label matches on the literal description."""

    literal = description.strip()
    return [f"text={literal}", f'[aria-label*="{_css_escape(literal)}" i]']


def quoted_text_candidates(text: str) -> List[str]:
    escaped = _css_escape(text)
    return [
        f'text="{escaped}"',
        f'[aria-label*="{escaped}" i]',
        f'[title*="{escaped}" i]',
    ]


def tag_fallback(description: str) -> List[str]:
    lowered = description.lower()
    for keywords, candidates in _TAG_FALLBACKS:
        if any(keyword in lowered for keyword in keywords):
            return list(candidates)
    return []


def resolve(description: str) -> List[str]:
    """Return ordered selector candidates for a free-text element description.

    The result is never empty: the text/aria-label match on the literal
    description is always the last entry.
    """

    description = description or ""
    candidates: List[str] = list(_match_phrase(description, _ROLE_SELECTORS))
    if not candidates:
        quoted = _QUOTED_RE.search(description)
        if quoted:
            candidates = quoted_text_candidates(quoted.group(1))
        else:
            candidates = tag_fallback(description)
    candidates.extend(universal_fallback(description))
    return _dedupe(candidates)


def resolve_field(field_name: str) -> List[str]:
    """Selector candidates for the field named in a fill step."""

    field_name = (field_name or "").strip()
    candidates: List[str] = list(_match_phrase(field_name, _FIELD_SELECTORS))
    if not candidates and field_name:
        escaped = _css_escape(field_name.lower())
        candidates = [
            f'[name*="{escaped}" i]',
            f'[placeholder*="{escaped}" i]',
            f'[data-testid*="{escaped}" i]',
        ]
    candidates.extend(universal_fallback(field_name))
    return _dedupe(candidates)


def known_phrases() -> List[str]:
    return list(_ROLE_SELECTORS)


def known_fields() -> List[str]:
    return list(_FIELD_SELECTORS)
