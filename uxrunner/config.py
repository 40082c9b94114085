"""Configuration loader for scenario runs."""

from __future__ import annotations

import json
import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from uxsteps.dsl import DEFAULT_VIEWPORTS, Viewport

ENV_PREFIX = "UXSTEPS_"
CONFIG_FILE = "ux-steps.toml"
CONFIG_TABLE = "uxsteps"

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")

# Run ids become a directory name under output_root.
_RUN_ID_RE = re.compile(r"[A-Za-z0-9._-]+")

DEFAULTS: Dict[str, Any] = {
    "output_root": "ux-runs",
    "headless": True,
    "browsers": ["chromium"],
    "max_workers": 2,
    "halt_on_failure": True,
    "click_settle_ms": 1000,
    "settle": True,
    "visual_threshold": 0.01,
    "baseline_root": None,
}


def _as_bool(value: Any) -> bool:
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _as_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item) for item in value]


def _parse_viewports(value: Any) -> List[Viewport]:
    """Accept viewport tables, JSON text or ``name=WxH`` comma lists."""

    if value is None:
        return list(DEFAULT_VIEWPORTS)
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            value = json.loads(text)
        else:
            parsed: List[Viewport] = []
            for item in _as_list(text):
                name, _, size = item.partition("=")
                width, _, height = size.lower().partition("x")
                parsed.append(Viewport(name=name, width=int(width), height=int(height)))
            return parsed
    return [vp if isinstance(vp, Viewport) else Viewport.model_validate(vp) for vp in value]


@dataclass(slots=True)
class RunConfig:
    output_root: Path = field(default_factory=lambda: Path(DEFAULTS["output_root"]))
    headless: bool = DEFAULTS["headless"]
    browsers: List[str] = field(default_factory=lambda: list(DEFAULTS["browsers"]))
    viewports: List[Viewport] = field(default_factory=lambda: list(DEFAULT_VIEWPORTS))
    max_workers: int = DEFAULTS["max_workers"]
    halt_on_failure: bool = DEFAULTS["halt_on_failure"]
    click_settle_ms: int = DEFAULTS["click_settle_ms"]
    settle: bool = DEFAULTS["settle"]
    visual_threshold: float = DEFAULTS["visual_threshold"]
    baseline_root: Optional[Path] = None

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Any]) -> "RunConfig":
        data = dict(DEFAULTS)
        data.update(mapping)
        browsers = _as_list(data["browsers"])
        unknown = [name for name in browsers if name not in SUPPORTED_BROWSERS]
        if unknown:
            raise ValueError(f"Unsupported browsers: {', '.join(unknown)}")
        baseline_root = data.get("baseline_root")
        return cls(
            output_root=Path(data["output_root"]),
            headless=_as_bool(data["headless"]),
            browsers=browsers,
            viewports=_parse_viewports(data.get("viewports")),
            max_workers=max(1, int(data["max_workers"])),
            halt_on_failure=_as_bool(data["halt_on_failure"]),
            click_settle_ms=max(0, int(data["click_settle_ms"])),
            settle=_as_bool(data["settle"]),
            visual_threshold=float(data["visual_threshold"]),
            baseline_root=Path(baseline_root) if baseline_root else None,
        )


def _load_toml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh)


def load_config(config_path: Path | None = None, overrides: Optional[Dict[str, Any]] = None) -> RunConfig:
    """Load configuration from defaults, an optional TOML file and the environment.

    Later sources win: TOML ``[uxsteps]`` table, then ``UXSTEPS_*``
    variables, then explicit ``overrides``.
    """

    file_map: Dict[str, Any] = {}
    path = config_path or Path(CONFIG_FILE)
    if path.exists():
        file_map = _load_toml(path).get(CONFIG_TABLE, {})

    env_map: Dict[str, Any] = {}
    for key, value in os.environ.items():
        if key.startswith(ENV_PREFIX):
            env_map[key[len(ENV_PREFIX):].lower()] = value

    merged = {**file_map, **env_map, **(overrides or {})}
    return RunConfig.from_mapping(merged)


def validate_run_id(run_id: Any) -> str:
    if not isinstance(run_id, str) or not _RUN_ID_RE.fullmatch(run_id) or ".." in run_id:
        raise ValueError(f"Invalid run id {run_id!r}: use letters, digits, '.', '_' or '-'")
    return run_id


def ensure_run_directories(run_id: str, config: RunConfig) -> Dict[str, Path]:
    validate_run_id(run_id)
    base = config.output_root / run_id
    shots = base / "shots"
    base.mkdir(parents=True, exist_ok=True)
    shots.mkdir(parents=True, exist_ok=True)
    return {"base": base, "shots": shots}
