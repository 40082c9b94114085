"""Screenshot comparison against stored baselines."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from PIL import Image, ImageChops

from .results import VisualDiff

log = logging.getLogger(__name__)

# Per-channel difference treated as noise (anti-aliasing, font hinting).
PIXEL_TOLERANCE = 16


def baseline_path(root: Path, browser: str, viewport_label: str, scenario_slug: str) -> Path:
    return Path(root) / browser / viewport_label / f"{scenario_slug}.png"


def diff_ratio(actual: Image.Image, baseline: Image.Image, *, tolerance: int = PIXEL_TOLERANCE) -> tuple[float, Image.Image]:
    """Fraction of pixels differing by more than ``tolerance``, plus the mask."""

    diff = ImageChops.difference(actual.convert("RGB"), baseline.convert("RGB")).convert("L")
    mask = diff.point(lambda value: 255 if value > tolerance else 0)
    histogram = mask.histogram()
    total = actual.width * actual.height
    changed = total - histogram[0]
    return (changed / total if total else 0.0), mask


def compare_screenshots(actual: Path, baseline: Path, *, threshold: float = 0.01) -> VisualDiff:
    """Compare ``actual`` with ``baseline``.

    A missing baseline is created from ``actual`` and reported as ``new``.
    Screenshots of different sizes count as fully changed.
    """

    actual = Path(actual)
    baseline = Path(baseline)
    if not baseline.exists():
        baseline.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(actual, baseline)
        log.info("Stored new baseline %s", baseline)
        return VisualDiff(status="new", ratio=0.0, baseline=str(baseline))

    with Image.open(actual) as current, Image.open(baseline) as expected:
        if current.size != expected.size:
            log.warning("Screenshot size %s differs from baseline %s", current.size, expected.size)
            return VisualDiff(status="changed", ratio=1.0, baseline=str(baseline))
        ratio, mask = diff_ratio(current, expected)

    if ratio <= threshold:
        return VisualDiff(status="match", ratio=ratio, baseline=str(baseline))

    diff_path = actual.with_name(f"{actual.stem}.diff.png")
    mask.save(diff_path)
    log.warning("Screenshot %s differs from baseline by %.2f%%", actual, ratio * 100)
    return VisualDiff(status="changed", ratio=ratio, baseline=str(baseline), diff_image=str(diff_path))
