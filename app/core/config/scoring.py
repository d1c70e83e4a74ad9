from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

DEFAULT_SCORING_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "scoring.yaml"
_REQUIRED_SECTIONS = ("categories", "keywords", "skills", "experience", "assessment")


def _config_path() -> Path:
    override = (os.getenv("SCORING_CONFIG_PATH") or "").strip()
    return Path(override) if override else DEFAULT_SCORING_CONFIG_PATH


def _validate(parsed: Any, path: Path) -> dict[str, Any]:
    if not isinstance(parsed, dict):
        raise RuntimeError(f"Invalid scoring config '{path}': expected a top-level mapping.")

    missing = [section for section in _REQUIRED_SECTIONS if not isinstance(parsed.get(section), dict)]
    if missing:
        raise RuntimeError(f"Invalid scoring config '{path}': missing sections {', '.join(missing)}.")

    category_total = sum(float(value) for value in parsed["categories"].values())
    if category_total != 100:
        raise RuntimeError(
            f"Invalid scoring config '{path}': category maxima must sum to 100, got {category_total:g}."
        )
    return parsed


@lru_cache(maxsize=1)
def get_scoring_config() -> dict[str, Any]:
    """ATS scoring weights from config/scoring.yaml, read once per process."""
    path = _config_path()
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(f"Scoring config not readable at '{path}': {exc}") from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in scoring config '{path}': {exc}") from exc
    return _validate(parsed, path)


def get_scoring_value(path: str, default: Any = None) -> Any:
    """Look up a nested value by dot path, e.g. 'keywords.points.exact'."""
    if not path:
        return default

    current: Any = get_scoring_config()
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current
