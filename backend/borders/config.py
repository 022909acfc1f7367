from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from lod.simplify import DEFAULT_TOLERANCE_DEG

CoastlineFallback = Literal["empty", "isolated"]


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class BorderSettings:
    # Douglas-Peucker tolerance in degrees for the low-res tier.
    simplify_tolerance: float = DEFAULT_TOLERANCE_DEG
    # "empty": use polygon rings whenever a geometry has no exterior arcs.
    # "isolated": only when it has no neighbours either (landlocked countries get no SEA).
    coastline_fallback: CoastlineFallback = "empty"

    def __post_init__(self):
        if not self.simplify_tolerance >= 0.0:
            raise ValueError("simplify_tolerance must be non-negative")
        if self.coastline_fallback not in ("empty", "isolated"):
            raise ValueError(f"Unknown coastline_fallback: {self.coastline_fallback!r}")


def load_settings() -> BorderSettings:
    raw_tol = (os.getenv("BORDERS_SIMPLIFY_TOLERANCE") or "").strip()
    raw_fallback = (os.getenv("BORDERS_COASTLINE_FALLBACK") or "empty").strip().lower()
    try:
        tol = float(raw_tol) if raw_tol else DEFAULT_TOLERANCE_DEG
    except ValueError as e:
        raise ValueError(f"Invalid BORDERS_SIMPLIFY_TOLERANCE: {raw_tol!r}") from e
    return BorderSettings(simplify_tolerance=tol, coastline_fallback=raw_fallback)  # type: ignore[arg-type]


def datasets_root() -> Path:
    return Path(os.getenv("BORDERS_DATASETS_ROOT") or (_repo_root() / "datasets"))


def log_level() -> str:
    return (os.getenv("BORDERS_LOG_LEVEL") or "INFO").strip().upper()
