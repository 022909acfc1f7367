from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable

import yaml

from borders.config import datasets_root
from catalog.types import DatasetConfig


@dataclass(frozen=True)
class DatasetEntry:
    config: DatasetConfig
    # Absolute path to dataset.yaml on disk.
    path: Path

    def resolve(self, relative: str) -> Path:
        return self.path.parent / relative.lstrip("/")


def _iter_dataset_yaml_files(root: Path) -> Iterable[Path]:
    if not root.exists():
        return []
    # Convention: datasets/*/dataset.yaml
    return root.glob("*/dataset.yaml")


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid dataset yaml root: {path}")
    return data


@lru_cache(maxsize=4)
def _load_registry(root: Path) -> dict[str, DatasetEntry]:
    out: dict[str, DatasetEntry] = {}
    for p in sorted(_iter_dataset_yaml_files(root), key=lambda x: str(x)):
        cfg = DatasetConfig.model_validate(_load_yaml(p))
        if cfg.id in out:
            raise ValueError(f"Duplicate dataset id {cfg.id!r}: {p}")
        out[cfg.id] = DatasetEntry(config=cfg, path=p)
    return out


def get_registry() -> dict[str, DatasetEntry]:
    return _load_registry(datasets_root().resolve())


def list_datasets() -> list[DatasetConfig]:
    return [e.config for e in get_registry().values() if e.config.enabled]


def get_dataset(dataset_id: str) -> DatasetEntry:
    reg = get_registry()
    did = (dataset_id or "").strip()
    entry = reg.get(did)
    if entry is None or not entry.config.enabled:
        raise KeyError(f"Unknown dataset: {did!r}")
    return entry


def clear_registry_cache() -> None:
    """
    Drop cached dataset.yaml contents so edits are picked up without a restart.
    """
    _load_registry.cache_clear()
