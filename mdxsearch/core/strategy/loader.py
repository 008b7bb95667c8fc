from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .models import Settings, StrategyConfig


def _resolve_path(root: Path, p: Path) -> Path:
    return p if p.is_absolute() else (root / p).resolve()


def _load_yaml_mapping(p: Path) -> dict[str, Any]:
    with p.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise TypeError(f"{p.name}: root must be a mapping")
    return raw


def load_settings(path: str | Path) -> Settings:
    """Load `config/settings.yaml`; relative paths resolve against the repo root."""
    p = Path(path).expanduser().resolve()
    if not p.exists():
        raise FileNotFoundError(f"settings not found: {p}")
    root = p.parent.parent  # .../config/settings.yaml -> repo root

    s = Settings.from_dict(_load_yaml_mapping(p))
    s.paths.data_dir = _resolve_path(root, s.paths.data_dir)
    s.paths.sqlite_dir = _resolve_path(root, s.paths.sqlite_dir)
    s.paths.logs_dir = _resolve_path(root, s.paths.logs_dir)
    return s


class StrategyLoader:
    def __init__(self, root: Path | None = None) -> None:
        if root is None:
            # .../mdxsearch/core/strategy/loader.py -> repo root
            root = Path(__file__).resolve().parents[3]
        self.root = root
        self.strategies_dir = self.root / "config" / "strategies"

    def load(self, strategy_config_id: str) -> StrategyConfig:
        path = self._resolve_strategy_path(strategy_config_id)
        return StrategyConfig.from_dict(strategy_config_id, _load_yaml_mapping(path))

    def _resolve_strategy_path(self, strategy_config_id: str) -> Path:
        p = Path(strategy_config_id)
        if p.suffix in {".yml", ".yaml"}:
            return p if p.is_absolute() else (self.root / p).resolve()

        for suffix in (".yaml", ".yml"):
            candidate = (self.strategies_dir / f"{strategy_config_id}{suffix}").resolve()
            if candidate.exists():
                return candidate
        raise FileNotFoundError(f"strategy config not found: {strategy_config_id}")
