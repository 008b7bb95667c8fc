from __future__ import annotations

import json
from dataclasses import dataclass, field
from hashlib import sha256
from pathlib import Path
from typing import Any, Mapping


def _as_path(v: Any, default: Path) -> Path:
    if v is None:
        return default
    if isinstance(v, Path):
        return v
    if isinstance(v, str):
        return Path(v)
    raise TypeError(f"expected path-like value, got {type(v).__name__}")


def _as_mapping(raw: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    v = raw.get(key)
    if v is not None and not isinstance(v, Mapping):
        raise TypeError(f"{key} must be mapping, got {type(v).__name__}")
    return v


@dataclass
class PathsSettings:
    data_dir: Path = Path("data")
    sqlite_dir: Path = Path("data/sqlite")
    logs_dir: Path = Path("logs")

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "PathsSettings":
        d = d or {}
        return cls(
            data_dir=_as_path(d.get("data_dir"), cls.data_dir),
            sqlite_dir=_as_path(d.get("sqlite_dir"), cls.sqlite_dir),
            logs_dir=_as_path(d.get("logs_dir"), cls.logs_dir),
        )


@dataclass
class IngestSettings:
    extensions: list[str] = field(default_factory=lambda: [".md", ".mdx"])
    policy: str = "skip"  # skip|force

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "IngestSettings":
        d = d or {}
        exts = d.get("extensions", [".md", ".mdx"])
        if isinstance(exts, str):
            exts = [e.strip() for e in exts.split(",") if e.strip()]
        if not isinstance(exts, list) or not all(isinstance(e, str) for e in exts):
            raise TypeError("ingest.extensions must be a list of strings")
        policy = d.get("policy", "skip")
        if policy not in ("skip", "force"):
            raise ValueError(f"ingest.policy must be 'skip' or 'force', got {policy!r}")
        return cls(extensions=list(exts), policy=policy)


@dataclass
class DefaultsSettings:
    strategy_config_id: str = "local.default"

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "DefaultsSettings":
        d = d or {}
        v = d.get("strategy_config_id", cls.strategy_config_id)
        if not isinstance(v, str):
            raise TypeError(f"strategy_config_id must be str, got {type(v).__name__}")
        return cls(strategy_config_id=v)


@dataclass
class Settings:
    paths: PathsSettings = field(default_factory=PathsSettings)
    ingest: IngestSettings = field(default_factory=IngestSettings)
    defaults: DefaultsSettings = field(default_factory=DefaultsSettings)

    # Raw mapping kept for debugging.
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "Settings":
        raw = dict(raw or {})
        return cls(
            paths=PathsSettings.from_dict(_as_mapping(raw, "paths")),
            ingest=IngestSettings.from_dict(_as_mapping(raw, "ingest")),
            defaults=DefaultsSettings.from_dict(_as_mapping(raw, "defaults")),
            raw=raw,
        )


@dataclass
class StrategyConfig:
    """Provider selection for a run, e.g. which embedder to use."""

    strategy_id: str
    strategy_config_id: str
    providers: dict[str, Any]
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, strategy_id: str, raw: Mapping[str, Any]) -> "StrategyConfig":
        if not isinstance(raw, Mapping):
            raise TypeError("strategy config must be a mapping")

        raw_dict = dict(raw)
        providers = raw_dict.get("providers")
        if not isinstance(providers, Mapping):
            raise TypeError("strategy config missing 'providers' mapping")

        return cls(
            strategy_id=strategy_id,
            strategy_config_id=_compute_strategy_config_id(raw_dict),
            providers={k: dict(v) if isinstance(v, Mapping) else v for k, v in providers.items()},
            raw=raw_dict,
        )

    def resolve_provider(self, kind: str) -> tuple[str, dict[str, Any]]:
        if kind not in self.providers:
            raise KeyError(f"missing provider config for kind={kind}")

        value = self.providers[kind]
        if isinstance(value, str):
            return value, {}
        if isinstance(value, Mapping):
            provider_id = value.get("provider_id") or value.get("id")
            if not provider_id:
                raise ValueError(f"missing provider_id for kind={kind}")
            params = value.get("params")
            if params is None:
                params = {k: v for k, v in value.items() if k not in {"provider_id", "id"}}
            return str(provider_id), dict(params)
        raise TypeError(f"invalid provider config for kind={kind}")


def _compute_strategy_config_id(raw: Mapping[str, Any]) -> str:
    canonical = json.dumps(raw, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return f"scfg_{sha256(canonical.encode('utf-8')).hexdigest()}"
