from __future__ import annotations

from pathlib import Path

import pytest

from mdxsearch.core.strategy import StrategyConfig, StrategyLoader


def test_load_repo_strategies() -> None:
    loader = StrategyLoader()

    local = loader.load("local.default")
    assert local.resolve_provider("embedder") == ("embedder.fake", {"dim": 8})
    assert local.strategy_config_id.startswith("scfg_")

    remote = loader.load("openai")
    provider_id, params = remote.resolve_provider("embedder")
    assert provider_id == "embedder.openai"
    assert params["api_key_env"] == "OPENAI_KEY"


def test_strategy_config_id_is_stable() -> None:
    raw = {"providers": {"embedder": {"provider_id": "embedder.fake", "params": {"dim": 4}}}}
    a = StrategyConfig.from_dict("a", raw)
    b = StrategyConfig.from_dict("b", dict(reversed(list(raw.items()))))
    assert a.strategy_config_id == b.strategy_config_id

    other = StrategyConfig.from_dict("c", {"providers": {"embedder": "embedder.openai"}})
    assert other.strategy_config_id != a.strategy_config_id


def test_resolve_provider_shapes() -> None:
    cfg = StrategyConfig.from_dict(
        "x",
        {"providers": {"short": "embedder.fake", "inline": {"id": "embedder.fake", "dim": 2}}},
    )
    assert cfg.resolve_provider("short") == ("embedder.fake", {})
    assert cfg.resolve_provider("inline") == ("embedder.fake", {"dim": 2})
    with pytest.raises(KeyError):
        cfg.resolve_provider("embedder")


def test_strategy_without_providers_is_rejected() -> None:
    with pytest.raises(TypeError):
        StrategyConfig.from_dict("x", {"name": "nope"})


def test_loader_custom_root_and_missing(tmp_path: Path) -> None:
    strategies = tmp_path / "config" / "strategies"
    strategies.mkdir(parents=True)
    (strategies / "mine.yml").write_text("providers:\n  embedder: embedder.fake\n", encoding="utf-8")

    loader = StrategyLoader(root=tmp_path)
    assert loader.load("mine").resolve_provider("embedder") == ("embedder.fake", {})
    with pytest.raises(FileNotFoundError):
        loader.load("absent")
