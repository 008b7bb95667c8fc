from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from mdxsearch.observability.obs import api as obs


@pytest.fixture
def tmp_workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Provide an isolated working directory for tests that write to disk using
    relative paths.
    """
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def mock_clock(monkeypatch: pytest.MonkeyPatch) -> float:
    """Freeze time.time() to a deterministic value."""
    import time

    fixed = 1_700_000_000.0
    monkeypatch.setattr(time, "time", lambda: fixed)
    return fixed


@pytest.fixture(autouse=True)
def _reset_obs_sink() -> Generator[None, None, None]:
    """The obs sink is process-global; never let one test leak it into the next."""
    obs.set_sink(None)
    yield
    obs.set_sink(None)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """A small docs tree: nested pages, a non-document file and a component-only page."""
    root = tmp_path / "data"
    (root / "docs" / "guides").mkdir(parents=True)
    (root / "docs" / "index.mdx").write_text(
        "import { Callout } from '../components'\n"
        "\n"
        "# Welcome\n"
        "\n"
        "Intro paragraph.\n"
        "\n"
        "<Callout>This is hidden.</Callout>\n"
        "\n"
        "## Install\n"
        "\n"
        "Run the installer.\n",
        encoding="utf-8",
    )
    (root / "docs" / "guides" / "setup.md").write_text(
        "# Setup\n\nConfigure the project.\n",
        encoding="utf-8",
    )
    (root / "docs" / "components.mdx").write_text(
        "export const meta = { title: 'x' }\n\n<Banner />\n",
        encoding="utf-8",
    )
    (root / "docs" / "logo.png").write_bytes(b"\x89PNG")
    return root


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """
    Default behavior: only run unit tests.

    If the user explicitly provides `-m ...`, we respect it and do not apply
    any extra deselection logic.
    """
    if config.option.markexpr:
        return

    deselect: list[pytest.Item] = []
    keep: list[pytest.Item] = []

    for item in items:
        if item.get_closest_marker("integration") or item.get_closest_marker("e2e"):
            deselect.append(item)
        else:
            keep.append(item)

    if deselect:
        config.hook.pytest_deselected(items=deselect)
        items[:] = keep
