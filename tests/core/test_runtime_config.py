"""runtime_config（config.yaml の探索・ロード・検証）のテスト群。"""

from __future__ import annotations

from pathlib import Path

import pytest

from contourf.core.errors import ConfigurationError
from contourf.core.runtime_config import (
    runtime_config,
    set_config_path,
    validate_epsilon,
    validate_max_workers,
)


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    set_config_path(None)
    yield
    set_config_path(None)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_packaged_defaults() -> None:
    cfg = runtime_config()
    assert cfg.config_path is None
    assert cfg.epsilon == 1e-5
    assert cfg.executor == "process"
    assert cfg.max_workers is None


def test_result_is_cached_until_path_changes(tmp_path: Path) -> None:
    first = runtime_config()
    assert runtime_config() is first

    p = _write(tmp_path / "cfg.yaml", "version: 1\nscheduler:\n  executor: serial\n")
    set_config_path(p)
    second = runtime_config()
    assert second is not first
    assert second.executor == "serial"


def test_explicit_path_overrides_top_level_sections(tmp_path: Path) -> None:
    p = _write(
        tmp_path / "cfg.yaml",
        "version: 1\nscheduler:\n  executor: Thread\n  max_workers: 3\n",
    )
    set_config_path(p)
    cfg = runtime_config()

    assert cfg.config_path == p
    assert cfg.executor == "thread"
    assert cfg.max_workers == 3
    # contour: は上書きしていないので同梱値のまま
    assert cfg.epsilon == 1e-5


def test_config_is_discovered_in_cwd(tmp_path: Path) -> None:
    p = _write(tmp_path / ".contourf" / "config.yaml", "contour:\n  epsilon: 0.001\n")
    cfg = runtime_config()
    assert cfg.config_path == p
    assert cfg.epsilon == 0.001


def test_config_is_discovered_in_home(tmp_path: Path) -> None:
    p = _write(
        tmp_path / "home" / ".config" / "contourf" / "config.yaml",
        "scheduler:\n  executor: serial\n  max_workers: null\n",
    )
    cfg = runtime_config()
    assert cfg.config_path == p
    assert cfg.executor == "serial"


def test_missing_explicit_path_raises(tmp_path: Path) -> None:
    set_config_path(tmp_path / "nope.yaml")
    with pytest.raises(FileNotFoundError):
        runtime_config()


@pytest.mark.parametrize(
    "text",
    [
        "version: 2\n",
        "contour:\n  epsilon: -1.0\n",
        "contour:\n  epsilon: abc\n",
        "scheduler:\n  executor: gpu\n",
        "scheduler:\n  executor: thread\n  max_workers: 0\n",
        "scheduler: [1, 2]\n",
        "- a\n- b\n",
        "contour: {epsilon: [\n",
    ],
)
def test_invalid_config_raises_configuration_error(tmp_path: Path, text: str) -> None:
    set_config_path(_write(tmp_path / "bad.yaml", text))
    with pytest.raises(ConfigurationError):
        runtime_config()


def test_empty_config_file_keeps_defaults(tmp_path: Path) -> None:
    set_config_path(_write(tmp_path / "empty.yaml", ""))
    cfg = runtime_config()
    assert cfg.executor == "process"
    assert cfg.epsilon == 1e-5


@pytest.mark.parametrize("value", ["many", "1.5x", [2], True])
def test_validate_max_workers_rejects_non_integer(value) -> None:
    with pytest.raises(ConfigurationError):
        validate_max_workers(value)


@pytest.mark.parametrize("value", ["x", [1e-5], False, float("nan")])
def test_validate_epsilon_rejects_non_numeric(value) -> None:
    with pytest.raises(ConfigurationError):
        validate_epsilon(value)


def test_validators_accept_numeric_strings() -> None:
    assert validate_max_workers("4") == 4
    assert validate_max_workers(None) is None
    assert validate_epsilon("0.001") == 0.001
