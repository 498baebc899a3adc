# どこで: `src/contourf/core/runtime_config.py`。
# 何を: config.yaml による実行時設定（探索・ロード・キャッシュ）を提供する。
# なぜ: 補間のスナップ閾値や並列実行の方式を、コードを変えずに切り替えられるようにするため。

"""実行時設定（`config.yaml`）の探索・ロード・キャッシュを担当する。

このモジュールは、以下を提供する:

- `config.yaml` を「同梱デフォルト → ユーザー設定（任意）」の順に適用して `RuntimeConfig` を構築
- 探索パス（CWD / HOME）と、明示指定（`set_config_path()`）の両方に対応
- 1 回ロードした結果をプロセス内でキャッシュ（設定を切り替える場合は `set_config_path()` で破棄）

実装メモ
--------
- ユーザー設定の適用は `dict.update()`（トップレベルの浅い上書き）で行う。
  ネストした mapping は「部分的にマージ」されず「丸ごと置換」される。
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from contourf.core.errors import ConfigurationError

EXECUTORS = ("thread", "process", "serial")


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """contourf の実行時設定。

    Attributes
    ----------
    config_path:
        実際に採用されたユーザー設定ファイルのパス。ユーザー設定が無い場合は None。
    epsilon:
        交点補間のスナップ閾値（`contour.epsilon`）。
    executor:
        レベル並列の方式（`scheduler.executor`）。`thread` / `process` / `serial`。
    max_workers:
        worker 数の上限（`scheduler.max_workers`）。None は executor の既定値。
    """

    config_path: Path | None
    epsilon: float
    executor: str
    max_workers: int | None


_EXPLICIT_CONFIG_PATH: Path | None = None
_CONFIG_CACHE: RuntimeConfig | None = None


def set_config_path(path: str | Path | None) -> None:
    """以降の設定探索で使う明示 config パスを設定する（None で解除）。

    設定が変わるため、`runtime_config()` のキャッシュを破棄する。
    """

    global _EXPLICIT_CONFIG_PATH, _CONFIG_CACHE
    _EXPLICIT_CONFIG_PATH = None if path is None else Path(str(path)).expanduser()
    _CONFIG_CACHE = None


def _default_config_candidates() -> tuple[Path, ...]:
    """既定の `config.yaml` 探索候補を返す。

    探索順（先勝ち）:
    - `./.contourf/config.yaml`
    - `~/.config/contourf/config.yaml`
    """

    return (
        Path.cwd() / ".contourf" / "config.yaml",
        Path.home() / ".config" / "contourf" / "config.yaml",
    )


def _as_mapping(value: Any, *, key: str) -> dict[str, Any]:
    """任意値を mapping として解釈し、dict に正規化して返す。"""

    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    raise ConfigurationError(f"{key} は mapping である必要があります: got={value!r}")


def _as_float(value: Any, *, key: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} は数値である必要があります: got={value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} は数値である必要があります: got={value!r}") from exc


def _as_int(value: Any, *, key: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} は整数である必要があります: got={value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} は整数である必要があります: got={value!r}") from exc


def _load_yaml_text(text: str, *, source: str) -> dict[str, Any]:
    """YAML テキストを読み、トップレベル mapping を dict として返す。"""

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"config.yaml の読み込みに失敗しました: source={source}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"config.yaml は mapping である必要があります: source={source}")
    return dict(data)


def _load_yaml_config(path: Path) -> dict[str, Any]:
    return _load_yaml_text(path.read_text(encoding="utf-8"), source=str(path))


def _load_packaged_default_config() -> dict[str, Any]:
    """同梱 `contourf/resource/default_config.yaml` をロードする。"""

    blob = (
        resources.files("contourf")
        .joinpath("resource", "default_config.yaml")
        .read_text(encoding="utf-8")
    )
    return _load_yaml_text(blob, source="contourf/resource/default_config.yaml")


def validate_epsilon(value: float | None, *, key: str = "contour.epsilon") -> float:
    if value is None:
        raise ConfigurationError(f"{key} が未設定です（同梱 default_config.yaml を確認してください）")
    eps = _as_float(value, key=key)
    if eps is None or not math.isfinite(eps) or eps <= 0.0:
        raise ConfigurationError(f"{key} は正の有限値である必要があります: got={value!r}")
    return eps


def validate_executor(value: Any, *, key: str = "scheduler.executor") -> str:
    s = str(value).strip().lower() if value is not None else ""
    if s not in EXECUTORS:
        raise ConfigurationError(f"{key} は {'/'.join(EXECUTORS)} のいずれかである必要があります: got={value!r}")
    return s


def validate_max_workers(value: int | None, *, key: str = "scheduler.max_workers") -> int | None:
    workers = _as_int(value, key=key)
    if workers is None:
        return None
    if workers < 1:
        raise ConfigurationError(f"{key} は 1 以上である必要があります: got={value!r}")
    return workers


def runtime_config() -> RuntimeConfig:
    """実行時設定をロードして返す（キャッシュ）。

    読み込み元の優先順位（後勝ち）:
    1) 同梱 `contourf/resource/default_config.yaml`
    2) 探索で見つかった `config.yaml`（任意）
    3) `set_config_path()` で明示指定された `config.yaml`（任意）
    """

    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    explicit_path = _EXPLICIT_CONFIG_PATH
    if explicit_path is not None and not explicit_path.is_file():
        raise FileNotFoundError(f"config.yaml が見つかりません: {explicit_path}")

    discovered_path: Path | None = None
    for p in _default_config_candidates():
        if p.is_file():
            discovered_path = p
            break

    payload = _load_packaged_default_config()
    if discovered_path is not None:
        payload.update(_load_yaml_config(discovered_path))
    if explicit_path is not None:
        payload.update(_load_yaml_config(explicit_path))

    version = _as_int(payload.get("version"), key="version")
    if version is None:
        raise ConfigurationError("config.yaml の version が未設定です")
    if version != 1:
        raise ConfigurationError(f"未対応の config.yaml version です: got={version}")

    contour = _as_mapping(payload.get("contour"), key="contour")
    epsilon = validate_epsilon(_as_float(contour.get("epsilon"), key="contour.epsilon"))

    scheduler = _as_mapping(payload.get("scheduler"), key="scheduler")
    executor = validate_executor(scheduler.get("executor"))
    max_workers = validate_max_workers(
        _as_int(scheduler.get("max_workers"), key="scheduler.max_workers")
    )

    cfg = RuntimeConfig(
        config_path=explicit_path or discovered_path,
        epsilon=epsilon,
        executor=executor,
        max_workers=max_workers,
    )
    _CONFIG_CACHE = cfg
    return cfg


__all__ = [
    "EXECUTORS",
    "RuntimeConfig",
    "runtime_config",
    "set_config_path",
    "validate_epsilon",
    "validate_executor",
    "validate_max_workers",
]
