"""レジストリ（config.json）の読み書き。

- 読み込み: ファイルが無ければデフォルト。壊れていれば ConfigCorruptError。
  ユーザーデータを黙って捨てることはしない。
- 保存: 同じディレクトリの一時ファイルに書いてから os.replace。
  rename 前に落ちても元のファイルはそのまま残る。
"""

from __future__ import annotations

import json
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Any

from multicc.errors import ConfigCorruptError, MulticcError
from multicc.models import AUTH_TYPES, CONFIG_VERSION, Registry
from multicc.paths import config_path

log = logging.getLogger(__name__)


def default_registry() -> Registry:
    return Registry()


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def validate_registry(raw: Any) -> bool:
    """スキーマ検証。activeProfile が実在するかは見ない。"""
    if not isinstance(raw, dict):
        return False
    version = raw.get("version")
    if isinstance(version, bool) or not isinstance(version, int) or version != CONFIG_VERSION:
        return False
    if not _is_str(raw.get("activeProfile")):
        return False
    profiles = raw.get("profiles")
    if not isinstance(profiles, dict):
        return False
    for p in profiles.values():
        if not isinstance(p, dict):
            return False
        if p.get("authType") not in AUTH_TYPES:
            return False
        if not _is_str(p.get("configDir")) or not _is_str(p.get("createdAt")):
            return False
        overrides = p.get("envOverrides")
        if overrides is not None:
            if not isinstance(overrides, dict):
                return False
            if not all(_is_str(v) for v in overrides.values()):
                return False
    return True


def load_config(path: Path | None = None) -> Registry:
    if path is None:
        path = config_path()
    if not path.exists():
        return default_registry()

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise MulticcError(f"Failed to read config file at {path}: {e}") from e

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigCorruptError(path, "contains malformed JSON") from e

    if not validate_registry(raw):
        raise ConfigCorruptError(
            path,
            "has an invalid structure "
            f"(expected version: {CONFIG_VERSION}, activeProfile (string), profiles (object))",
        )
    return Registry.from_dict(raw)


def save_config(registry: Registry, path: Path | None = None) -> None:
    if path is None:
        path = config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    content = json.dumps(registry.to_dict(), ensure_ascii=False, indent=2) + "\n"

    # 一時ファイル名はランダム。並行実行でも衝突しない（最後に rename した方が勝つ）
    fd, tmp_name = tempfile.mkstemp(prefix=f"{path.name}.tmp.", dir=path.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if sys.platform != "win32":
            os.chmod(tmp, 0o600)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    log.debug("saved registry: %s (%d profiles)", path, len(registry.profiles))


def resolve_profile_name(registry: Registry, name: str | None = None) -> str:
    return name if name else registry.active_profile
