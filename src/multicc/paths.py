"""multicc が使うパスの解決。

- ベースディレクトリ: `MULTICC_DIR`（未設定なら `~/.multicc`）
- レジストリ: `<base>/config.json`
- プロファイルごとの状態ディレクトリ: `<base>/profiles/<name>`

注意:
- ここではパスを返すだけでディレクトリは作らない（書き込み直前に作る）。
"""

from __future__ import annotations

import os
from pathlib import Path

ENV_BASE_DIR = "MULTICC_DIR"
ENV_PROFILE = "MULTICC_PROFILE"


def multicc_dir() -> Path:
    env_dir = os.environ.get(ENV_BASE_DIR)
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    return Path.home() / ".multicc"


def config_path() -> Path:
    return multicc_dir() / "config.json"


def profiles_dir() -> Path:
    return multicc_dir() / "profiles"


def profile_dir(name: str) -> Path:
    return profiles_dir() / name


def logs_dir() -> Path:
    return multicc_dir() / "logs"


def claude_default_dir() -> Path:
    return Path.home() / ".claude"
