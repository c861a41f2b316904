"""プロファイル環境で子プロセスを起動する。

- 標準入出力はそのまま引き継ぐ
- 終了コードはそのまま返す（CLI がそれで exit する）。シグナルで死んだ場合は
  シェルと同じ 128+N にする
- タイムアウトやシグナル送信はしない
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from collections.abc import Mapping, Sequence

from multicc.environment import merge_env

log = logging.getLogger(__name__)

CLAUDE_COMMAND = "claude"


def run_with_profile(
    argv: Sequence[str],
    overlay: Mapping[str, str | None],
    *,
    base_env: Mapping[str, str] | None = None,
) -> int:
    """argv を実行して終了コードを返す。起動できなければ OSError。"""
    env = merge_env(overlay, base_env)
    args = list(argv)
    # Windows の claude.cmd 等も PATH から解決する
    resolved = shutil.which(args[0], path=env.get("PATH"))
    if resolved:
        args[0] = resolved
    log.debug("spawn: %s", args[0])
    proc = subprocess.run(args, env=env, check=False)
    if proc.returncode < 0:
        return 128 - proc.returncode
    return proc.returncode


def default_shell(env: Mapping[str, str] | None = None) -> str:
    if env is None:
        env = os.environ
    if sys.platform == "win32":
        return env.get("COMSPEC", "cmd.exe")
    return env.get("SHELL", "/bin/bash")
