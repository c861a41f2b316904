"""シェル統合スクリプトの生成（`eval "$(multicc shell-init)"`）。

`claude` をラップし、`multicc _resolve-config-dir` の結果を
CLAUDE_CONFIG_DIR に入れてから本物の claude を呼ぶ。
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import PurePath

from multicc.errors import MulticcError

SHELLS = ("bash", "zsh", "fish", "powershell")

_POSIX = """\
# Add to your shell profile: eval "$(multicc shell-init)"
# multicc shell integration (bash/zsh)

claude() {
  local config_dir
  config_dir=$(multicc _resolve-config-dir 2>/dev/null)
  if [ -n "$config_dir" ]; then
    CLAUDE_CONFIG_DIR="$config_dir" command claude "$@"
  else
    command claude "$@"
  fi
}

export MULTICC_PROFILE="${MULTICC_PROFILE:-}"
"""

_FISH = """\
# Add to your shell profile: multicc shell-init | source
# multicc shell integration (fish)

function claude
  set -l config_dir (multicc _resolve-config-dir 2>/dev/null)
  if test -n "$config_dir"
    set -x CLAUDE_CONFIG_DIR $config_dir
    command claude $argv
    set -e CLAUDE_CONFIG_DIR
  else
    command claude $argv
  end
end
"""

_POWERSHELL = """\
# Add to your PowerShell profile: multicc shell-init --shell powershell | Invoke-Expression
# multicc shell integration (powershell)

function claude {
  $configDir = & multicc _resolve-config-dir 2>$null
  if ($configDir) {
    $env:CLAUDE_CONFIG_DIR = $configDir
    & (Get-Command claude -CommandType Application).Source @args
    Remove-Item Env:\\CLAUDE_CONFIG_DIR
  } else {
    & (Get-Command claude -CommandType Application).Source @args
  }
}
"""


def detect_shell(env: Mapping[str, str] | None = None) -> str:
    if env is None:
        env = os.environ
    shell = env.get("SHELL")
    if shell:
        base = PurePath(shell).name
        if base in ("bash", "zsh", "fish"):
            return base
    if sys.platform == "win32":
        return "powershell"
    return "bash"


def render_shell_init(shell: str) -> str:
    if shell in ("bash", "zsh"):
        return _POSIX
    if shell == "fish":
        return _FISH
    if shell == "powershell":
        return _POWERSHELL
    raise MulticcError(f'Unknown shell type "{shell}". Supported: {", ".join(SHELLS)}')
