"""`launch [name] [args...]` / `exec [name] <cmd...>` の引数の切り分け。

先頭トークンが既存のプロファイル名と完全一致すればプロファイル名、
そうでなければ全部を子プロセスへの引数として扱い、アクティブプロファイルを使う。

`--` が引数の先頭にあれば取り除く（「プロファイル名なし」を明示するため）。
プロファイル名と同じ文字列を子プロセスに渡したい場合は `--` が必要。
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from multicc.models import Registry

SEPARATOR = "--"


@dataclass
class SplitArgs:
    profile: str
    passthrough: list[str] = field(default_factory=list)
    explicit: bool = False  # プロファイル名が引数で指定されたか


def _strip_separator(args: list[str]) -> list[str]:
    if args and args[0] == SEPARATOR:
        return args[1:]
    return args


def split_profile_args(registry: Registry, args: Sequence[str]) -> SplitArgs:
    tokens = list(args)
    if tokens and tokens[0] != SEPARATOR and tokens[0] in registry.profiles:
        return SplitArgs(
            profile=tokens[0],
            passthrough=_strip_separator(tokens[1:]),
            explicit=True,
        )
    return SplitArgs(profile=registry.active_profile, passthrough=_strip_separator(tokens))
