"""multicc の例外。

- ProfileError: ユーザー入力の誤り（存在しない/不正/重複した名前など）
- ConfigCorruptError: config.json が壊れている。自動修復はしない。
"""

from __future__ import annotations

from pathlib import Path


class MulticcError(Exception):
    """CLI がメッセージを表示して exit 1 にする例外の基底。"""


class ProfileError(MulticcError):
    pass


class ConfigCorruptError(MulticcError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Config file at {path} {reason}. Please fix or delete it.")
