"""APIキー等の秘密情報の保存先。

優先順位:
1. OSのキーチェーン（`keyring`）。service="multicc", username=プロファイル名
2. `<profiles>/<name>/.api-key`（owner のみ読み書き可の平文ファイル）

keyring の読み込みに失敗した場合（未インストール/バックエンド無し）は
同じ SecretStore インスタンスの間は再試行しない。

どちらの保存にも失敗しても例外は投げず warning を出すだけ。
呼び出し側が retrieve で結果を確認する。
"""

from __future__ import annotations

import importlib
import logging
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from multicc.paths import profiles_dir

log = logging.getLogger(__name__)

SERVICE_NAME = "multicc"
FALLBACK_FILENAME = ".api-key"


def _import_keyring() -> Any | None:
    try:
        return importlib.import_module("keyring")
    except Exception as e:
        log.debug("keyring unavailable: %s", e)
        return None


class SecretStore:
    def __init__(
        self,
        *,
        service: str = SERVICE_NAME,
        fallback_root: Path | None = None,
        loader: Callable[[], Any | None] = _import_keyring,
    ) -> None:
        self.service = service
        self._fallback_root = fallback_root
        self._loader = loader
        self._vault: Any | None = None
        self._vault_checked = False

    def _get_vault(self) -> Any | None:
        if not self._vault_checked:
            self._vault_checked = True
            self._vault = self._loader()
        return self._vault

    @property
    def vault_available(self) -> bool:
        return self._get_vault() is not None

    def fallback_path(self, profile_name: str) -> Path:
        root = self._fallback_root if self._fallback_root is not None else profiles_dir()
        return root / profile_name / FALLBACK_FILENAME

    def _write_fallback(self, path: Path, secret: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(secret.encode("utf-8"))
        if sys.platform != "win32":
            os.chmod(path, 0o600)

    def store(self, profile_name: str, secret: str) -> None:
        vault = self._get_vault()
        if vault is not None:
            try:
                vault.set_password(self.service, profile_name, secret)
                return
            except Exception as e:
                log.warning(
                    "Failed to store secret in OS keyring (%s). Falling back to plaintext file.",
                    type(e).__name__,
                )
        else:
            log.warning("OS keyring not available. Storing API key in plaintext file.")

        try:
            self._write_fallback(self.fallback_path(profile_name), secret)
        except OSError as e:
            log.warning("Failed to store secret in fallback file: %s", e)

    def retrieve(self, profile_name: str) -> str | None:
        vault = self._get_vault()
        if vault is not None:
            try:
                secret = vault.get_password(self.service, profile_name)
            except Exception as e:
                # 見つからない/キーチェーンエラー -> ファイルへ
                log.debug("keyring lookup failed for %s: %s", profile_name, type(e).__name__)
                secret = None
            if secret:
                return secret

        path = self.fallback_path(profile_name)
        try:
            if path.exists():
                return path.read_bytes().decode("utf-8")
        except OSError as e:
            log.warning("Failed to read secret from fallback file: %s", e)
        return None

    def delete(self, profile_name: str) -> None:
        """両方の保存先から消す。片方の失敗でもう片方を止めない。"""
        vault = self._get_vault()
        if vault is not None:
            try:
                vault.delete_password(self.service, profile_name)
            except Exception as e:
                # entry may not exist
                log.debug("keyring delete skipped for %s: %s", profile_name, type(e).__name__)

        try:
            self.fallback_path(profile_name).unlink(missing_ok=True)
        except OSError as e:
            log.warning("Failed to delete secret fallback file: %s", e)
