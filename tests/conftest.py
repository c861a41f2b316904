from __future__ import annotations

import json
from pathlib import Path

import pytest

from multicc.secret_store import SecretStore


class FakeVault:
    """keyring モジュールの代わり（set/get/delete_password だけ）。"""

    def __init__(self, *, fail_writes: bool = False) -> None:
        self.data: dict[tuple[str, str], str] = {}
        self.fail_writes = fail_writes

    def set_password(self, service: str, username: str, password: str) -> None:
        if self.fail_writes:
            raise RuntimeError("keychain locked")
        self.data[(service, username)] = password

    def get_password(self, service: str, username: str) -> str | None:
        return self.data.get((service, username))

    def delete_password(self, service: str, username: str) -> None:
        if (service, username) not in self.data:
            raise LookupError("not found")
        del self.data[(service, username)]


@pytest.fixture(autouse=True)
def multicc_home(tmp_path: Path, monkeypatch) -> Path:
    """MULTICC_DIR / HOME をテストごとの一時ディレクトリに向ける。"""
    base = tmp_path / "multicc"
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("MULTICC_DIR", str(base))
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("MULTICC_PROFILE", raising=False)
    return base


@pytest.fixture()
def vault() -> FakeVault:
    return FakeVault()


@pytest.fixture()
def secrets(vault: FakeVault) -> SecretStore:
    return SecretStore(loader=lambda: vault)


@pytest.fixture()
def failing_vault() -> FakeVault:
    return FakeVault(fail_writes=True)


@pytest.fixture()
def no_vault_secrets() -> SecretStore:
    return SecretStore(loader=lambda: None)


@pytest.fixture()
def write_registry(multicc_home: Path):
    def _write(raw: object) -> Path:
        multicc_home.mkdir(parents=True, exist_ok=True)
        path = multicc_home / "config.json"
        path.write_text(json.dumps(raw, indent=2) + "\n", encoding="utf-8")
        return path

    return _write
