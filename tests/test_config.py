"""config（レジストリの読み書き）のテスト。"""

import json
import os
import sys
from pathlib import Path

import pytest

import multicc.config as config_mod
from multicc.config import load_config, resolve_profile_name, save_config, validate_registry
from multicc.errors import ConfigCorruptError
from multicc.models import Profile, Registry


def _registry() -> Registry:
    return Registry(
        active_profile="work",
        profiles={
            "work": Profile(
                auth_type="oauth",
                config_dir="/tmp/multicc/profiles/work",
                created_at="2026-01-01T00:00:00.000Z",
                description="work account",
            ),
            "personal": Profile(
                auth_type="api-key",
                config_dir="/tmp/multicc/profiles/personal",
                created_at="2026-01-02T00:00:00.000Z",
                api_key_storage="keyring",
                env_overrides={"ANTHROPIC_BASE_URL": "https://proxy.example"},
            ),
        },
    )


def test_load_missing_returns_default(multicc_home: Path) -> None:
    reg = load_config()
    assert reg.version == 1
    assert reg.active_profile == "default"
    assert reg.profiles == {}
    # 読むだけではディレクトリを作らない
    assert not multicc_home.exists()


def test_save_load_roundtrip(multicc_home: Path) -> None:
    reg = _registry()
    save_config(reg)
    assert load_config() == reg

    raw = json.loads((multicc_home / "config.json").read_text(encoding="utf-8"))
    assert raw["activeProfile"] == "work"
    assert raw["profiles"]["personal"]["apiKeyStorage"] == "keyring"
    assert "envOverrides" not in raw["profiles"]["work"]


def test_save_is_stable(multicc_home: Path) -> None:
    save_config(_registry())
    first = (multicc_home / "config.json").read_bytes()
    save_config(load_config())
    assert (multicc_home / "config.json").read_bytes() == first
    assert first.endswith(b"}\n")


def test_unknown_keys_survive_roundtrip(write_registry) -> None:
    path = write_registry(
        {
            "version": 1,
            "activeProfile": "a",
            "profiles": {
                "a": {
                    "authType": "oauth",
                    "configDir": "/x",
                    "createdAt": "t",
                    "color": "blue",
                }
            },
        }
    )
    save_config(load_config())
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["profiles"]["a"]["color"] == "blue"


def test_malformed_json_raises_with_path(multicc_home: Path) -> None:
    path = multicc_home / "config.json"
    multicc_home.mkdir()
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigCorruptError) as exc:
        load_config()
    assert exc.value.path == path
    # 壊れたファイルを消したり上書きしたりしない
    assert path.read_text(encoding="utf-8") == "{not json"


@pytest.mark.parametrize(
    "raw",
    [
        [],
        {"version": 2, "activeProfile": "a", "profiles": {}},
        {"version": True, "activeProfile": "a", "profiles": {}},
        {"version": 1, "activeProfile": 3, "profiles": {}},
        {"version": 1, "activeProfile": "a", "profiles": []},
        {"version": 1, "activeProfile": "a", "profiles": {"a": "oauth"}},
        {
            "version": 1,
            "activeProfile": "a",
            "profiles": {"a": {"authType": "password", "configDir": "/x", "createdAt": "t"}},
        },
        {
            "version": 1,
            "activeProfile": "a",
            "profiles": {"a": {"authType": "oauth", "createdAt": "t"}},
        },
        {
            "version": 1,
            "activeProfile": "a",
            "profiles": {"a": {"authType": "oauth", "configDir": "/x"}},
        },
        {
            "version": 1,
            "activeProfile": "a",
            "profiles": {
                "a": {
                    "authType": "oauth",
                    "configDir": "/x",
                    "createdAt": "t",
                    "envOverrides": {"FOO": None},
                }
            },
        },
        {
            "version": 1,
            "activeProfile": "a",
            "profiles": {
                "a": {
                    "authType": "oauth",
                    "configDir": "/x",
                    "createdAt": "t",
                    "envOverrides": {"PORT": 8080},
                }
            },
        },
    ],
)
def test_invalid_schema_raises(write_registry, raw) -> None:
    write_registry(raw)
    with pytest.raises(ConfigCorruptError):
        load_config()


def test_dangling_active_profile_is_accepted(write_registry) -> None:
    write_registry({"version": 1, "activeProfile": "ghost", "profiles": {}})
    reg = load_config()
    assert reg.active_profile == "ghost"
    assert reg.active() is None


def test_validate_registry_accepts_minimal() -> None:
    assert validate_registry({"version": 1, "activeProfile": "default", "profiles": {}})


def test_crash_before_rename_keeps_previous_file(multicc_home: Path, monkeypatch) -> None:
    save_config(_registry())
    path = multicc_home / "config.json"
    before = path.read_bytes()

    def boom(src, dst):  # noqa: ANN001
        raise OSError("simulated crash")

    monkeypatch.setattr(config_mod.os, "replace", boom)

    changed = _registry()
    changed.active_profile = "personal"
    with pytest.raises(OSError):
        save_config(changed)

    assert path.read_bytes() == before
    assert [p.name for p in multicc_home.iterdir() if p.name.startswith("config.json.tmp")] == []


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_saved_file_is_owner_only(multicc_home: Path) -> None:
    save_config(_registry())
    mode = os.stat(multicc_home / "config.json").st_mode & 0o777
    assert mode == 0o600


def test_resolve_profile_name() -> None:
    reg = _registry()
    assert resolve_profile_name(reg) == "work"
    assert resolve_profile_name(reg, "personal") == "personal"
