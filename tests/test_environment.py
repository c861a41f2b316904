"""environment（子プロセス環境の組み立て）のテスト。"""

from pathlib import Path

from multicc.environment import AUTH_SELECTOR_VARS, build_profile_env, merge_env
from multicc.models import Profile


def _profile(auth_type: str, **overrides: str) -> Profile:
    return Profile(
        auth_type=auth_type,
        config_dir="/home/u/.multicc/profiles/work",
        created_at="2026-01-01T00:00:00.000Z",
        env_overrides=dict(overrides),
    )


PARENT = {
    "PATH": "/usr/bin",
    "CLAUDE_CODE_USE_BEDROCK": "1",
    "ANTHROPIC_API_KEY": "sk-ant-LEFTOVER",
    "ANTHROPIC_BASE_URL": "https://old.example",
}


def test_api_key_profile_env(secrets) -> None:
    secrets.store("work", "sk-ant-XYZ")
    overlay = build_profile_env("work", _profile("api-key"), secrets)
    env = merge_env(overlay, PARENT)

    assert env["ANTHROPIC_API_KEY"] == "sk-ant-XYZ"
    assert env["CLAUDE_CONFIG_DIR"] == "/home/u/.multicc/profiles/work"
    assert env["PATH"] == "/usr/bin"
    for var in AUTH_SELECTOR_VARS:
        if var != "ANTHROPIC_API_KEY":
            assert var not in env


def test_api_key_missing_secret_leaves_var_unset(secrets) -> None:
    env = merge_env(build_profile_env("work", _profile("api-key"), secrets), PARENT)
    assert "ANTHROPIC_API_KEY" not in env


def test_override_beats_derived_value(secrets) -> None:
    secrets.store("work", "sk-ant-XYZ")
    profile = _profile("api-key", ANTHROPIC_API_KEY="sk-ant-OVERRIDE")
    env = merge_env(build_profile_env("work", profile, secrets), PARENT)
    assert env["ANTHROPIC_API_KEY"] == "sk-ant-OVERRIDE"


def test_oauth_profile_clears_leftovers(secrets) -> None:
    overlay = build_profile_env("work", _profile("oauth"), secrets)
    assert all(overlay[var] is None for var in AUTH_SELECTOR_VARS)
    env = merge_env(overlay, PARENT)
    assert set(env) == {"PATH", "CLAUDE_CONFIG_DIR"}


def test_mode_flags(secrets) -> None:
    for auth_type, flag in [
        ("bedrock", "CLAUDE_CODE_USE_BEDROCK"),
        ("vertex", "CLAUDE_CODE_USE_VERTEX"),
        ("foundry", "CLAUDE_CODE_USE_FOUNDRY"),
    ]:
        env = merge_env(build_profile_env("p", _profile(auth_type), secrets), {})
        assert env[flag] == "1"
        assert "ANTHROPIC_API_KEY" not in env
        others = {"CLAUDE_CODE_USE_BEDROCK", "CLAUDE_CODE_USE_VERTEX", "CLAUDE_CODE_USE_FOUNDRY"} - {flag}
        assert not others & set(env)


def test_overrides_applied_last(secrets) -> None:
    profile = _profile("bedrock", CLAUDE_CODE_USE_BEDROCK="0", AWS_PROFILE="corp")
    env = merge_env(build_profile_env("p", profile, secrets), {})
    assert env["CLAUDE_CODE_USE_BEDROCK"] == "0"
    assert env["AWS_PROFILE"] == "corp"


def test_merge_env_defaults_to_process_env(monkeypatch) -> None:
    monkeypatch.setenv("MULTICC_TEST_VAR", "keep")
    monkeypatch.setenv("ANTHROPIC_BASE_URL", "drop")
    env = merge_env({"ANTHROPIC_BASE_URL": None, "X": "1"})
    assert env["MULTICC_TEST_VAR"] == "keep"
    assert env["X"] == "1"
    assert "ANTHROPIC_BASE_URL" not in env


def test_does_not_touch_fallback_dir_for_oauth(secrets, multicc_home: Path) -> None:
    build_profile_env("work", _profile("oauth"), secrets)
    assert not multicc_home.exists()
