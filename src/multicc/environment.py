"""子プロセス（claude 等）に渡す環境変数を組み立てる。

順番（後勝ち）:
1. CLAUDE_CONFIG_DIR = configDir
2. 認証モードを選ぶ変数を全部 None（=削除）にする
   親シェルに別プロファイルの残りがあっても混ざらないようにする
3. authType ごとに必要な変数だけ入れ直す
4. envOverrides を最後に適用（ユーザー指定が常に勝つ）

返り値は親の環境にかぶせる差分。値が None のキーは最終環境から消す。
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from multicc.credentials import API_KEY_VAR
from multicc.models import AUTH_API_KEY, AUTH_BEDROCK, AUTH_FOUNDRY, AUTH_VERTEX, Profile
from multicc.secret_store import SecretStore

CONFIG_DIR_VAR = "CLAUDE_CONFIG_DIR"

AUTH_SELECTOR_VARS = (
    "CLAUDE_CODE_USE_BEDROCK",
    "CLAUDE_CODE_USE_VERTEX",
    "CLAUDE_CODE_USE_FOUNDRY",
    API_KEY_VAR,
    "ANTHROPIC_BASE_URL",
    "ANTHROPIC_FOUNDRY_BASE_URL",
    "ANTHROPIC_FOUNDRY_RESOURCE",
)

_MODE_FLAGS = {
    AUTH_BEDROCK: "CLAUDE_CODE_USE_BEDROCK",
    AUTH_VERTEX: "CLAUDE_CODE_USE_VERTEX",
    AUTH_FOUNDRY: "CLAUDE_CODE_USE_FOUNDRY",
}


def build_profile_env(name: str, profile: Profile, secrets: SecretStore) -> dict[str, str | None]:
    env: dict[str, str | None] = {CONFIG_DIR_VAR: profile.config_dir}

    for key in AUTH_SELECTOR_VARS:
        env[key] = None

    if profile.auth_type == AUTH_API_KEY:
        secret = secrets.retrieve(name)
        if secret:
            env[API_KEY_VAR] = secret
    elif profile.auth_type in _MODE_FLAGS:
        env[_MODE_FLAGS[profile.auth_type]] = "1"
    # oauth: configDir の credentials を使うので追加なし

    env.update(profile.env_overrides)
    return env


def merge_env(
    overlay: Mapping[str, str | None],
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    merged = dict(os.environ if base is None else base)
    for key, value in overlay.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged
