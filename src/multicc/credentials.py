"""プロファイルの認証状態を判定する。

ネットワークには出ない。毎回 プロファイル + envOverrides + ファイル から計算し直す。

| authType | 認証済みの条件 |
|---|---|
| oauth   | `<configDir>/.credentials.json` に有効期限内のトークン |
| api-key | envOverrides の ANTHROPIC_API_KEY、なければ SecretStore |
| bedrock | envOverrides に AWS_ACCESS_KEY_ID / AWS_PROFILE |
| vertex  | envOverrides に GOOGLE_APPLICATION_CREDENTIALS / CLOUD_ML_REGION |
| foundry | envOverrides に FOUNDRY_API_KEY |
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path

from multicc.models import (
    AUTH_API_KEY,
    AUTH_BEDROCK,
    AUTH_FOUNDRY,
    AUTH_OAUTH,
    AUTH_VERTEX,
    Profile,
)
from multicc.secret_store import SecretStore

CREDENTIALS_FILENAME = ".credentials.json"

# 同じファイルの新旧フォーマット。先頭から順に試す。
OAUTH_PAYLOAD_KEYS = ("claudeAiOauth", "oauthAccount")

API_KEY_VAR = "ANTHROPIC_API_KEY"

# authType -> どれか1つでも envOverrides にあれば認証済み
OVERRIDE_CREDENTIAL_VARS: dict[str, tuple[str, ...]] = {
    AUTH_BEDROCK: ("AWS_ACCESS_KEY_ID", "AWS_PROFILE"),
    AUTH_VERTEX: ("GOOGLE_APPLICATION_CREDENTIALS", "CLOUD_ML_REGION"),
    AUTH_FOUNDRY: ("FOUNDRY_API_KEY",),
}

METHOD_ENV_VAR = "env-var"


@dataclass(frozen=True)
class OAuthCredentials:
    access_token: str
    refresh_token: str
    expires_at: float  # epoch ms


@dataclass
class CredentialStatus:
    authenticated: bool
    auth_type: str
    method: str  # oauth | api-key | env-var | bedrock | vertex | foundry
    expires_at: float | None = None
    expired: bool | None = None


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def read_oauth_credentials(config_dir: str | Path) -> OAuthCredentials | None:
    """壊れている/足りないファイルは「未認証」として None を返す。"""
    path = Path(config_dir) / CREDENTIALS_FILENAME
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(raw, dict):
        return None

    payload = None
    for key in OAUTH_PAYLOAD_KEYS:
        if raw.get(key) is not None:
            payload = raw[key]
            break
    if not isinstance(payload, dict):
        return None

    access_token = payload.get("accessToken")
    refresh_token = payload.get("refreshToken")
    expires_at = payload.get("expiresAt")
    if not isinstance(access_token, str) or not isinstance(refresh_token, str):
        return None
    if not _is_number(expires_at):
        return None
    return OAuthCredentials(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=expires_at,
    )


def get_credential_status(
    name: str,
    profile: Profile,
    secrets: SecretStore,
    *,
    now_ms: float | None = None,
) -> CredentialStatus:
    auth_type = profile.auth_type
    overrides = profile.env_overrides

    if auth_type == AUTH_OAUTH:
        creds = read_oauth_credentials(profile.config_dir)
        if creds is None:
            return CredentialStatus(authenticated=False, auth_type=auth_type, method=AUTH_OAUTH)
        if now_ms is None:
            now_ms = time.time() * 1000
        expired = creds.expires_at < now_ms
        return CredentialStatus(
            authenticated=not expired,
            auth_type=auth_type,
            method=AUTH_OAUTH,
            expires_at=creds.expires_at,
            expired=expired,
        )

    if auth_type == AUTH_API_KEY:
        if overrides.get(API_KEY_VAR):
            return CredentialStatus(authenticated=True, auth_type=auth_type, method=METHOD_ENV_VAR)
        found = bool(secrets.retrieve(name))
        return CredentialStatus(authenticated=found, auth_type=auth_type, method=AUTH_API_KEY)

    if auth_type in OVERRIDE_CREDENTIAL_VARS:
        has = any(var in overrides for var in OVERRIDE_CREDENTIAL_VARS[auth_type])
        return CredentialStatus(authenticated=has, auth_type=auth_type, method=auth_type)

    raise ValueError(f"unknown auth type: {auth_type}")
