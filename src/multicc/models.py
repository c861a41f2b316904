"""プロファイル/レジストリのデータモデル。

config.json の形:

```json
{
  "version": 1,
  "activeProfile": "work",
  "profiles": {
    "work": {
      "authType": "oauth",
      "configDir": "/home/user/.multicc/profiles/work",
      "createdAt": "2026-01-01T00:00:00.000Z"
    }
  }
}
```

JSON のキーは camelCase のまま保存し、Python 側では snake_case で扱う。
知らないキーは `extra` に残して、保存時にそのまま書き戻す。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

CONFIG_VERSION = 1
DEFAULT_PROFILE_NAME = "default"

AUTH_OAUTH = "oauth"
AUTH_API_KEY = "api-key"
AUTH_BEDROCK = "bedrock"
AUTH_VERTEX = "vertex"
AUTH_FOUNDRY = "foundry"

AUTH_TYPES = (AUTH_OAUTH, AUTH_API_KEY, AUTH_BEDROCK, AUTH_VERTEX, AUTH_FOUNDRY)

API_KEY_STORAGE_KEYRING = "keyring"

_PROFILE_KEYS = {
    "authType",
    "configDir",
    "description",
    "createdAt",
    "apiKeyStorage",
    "envOverrides",
}


@dataclass
class Profile:
    """1つのアカウント設定。auth_type は作成後に変更しない。"""

    auth_type: str
    config_dir: str
    created_at: str
    description: str | None = None
    api_key_storage: str | None = None  # "keyring" なら set-key 済み（表示用）
    env_overrides: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict, repr=False)

    def to_dict(self) -> dict[str, Any]:
        raw: dict[str, Any] = {
            "authType": self.auth_type,
            "configDir": self.config_dir,
        }
        if self.description is not None:
            raw["description"] = self.description
        raw["createdAt"] = self.created_at
        if self.api_key_storage is not None:
            raw["apiKeyStorage"] = self.api_key_storage
        if self.env_overrides:
            raw["envOverrides"] = dict(self.env_overrides)
        raw.update(self.extra)
        return raw

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Profile:
        overrides = raw.get("envOverrides") or {}
        return cls(
            auth_type=str(raw["authType"]),
            config_dir=str(raw["configDir"]),
            created_at=str(raw["createdAt"]),
            description=raw.get("description"),
            api_key_storage=raw.get("apiKeyStorage"),
            env_overrides=dict(overrides),
            extra={k: v for k, v in raw.items() if k not in _PROFILE_KEYS},
        )


@dataclass
class Registry:
    """永続化される全状態。"""

    active_profile: str = DEFAULT_PROFILE_NAME
    profiles: dict[str, Profile] = field(default_factory=dict)
    version: int = CONFIG_VERSION

    def get(self, name: str) -> Profile | None:
        return self.profiles.get(name)

    def names(self) -> list[str]:
        return list(self.profiles)

    def active(self) -> Profile | None:
        return self.profiles.get(self.active_profile)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "activeProfile": self.active_profile,
            "profiles": {name: p.to_dict() for name, p in self.profiles.items()},
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Registry:
        return cls(
            version=int(raw["version"]),
            active_profile=str(raw["activeProfile"]),
            profiles={str(k): Profile.from_dict(v) for k, v in raw["profiles"].items()},
        )
