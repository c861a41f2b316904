"""プロファイルの作成/切替/削除/インポート。

レジストリ（Registry）をメモリ上で変更するだけで、保存は呼び出し側
（CLI）が save_config で行う。ディレクトリやシークレットの後始末はここで行う。
"""

from __future__ import annotations

import logging
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path

from multicc.errors import ProfileError
from multicc.models import AUTH_OAUTH, AUTH_TYPES, DEFAULT_PROFILE_NAME, Profile, Registry
from multicc.paths import claude_default_dir, profile_dir, profiles_dir
from multicc.secret_store import SecretStore

log = logging.getLogger(__name__)

MAX_NAME_LENGTH = 32
_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9-]*$")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def validate_profile_name(name: str) -> None:
    if not name:
        raise ProfileError("Profile name cannot be empty.")
    if len(name) > MAX_NAME_LENGTH:
        raise ProfileError(f"Profile name must be {MAX_NAME_LENGTH} characters or less.")
    if not _NAME_RE.match(name):
        raise ProfileError(
            f'Invalid profile name "{name}": '
            "must be alphanumeric with hyphens only, starting with a letter or number."
        )


def get_profile(registry: Registry, name: str) -> Profile:
    profile = registry.get(name)
    if profile is None:
        raise ProfileError(
            f'Profile "{name}" not found. Run "multicc profile list" to see available profiles.'
        )
    return profile


def _make_active_if_dangling(registry: Registry, name: str) -> None:
    if registry.active_profile not in registry.profiles:
        registry.active_profile = name


def create_profile(
    registry: Registry,
    name: str,
    *,
    auth_type: str = AUTH_OAUTH,
    description: str | None = None,
) -> Profile:
    validate_profile_name(name)
    if name in registry.profiles:
        raise ProfileError(f'Profile "{name}" already exists.')
    if auth_type not in AUTH_TYPES:
        raise ProfileError(
            f'Invalid auth type "{auth_type}". Expected one of: {", ".join(AUTH_TYPES)}.'
        )

    config_dir = profile_dir(name)
    config_dir.mkdir(parents=True, exist_ok=True)

    profile = Profile(
        auth_type=auth_type,
        config_dir=str(config_dir),
        created_at=_now_iso(),
        description=description or None,
    )
    registry.profiles[name] = profile
    _make_active_if_dangling(registry, name)
    log.info("created profile %s (%s)", name, auth_type)
    return profile


def switch_profile(registry: Registry, name: str) -> Profile:
    profile = get_profile(registry, name)
    registry.active_profile = name
    return profile


def _is_managed_dir(path: Path) -> bool:
    try:
        path.resolve().relative_to(profiles_dir().resolve())
    except ValueError:
        return False
    return True


def delete_profile(registry: Registry, name: str) -> str | None:
    """レジストリから外す。アクティブを消した場合は新しいアクティブ名を返す。

    新しいアクティブは残りのうち辞書順で最初のもの。シークレットや
    ディレクトリには触れないので、保存に成功してから purge_profile_data を呼ぶ。
    """
    get_profile(registry, name)
    if len(registry.profiles) == 1:
        raise ProfileError(f'Cannot delete "{name}": it is the only remaining profile.')

    del registry.profiles[name]
    if registry.active_profile == name:
        registry.active_profile = sorted(registry.profiles)[0]
        return registry.active_profile
    return None


def purge_profile_data(name: str, profile: Profile, secrets: SecretStore) -> None:
    """削除済みプロファイルのシークレットと管理下ディレクトリを消す。"""
    secrets.delete(name)
    config_dir = Path(profile.config_dir)
    if config_dir.exists() and _is_managed_dir(config_dir):
        shutil.rmtree(config_dir, ignore_errors=True)


def import_profile(
    registry: Registry,
    *,
    name: str = DEFAULT_PROFILE_NAME,
    source: Path | None = None,
    force: bool = False,
) -> Profile:
    """既存の claude 設定ディレクトリをコピーして oauth プロファイルにする。"""
    validate_profile_name(name)
    if source is None:
        source = claude_default_dir()
    source = source.expanduser()
    if not source.is_dir():
        raise ProfileError(f"Source config directory not found: {source}")
    existing = registry.get(name)
    if existing is not None and not force:
        raise ProfileError(f'Profile "{name}" already exists. Use --force to overwrite.')
    if existing is not None and existing.auth_type != AUTH_OAUTH:
        raise ProfileError(
            f'Profile "{name}" uses auth type "{existing.auth_type}"; '
            "import only replaces oauth profiles."
        )

    target = profile_dir(name)
    if target.exists() and existing is None and not force:
        raise ProfileError(
            f'Directory {target} already exists but is not a registered profile. '
            "Use --force to overwrite."
        )
    if target.exists() and force:
        shutil.rmtree(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source, target, symlinks=True)

    profile = Profile(
        auth_type=AUTH_OAUTH,
        config_dir=str(target),
        created_at=existing.created_at if existing is not None else _now_iso(),
        description=f"Imported from {source}",
    )
    registry.profiles[name] = profile
    _make_active_if_dangling(registry, name)
    log.info("imported %s into profile %s", source, name)
    return profile
