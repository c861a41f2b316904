"""multicc CLI エントリポイント。"""

from __future__ import annotations

import os
import shutil
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from multicc.argv import split_profile_args
from multicc.config import load_config, resolve_profile_name, save_config
from multicc.credentials import CredentialStatus, get_credential_status
from multicc.display import redact, status_table
from multicc.environment import build_profile_env
from multicc.errors import MulticcError, ProfileError
from multicc.launcher import CLAUDE_COMMAND, default_shell, run_with_profile
from multicc.logging_setup import setup_logging
from multicc.models import (
    API_KEY_STORAGE_KEYRING,
    AUTH_API_KEY,
    AUTH_OAUTH,
    AUTH_TYPES,
    DEFAULT_PROFILE_NAME,
    Registry,
)
from multicc.paths import ENV_PROFILE, multicc_dir
from multicc.profiles import (
    create_profile,
    delete_profile,
    get_profile,
    import_profile,
    purge_profile_data,
    switch_profile,
)
from multicc.secret_store import SecretStore
from multicc.shell_init import SHELLS, detect_shell, render_shell_init

APP_HELP = "Manage multiple Claude Code accounts"

PASSTHROUGH_SETTINGS = {
    "allow_extra_args": True,
    "ignore_unknown_options": True,
    "allow_interspersed_args": False,
}

app = typer.Typer(add_completion=False, help=APP_HELP, no_args_is_help=False)
profile_app = typer.Typer(help="All profile commands (show, delete, import, ...)")
app.add_typer(profile_app, name="profile")
app.add_typer(profile_app, name="p", hidden=True)

console = Console()
err_console = Console(stderr=True)


def _version() -> str:
    try:
        return version("multicc")
    except PackageNotFoundError:
        return "0.0.0"


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"multicc {_version()}")
        raise typer.Exit()


@contextmanager
def _user_errors() -> Iterator[None]:
    try:
        yield
    except (MulticcError, OSError) as e:
        err_console.print(f"❌ {e}", style="red", markup=False)
        raise typer.Exit(code=1) from e


def _secrets(ctx: typer.Context) -> SecretStore:
    obj = ctx.find_root().obj
    if not isinstance(obj, SecretStore):
        obj = SecretStore()
        ctx.find_root().obj = obj
    return obj


def _exit_with(code: int) -> None:
    raise typer.Exit(code=code)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="詳細ログを出す"),
    show_version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="バージョンを表示",
    ),
) -> None:
    """Claude Code を複数アカウントで使い分ける。"""
    setup_logging(root=multicc_dir(), level="DEBUG" if verbose else None)
    if ctx.obj is None:
        ctx.obj = SecretStore()
    if ctx.invoked_subcommand is not None:
        return

    with _user_errors():
        registry = load_config()
    active = registry.active()
    if not registry.profiles:
        console.print("Welcome to multicc! No profiles configured yet.", style="bold")
        console.print("  To get started, create your first profile:")
        console.print("    multicc profile create <name> --auth-type oauth", style="cyan")
        console.print("  Or import your existing Claude Code config:")
        console.print("    multicc profile import --name default", style="cyan")
        return
    if active is None:
        console.print(f"Active profile \"{registry.active_profile}\" not found.", style="yellow")
        return
    console.print(f"Active profile: {registry.active_profile} ({active.auth_type})")


# ---------------------------------------------------------------------------
# profile management
# ---------------------------------------------------------------------------


AUTH_TYPE_HELP = f"Auth type ({', '.join(AUTH_TYPES)})"


@app.command("create")
@profile_app.command("create")
@profile_app.command("new", hidden=True)
def create_cmd(
    name: str = typer.Argument(..., help="プロファイル名"),
    auth_type: str = typer.Option(AUTH_OAUTH, "--auth-type", help=AUTH_TYPE_HELP),
    description: str | None = typer.Option(None, "--description", help="説明"),
) -> None:
    """Create a new profile."""
    with _user_errors():
        registry = load_config()
        profile = create_profile(registry, name, auth_type=auth_type, description=description)
        save_config(registry)

    console.print(f"✅ Created profile: {name} ({profile.auth_type})", style="green")
    console.print(f"   config dir: {profile.config_dir}", style="dim")
    if profile.auth_type == AUTH_API_KEY:
        console.print(f"   next: multicc set-key {name}", style="dim")
    elif profile.auth_type == AUTH_OAUTH:
        console.print(f"   next: multicc login {name}", style="dim")
    else:
        console.print(f"   next: set {profile.auth_type} variables in envOverrides", style="dim")


@app.command("use")
@app.command("switch", hidden=True)
@profile_app.command("switch")
@profile_app.command("use", hidden=True)
def use_cmd(name: str = typer.Argument(..., help="プロファイル名")) -> None:
    """Switch active profile."""
    with _user_errors():
        registry = load_config()
        profile = switch_profile(registry, name)
        save_config(registry)
    console.print(f"✅ Switched to profile: {name} ({profile.auth_type})", style="green")


@app.command("list")
@app.command("ls", hidden=True)
@profile_app.command("list")
@profile_app.command("ls", hidden=True)
def list_cmd() -> None:
    """List all profiles."""
    with _user_errors():
        registry = load_config()
    if not registry.profiles:
        console.print('No profiles configured. Run "multicc profile create <name>" to get started.')
        return
    for name, p in registry.profiles.items():
        marker = "*" if name == registry.active_profile else " "
        desc = f"  {escape(p.description)}" if p.description else ""
        console.print(f"{marker} {name} ({p.auth_type}){desc}")


@profile_app.command("show")
@profile_app.command("info", hidden=True)
def show_cmd(ctx: typer.Context, name: str | None = typer.Argument(None)) -> None:
    """Show profile details."""
    with _user_errors():
        registry = load_config()
        profile_name = resolve_profile_name(registry, name)
        profile = get_profile(registry, profile_name)
    status = get_credential_status(profile_name, profile, _secrets(ctx))
    state = "authenticated" if status.authenticated else "not authenticated"
    active = " (active)" if profile_name == registry.active_profile else ""

    console.print(f"[bold]{profile_name}[/bold]{active}")
    console.print(f"  auth type:   {profile.auth_type}")
    console.print(f"  config dir:  {profile.config_dir}")
    console.print(f"  created at:  {profile.created_at}")
    if profile.description:
        console.print(f"  description: {escape(profile.description)}")
    if profile.api_key_storage:
        console.print(f"  api key:     stored ({profile.api_key_storage})")
    console.print(f"  status:      {state} ({status.method})")
    for key in sorted(profile.env_overrides):
        console.print(f"  env:         {key}={redact(profile.env_overrides[key])}")


@profile_app.command("delete")
@profile_app.command("rm", hidden=True)
def delete_cmd(ctx: typer.Context, name: str = typer.Argument(...)) -> None:
    """Delete a profile."""
    with _user_errors():
        registry = load_config()
        profile = get_profile(registry, name)
        new_active = delete_profile(registry, name)
        save_config(registry)
        purge_profile_data(name, profile, _secrets(ctx))
    console.print(f"✅ Deleted profile: {name}", style="green")
    if new_active is not None:
        console.print(f"   active profile is now: {new_active}", style="yellow")


@profile_app.command("import")
def import_cmd(
    name: str = typer.Option(DEFAULT_PROFILE_NAME, "--name", help="Profile name"),
    source: Path | None = typer.Option(None, "--from", help="Source config directory"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing profile"),
) -> None:
    """Import existing Claude config into a profile."""
    with _user_errors():
        registry = load_config()
        profile = import_profile(registry, name=name, source=source, force=force)
        save_config(registry)
    console.print(f"✅ Imported profile: {name}", style="green")
    console.print(f"   config dir: {profile.config_dir}", style="dim")


# ---------------------------------------------------------------------------
# session
# ---------------------------------------------------------------------------


def _load_target(name: str | None) -> tuple[Registry, str]:
    registry = load_config()
    profile_name = resolve_profile_name(registry, name)
    get_profile(registry, profile_name)
    return registry, profile_name


def _spawn(argv: list[str], overlay: dict[str, str | None], what: str) -> int:
    try:
        return run_with_profile(argv, overlay)
    except OSError as e:
        err_console.print(f"❌ Failed to {what}: {e}", style="red", markup=False)
        raise typer.Exit(code=1) from e


@app.command("launch", context_settings=PASSTHROUGH_SETTINGS)
def launch_cmd(ctx: typer.Context) -> None:
    """Launch Claude Code with a profile: multicc launch NAME ARGS...

    All flags after the profile name are forwarded to Claude Code.
    Use `--` when omitting the profile name: multicc launch -- --model sonnet
    """
    with _user_errors():
        registry = load_config()
        split = split_profile_args(registry, ctx.args)
        profile = get_profile(registry, split.profile)
    env = build_profile_env(split.profile, profile, _secrets(ctx))

    err_console.print(f"Launching claude with profile: {split.profile}", style="cyan")
    _exit_with(_spawn([CLAUDE_COMMAND, *split.passthrough], env, "launch claude"))


@app.command("exec", context_settings=PASSTHROUGH_SETTINGS)
def exec_cmd(ctx: typer.Context) -> None:
    """Run a command with profile environment: multicc exec NAME COMMAND..."""
    with _user_errors():
        registry = load_config()
        split = split_profile_args(registry, ctx.args)
        profile = get_profile(registry, split.profile)
        if not split.passthrough:
            raise ProfileError("No command specified. Usage: multicc exec [name] -- <command...>")
    env = build_profile_env(split.profile, profile, _secrets(ctx))
    _exit_with(_spawn(split.passthrough, env, "execute command"))


@app.command("shell")
def shell_cmd(ctx: typer.Context, name: str | None = typer.Argument(None)) -> None:
    """Open a subshell with profile environment."""
    with _user_errors():
        registry, profile_name = _load_target(name)
    env = build_profile_env(profile_name, registry.profiles[profile_name], _secrets(ctx))

    err_console.print(
        f"Entering multicc shell for profile: {profile_name}. Type 'exit' to return.",
        style="cyan",
    )
    _exit_with(_spawn([default_shell()], env, "open shell"))


@app.command("login")
def login_cmd(ctx: typer.Context, name: str | None = typer.Argument(None)) -> None:
    """Run the OAuth login for a profile."""
    with _user_errors():
        registry, profile_name = _load_target(name)
        profile = registry.profiles[profile_name]
        if profile.auth_type != AUTH_OAUTH:
            raise ProfileError(
                f'Profile "{profile_name}" uses auth type "{profile.auth_type}". '
                'Login is only for OAuth profiles. Use "multicc set-key" for API key profiles.'
            )
    secrets = _secrets(ctx)
    env = build_profile_env(profile_name, profile, secrets)

    err_console.print(f"Starting OAuth login for profile: {profile_name}", style="cyan")
    code = _spawn([CLAUDE_COMMAND, "auth", "login"], env, "start login")
    if code != 0:
        err_console.print(f"❌ Login failed: process exited with code {code}", style="red")
        raise typer.Exit(code=1)

    status = get_credential_status(profile_name, profile, secrets)
    if not status.authenticated:
        err_console.print(
            f"❌ Login did not complete. Credentials not found for profile: {profile_name}",
            style="red",
        )
        raise typer.Exit(code=1)
    console.print(f"✅ Login successful for profile: {profile_name}", style="green")


# ---------------------------------------------------------------------------
# credentials
# ---------------------------------------------------------------------------


def validate_key_format(key: str) -> bool:
    return key.startswith("sk-ant-") or key.startswith("sk-") or len(key) > 20


def _read_key(from_env: str | None) -> str:
    if from_env:
        value = os.environ.get(from_env)
        if not value:
            raise ProfileError(f'Environment variable "{from_env}" is not set.')
        return value
    if not sys.stdin.isatty():
        return sys.stdin.read().strip()
    return typer.prompt("Enter API key", hide_input=True, default="", show_default=False).strip()


@app.command("set-key")
def set_key_cmd(
    ctx: typer.Context,
    name: str | None = typer.Argument(None),
    from_env: str | None = typer.Option(
        None, "--from-env", help="Read key from environment variable"
    ),
) -> None:
    """Store an API key for a profile."""
    with _user_errors():
        registry, profile_name = _load_target(name)
        profile = registry.profiles[profile_name]
        if profile.auth_type != AUTH_API_KEY:
            raise ProfileError(
                f'Profile "{profile_name}" uses auth type "{profile.auth_type}". '
                "set-key is only for api-key profiles."
            )
        api_key = _read_key(from_env)
        if not api_key:
            raise ProfileError("No API key provided.")
        if not validate_key_format(api_key):
            raise ProfileError("Invalid API key format. Expected a key starting with 'sk-ant-' or 'sk-'.")

        _secrets(ctx).store(profile_name, api_key)
        profile.api_key_storage = API_KEY_STORAGE_KEYRING
        save_config(registry)

    console.print(f"✅ API key stored for profile: {profile_name} ({redact(api_key)})", style="green")


@app.command("status")
def status_cmd(ctx: typer.Context) -> None:
    """Show status of all profiles."""
    with _user_errors():
        registry = load_config()
    if not registry.profiles:
        console.print('No profiles configured. Run "multicc profile create <name>" to get started.')
        return

    secrets = _secrets(ctx)
    statuses: dict[str, CredentialStatus | None] = {}
    for name, profile in registry.profiles.items():
        try:
            statuses[name] = get_credential_status(name, profile, secrets)
        except ValueError:
            statuses[name] = None
    console.print(status_table(registry, statuses))


# ---------------------------------------------------------------------------
# shell integration / maintenance
# ---------------------------------------------------------------------------


@app.command("shell-init")
def shell_init_cmd(
    shell: str | None = typer.Option(None, "--shell", help=f"Shell type ({', '.join(SHELLS)})"),
) -> None:
    """Output shell integration code."""
    with _user_errors():
        script = render_shell_init(shell or detect_shell())
    sys.stdout.write(script)


@app.command("_resolve-config-dir", hidden=True)
def resolve_config_dir_cmd() -> None:
    """シェル統合用: 使うべき CLAUDE_CONFIG_DIR を出力する。失敗時は何も出さず exit 1。"""
    try:
        registry = load_config()
    except MulticcError:
        raise typer.Exit(code=1) from None
    name = os.environ.get(ENV_PROFILE) or registry.active_profile
    profile = registry.get(name)
    if profile is None:
        raise typer.Exit(code=1)
    sys.stdout.write(profile.config_dir)


@app.command("prune")
def prune_cmd(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Skip confirmation prompt"),
) -> None:
    """Remove all multicc data, profiles, and credentials."""
    base = multicc_dir()
    if not base.exists():
        err_console.print("Nothing to remove. No multicc data directory found.", style="yellow")
        return

    names: list[str] = []
    try:
        names = load_config().names()
    except MulticcError:
        # 壊れていてもディレクトリは消す
        pass

    console.print("This will permanently remove [bold]all[/bold] multicc data:")
    console.print(f"  Directory: {base}")
    if names:
        console.print(f"  Profiles:  {', '.join(names)}")
        console.print("  Keyring:   OS keyring entries for each profile")

    if not force:
        if not sys.stdin.isatty():
            err_console.print("❌ Refusing to prune without confirmation. Use --force to skip.", style="red")
            raise typer.Exit(code=1)
        if not typer.confirm("Are you sure? This cannot be undone.", default=False):
            console.print("Aborted.", style="yellow")
            return

    secrets = _secrets(ctx)
    for name in names:
        secrets.delete(name)

    try:
        shutil.rmtree(base)
    except OSError as e:
        err_console.print(f"❌ Failed to remove {base}: {e}", style="red", markup=False)
        raise typer.Exit(code=1) from e

    console.print("✅ All multicc data has been removed.", style="green")
    if names:
        console.print(f"   Removed {len(names)} profile(s): {', '.join(names)}", style="dim")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
