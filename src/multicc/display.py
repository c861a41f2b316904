"""表示用の補助（秘密情報のマスク、期限の表示、status テーブル）。"""

from __future__ import annotations

import time

from rich.table import Table

from multicc.credentials import CredentialStatus
from multicc.models import Registry


def redact(value: str) -> str:
    if len(value) < 12:
        return "****"
    return f"{value[:8]}...{value[-4:]}"


def format_expiry(expires_at: float, now_ms: float | None = None) -> str:
    if now_ms is None:
        now_ms = time.time() * 1000
    diff = expires_at - now_ms
    minutes = int(abs(diff) // 60000)
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        span = f"{days}d {hours % 24}h"
    elif hours > 0:
        span = f"{hours}h {minutes % 60}m"
    else:
        span = f"{minutes}m"
    return f"expires in {span}" if diff > 0 else f"expired {span} ago"


def format_auth_status(status: CredentialStatus | None) -> str:
    if status is None:
        return "[red]error[/red]"
    if status.authenticated:
        return "[green]authenticated[/green]"
    if status.expired:
        return "[yellow]expired[/yellow]"
    return "[red]not configured[/red]"


def status_table(
    registry: Registry,
    statuses: dict[str, CredentialStatus | None],
    *,
    now_ms: float | None = None,
) -> Table:
    table = Table(box=None, header_style="bold", pad_edge=False)
    for header in ("Name", "Active", "Auth Type", "Status", "Expiry"):
        table.add_column(header)

    for name, profile in registry.profiles.items():
        st = statuses.get(name)
        expiry = ""
        if st is not None and st.expires_at is not None:
            expiry = format_expiry(st.expires_at, now_ms)
        table.add_row(
            name,
            "*" if name == registry.active_profile else "",
            profile.auth_type,
            format_auth_status(st),
            expiry,
        )
    return table
