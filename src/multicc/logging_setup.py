"""logging の初期化。

- 詳細ログ: `<base>/logs/multicc.log`（ベースディレクトリが既にある時だけ）
- warning 以上: stderr に rich で表示（keyring のフォールバック等をユーザーに見せる）
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

ENV_LOG_LEVEL = "MULTICC_LOG_LEVEL"


def setup_logging(*, root: Path, level: str | None = None) -> None:
    # 既に設定済みなら二重設定しない
    if getattr(setup_logging, "_configured", False):
        return

    if level is None:
        level = os.environ.get(ENV_LOG_LEVEL, "INFO")
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(logging.WARNING if numeric_level > logging.DEBUG else logging.DEBUG)
    root_logger.addHandler(console_handler)

    # ベースディレクトリを勝手に作らない
    if root.is_dir():
        log_dir = root / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_dir / "multicc.log",
            maxBytes=2_000_000,
            backupCount=3,
            encoding="utf-8",
        )
        fmt = logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        root_logger.addHandler(handler)

    logging.getLogger("keyring").setLevel(logging.WARNING)

    setup_logging._configured = True  # type: ignore[attr-defined]
