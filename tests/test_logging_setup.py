import logging
from pathlib import Path

import pytest

from multicc.logging_setup import setup_logging


@pytest.fixture()
def fresh_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    setup_logging._configured = False  # type: ignore[attr-defined]
    yield root
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    setup_logging._configured = False  # type: ignore[attr-defined]


def test_no_log_dir_when_base_missing(tmp_path: Path, fresh_logging) -> None:
    base = tmp_path / "missing"
    setup_logging(root=base)
    assert not base.exists()


def test_file_log_when_base_exists(tmp_path: Path, fresh_logging) -> None:
    setup_logging(root=tmp_path, level="DEBUG")
    logging.getLogger("multicc.test").info("hello log")
    for h in fresh_logging.handlers:
        h.flush()
    assert "hello log" in (tmp_path / "logs" / "multicc.log").read_text(encoding="utf-8")
