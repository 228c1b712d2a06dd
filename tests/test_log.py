import logging

import pytest
from rich.logging import RichHandler

from regforge import log


@pytest.fixture
def fresh_root(monkeypatch):
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    monkeypatch.setattr(log, "_configured", False)
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_installs_one_rich_handler(fresh_root):
    log.setup_logging("debug")
    log.setup_logging("error")
    rich_handlers = [h for h in fresh_root.handlers if isinstance(h, RichHandler)]
    assert len(rich_handlers) == 1
    assert fresh_root.level == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.WARNING


def test_unknown_level_falls_back_to_info(fresh_root):
    log.setup_logging("chatty")
    assert fresh_root.level == logging.INFO
