import logging

import pytest

from centerline.core.utils.log_setup import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_rotating_file_and_console_handlers(tmp_path, restore_root_logger):
    log_file = tmp_path / "log" / "centerline.log"
    root = setup_logging(str(log_file), "DEBUG", "ERROR")

    kinds = sorted(type(h).__name__ for h in root.handlers)
    assert kinds == ["RotatingFileHandler", "StreamHandler"]
    logging.getLogger("centerline.test").info("hello from the test")
    for handler in root.handlers:
        handler.flush()
    assert "hello from the test" in log_file.read_text(encoding="utf-8")
    assert logging.getLogger("matplotlib").level == logging.WARNING


def test_repeated_setup_does_not_duplicate_handlers(tmp_path, restore_root_logger):
    setup_logging(str(tmp_path / "a.log"))
    root = setup_logging(str(tmp_path / "b.log"))
    assert len(root.handlers) == 2
