"""로깅 설정 테스트"""

import logging

import pytest

from src.utils import setup_logging


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)


def test_category_files(tmp_path, restore_root):
    log_dir = setup_logging(tmp_path / "logs")
    logging.getLogger("src.trigger.scheduler").info("트리거 테스트")
    logging.getLogger("src.ai.generation_client").info("생성 테스트")
    for h in logging.getLogger().handlers:
        h.flush()

    assert log_dir == tmp_path / "logs"
    assert "트리거 테스트" in (log_dir / "trigger.log").read_text(encoding="utf-8")
    assert "트리거 테스트" not in (log_dir / "ai.log").read_text(encoding="utf-8")
    assert "생성 테스트" in (log_dir / "app.log").read_text(encoding="utf-8")
    assert (log_dir / "error.log").read_text(encoding="utf-8") == ""


def test_noisy_loggers_capped(tmp_path, restore_root, monkeypatch):
    monkeypatch.setenv("NOISY_LOG_LEVEL", "ERROR")
    setup_logging(tmp_path)
    assert logging.getLogger("httpx").level == logging.ERROR
    assert logging.getLogger("uvicorn.access").level == logging.ERROR
