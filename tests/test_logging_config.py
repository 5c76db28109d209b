from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from logging_config import SecretFilter, build_handlers, secrets_from_env


def _record(msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord("tgreserve", logging.INFO, __file__, 1, msg, args, None)


def test_secret_filter_masks_values_in_arguments() -> None:
    record = _record("calling with key %s", "sk-secret-123")
    assert SecretFilter(["sk-secret-123"]).filter(record) is True
    assert record.getMessage() == "calling with key ***"


def test_secret_filter_masks_longest_secret_first() -> None:
    record = _record("token abc123xyz")
    SecretFilter(["abc", "abc123xyz"]).filter(record)
    assert record.getMessage() == "token ***"


def test_secret_filter_leaves_clean_records_untouched() -> None:
    record = _record("hello %s", "world")
    SecretFilter(["nope"]).filter(record)
    assert record.msg == "hello %s"
    assert record.args == ("world",)


def test_secrets_from_env_skips_unset(monkeypatch) -> None:
    monkeypatch.setenv("TGRESERVE_TEST_SECRET", "value")
    monkeypatch.delenv("TGRESERVE_TEST_MISSING", raising=False)
    assert secrets_from_env(["TGRESERVE_TEST_SECRET", "TGRESERVE_TEST_MISSING"]) == ["value"]


def test_build_handlers_creates_rotating_file_under_project_root(tmp_path) -> None:
    config = {"console": False, "file": {"enabled": True, "path": "logs/app.log", "backup_count": 2}}
    handlers = build_handlers(config, str(tmp_path))
    try:
        assert len(handlers) == 1
        handler = handlers[0]
        assert isinstance(handler, RotatingFileHandler)
        assert handler.backupCount == 2
        assert (tmp_path / "logs").is_dir()
        assert any(isinstance(f, SecretFilter) for f in handler.filters)
    finally:
        for handler in handlers:
            handler.close()


def test_build_handlers_console_only_by_default(tmp_path) -> None:
    handlers = build_handlers({}, str(tmp_path))
    assert len(handlers) == 1
    assert type(handlers[0]) is logging.StreamHandler
