"""Logging setup for tgreserve.

Driven by the ``logging`` section of config.json. Values of secret
environment variables are masked in every record before it is written.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_PATH = "logs/tgreserve.log"

# Env vars whose values never reach a log line, unless config overrides the list.
DEFAULT_SECRET_ENV = ("API_HASH", "OPENAI_API_KEY", "SESSION", "2FA")

# Libraries that log every request at INFO.
NOISY_LOGGERS = ("telethon", "httpx", "openai")


class SecretFilter(logging.Filter):
    """Replace known secret values in the rendered message with ***."""

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__()
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self._secrets:
            masked = masked.replace(secret, "***")
        if masked != message:
            record.msg = masked
            record.args = ()
        return True


def secrets_from_env(names: Iterable[str]) -> list[str]:
    return [value for value in (os.getenv(name) for name in names) if value]


def build_handlers(config: dict, project_root: str) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", DEFAULT_LOG_PATH)
        if not os.path.isabs(path):
            path = os.path.join(project_root, path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    secret_filter = SecretFilter(secrets_from_env(config.get("redact_env", DEFAULT_SECRET_ENV)))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(secret_filter)
    return handlers


def configure_logging(config: Optional[dict], project_root: str) -> None:
    """Install handlers on the root logger; no-op unless logging.enabled."""

    config = config or {}
    if not config.get("enabled", False):
        return

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    handlers = build_handlers(config, project_root)
    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
