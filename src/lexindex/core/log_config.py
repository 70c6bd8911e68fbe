from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from lexindex.core.environment import CLIENT_LOGGERS, EnvironmentConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(log_level: str = None) -> None:
    """
    Console logging plus a rotating log file.

    LOG_FILE / LOG_MAX_BYTES / LOG_BACKUP_COUNT control the file handler;
    an empty LOG_FILE disables it. Outside debug mode the HTTP client
    libraries are held at WARNING.
    """
    env_config = EnvironmentConfig.from_env()
    log_level = log_level or env_config.log_level
    project_root = os.path.abspath(
        os.path.join(os.path.dirname(__file__), "..", "..", "..")
    )
    log_file = os.getenv(
        "LOG_FILE",
        os.path.join(project_root, "logs", "lexindex.log"),
    )
    log_max_bytes = int(os.getenv("LOG_MAX_BYTES", "10485760"))
    log_backup_count = int(os.getenv("LOG_BACKUP_COUNT", "5"))

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_dir = os.path.dirname(log_file)
        try:
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file, maxBytes=log_max_bytes, backupCount=log_backup_count
            )
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            handlers.append(file_handler)
        except OSError:
            # Fall back to console logging if file logging fails.
            pass

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    for name in CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(env_config.client_log_level)
