# services/logging_utils.py
import os
import logging
import logging.config
from pathlib import Path
import re

from meetrelay.constants import REDACTED_LOG_FIELDS


class RedactingFilter(logging.Filter):
    """
    Masks relayed payload bodies in log records.

    Relay debug lines end with ``<field>=<value>`` where the value is an SDP
    blob, an ICE candidate or chat text. Everything after the ``=`` is
    replaced, since SDP and chat values contain spaces and addresses.
    """

    def __init__(self, fields=REDACTED_LOG_FIELDS):
        super().__init__()
        names = "|".join(re.escape(f) for f in fields)
        self.pattern = re.compile(r"\b(%s)=.*" % names)

    def filter(self, record: logging.LogRecord) -> bool:
        msg = self.pattern.sub(r"\1=***", record.getMessage())

        # Formatters must see the redacted text, so the args are inlined
        record.msg = msg
        record.args = ()
        return True


def setup_logging(
        level: str = None,
        logs_dir: str = None,
        log_file: str = "server.log") -> None:
    """
    Configure relay-wide logging: console, daily server log and an error log.

    Args:
        level (str, optional): Logging level. Defaults to LOG_LEVEL or "INFO".
        logs_dir (str, optional): Directory for log files. Defaults to LOG_DIR or "logs";
            created if missing.
        log_file (str, optional): Name of the main log file inside logs_dir.

    Raises:
        OSError: If logs_dir cannot be created.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logs_dir = logs_dir or os.getenv("LOG_DIR", "logs")
    Path(logs_dir).mkdir(parents=True, exist_ok=True)

    file_defaults = {"formatter": "default", "filters": ["redact"], "encoding": "utf-8"}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,          # keep websockets' own logs
        "filters": {"redact": {"()": RedactingFilter}},
        "formatters": {
            "default": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
                "datefmt": "%d-%m-%Y %H:%M:%S",
            },
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler",
                        "formatter": "default",
                        "filters": ["redact"],
                        "level": level},
            "file": {**file_defaults,
                     "class": "logging.handlers.TimedRotatingFileHandler",
                     "filename": str(Path(logs_dir) / log_file),
                     "when": "midnight",
                     "backupCount": 14,
                     "level": level},
            "errors": {**file_defaults,
                       "class": "logging.handlers.RotatingFileHandler",
                       "filename": str(Path(logs_dir) / "server-error.log"),
                       "maxBytes": 10 * 1024 * 1024,
                       "backupCount": 5,
                       "level": "ERROR"},
        },
        "root": {"level": level, "handlers": ["console", "file", "errors"]},
    })
