import logging
import logging.config
import os
from datetime import datetime
from logging import Logger

from pytz import timezone

LOGGER_NAME = "support_bridge"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# third-party loggers that are only useful while debugging
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan":    "\033[36m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "red":     "\033[31m",
    "magenta": "\033[35m",
    "blue":    "\033[34m",
    "white":   "\033[37m",
}
_LEVEL_PREFIX = {logging.WARNING: "⚠️ ", logging.ERROR: "⛔ ", logging.CRITICAL: "⛔ "}
_LEVEL_COLOR = {logging.WARNING: "yellow", logging.ERROR: "red", logging.CRITICAL: "red"}


def get_log_level() -> int:
    """Resolve LOG_LEVEL (debug, info, warning, ...) to a logging level. Unknown names fall back to INFO."""
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "info").upper())
    return level if isinstance(level, int) else logging.INFO


class LocalTimeFormatter(logging.Formatter):
    """Formats timestamps in the configured TIMEZONE and prefixes warnings and errors."""

    def __init__(self, tz_name: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record):
        message = _LEVEL_PREFIX.get(record.levelno, "") + record.getMessage()
        # format a copy so other handlers still see the untouched record
        copy = logging.makeLogRecord(record.__dict__)
        copy.msg, copy.args = message, ()
        return super().format(copy)


class ConsoleFormatter(LocalTimeFormatter):
    """Console variant: wraps the line in ANSI color.

    The color comes from the record's ``color`` attribute (see ColorLogger) and
    defaults to yellow for warnings and red for errors.
    """

    def format(self, record) -> str:
        line = super().format(record)
        color_name = getattr(record, "color", None) or _LEVEL_COLOR.get(record.levelno)
        ansi = _COLOR_MAP.get(color_name, "") if color_name else ""
        return f"{ansi}{line}{_ANSI_RESET}" if ansi else line


class ColorLogger:
    """Wrapper around :class:`logging.Logger` whose log methods accept ``color=<name>``.

    Usage::

        logger.info("Menu refreshed", color="green")
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def log(self, level: int, msg, *args, color: str | None = None, **kwargs):
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, **kwargs):
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self.log(logging.ERROR, msg, *args, **kwargs)

    def critical(self, msg, *args, **kwargs):
        self.log(logging.CRITICAL, msg, *args, **kwargs)

    def exception(self, msg, *args, **kwargs):
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, msg, *args, **kwargs)

    def __getattr__(self, name):
        # setLevel, handlers, isEnabledFor, ...
        return getattr(self._logger, name)


def setup_logging() -> ColorLogger:
    """Configure console and rotating file logging and return the application logger.

    Files go to LOG_FILE (default ``$ROOT_DIR/logs/support-bridge.log``).
    """
    level = get_log_level()
    tz_name = os.getenv("TIMEZONE", "Europe/Brussels")
    log_file = os.getenv("LOG_FILE") or os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs", "support-bridge.log")
    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)

    formatter_options = {"fmt": LOG_FORMAT, "datefmt": DATE_FORMAT, "tz_name": tz_name}
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "file": {"()": LocalTimeFormatter, **formatter_options},
            "console": {"()": ConsoleFormatter, **formatter_options},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "level": level,
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "file",
                "level": level,
                "filename": log_file,
                "maxBytes": 5 * 1024 * 1024,
                "backupCount": 3,
                "encoding": "utf-8",
            },
        },
        "root": {"handlers": ["console", "file"], "level": level},
    })

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level == logging.DEBUG else logging.WARNING)

    return ColorLogger(logging.getLogger(LOGGER_NAME))
