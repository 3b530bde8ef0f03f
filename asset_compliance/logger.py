import json
import logging
import os
import threading
from pathlib import Path

ROOT_LOGGER_NAME = "asset_compliance"

LOG_FIELDS = {
    "timestamp": "asctime",
    "level": "levelname",
    "logger": "name",
    "module": "module",
    "function": "funcName",
    "line": "lineno",
    "message": "message",
}


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


class SingletonLogger:
    """
    Configures the asset_compliance logger tree once per process.

    Children ("asset_compliance.cache", "asset_compliance.business.plant", ...)
    carry no handlers of their own and propagate to the configured root, so
    the "logger" field of every line names the area that wrote it.
    """
    _instance = None
    _lock = threading.Lock()
    _root = None

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SingletonLogger, cls).__new__(cls)
        return cls._instance

    def get_logger(self, name: str = ROOT_LOGGER_NAME) -> logging.Logger:
        if self._root is None:
            with self._lock:
                if self._root is None:
                    SingletonLogger._root = self._configure_root()
        if name and name.startswith(ROOT_LOGGER_NAME + "."):
            return logging.getLogger(name)
        return self._root

    def _configure_root(self) -> logging.Logger:
        """
        Attach the handlers read from the environment.

        LOG_LEVEL sets the console level (default DEBUG). LOG_TO_FILE (default
        true) adds logs/asset_compliance.log at INFO and logs/errors.log at
        ERROR, both truncated on start.
        """
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(logging.DEBUG)
        root.handlers.clear()

        formatter = JsonFormatter(LOG_FIELDS)

        if _env_flag('LOG_TO_FILE', 'True'):
            Path("logs").mkdir(exist_ok=True)
            root.addHandler(self._handler(
                logging.FileHandler("logs/asset_compliance.log", mode='w', encoding='utf-8'),
                logging.INFO, formatter,
            ))
            root.addHandler(self._handler(
                logging.FileHandler("logs/errors.log", mode='w', encoding='utf-8'),
                logging.ERROR, formatter,
            ))

        console_level = getattr(logging, os.environ.get('LOG_LEVEL', 'DEBUG').upper(), logging.DEBUG)
        root.addHandler(self._handler(logging.StreamHandler(), console_level, formatter))
        return root

    @staticmethod
    def _handler(handler, level, formatter):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        return handler


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    fields maps output keys to LogRecord attributes; exc_info and stack_info
    are appended when present.
    """

    def __init__(self, fields=None, time_format="%Y-%m-%dT%H:%M:%S", msec_format="%s.%03dZ"):
        super().__init__()
        self.fields = fields or {"message": "message"}
        self.default_time_format = time_format
        self.default_msec_format = msec_format

    def usesTime(self) -> bool:
        return "asctime" in self.fields.values()

    def format(self, record) -> str:
        record.message = record.getMessage()
        if self.usesTime():
            record.asctime = self.formatTime(record)

        payload = {key: getattr(record, attribute, None) for key, attribute in self.fields.items()}

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            payload["exc_info"] = record.exc_text
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(payload, default=str)


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger from the asset_compliance tree.

    Args:
        name (str): Dotted name under asset_compliance, e.g. "asset_compliance.cache".
            Any other name returns the root of the tree.

    Returns:
        logging.Logger: Configured logger
    """
    return SingletonLogger().get_logger(name)
