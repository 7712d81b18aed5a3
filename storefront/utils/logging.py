# utils/logging.py
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from storefront.config import LOG_DIR, LOG_LEVEL

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"

# file name -> (level, rotation, retention)
FILE_SINKS = {
    "app.log": (LOG_LEVEL, "500 MB", "10 days"),
    "error.log": ("ERROR", "100 MB", "30 days"),
}


class AppLogger:
    """Process-wide loguru setup: a console sink, plus rotating files when LOG_DIR is set."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._configure(LOG_DIR, LOG_LEVEL)
        return cls._instance

    def _configure(self, log_dir: str, level: str):
        logger.remove()
        logger.add(sys.stdout, colorize=True, format=CONSOLE_FORMAT, level=level)

        self.log_path: Optional[Path] = Path(log_dir) if log_dir else None
        if self.log_path is not None:
            self.log_path.mkdir(parents=True, exist_ok=True)
            for filename, (sink_level, rotation, retention) in FILE_SINKS.items():
                logger.add(
                    self.log_path / filename,
                    rotation=rotation,
                    retention=retention,
                    compression="zip",
                    format=FILE_FORMAT,
                    level=sink_level,
                )

    @staticmethod
    def get_logger(name: Optional[str] = None):
        return logger.bind(module=name or "storefront")


app_logger = AppLogger()


def get_logger(name: Optional[str] = None):
    """Logger bound to the calling module, e.g. ``get_logger(__name__)``."""
    return app_logger.get_logger(name)
