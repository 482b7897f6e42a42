"""Console logging for safe-proposer."""

import logging
import os
import sys

# Below DEBUG; raw RPC and HTTP chatter
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Third-party loggers that flood DEBUG output
NOISY_LOGGERS = ("web3", "urllib3", "safe_eth")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that paints the level name with ANSI colors."""

    LEVEL_COLORS = {
        TRACE: "\033[90m",
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        # Work on a copy so other handlers see the plain level name
        painted = logging.makeLogRecord(record.__dict__)
        painted.levelname = f"{color}{self.BOLD}{record.levelname}{self.RESET}"
        return super().format(painted)


def _resolve_level(level_name: str) -> int:
    if level_name == "TRACE":
        return TRACE
    return getattr(logging, level_name, logging.INFO)


def setup_logging(log_level: str | None = None) -> None:
    """Configure the root logger with one colored stdout handler.

    ``log_level`` wins over the LOG_LEVEL environment variable; INFO is the
    fallback. At DEBUG the third-party loggers stay at WARNING so the gas,
    hash and relay messages remain readable. TRACE lets everything through.
    """
    level_name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logging.basicConfig(level=_resolve_level(level_name), handlers=[handler], force=True)

    if level_name == "DEBUG":
        noisy_level = logging.WARNING
    elif level_name == "TRACE":
        noisy_level = TRACE
    else:
        return
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Usually __name__ of the calling module
    """
    return logging.getLogger(name)
