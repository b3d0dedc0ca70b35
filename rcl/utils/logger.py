"""
Logging system for the rule codec.
Provides human-readable console logs with optional file output.

Library modules log through logging.getLogger(__name__), which places them
under the "rcl" logger configured here.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

# ANSI color codes for terminal output
class Colors:
    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    BOLD = "\033[1m"


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.CYAN,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record):
        # Copy so file handlers on the same logger see the plain record
        record = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        record.levelname = f"{color}{record.levelname}{Colors.RESET}"
        record.msg = f"{color}{record.msg}{Colors.RESET}"
        return super().format(record)


class RclLogger:
    """
    Central logging system for the rule codec.

    Features:
    - Console output with colors (plain when color is disabled)
    - Optional daily file output
    - Separate errors log for ERROR and CRITICAL records (optional)
    """

    _instance: Optional['RclLogger'] = None
    _initialized: bool = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(
        self,
        log_dir: str = "logs",
        log_level: str = "INFO",
        log_to_file: bool = False,
        use_color: bool = True,
        errors_separately: bool = True,
    ):
        if RclLogger._initialized:
            return

        self.log_dir = Path(log_dir)
        self.log_to_file = log_to_file
        self.use_color = use_color
        if log_to_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self.main_logger = self._create_logger("rcl", log_level)
        self.error_logger: Optional[logging.Logger] = None
        if errors_separately:
            self.error_logger = self._create_logger("rcl.errors", "ERROR", "errors")
            # Errors are written by error_logger's own handlers
            self.error_logger.propagate = False

        RclLogger._initialized = True

    def _create_logger(self, name: str, level: str, file_prefix: str = None) -> logging.Logger:
        """Create a configured logger instance."""
        logger = logging.getLogger(name)
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        logger.handlers.clear()

        console_handler = logging.StreamHandler()
        if self.use_color:
            console_handler.setFormatter(ColoredFormatter(
                "%(asctime)s | %(levelname)s | %(message)s",
                datefmt="%H:%M:%S"
            ))
        else:
            console_handler.setFormatter(logging.Formatter(
                "%(asctime)s | %(levelname)s | %(message)s",
                datefmt="%H:%M:%S"
            ))
        logger.addHandler(console_handler)

        # File handler (plain text, no colors)
        if self.log_to_file:
            prefix = file_prefix or "rcl"
            log_file = self.log_dir / f"{prefix}_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(logging.Formatter(
                "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            ))
            logger.addHandler(file_handler)

        return logger

    def info(self, msg: str, *args, **kwargs):
        """Log info message."""
        self.main_logger.info(msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        """Log debug message."""
        self.main_logger.debug(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        """Log warning message."""
        self.main_logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        """Log error message."""
        self.main_logger.error(msg, *args, **kwargs)
        if self.error_logger:
            self.error_logger.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args, **kwargs):
        """Log critical message."""
        self.main_logger.critical(msg, *args, **kwargs)
        if self.error_logger:
            self.error_logger.critical(msg, *args, **kwargs)

    def rule(self, action: str, name: str, **kwargs):
        """
        Log a rule-level action with structured format.

        Args:
            action: COMPILED, DECOMPILED, INVALID
            name: Rule name
            **kwargs: Additional fields (e.g., cells=12, effects=2)
        """
        parts = [f"[{action}]", f"rule={name}"]
        for key, value in kwargs.items():
            parts.append(f"{key}={value}")

        msg = " | ".join(parts)
        if action == "INVALID":
            self.main_logger.warning(msg)
        else:
            self.main_logger.info(msg)


# Global logger instance
_logger: Optional[RclLogger] = None


def get_logger(
    log_dir: str = "logs",
    log_level: str = "INFO",
    log_to_file: bool = False,
    use_color: bool = True,
    errors_separately: bool = True,
) -> RclLogger:
    """Get or create the global logger instance."""
    global _logger
    if _logger is None:
        _logger = RclLogger(log_dir, log_level, log_to_file, use_color, errors_separately)
    return _logger


def setup_logger(
    log_dir: str = "logs",
    log_level: str = "INFO",
    log_to_file: bool = False,
    use_color: bool = True,
    errors_separately: bool = True,
) -> RclLogger:
    """Initialize the logger with custom settings."""
    global _logger
    RclLogger._initialized = False
    RclLogger._instance = None
    _logger = RclLogger(log_dir, log_level, log_to_file, use_color, errors_separately)
    return _logger
