"""
Utility modules.
"""

from .logger import get_logger, setup_logger, RclLogger

__all__ = [
    # Logger
    "get_logger",
    "setup_logger",
    "RclLogger",
]
