"""
Logging configuration for the storefront.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; handlers live on the root logger."""
    return logging.getLogger(name)


def setup_logging(
    level: str = "INFO",
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    console_enabled: bool = True,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure the root logger once per process.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format string for console output
        console_enabled: Whether to log to stdout
        log_file: Optional path of a rotating log file

    Returns:
        The configured root logger
    """
    global _configured

    root = logging.getLogger()
    log_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(log_level)

    # If logging is already configured, only adjust the level
    if _configured:
        return root

    simple_formatter = logging.Formatter(log_format)
    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
    )

    if console_enabled:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(simple_formatter)
        console_handler.setLevel(log_level)
        root.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10485760,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(detailed_formatter)
        file_handler.setLevel(log_level)
        root.addHandler(file_handler)

    _configured = True
    return root
