"""
Logging for todograph.

Configured once at import: a DEBUG file log under TODOGRAPH_LOG_DIR
(default ~/.local/share/todograph/logs) and a stderr console handler whose
level comes from TODOGRAPH_LOG_LEVEL or TODOGRAPH_DEBUG.
"""
import logging
import os
import sys
from pathlib import Path

def _log_dir() -> Path:
    override = os.getenv('TODOGRAPH_LOG_DIR')
    if override:
        return Path(override)
    return Path.home() / ".local" / "share" / "todograph" / "logs"

def setup_logging():
    """Set up logging configuration for todograph package with environment-based levels."""
    env_level = os.getenv('TODOGRAPH_LOG_LEVEL', '').upper()
    is_debug = os.getenv('TODOGRAPH_DEBUG', '').lower() in ('1', 'true', 'yes')

    # Default to WARNING so the CLI stays quiet for regular users
    if is_debug:
        level = logging.DEBUG
    elif env_level:
        level = getattr(logging, env_level, logging.WARNING)
    else:
        level = logging.WARNING

    log_format = '[%(asctime)s] %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    detailed_formatter = logging.Formatter(log_format, date_format)
    console_formatter = logging.Formatter(
        '%(levelname)-8s [%(name)s] %(message)s' if is_debug
        else '%(levelname)s: %(message)s'
    )

    logger = logging.getLogger('todograph')
    logger.setLevel(logging.DEBUG)  # Logger accepts all, handlers filter
    logger.handlers.clear()

    # File handler (always detailed)
    log_dir = _log_dir()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "todograph.log", encoding="utf-8")
    except OSError as e:
        file_handler = None
        file_error = e
    if file_handler is not None:
        file_handler.setFormatter(detailed_formatter)
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    # Console handler (respects environment level)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    logger.propagate = False

    if file_handler is None:
        logger.warning(f"File logging disabled, cannot use {log_dir}: {file_error}")

    return logger

# Initialize logging when package is imported
setup_logging()

def get_logger(name: str = None):
    """Get a logger instance for a specific module."""
    if name:
        return logging.getLogger(f'todograph.{name}')
    return logging.getLogger('todograph')
