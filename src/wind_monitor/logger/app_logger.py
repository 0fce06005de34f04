"""
Logging setup for wind_monitor.
"""

import logging
import sys
import logging.handlers
from pathlib import Path
from typing import Optional

import yaml

from ..errors import ConfigError
from ..utils.path_utils import resolve_path

CONFIG_FILENAME = 'config.yml'
config_path = Path(__file__).resolve().parents[1] / CONFIG_FILENAME

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_initialized = False


def setup_logging(config_path_override: Optional[str] = None) -> None:
    """
    Initialise the root logger from the ``logging`` section of config.yml.

    Args:
        config_path_override: alternative config file path
    """
    global _initialized

    log_config = _load_log_config(config_path_override)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_config['level']))
    root_logger.handlers.clear()

    log_dir = Path(log_config['file']).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(log_config['format'])

    # console only shows WARNING and above
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.WARNING)
    root_logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_config['file'],
        maxBytes=log_config['max_size_mb'] * 1024 * 1024,
        backupCount=log_config['backup_count'],
        encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(getattr(logging, log_config['level']))
    root_logger.addHandler(file_handler)

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Return a named logger, initialising logging on first use.

    Args:
        name: logger name

    Returns:
        Logger: logger instance
    """
    global _initialized
    if not _initialized:
        try:
            setup_logging()
        except Exception as exc:  # pragma: no cover - fall back to basicConfig
            logging.basicConfig(level=logging.INFO)
            _initialized = True
            print(f"warning: failed to initialise logging: {exc}", file=sys.stderr)
    return logging.getLogger(name)


def _load_log_config(config_path_override: Optional[str] = None) -> dict:
    """
    Read the logging section.

    Raises:
        ConfigError: the config file exists but cannot be read
    """
    actual_config_path = config_path_override or config_path

    if actual_config_path is None or not Path(actual_config_path).exists():
        return {
            'level': 'INFO',
            'file': str(resolve_path('outputs/wind/wind_app.log')),
            'max_size_mb': 10,
            'backup_count': 5,
            'format': DEFAULT_FORMAT,
        }

    try:
        with open(actual_config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}

        log_config = config.get('logging', {}) or {}
        log_file = log_config.get('file', 'outputs/wind/wind_app.log')

        return {
            'level': str(log_config.get('level', 'INFO')).upper(),
            'file': str(resolve_path(log_file)),
            'max_size_mb': log_config.get('max_size_mb', 10),
            'backup_count': log_config.get('backup_count', 5),
            'format': log_config.get('format', DEFAULT_FORMAT),
        }
    except Exception as e:
        raise ConfigError(f"Failed to read logging configuration: {e}")
