# centerline/core/utils/log_setup.py

import os
import sys
import logging
from logging.handlers import RotatingFileHandler

from centerline.core.config import get_setting

NOISY_LOGGERS = ('matplotlib', 'PIL', 'urllib3')


def setup_logging(
    log_file: str,
    log_level_file_str: str = 'DEBUG',
    log_level_console_str: str = 'INFO',
    log_max_bytes: int = 5*1024*1024,
    log_backup_count: int = 5
    ) -> logging.Logger:
    """Sets up rotating file and console logging on the root logger."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    # Remove existing handlers to prevent duplication if called multiple times
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    log_level_file = getattr(logging, str(log_level_file_str).upper(), logging.DEBUG)
    log_level_console = getattr(logging, str(log_level_console_str).upper(), logging.INFO)

    # --- File Handler ---
    try:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=log_max_bytes,
            backupCount=log_backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level_file)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)
    except PermissionError:
        print(f"ERROR: Permission denied to write log file: {log_file}", file=sys.stderr)
    except OSError as e:
        print(f"ERROR: Failed to set up file logger ({log_file}): {e}", file=sys.stderr)

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level_console)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: [%(name)s] %(message)s'))
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info("Logging initialized.")
    return root_logger


def setup_logging_from_config(log_file_key: str = 'app.log_file') -> logging.Logger:
    """setup_logging() with file, levels and rotation taken from app_config.yaml."""
    return setup_logging(
        get_setting(log_file_key, 'log/centerline.log'),
        get_setting('app.log_level_file', 'DEBUG'),
        get_setting('app.log_level_console', 'INFO'),
        int(get_setting('app.log_max_bytes', 5*1024*1024)),
        int(get_setting('app.log_backup_count', 5)),
    )
