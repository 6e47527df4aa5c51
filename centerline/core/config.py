# core/config.py
import yaml
import os
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_config: Optional[Dict[str, Any]] = None
CONFIG_DIR = os.environ.get(
    'CENTERLINE_CONFIG_DIR',
    os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..', 'config'))
)

def _load_yaml(filepath: str) -> Dict[str, Any]:
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
            return data if data is not None else {}
    except FileNotFoundError:
        logger.warning(f"Configuration file not found: {filepath}")
        return {}
    except yaml.YAMLError as e:
        logger.error(f"Error parsing configuration file {filepath}: {e}")
        return {}
    except Exception as e:
        logger.error(f"Error loading configuration file {filepath}: {e}")
        return {}

def load_config(config_dir: Optional[str] = None) -> None:
    global _config
    if _config is not None:
        logger.debug("Configuration already loaded.")
        return

    config_dir = config_dir or CONFIG_DIR
    logger.info(f"Loading configuration from: {config_dir}")
    loaded: Dict[str, Any] = {}
    config_files_map = {
        'app': 'app_config.yaml',
        'services': 'services_config.yaml',
        'display': 'display_config.yaml',
    }
    required_configs = ['app']

    for key, filename in config_files_map.items():
        filepath = os.path.join(config_dir, filename)
        logger.debug(f"Attempting to load: {filepath} into key '{key}'")
        loaded_data = _load_yaml(filepath)
        if key in required_configs and not loaded_data:
            logger.error(f"CRITICAL: Required configuration file '{filename}' is empty or could not be loaded.")
            raise ValueError(f"Essential configuration file '{filename}' failed to load from {config_dir}.")
        if not loaded_data:
            logger.warning(f"Optional configuration file '{filename}' missing or empty. Built-in defaults apply.")
        loaded[key] = loaded_data

    _config = loaded
    logger.info("Configuration loading process complete.")

def reset_config() -> None:
    """Forgets the loaded configuration so the next access reloads it."""
    global _config
    _config = None

def get_config() -> Dict[str, Any]:
    if _config is None:
        logger.warning("Configuration accessed before being explicitly loaded. Loading now.")
        try:
            load_config()
        except ValueError as e:
            logger.error(f"Configuration is unavailable: {e}")
            return {}
    return _config if _config is not None else {}

def get_setting(key_path: str, default: Any = None) -> Any:
    cfg = get_config()
    keys = key_path.split('.')
    value = cfg
    try:
        for key in keys:
            if isinstance(value, list):
                try:
                    idx = int(key)
                    value = value[idx]
                except (ValueError, IndexError):
                    return default
            elif isinstance(value, dict):
                value = value[key]
            else:
                return default
        return value if value is not None else default # Return value or default
    except (KeyError, IndexError, TypeError):
        return default
