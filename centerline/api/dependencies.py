# centerline/api/dependencies.py
import logging
from typing import Dict, Any, Optional
from fastapi import Depends, HTTPException, status

from centerline.core.config import load_config, get_config, get_setting
from centerline.core.session import Session
from centerline.core.storage import CatalogStore, create_store

logger = logging.getLogger(__name__)
CONFIG_LOAD_ATTEMPTED = False
_store: Optional[CatalogStore] = None

async def get_core_config() -> Dict[str, Any]:
    """
    FastAPI dependency to load and provide the core application configuration.
    Ensures config is loaded only once per application lifecycle.
    """
    global CONFIG_LOAD_ATTEMPTED
    config = get_config()

    if not config or not CONFIG_LOAD_ATTEMPTED:
        try:
            logger.info("API dependency: Loading core configuration...")
            load_config()
            config = get_config()
            CONFIG_LOAD_ATTEMPTED = True
            if not config:
                raise ValueError("Core configuration failed to load.")
            logger.info("API dependency: Core configuration loaded successfully.")
        except ValueError as e:
            logger.critical(f"API dependency: Failed to load core configuration: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Core application configuration could not be loaded.",
            )
    return config

def reset_store() -> None:
    global _store
    _store = None

async def get_store(config: Dict[str, Any] = Depends(get_core_config)) -> CatalogStore:
    """
    Dependency providing the backend's own store. The server is the remote end
    for clients, so a 'remote' setting falls back to the local data directory.
    """
    global _store
    if _store is None:
        backend = get_setting('app.storage_backend', 'file')
        if backend == 'remote':
            logger.info("API dependency: 'remote' storage configured; serving from the local data directory.")
            backend = 'file'
        data_dir = get_setting('app.data_dir')
        if backend == 'file' and not data_dir:
            logger.error("API dependency error: 'app.data_dir' is not configured.")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Data directory not configured on the server."
            )
        _store = create_store(backend, data_dir=data_dir)
        logger.info(f"API dependency: Using '{backend}' store.")
    return _store

async def get_session(store: CatalogStore = Depends(get_store)) -> Session:
    """Dependency opening a session on the backend store (catalogs plus settings)."""
    return Session.from_config(store)
