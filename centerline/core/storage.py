# centerline/core/storage.py
"""
Persistence adapters for the point and module catalogs.

Every store is a small string key-value store (the same five keys the
dashboard keeps in browser storage) with typed helpers for the two catalogs
on top. Three variants share the interface:

    MemoryStore  - dict-backed, for tests and throwaway sessions
    FileStore    - one JSON/text file per key in a data directory
    RemoteStore  - the catalogs live behind the HTTP backend (/api/v1)

`load_*` returns None when nothing was ever persisted and raises
StoreReadError when something was persisted but cannot be parsed. Deciding
what to do about either case belongs to the caller (see catalog.py).
"""
import os
import logging
import tempfile
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import requests
from pydantic import ValidationError

from centerline.core.exceptions import StoreReadError, StoreWriteError
from centerline.core.models import MachineModule, Point, dump_modules, dump_points, load_modules, load_points

logger = logging.getLogger(__name__)

POINTS_KEY = 'centerline_points'
LAYOUT_KEY = 'centerline_layout'
SIDEBAR_KEY = 'centerline_sidebar_collapsed'
MAP_URL_KEY = 'centerline_map_url'
PUBLIC_URL_KEY = 'centerline_public_url'

STORE_KEYS = (POINTS_KEY, LAYOUT_KEY, SIDEBAR_KEY, MAP_URL_KEY, PUBLIC_URL_KEY)


class CatalogStore(ABC):
    """String key-value store with catalog (de)serialization helpers."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    # --- Points ---
    def load_points(self) -> Optional[List[Point]]:
        raw = self.get_item(POINTS_KEY)
        if raw is None:
            return None
        try:
            return load_points(raw)
        except ValidationError as e:
            raise StoreReadError(f"Stored points could not be parsed: {e.error_count()} error(s)") from e

    def save_points(self, points: List[Point]) -> None:
        self.set_item(POINTS_KEY, dump_points(points))

    # --- Layout ---
    def load_layout(self) -> Optional[List[MachineModule]]:
        raw = self.get_item(LAYOUT_KEY)
        if raw is None:
            return None
        try:
            return load_modules(raw)
        except ValidationError as e:
            raise StoreReadError(f"Stored layout could not be parsed: {e.error_count()} error(s)") from e

    def save_layout(self, modules: List[MachineModule]) -> None:
        self.set_item(LAYOUT_KEY, dump_modules(modules))


class MemoryStore(CatalogStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStore(CatalogStore):
    """
    Keeps each key in its own file under `data_dir`.

    The catalogs land in `points.json` and `layout.json` so the HTTP backend
    and the CLI read and write the same files; the remaining keys use the key
    name with a `.txt` suffix.
    """
    FILENAMES = {
        POINTS_KEY: 'points.json',
        LAYOUT_KEY: 'layout.json',
    }

    def __init__(self, data_dir: str):
        self.data_dir = data_dir

    def _path(self, key: str) -> str:
        filename = self.FILENAMES.get(key, f"{key}.txt")
        return os.path.join(self.data_dir, filename)

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            logger.debug(f"No stored value for '{key}' ({path}).")
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except OSError as e:
            raise StoreReadError(f"Failed to read {path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        temp_file_path = None
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            # Write next to the target so os.replace stays on one filesystem
            with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', delete=False,
                                             dir=self.data_dir, prefix=".store_tmp_") as tf:
                temp_file_path = tf.name
                tf.write(value)
            os.replace(temp_file_path, path)
            temp_file_path = None
            logger.debug(f"Stored '{key}' to {path} ({len(value)} chars).")
        except OSError as e:
            raise StoreWriteError(f"Failed to write {path}: {e}") from e
        finally:
            if temp_file_path and os.path.exists(temp_file_path):
                try:
                    os.remove(temp_file_path)
                except OSError as rm_err:
                    logger.error(f"Could not remove temporary file {temp_file_path}: {rm_err}")

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StoreWriteError(f"Failed to remove {path}: {e}") from e


class RemoteStore(CatalogStore):
    """
    Catalogs are read from and written to the HTTP backend; the small
    per-operator settings stay in a local store.
    """
    REMOTE_ROUTES = {
        POINTS_KEY: 'points',
        LAYOUT_KEY: 'layout',
    }

    def __init__(self, base_url: str, settings_store: Optional[CatalogStore] = None,
                 timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.settings_store = settings_store or MemoryStore()
        self.timeout = timeout
        self.http = session or requests.Session()

    def _url(self, key: str) -> str:
        return f"{self.base_url}/{self.REMOTE_ROUTES[key]}"

    def get_item(self, key: str) -> Optional[str]:
        if key not in self.REMOTE_ROUTES:
            return self.settings_store.get_item(key)
        url = self._url(key)
        try:
            response = self.http.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise StoreReadError(f"GET {url} failed: {e}") from e
        text = response.text
        # The backend answers [] when nothing has been persisted yet.
        if text.strip() in ('', '[]'):
            return None
        return text

    def set_item(self, key: str, value: str) -> None:
        if key not in self.REMOTE_ROUTES:
            self.settings_store.set_item(key, value)
            return
        url = self._url(key)
        try:
            response = self.http.post(url, data=value.encode('utf-8'),
                                      headers={'Content-Type': 'application/json'},
                                      timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise StoreWriteError(f"POST {url} failed: {e}") from e

    def remove_item(self, key: str) -> None:
        if key not in self.REMOTE_ROUTES:
            self.settings_store.remove_item(key)
            return
        self.set_item(key, '[]')


def create_store(backend: str, data_dir: str = 'data', remote_url: Optional[str] = None) -> CatalogStore:
    """Builds the store named by the `app.storage_backend` setting."""
    backend = (backend or 'file').lower()
    if backend == 'memory':
        return MemoryStore()
    if backend == 'file':
        return FileStore(data_dir)
    if backend == 'remote':
        if not remote_url:
            raise ValueError("Remote storage selected but no remote URL configured ('app.remote_url').")
        return RemoteStore(remote_url, settings_store=FileStore(data_dir))
    raise ValueError(f"Unknown storage backend '{backend}'. Use 'file', 'memory' or 'remote'.")
