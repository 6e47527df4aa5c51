# centerline/core/session.py
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from centerline.core.catalog import LayoutCatalog, PointCatalog
from centerline.core.config import get_setting
from centerline.core.exceptions import StoreError
from centerline.core.qr import QrLinkBuilder
from centerline.core.storage import (
    MAP_URL_KEY,
    PUBLIC_URL_KEY,
    SIDEBAR_KEY,
    CatalogStore,
    create_store,
)

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    sidebar_collapsed: bool = False
    custom_map_url: str = ''
    public_base_url: str = ''

    def as_dict(self) -> Dict[str, Any]:
        return {
            'sidebar_collapsed': self.sidebar_collapsed,
            'custom_map_url': self.custom_map_url,
            'public_base_url': self.public_base_url,
        }


def _read_setting(store: CatalogStore, key: str) -> Optional[str]:
    try:
        return store.get_item(key)
    except StoreError as e:
        logger.warning(f"Could not read setting '{key}': {e}")
        return None


def load_settings(store: CatalogStore) -> Settings:
    settings = Settings()
    raw_sidebar = _read_setting(store, SIDEBAR_KEY)
    if raw_sidebar is not None:
        try:
            settings.sidebar_collapsed = bool(json.loads(raw_sidebar))
        except ValueError:
            logger.warning(f"Ignoring malformed sidebar setting: {raw_sidebar!r}")
    settings.custom_map_url = _read_setting(store, MAP_URL_KEY) or ''
    settings.public_base_url = _read_setting(store, PUBLIC_URL_KEY) or ''
    return settings


class Session:
    """
    One operator session: both catalogs plus the small per-operator settings,
    all bound to the same store.
    """

    def __init__(self, store: CatalogStore, points: PointCatalog, layout: LayoutCatalog,
                 settings: Optional[Settings] = None):
        self.store = store
        self.points = points
        self.layout = layout
        self.settings = settings or Settings()

    @classmethod
    def open(cls, store: CatalogStore, enforce_unique_ids: bool = False,
             strict_replace: bool = False) -> 'Session':
        points = PointCatalog.load(store, enforce_unique_ids=enforce_unique_ids, strict_replace=strict_replace)
        layout = LayoutCatalog.load(store)
        settings = load_settings(store)
        logger.info(f"Session opened with {len(points)} points and {len(layout)} layout modules.")
        return cls(store, points, layout, settings)

    @classmethod
    def from_config(cls, store: Optional[CatalogStore] = None) -> 'Session':
        """Opens a session on the store and catalog options named in app_config.yaml."""
        if store is None:
            store = create_store(
                get_setting('app.storage_backend', 'file'),
                data_dir=get_setting('app.data_dir', 'data'),
                remote_url=get_setting('app.remote_url'),
            )
        session = cls.open(
            store,
            enforce_unique_ids=bool(get_setting('app.catalog.enforce_unique_ids', False)),
            strict_replace=bool(get_setting('app.catalog.strict_replace', False)),
        )
        # Config values seed the settings only when the operator never set them.
        if not session.settings.custom_map_url:
            session.settings.custom_map_url = get_setting('app.custom_map_url', '') or ''
        if not session.settings.public_base_url:
            session.settings.public_base_url = get_setting('app.public_base_url', '') or ''
        return session

    # --- Settings ---
    def _write_setting(self, key: str, value: str) -> None:
        try:
            if value:
                self.store.set_item(key, value)
            else:
                self.store.remove_item(key)
        except StoreError as e:
            logger.error(f"Failed to persist setting '{key}'; kept in memory only: {e}")

    def set_sidebar_collapsed(self, collapsed: bool) -> None:
        self.settings.sidebar_collapsed = bool(collapsed)
        self._write_setting(SIDEBAR_KEY, json.dumps(self.settings.sidebar_collapsed))

    def set_custom_map_url(self, url: Optional[str]) -> None:
        self.settings.custom_map_url = (url or '').strip()
        self._write_setting(MAP_URL_KEY, self.settings.custom_map_url)
        logger.info("Custom map background " + ("set." if self.settings.custom_map_url else "cleared."))

    def set_public_base_url(self, url: Optional[str]) -> None:
        self.settings.public_base_url = (url or '').strip()
        self._write_setting(PUBLIC_URL_KEY, self.settings.public_base_url)
        logger.info(f"Public base URL set to '{self.settings.public_base_url}'.")

    def update_settings(self, **changes: Any) -> Settings:
        setters = {
            'sidebar_collapsed': self.set_sidebar_collapsed,
            'custom_map_url': self.set_custom_map_url,
            'public_base_url': self.set_public_base_url,
        }
        for name, value in changes.items():
            if name not in setters:
                raise ValueError(f"Unknown setting '{name}'")
            setters[name](value)
        return self.settings

    def qr_builder(self, origin: Optional[str] = None) -> QrLinkBuilder:
        origin = origin or get_setting('app.origin', 'http://localhost:3000')
        return QrLinkBuilder.from_config(origin, self.settings.public_base_url)
