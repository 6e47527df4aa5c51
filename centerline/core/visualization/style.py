# centerline/core/visualization/style.py

import logging
from typing import Dict, Tuple
from dataclasses import dataclass, field

import matplotlib.colors as mcolors

from centerline.core.config import get_setting
from centerline.core.projection.map_projector import RenderMode

logger = logging.getLogger(__name__)

# --- Style Data Classes ---

@dataclass
class MapStyle:
    """Colors and figure geometry for the machine map."""
    background: str
    grid: str
    label: str
    preview: str
    selected_edge: str
    marker: str
    criticality: Dict[str, str] = field(default_factory=dict)
    figure_size: Tuple[float, float] = (12.0, 6.0)
    dpi: int = 100

    def marker_color(self, criticality: str) -> str:
        return self.criticality.get(criticality, self.marker)


@dataclass
class DialStyle:
    """Colors and figure geometry for the phasing dial."""
    background: str
    ring: str
    tick_major: str
    tick: str
    needle: str
    near: str
    neutral: str
    label: str
    figure_size: Tuple[float, float] = (6.0, 6.0)
    dpi: int = 100


_MAP_DEFAULTS = {
    RenderMode.SCREEN: {
        'background': '#111827', 'grid': '#1e3a8a', 'label': '#e5e7eb',
        'preview': '#3b82f6', 'selected_edge': '#ffffff', 'marker': '#ca8a04',
        'criticality': {'Low': '#2563eb', 'Medium': '#ca8a04', 'High': '#ea580c', 'Critical': '#dc2626'},
    },
    RenderMode.PRINT: {
        'background': '#ffffff', 'grid': '#d1d5db', 'label': '#000000',
        'preview': '#000000', 'selected_edge': '#000000', 'marker': '#000000',
        'criticality': {},
    },
}

_DIAL_DEFAULTS = {
    RenderMode.SCREEN: {
        'background': '#000000', 'ring': '#1f2937', 'tick_major': '#06b6d4', 'tick': '#6b7280',
        'needle': '#22d3ee', 'near': '#f59e0b', 'neutral': '#3b82f6', 'label': '#e5e7eb',
    },
    RenderMode.PRINT: {
        'background': '#ffffff', 'ring': '#000000', 'tick_major': '#000000', 'tick': '#4b5563',
        'needle': '#000000', 'near': '#000000', 'neutral': '#6b7280', 'label': '#000000',
    },
}

# --- Style Loading Logic ---

_style_cache: Dict[Tuple[str, str], object] = {}


def clear_style_cache() -> None:
    _style_cache.clear()


def _checked_color(value: str, fallback: str, name: str) -> str:
    if mcolors.is_color_like(value):
        return value
    logger.warning(f"Invalid color '{value}' for '{name}' in display_config.yaml. Using '{fallback}'.")
    return fallback


def _merge_colors(defaults: Dict[str, object], configured: Dict[str, object], section: str) -> Dict[str, object]:
    merged = dict(defaults)
    for key, value in (configured or {}).items():
        if key not in defaults:
            logger.debug(f"Ignoring unknown color key '{section}.{key}'.")
            continue
        if isinstance(defaults[key], dict):
            nested = dict(defaults[key])
            for name, color in (value or {}).items():
                nested[name] = _checked_color(color, defaults[key].get(name, '#000000'), f"{section}.{key}.{name}")
            merged[key] = nested
        else:
            merged[key] = _checked_color(value, defaults[key], f"{section}.{key}")
    return merged


def get_map_style(mode: RenderMode = RenderMode.SCREEN) -> MapStyle:
    """
    Loads or retrieves the map style for a render mode from display_config.yaml.
    Print mode uses a single high-contrast marker color regardless of criticality.
    """
    cache_key = ('map', mode.value)
    if cache_key in _style_cache:
        return _style_cache[cache_key]

    colors = _merge_colors(_MAP_DEFAULTS[mode], get_setting(f'display.map.colors.{mode.value}', {}),
                           f"map.colors.{mode.value}")
    style = MapStyle(
        figure_size=tuple(get_setting('display.map.figure_size', [12, 6])),
        dpi=int(get_setting('display.map.dpi', 100)),
        **colors,
    )
    _style_cache[cache_key] = style
    logger.debug(f"Loaded map style for mode '{mode.value}'.")
    return style


def get_dial_style(mode: RenderMode = RenderMode.SCREEN) -> DialStyle:
    cache_key = ('dial', mode.value)
    if cache_key in _style_cache:
        return _style_cache[cache_key]

    colors = _merge_colors(_DIAL_DEFAULTS[mode], get_setting(f'display.gauge.colors.{mode.value}', {}),
                           f"gauge.colors.{mode.value}")
    style = DialStyle(
        figure_size=tuple(get_setting('display.gauge.figure_size', [6, 6])),
        dpi=int(get_setting('display.gauge.dpi', 100)),
        **colors,
    )
    _style_cache[cache_key] = style
    logger.debug(f"Loaded dial style for mode '{mode.value}'.")
    return style
