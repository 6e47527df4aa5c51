# centerline/core/visualization/renderer.py

import io
import logging
from typing import Optional

import matplotlib.pyplot as plt
from matplotlib.patches import Circle, Rectangle

from centerline.core.projection.map_projector import MapScene, MarkerRole, RenderMode
from centerline.core.projection.phase_projector import DialScene
from centerline.core.visualization.style import DialStyle, MapStyle, get_dial_style, get_map_style

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ('png', 'svg', 'pdf')
MEDIA_TYPES = {
    'png': 'image/png',
    'svg': 'image/svg+xml',
    'pdf': 'application/pdf',
}


def _check_format(fmt: str) -> str:
    fmt = (fmt or 'png').lower()
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported image format '{fmt}'. Use one of: {', '.join(SUPPORTED_FORMATS)}")
    return fmt


def _to_bytes(fig, fmt: str, dpi: int) -> bytes:
    buffer = io.BytesIO()
    fig.savefig(buffer, format=fmt, dpi=dpi, facecolor=fig.get_facecolor())
    buffer.seek(0)
    return buffer.getvalue()


# --- Map ---

def _draw_schematic(ax, scene: MapScene, style: MapStyle) -> None:
    for region in scene.background.regions:
        x = region.x / 100.0 * scene.width
        y = region.y / 100.0 * scene.height
        w = region.width / 100.0 * scene.width
        h = region.height / 100.0 * scene.height
        if scene.mode is RenderMode.PRINT:
            face, edge, alpha = 'none', style.grid, 1.0
        else:
            face, edge, alpha = region.color, region.color, 0.25
        ax.add_patch(Rectangle((x, y), w, h, facecolor=face, edgecolor=edge, alpha=alpha, linewidth=1.5, zorder=1))
        ax.text(x + w / 2, y + h / 2, region.label.upper(), color=style.label, ha='center', va='center',
                fontsize=8, fontweight='bold', zorder=2)


def _draw_map_marker(ax, marker, scene: MapScene, style: MapStyle) -> None:
    radius = marker.size / 2.0
    if scene.mode is RenderMode.PRINT:
        ax.add_patch(Circle((marker.x, marker.y), radius * 0.35, facecolor=style.marker,
                            edgecolor=style.marker, zorder=marker.z_order))
        ax.text(marker.x + radius * 0.5, marker.y, marker.label, color=style.label, ha='left', va='center',
                fontsize=9, fontweight='bold', zorder=marker.z_order + 1)
        return

    if marker.role is MarkerRole.PREVIEW:
        ax.add_patch(Circle((marker.x, marker.y), radius, facecolor=style.preview, edgecolor=style.selected_edge,
                            linestyle='--', linewidth=2, alpha=0.8, zorder=marker.z_order))
    else:
        selected = marker.role is MarkerRole.SELECTED
        ax.add_patch(Circle((marker.x, marker.y), radius,
                            facecolor=style.marker_color(marker.criticality.value),
                            edgecolor=style.selected_edge if selected else style.background,
                            linewidth=3 if selected else 1, zorder=marker.z_order))
    ax.text(marker.x, marker.y, marker.label, color='#ffffff', ha='center', va='center',
            fontsize=9, fontweight='bold', zorder=marker.z_order + 1)


def render_map(scene: MapScene, fmt: str = 'png', style: Optional[MapStyle] = None,
               title: Optional[str] = None) -> Optional[bytes]:
    """
    Draws a projected map scene.

    Args:
        scene: Output of MapProjector.project().
        fmt: 'png', 'svg' or 'pdf'.
        style: Overrides the configured style for the scene's render mode.
        title: Optional caption drawn above the map.

    Returns:
        The encoded image, or None if drawing failed.
    """
    fmt = _check_format(fmt)
    style = style or get_map_style(scene.mode)
    fig = None
    try:
        fig, ax = plt.subplots(figsize=style.figure_size)
        fig.patch.set_facecolor(style.background)
        ax.set_facecolor(style.background)
        ax.set_xlim(0, scene.width)
        ax.set_ylim(scene.height, 0)
        ax.set_aspect('equal')
        ax.set_xticks([])
        ax.set_yticks([])
        for spine in ax.spines.values():
            spine.set_color(style.grid)

        if scene.background.is_custom:
            ax.text(0.01, 0.01, f"Map: {scene.background.image_url}", transform=ax.transAxes,
                    color=style.label, fontsize=7, ha='left', va='bottom')
        else:
            _draw_schematic(ax, scene, style)

        for marker in scene.draw_order():
            _draw_map_marker(ax, marker, scene, style)

        if title:
            ax.set_title(title, color=style.label)

        image_bytes = _to_bytes(fig, fmt, style.dpi)
        logger.info(f"Rendered map with {len(scene.markers)} markers ({scene.mode.value}, {fmt}).")
        return image_bytes
    except Exception as e:
        logger.error(f"Failed to render map: {e}", exc_info=True)
        return None
    finally:
        if fig is not None:
            plt.close(fig)


# --- Dial ---

def render_dial(scene: DialScene, mode: RenderMode = RenderMode.SCREEN, fmt: str = 'png',
                style: Optional[DialStyle] = None) -> Optional[bytes]:
    """Draws a projected phasing dial. Returns the encoded image or None on failure."""
    fmt = _check_format(fmt)
    style = style or get_dial_style(mode)
    fig = None
    try:
        cx, cy = scene.center
        extent = scene.radius + 45
        fig, ax = plt.subplots(figsize=style.figure_size)
        fig.patch.set_facecolor(style.background)
        ax.set_facecolor(style.background)
        ax.set_xlim(cx - extent, cx + extent)
        ax.set_ylim(cy + extent, cy - extent)
        ax.set_aspect('equal')
        ax.axis('off')

        ax.add_patch(Circle((cx, cy), scene.radius, facecolor='none', edgecolor=style.ring, linewidth=2, zorder=1))

        for tick in scene.ticks:
            color = style.tick if tick.kind == 'minor' else style.tick_major
            width = 2 if tick.kind == 'major' else 1
            ax.plot([tick.inner[0], tick.outer[0]], [tick.inner[1], tick.outer[1]],
                    color=color, linewidth=width, zorder=2)

        for label in scene.labels:
            ax.text(label.x, label.y, label.text, color=style.label, ha='center', va='center',
                    fontsize=9, fontweight='bold', zorder=3)

        ax.plot([cx, scene.needle_tip[0]], [cy, scene.needle_tip[1]], color=style.needle, linewidth=2, zorder=4)
        ax.add_patch(Circle((cx, cy), 4, facecolor=style.needle, zorder=5))
        ax.text(cx, cy + 24, f"{scene.simulated_angle:.1f}°", color=style.needle, ha='center', va='center',
                fontsize=12, fontweight='bold', zorder=5)

        for marker in scene.markers:
            color = style.near if marker.near else style.neutral
            ax.add_patch(Circle((marker.x, marker.y), marker.size / 2.0, facecolor=color,
                                edgecolor=style.background, zorder=6))
            ax.text(marker.x, marker.y - marker.size, str(marker.number), color=color, ha='center', va='bottom',
                    fontsize=8, fontweight='bold' if marker.near else 'normal', zorder=7)

        image_bytes = _to_bytes(fig, fmt, style.dpi)
        logger.info(f"Rendered dial at {scene.simulated_angle:.1f}° with {len(scene.markers)} markers ({fmt}).")
        return image_bytes
    except Exception as e:
        logger.error(f"Failed to render dial: {e}", exc_info=True)
        return None
    finally:
        if fig is not None:
            plt.close(fig)
