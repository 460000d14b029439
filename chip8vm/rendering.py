"""Framebuffer conversion for host renderers.

Turns ``bool[32, 64]`` displays into ``numpy`` image arrays that pygame, PIL
or matplotlib can show directly.
"""

from typing import Tuple

import jax.numpy as jnp
import numpy as np

Color = Tuple[int, int, int]

# (on_color, off_color)
COLOR_SCHEMES = {
    "classic": ((0, 255, 0), (0, 0, 0)),
    "amber": ((255, 176, 0), (0, 0, 0)),
    "white": ((255, 255, 255), (0, 0, 0)),
    "blue": ((0, 255, 255), (0, 0, 64)),
    "retro": ((255, 255, 0), (64, 0, 64)),
}


def create_color_scheme(scheme: str = "classic") -> Tuple[Color, Color]:
    """Look up a named ``(on_color, off_color)`` pair."""
    try:
        return COLOR_SCHEMES[scheme]
    except KeyError:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(COLOR_SCHEMES)}"
        ) from None


def display_to_rgb(
    display: jnp.ndarray,
    scale: int = 8,
    on_color: Color = (0, 255, 0),
    off_color: Color = (0, 0, 0),
) -> np.ndarray:
    """Convert a display to an RGB image.

    Args:
        display: Boolean array of shape (32, 64), indexed ``[y, x]``
        scale: Integer upscaling factor, each pixel becomes a scale x scale block
        on_color: RGB color of lit pixels
        off_color: RGB color of unlit pixels

    Returns:
        ``uint8`` array of shape (32*scale, 64*scale, 3)
    """
    if scale < 1:
        raise ValueError(f"Scale must be at least 1, got {scale}")
    palette = np.array([off_color, on_color], dtype=np.uint8)
    image = palette[np.asarray(display, dtype=np.intp)]
    return image.repeat(scale, axis=0).repeat(scale, axis=1)


def batch_render(
    displays: jnp.ndarray, scale: int = 4, color_scheme: str = "classic", padding: int = 5
) -> np.ndarray:
    """Tile a batch of displays into one RGBA image.

    Displays are laid out row by row on a roughly square grid, separated by
    ``padding`` transparent pixels.

    Args:
        displays: Array of shape (batch, 32, 64), e.g. frames of vmapped machines
        scale: Upscaling factor for each display
        color_scheme: Name from :data:`COLOR_SCHEMES`
        padding: Gap between displays in pixels

    Returns:
        ``uint8`` RGBA array of the whole grid
    """
    on_color, off_color = create_color_scheme(color_scheme)
    displays = np.asarray(displays)
    batch = displays.shape[0]
    cols = int(np.ceil(np.sqrt(batch)))
    rows = int(np.ceil(batch / cols))

    cell_h, cell_w = displays.shape[1] * scale, displays.shape[2] * scale
    grid = np.zeros((rows * cell_h + (rows - 1) * padding, cols * cell_w + (cols - 1) * padding, 4), dtype=np.uint8)

    for i, display in enumerate(displays):
        row, col = divmod(i, cols)
        top, left = row * (cell_h + padding), col * (cell_w + padding)
        cell = grid[top:top + cell_h, left:left + cell_w]
        cell[..., :3] = display_to_rgb(display, scale, on_color, off_color)
        cell[..., 3] = 255

    return grid
