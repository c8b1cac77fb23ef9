"""
Isometric coordinate model for Hamlet.

Maps between three spaces:

- tile space: integer (tx, ty) grid cells,
- world space: continuous isometric coordinates, one diamond per tile,
- screen space: world space after camera translation and uniform zoom.

Every function here is pure. Tile dimensions default to the stock
64x32 diamond and can be overridden from ``VillageConfig``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

TILE_WIDTH = 64
TILE_HEIGHT = 32


@dataclass(frozen=True)
class Viewport:
    """Camera state needed to project world space onto a canvas.

    Attributes:
        camera_x: World x at the canvas centre.
        camera_y: World y at the canvas centre.
        zoom: Uniform scale factor (> 0).
        canvas_width: Canvas width in pixels.
        canvas_height: Canvas height in pixels.
    """

    camera_x: float = 0.0
    camera_y: float = 0.0
    zoom: float = 1.0
    canvas_width: float = 0.0
    canvas_height: float = 0.0


def tile_to_world(
    tx: float, ty: float,
    tile_width: float = TILE_WIDTH, tile_height: float = TILE_HEIGHT,
) -> tuple[float, float]:
    """Project a tile coordinate onto the isometric world plane."""
    wx = (tx - ty) * (tile_width / 2)
    wy = (tx + ty) * (tile_height / 2)
    return (wx, wy)


def world_to_tile(
    wx: float, wy: float,
    tile_width: float = TILE_WIDTH, tile_height: float = TILE_HEIGHT,
) -> tuple[float, float]:
    """Exact inverse of :func:`tile_to_world` (continuous tile coordinates)."""
    a = wx / (tile_width / 2)
    b = wy / (tile_height / 2)
    return ((b + a) / 2, (b - a) / 2)


def world_to_screen(wx: float, wy: float, view: Viewport) -> tuple[float, float]:
    sx = (wx - view.camera_x) * view.zoom + view.canvas_width / 2
    sy = (wy - view.camera_y) * view.zoom + view.canvas_height / 2
    return (sx, sy)


def screen_to_world(sx: float, sy: float, view: Viewport) -> tuple[float, float]:
    wx = (sx - view.canvas_width / 2) / view.zoom + view.camera_x
    wy = (sy - view.canvas_height / 2) / view.zoom + view.camera_y
    return (wx, wy)


def screen_to_tile(
    sx: float, sy: float, view: Viewport,
    tile_width: float = TILE_WIDTH, tile_height: float = TILE_HEIGHT,
) -> tuple[int, int]:
    """Return the tile whose diamond contains the screen point.

    The result is floored, so it is the containing tile rather than the
    tile with the nearest centre.
    """
    wx, wy = screen_to_world(sx, sy, view)
    fx, fy = world_to_tile(wx, wy, tile_width, tile_height)
    return (math.floor(fx), math.floor(fy))


def tile_to_screen(
    tx: float, ty: float, view: Viewport,
    tile_width: float = TILE_WIDTH, tile_height: float = TILE_HEIGHT,
) -> tuple[float, float]:
    wx, wy = tile_to_world(tx, ty, tile_width, tile_height)
    return world_to_screen(wx, wy, view)

