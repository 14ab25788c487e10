"""Paints placed regions onto an RGB canvas.

Pixels equal to a bitmap's color key are skipped so whatever was painted
underneath shows through; every other pixel overwrites the canvas. Rows
without any transparent pixel are copied as one slice.
"""

from typing import Iterable, NamedTuple

from wsz_errors import RegionOutOfBounds
from wsz_layout import PlacedRegion
from wsz_resolver import AssetSet


class Canvas(NamedTuple):
    width: int
    height: int
    pixels: bytearray  # RGB, row-major, top-down


def new_canvas(width, height, color=(0, 0, 0)) -> Canvas:
    assert width > 0 and height > 0, f"empty canvas {width}x{height}"
    return Canvas(width=width, height=height, pixels=bytearray(bytes(color) * (width * height)))


def canvas_pixel(canvas: Canvas, x, y):
    i = 3 * (y * canvas.width + x)
    return tuple(canvas.pixels[i : i + 3])


def check_bounds(placed: PlacedRegion, bitmap, canvas: Canvas):
    src = placed.source
    if src.x < 0 or src.y < 0 or src.x + src.width > bitmap.width or src.y + src.height > bitmap.height:
        raise RegionOutOfBounds(
            placed.semantic_id,
            f"source ({src.x}, {src.y}, {src.width}, {src.height}) outside "
            f"{src.sheet} ({bitmap.width}x{bitmap.height})",
        )
    if (
        placed.dest_x < 0
        or placed.dest_y < 0
        or placed.dest_x + src.width > canvas.width
        or placed.dest_y + src.height > canvas.height
    ):
        raise RegionOutOfBounds(
            placed.semantic_id,
            f"destination ({placed.dest_x}, {placed.dest_y}, {src.width}, {src.height}) "
            f"outside canvas ({canvas.width}x{canvas.height})",
        )


def paint_region(canvas: Canvas, placed: PlacedRegion, bitmap):
    src = placed.source
    span = 3 * src.width
    transparency = bitmap.transparency
    for row in range(src.height):
        sy = src.y + row
        src_start = 3 * (sy * bitmap.width + src.x)
        dst_start = 3 * ((placed.dest_y + row) * canvas.width + placed.dest_x)
        mask_start = sy * bitmap.width + src.x
        mask = transparency[mask_start : mask_start + src.width]
        if not any(mask):
            canvas.pixels[dst_start : dst_start + span] = bitmap.pixels[src_start : src_start + span]
            continue
        for col, transparent in enumerate(mask):
            if transparent:
                continue
            s = src_start + 3 * col
            d = dst_start + 3 * col
            canvas.pixels[d : d + 3] = bitmap.pixels[s : s + 3]


def paint(canvas: Canvas, placements: Iterable[PlacedRegion], asset_set: AssetSet) -> Canvas:
    """Paints placements in order. A placement whose sheet is Missing is
    skipped; the layout only produces those for optional windows.
    """
    for placed in placements:
        if not asset_set.is_available(placed.source.sheet):
            continue
        bitmap = asset_set.bitmap(placed.source.sheet)
        check_bounds(placed, bitmap, canvas)
        paint_region(canvas, placed, bitmap)
    return canvas
