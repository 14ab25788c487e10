"""Turns an archive's buffer map into one decoded bitmap per catalog sheet.

Each sheet resolves to exactly one of

    Found(bitmap, source_name)  -- the skin ships it
    Defaulted(bitmap, reason)   -- absent, another sheet or a built-in default stands in
    Missing(sheet)              -- absent and optional; only legal for OPTIONAL sheets

and an absent REQUIRED sheet with nothing to stand in for it aborts the
run with MissingRequiredAsset.
"""

from typing import Dict, NamedTuple, Union

from wsz_archive import lookup_buffer
from wsz_bmp import DecodedBitmap, decode_bmp, make_bitmap
from wsz_catalog import (
    BUILTIN_DEFAULT,
    OPTIONAL,
    SPRITE_SHEETS,
    SpriteSheet,
    sheet_extent,
    sprite_sheet,
    sprites_for_sheet,
)
from wsz_config import RenderConfig
from wsz_errors import MissingRequiredAsset
from wsz_log import Logger


class Found(NamedTuple):
    bitmap: DecodedBitmap
    source_name: str


class Defaulted(NamedTuple):
    bitmap: DecodedBitmap
    reason: str


class Missing(NamedTuple):
    sheet: str


Resolution = Union[Found, Defaulted, Missing]


class AssetSet(NamedTuple):
    resolutions: Dict[str, Resolution]  # sheet name -> result, catalog order

    def resolution(self, sheet: str) -> Resolution:
        return self.resolutions[sheet.upper()]

    def is_found(self, sheet: str) -> bool:
        return isinstance(self.resolution(sheet), Found)

    def is_available(self, sheet: str) -> bool:
        return not isinstance(self.resolution(sheet), Missing)

    def bitmap(self, sheet: str) -> DecodedBitmap:
        result = self.resolution(sheet)
        assert not isinstance(result, Missing), f"{sheet} is missing from this skin"
        return result.bitmap


# Built-in default sheets: the color key everywhere except the catalog
# regions, which get a flat face with a one pixel bevel.
DEFAULT_FACE = (74, 74, 90)
DEFAULT_LIGHT = (123, 123, 148)
DEFAULT_SHADOW = (33, 33, 41)


def make_default_sheet(sheet: SpriteSheet, *, color_key) -> DecodedBitmap:
    width, height = sheet.width, sheet.height
    pixels = bytearray(bytes(color_key) * (width * height))

    def fill(x, y, w, h, color):
        row = bytes(color) * w
        for yy in range(y, y + h):
            start = 3 * (yy * width + x)
            pixels[start : start + 3 * w] = row

    for region in sprites_for_sheet(sheet.name):
        fill(region.x, region.y, region.width, region.height, DEFAULT_FACE)
        fill(region.x, region.y, region.width, 1, DEFAULT_LIGHT)
        fill(region.x, region.y, 1, region.height, DEFAULT_LIGHT)
        if region.height > 1:
            fill(region.x, region.y + region.height - 1, region.width, 1, DEFAULT_SHADOW)
        if region.width > 1:
            fill(region.x + region.width - 1, region.y, 1, region.height, DEFAULT_SHADOW)
    return make_bitmap(width=width, height=height, pixels=pixels, color_key=color_key)


def pad_bitmap(bitmap: DecodedBitmap, width, height) -> DecodedBitmap:
    """Places bitmap at the top left of a color key filled width x height
    bitmap, so sprites hanging off an undersized sheet draw only the
    part the skin supplies.
    """
    width, height = max(width, bitmap.width), max(height, bitmap.height)
    key_row = bytes(bitmap.color_key) * width
    rows = []
    for y in range(height):
        if y < bitmap.height:
            row = bitmap.pixels[3 * bitmap.width * y : 3 * bitmap.width * (y + 1)]
            rows.append(row + key_row[len(row) :])
        else:
            rows.append(key_row)
    return make_bitmap(
        width=width,
        height=height,
        pixels=b"".join(rows),
        color_key=bitmap.color_key,
    )


class DecodeCache:
    """Decoded bitmaps by archive member, owned by one run."""

    def __init__(self, *, color_key):
        self.color_key = color_key
        self._bitmaps: Dict[str, DecodedBitmap] = {}
        self.decode_count = 0

    def decode(self, key: str, data: bytes, *, name: str) -> DecodedBitmap:
        if key not in self._bitmaps:
            self._bitmaps[key] = decode_bmp(data, name=name, color_key=self.color_key)
            self.decode_count += 1
        return self._bitmaps[key]


def resolve_sheet(
    sheet: SpriteSheet,
    buffer_map,
    *,
    cache: DecodeCache,
    resolved: Dict[str, Resolution],
    config: RenderConfig,
    logger: Logger,
) -> Resolution:
    if sheet.name in resolved:
        return resolved[sheet.name]
    found = lookup_buffer(buffer_map, sheet.name)
    if found is not None:
        key, data = found
        bitmap = cache.decode(key, data, name=key)
        extent = sheet_extent(sheet.name)
        if bitmap.width < extent[0] or bitmap.height < extent[1]:
            logger.append(
                f"Warning: {key} is {bitmap.width}x{bitmap.height}, sprites expect at least "
                f"{extent[0]}x{extent[1]}; padding with the color key"
            )
            bitmap = pad_bitmap(bitmap, *extent)
        result = Found(bitmap=bitmap, source_name=key)
    elif sheet.fallback is not None and (
        lookup_buffer(buffer_map, sheet.fallback) is not None
        or sprite_sheet(sheet.fallback).requirement != OPTIONAL
    ):
        stand_in = resolve_sheet(
            sprite_sheet(sheet.fallback),
            buffer_map,
            cache=cache,
            resolved=resolved,
            config=config,
            logger=logger,
        )
        bitmap = stand_in.bitmap
        extent = sheet_extent(sheet.name)
        if bitmap.width < extent[0] or bitmap.height < extent[1]:
            bitmap = pad_bitmap(bitmap, *extent)
        result = Defaulted(bitmap=bitmap, reason=f"using {sheet.fallback}")
    elif sheet.requirement == BUILTIN_DEFAULT:
        result = Defaulted(
            bitmap=make_default_sheet(sheet, color_key=config.color_key),
            reason="built-in default",
        )
    elif sheet.requirement == OPTIONAL:
        result = Missing(sheet=sheet.name)
    else:
        raise MissingRequiredAsset(sheet.name)
    if isinstance(result, Defaulted):
        logger.append(f"{sheet.name} not in skin, {result.reason}")
    resolved[sheet.name] = result
    return result


def resolve_assets(buffer_map, *, config: RenderConfig, logger: Logger) -> AssetSet:
    cache = DecodeCache(color_key=config.color_key)
    resolved: Dict[str, Resolution] = {}
    for sheet in SPRITE_SHEETS:
        resolve_sheet(
            sheet,
            buffer_map,
            cache=cache,
            resolved=resolved,
            config=config,
            logger=logger,
        )
    return AssetSet(
        resolutions={sheet.name: resolved[sheet.name] for sheet in SPRITE_SHEETS}
    )
