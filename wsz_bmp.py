#!/usr/bin/env python3

"""BMP codec for skin sprite sheets

Skins store every sheet as an uncompressed Windows bitmap. Two depths
are found in practice and supported here: 8-bit with a palette and
24-bit truecolor. Pixel rows are stored bottom-up (a negative height
in the header flips this to top-down) and each row is padded to a
4-byte boundary. There is no alpha channel and no transparency flag;
by convention skin authors paint areas that must not be drawn with a
single key color, (0, 198, 255). Decoded bitmaps are always addressed
top-down and carry one transparency byte per pixel derived from that
key.

The Pillow bridge at the end of this module is used for the PNG side
of extraction, packing and screenshots.

"""

from PIL import Image
from PIL.PngImagePlugin import PngInfo

from typing import NamedTuple, Optional, Tuple

import io
import struct

from wsz_errors import CorruptAsset

DEFAULT_COLOR_KEY = (0, 198, 255)

BMP_FILE_HEADER_SIZE = 14
BMP_CORE_HEADER_SIZE = 12
BMP_INFO_HEADER_SIZE = 40
BI_RGB = 0
SUPPORTED_BIT_DEPTHS = (8, 24)
BMP_PIXELS_PER_METER = 2835  # 72 DPI


class DecodedBitmap(NamedTuple):
    width: int
    height: int
    bit_depth: int
    palette: Optional[Tuple[Tuple[int, int, int], ...]]
    pixels: bytes  # packed RGB, top-down
    transparency: bytes  # one byte per pixel, 1 where the pixel matches color_key
    color_key: Tuple[int, int, int]


def transparency_mask(pixels, color_key):
    key = bytes(color_key)
    return bytes(
        1 if pixels[i : i + 3] == key else 0 for i in range(0, len(pixels), 3)
    )


def make_bitmap(
    *, width, height, pixels, color_key=DEFAULT_COLOR_KEY, bit_depth=24, palette=None
) -> DecodedBitmap:
    pixels = bytes(pixels)
    assert len(pixels) == 3 * width * height, (
        f"expected {3 * width * height} bytes of RGB data for {width}x{height}, got {len(pixels)}"
    )
    color_key = tuple(color_key)
    return DecodedBitmap(
        width=width,
        height=height,
        bit_depth=bit_depth,
        palette=None if palette is None else tuple(tuple(c) for c in palette),
        pixels=pixels,
        transparency=transparency_mask(pixels, color_key),
        color_key=color_key,
    )


def make_solid_bitmap(width, height, color, *, color_key=DEFAULT_COLOR_KEY) -> DecodedBitmap:
    return make_bitmap(
        width=width,
        height=height,
        pixels=bytes(color) * (width * height),
        color_key=color_key,
    )


def bitmap_pixel(bitmap: DecodedBitmap, x, y):
    offset = 3 * (y * bitmap.width + x)
    return tuple(bitmap.pixels[offset : offset + 3])


def is_transparent(bitmap: DecodedBitmap, x, y):
    return bool(bitmap.transparency[y * bitmap.width + x])


def row_stride(width, bit_depth):
    return ((width * bit_depth + 31) // 32) * 4


def decode_bmp(data, *, name="bitmap", color_key=DEFAULT_COLOR_KEY) -> DecodedBitmap:
    """Given the bytes of a BMP file, returns a DecodedBitmap. Any
    header or data problem raises CorruptAsset naming the asset.

    """
    if len(data) < BMP_FILE_HEADER_SIZE + 4:
        raise CorruptAsset(name, f"only {len(data)} bytes, too short for a BMP header")
    magic, _file_size, _reserved1, _reserved2, pixel_offset = struct.unpack(
        "<2sIHHI", data[:BMP_FILE_HEADER_SIZE]
    )
    if magic != b"BM":
        raise CorruptAsset(name, f"bad signature {magic!r}, expected b'BM'")
    (dib_size,) = struct.unpack(
        "<I", data[BMP_FILE_HEADER_SIZE : BMP_FILE_HEADER_SIZE + 4]
    )
    if dib_size == BMP_CORE_HEADER_SIZE:
        if len(data) < BMP_FILE_HEADER_SIZE + dib_size:
            raise CorruptAsset(name, "truncated OS/2 bitmap header")
        _, width, height, planes, bit_depth = struct.unpack(
            "<IHHHH", data[BMP_FILE_HEADER_SIZE : BMP_FILE_HEADER_SIZE + dib_size]
        )
        compression, colors_used, palette_entry_size = BI_RGB, 0, 3
    elif dib_size >= BMP_INFO_HEADER_SIZE:
        if len(data) < BMP_FILE_HEADER_SIZE + dib_size:
            raise CorruptAsset(
                name,
                f"truncated bitmap header: need {BMP_FILE_HEADER_SIZE + dib_size} bytes, have {len(data)}",
            )
        (
            _,
            width,
            height,
            planes,
            bit_depth,
            compression,
            _image_size,
            _x_ppm,
            _y_ppm,
            colors_used,
            _colors_important,
        ) = struct.unpack(
            "<IiiHHIIiiII",
            data[BMP_FILE_HEADER_SIZE : BMP_FILE_HEADER_SIZE + BMP_INFO_HEADER_SIZE],
        )
        palette_entry_size = 4
    else:
        raise CorruptAsset(name, f"unknown bitmap header size {dib_size}")
    if bit_depth not in SUPPORTED_BIT_DEPTHS:
        raise CorruptAsset(
            name,
            f"unsupported bit depth {bit_depth}, expected one of {SUPPORTED_BIT_DEPTHS}",
        )
    if compression != BI_RGB:
        raise CorruptAsset(name, f"unsupported compression {compression}, only BI_RGB")
    if planes != 1:
        raise CorruptAsset(name, f"{planes} color planes, expected 1")
    top_down = height < 0
    height = abs(height)
    if width <= 0 or height == 0:
        raise CorruptAsset(name, f"empty or negative dimensions {width}x{height}")

    palette = None
    if bit_depth == 8:
        palette_size = colors_used or 256
        if palette_size > 256:
            raise CorruptAsset(name, f"palette of {palette_size} colors for 8-bit data")
        palette_start = BMP_FILE_HEADER_SIZE + dib_size
        palette_end = palette_start + palette_entry_size * palette_size
        if len(data) < palette_end:
            raise CorruptAsset(
                name,
                f"truncated palette: expected {palette_size} entries ending at byte {palette_end}, have {len(data)} bytes",
            )
        palette = tuple(
            (data[i + 2], data[i + 1], data[i])  # stored as BGR(X)
            for i in range(palette_start, palette_end, palette_entry_size)
        )

    stride = row_stride(width, bit_depth)
    expected_end = pixel_offset + stride * height
    if pixel_offset < BMP_FILE_HEADER_SIZE + dib_size or len(data) < expected_end:
        raise CorruptAsset(
            name,
            f"truncated pixel data: {width}x{height}x{bit_depth} needs {stride * height} bytes "
            f"from offset {pixel_offset}, have {max(0, len(data) - pixel_offset)}",
        )

    if bit_depth == 8:
        lut = [bytes(c) for c in palette]
    rows = []
    for y in range(height):
        stored_row = y if top_down else height - 1 - y
        start = pixel_offset + stored_row * stride
        row = data[start : start + stride]
        if bit_depth == 24:
            bgr = row[: 3 * width]
            rgb = bytearray(3 * width)
            rgb[0::3] = bgr[2::3]
            rgb[1::3] = bgr[1::3]
            rgb[2::3] = bgr[0::3]
            rows.append(bytes(rgb))
        else:
            indices = row[:width]
            if max(indices) >= len(lut):
                raise CorruptAsset(
                    name,
                    f"palette index {max(indices)} on row {y} exceeds palette of {len(lut)} colors",
                )
            rows.append(b"".join(lut[i] for i in indices))
    return make_bitmap(
        width=width,
        height=height,
        pixels=b"".join(rows),
        color_key=color_key,
        bit_depth=bit_depth,
        palette=palette,
    )


def encode_bmp(bitmap: DecodedBitmap) -> bytes:
    """Writes a bottom-up BITMAPINFOHEADER BMP at the bitmap's own depth.
    8-bit bitmaps are written with their palette; every pixel color
    must be present in it.

    """
    assert bitmap.bit_depth in SUPPORTED_BIT_DEPTHS, bitmap.bit_depth
    width, height = bitmap.width, bitmap.height
    stride = row_stride(width, bitmap.bit_depth)
    padding = b"\x00" * (stride - (width * bitmap.bit_depth) // 8)
    palette_bytes = b""
    if bitmap.bit_depth == 8:
        assert bitmap.palette and len(bitmap.palette) <= 256, "8-bit bitmaps need a palette of 1-256 colors"
        palette_bytes = b"".join(bytes((b, g, r, 0)) for r, g, b in bitmap.palette)
        index_of = {}
        for i, color in enumerate(bitmap.palette):
            index_of.setdefault(bytes(color), i)
    rows = []
    for y in reversed(range(height)):
        rgb = bitmap.pixels[3 * width * y : 3 * width * (y + 1)]
        if bitmap.bit_depth == 24:
            bgr = bytearray(3 * width)
            bgr[0::3] = rgb[2::3]
            bgr[1::3] = rgb[1::3]
            bgr[2::3] = rgb[0::3]
            rows.append(bytes(bgr) + padding)
        else:
            try:
                indices = bytes(index_of[rgb[i : i + 3]] for i in range(0, len(rgb), 3))
            except KeyError as e:
                raise ValueError(f"color {tuple(e.args[0])} is not in the bitmap palette") from None
            rows.append(indices + padding)
    pixel_data = b"".join(rows)
    pixel_offset = BMP_FILE_HEADER_SIZE + BMP_INFO_HEADER_SIZE + len(palette_bytes)
    file_header = struct.pack(
        "<2sIHHI", b"BM", pixel_offset + len(pixel_data), 0, 0, pixel_offset
    )
    info_header = struct.pack(
        "<IiiHHIIiiII",
        BMP_INFO_HEADER_SIZE,
        width,
        height,
        1,
        bitmap.bit_depth,
        BI_RGB,
        len(pixel_data),
        BMP_PIXELS_PER_METER,
        BMP_PIXELS_PER_METER,
        len(bitmap.palette) if bitmap.bit_depth == 8 else 0,
        0,
    )
    return file_header + info_header + palette_bytes + pixel_data


def crop_bitmap(bitmap: DecodedBitmap, x, y, width, height) -> DecodedBitmap:
    """Cuts a rectangle out of a bitmap. Parts of the rectangle outside
    the bitmap are dropped, so the result may be smaller than asked
    for (or empty).

    """
    width = max(0, min(width, bitmap.width - x))
    height = max(0, min(height, bitmap.height - y))
    rows = [
        bitmap.pixels[3 * (row * bitmap.width + x) : 3 * (row * bitmap.width + x + width)]
        for row in range(y, y + height)
    ]
    return make_bitmap(
        width=width,
        height=height,
        pixels=b"".join(rows),
        color_key=bitmap.color_key,
    )


def bitmap_to_image(bitmap: DecodedBitmap):
    return Image.frombytes("RGB", (bitmap.width, bitmap.height), bitmap.pixels)


def image_to_bitmap(image, *, color_key=DEFAULT_COLOR_KEY) -> DecodedBitmap:
    if image.mode.startswith("I;16"):
        # PIL conversion to RGB is broken for I;16* formats!
        im8 = image.convert("I")
        for y in range(image.height):
            for x in range(image.width):
                im8.putpixel((x, y), image.getpixel((x, y)) >> 8)
        image = im8
    elif image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info:
        # fully transparent pixels become the color key so they stay unpainted
        rgba = image.convert("RGBA")
        keyed = Image.new("RGB", rgba.size, color_key)
        keyed.paste(rgba.convert("RGB"), mask=rgba.getchannel("A").point(lambda a: 255 if a else 0))
        image = keyed
    rgb_image = image.convert("RGB")
    return make_bitmap(
        width=rgb_image.width,
        height=rgb_image.height,
        pixels=rgb_image.tobytes(),
        color_key=color_key,
    )


def encode_png(canvas) -> bytes:
    """PNG bytes for anything with width, height and packed RGB pixels."""
    image = Image.frombytes("RGB", (canvas.width, canvas.height), bytes(canvas.pixels))
    pnginfo = PngInfo()
    pnginfo.add(b"gAMA", int(0.45455e5).to_bytes(4, "big"))
    buf = io.BytesIO()
    image.save(buf, format="PNG", pnginfo=pnginfo)
    return buf.getvalue()


def smoke_test_bmp():
    key = DEFAULT_COLOR_KEY
    truecolor = make_bitmap(
        width=3,
        height=2,
        pixels=bytes((255, 0, 0)) + bytes(key) + bytes((0, 0, 255)) + bytes((1, 2, 3)) * 3,
    )
    assert decode_bmp(encode_bmp(truecolor)) == truecolor
    assert is_transparent(truecolor, 1, 0) and not is_transparent(truecolor, 0, 0)
    assert bitmap_pixel(truecolor, 2, 0) == (0, 0, 255)
    indexed = make_bitmap(
        width=5,
        height=3,
        pixels=b"".join(bytes(c) for c in [(0, 0, 0), key, (9, 9, 9)] * 5),
        bit_depth=8,
        palette=[(0, 0, 0), key, (9, 9, 9)],
    )
    assert decode_bmp(encode_bmp(indexed)) == indexed
    encoded = encode_bmp(truecolor)
    try:
        decode_bmp(encoded[:-4], name="SMOKE.BMP")
        assert False, "Expected a CorruptAsset for truncated pixel data"
    except CorruptAsset as e:
        assert e.name == "SMOKE.BMP", e
    assert crop_bitmap(truecolor, 2, 1, 5, 5)[:2] == (1, 1)
