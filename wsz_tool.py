#!/usr/bin/env python3

"""wsz_tool -- unpack, repack and screenshot classic media player skins.

    wsz_tool.py --extract skin.wsz [-o DIR]
    wsz_tool.py --pack DIR [-o skin.wsz]
    wsz_tool.py --screenshot skin.wsz [...] [-o skin.png] [--playlist-rows N]
                [--equalizer | --no-equalizer] [--title TEXT] [--jobs N]

Extraction cuts every known sheet into one PNG per sprite, stored in a
folder named after the sheet (MAIN/MAIN_WINDOW_BACKGROUND.png), and
copies every other member to the top level. Packing reverses that. A
screenshot mocks up the main, equalizer and playlist windows stacked
vertically.

Nothing is left behind on failure: extraction happens in a temporary
folder which is renamed into place at the end, archives and screenshots
are written to a temporary file which then replaces the target.
"""

from concurrent.futures import ProcessPoolExecutor
from typing import Dict, List, NamedTuple, Optional, Tuple

import argparse
import os
import shutil
import sys
import tempfile

from PIL import Image

from wsz_archive import (
    SkinArchive,
    SkinArchiveWriter,
    base_name,
    canonical_name,
    from_host_fs_name,
    lookup_buffer,
    smoke_test_host_fs_names,
    to_host_fs_name,
)
from wsz_bmp import (
    DecodedBitmap,
    bitmap_to_image,
    crop_bitmap,
    decode_bmp,
    encode_bmp,
    encode_png,
    image_to_bitmap,
    smoke_test_bmp,
)
from wsz_catalog import (
    SPRITE_SHEETS,
    SpriteSheet,
    sheet_extent,
    smoke_test_catalog,
    sprites_for_sheet,
)
from wsz_compositor import new_canvas, paint
from wsz_config import (
    DEFAULT_PLAYLIST_ROWS,
    RenderConfig,
    ScreenshotOptions,
    make_render_config,
    make_screenshot_options,
)
from wsz_errors import ArchiveReadError, ArchiveWriteError, InvalidFormat, WszError
from wsz_layout import canvas_size, compute_layout
from wsz_log import Logger, save_log, start_log
from wsz_resolver import AssetSet, pad_bitmap, resolve_assets
from wsz_text import (
    PleditSettings,
    Regions,
    VisColors,
    make_pledit_settings,
    make_regions,
    parse_pledit,
    parse_region,
    parse_viscolor,
)

LOG_FILENAME = "_wsz_tool_output.txt"


# Skins


class Skin(NamedTuple):
    asset_set: AssetSet
    pledit: PleditSettings
    vis_colors: VisColors
    regions: Regions


def load_text_file(buffer_map, name, parse, default, *, logger: Logger):
    found = lookup_buffer(buffer_map, name)
    if found is None:
        return default
    key, data = found
    try:
        return parse(data, name=key)
    except InvalidFormat as e:
        logger.append(f"Warning: {e}; using defaults")
        return default


def load_text_files(buffer_map, *, logger: Logger):
    """(pledit, vis_colors, regions); absent or malformed files give defaults."""
    return (
        load_text_file(
            buffer_map, "PLEDIT.TXT", parse_pledit, make_pledit_settings(), logger=logger
        ),
        load_text_file(
            buffer_map, "VISCOLOR.TXT", parse_viscolor, VisColors(colors=()), logger=logger
        ),
        load_text_file(buffer_map, "REGION.TXT", parse_region, make_regions(), logger=logger),
    )


def load_skin(buffer_map: Dict[str, bytes], *, config: RenderConfig, logger: Logger) -> Skin:
    asset_set = resolve_assets(buffer_map, config=config, logger=logger)
    pledit, vis_colors, regions = load_text_files(buffer_map, logger=logger)
    return Skin(asset_set=asset_set, pledit=pledit, vis_colors=vis_colors, regions=regions)


def log_text_summary(
    *, pledit: PleditSettings, vis_colors: VisColors, regions: Regions, logger: Logger
):
    for field in ("normal", "current", "normal_bg", "selected_bg"):
        color = getattr(pledit, field)
        if color is not None:
            logger.append(f"pledit.txt {field}: #{color[0]:02X}{color[1]:02X}{color[2]:02X}")
    if pledit.font is not None:
        logger.append(f"pledit.txt font: {pledit.font}")
    for key, value in sorted(pledit.custom.items()):
        logger.append(f"pledit.txt {key}: {value}")
    if vis_colors.colors:
        logger.append(f"viscolor.txt: {len(vis_colors.colors)} colors")
    for field in Regions._fields:
        polygons = getattr(regions, field)
        if polygons is not None:
            logger.append(f"region.txt {field}: {len(polygons)} polygon(s)")


# Output files


def write_file_atomically(path, data: bytes):
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".wsz_tool_", suffix=".tmp", dir=directory)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as e:
        raise ArchiveWriteError(path, e.strerror or str(e)) from e
    finally:
        if tmp_path is not None and os.path.lexists(tmp_path):
            os.remove(tmp_path)
    print(f"writing {path}")


def disambiguate(path):
    disambig = ""
    while os.path.exists(path + disambig):
        disambig = f" ({1 + int(disambig.strip(' ()') or 0)})"
    return path + disambig


def sheet_dir_name(sheet_name):
    return os.path.splitext(sheet_name)[0]


# Screenshots


def render_screenshot(
    buffer_map: Dict[str, bytes],
    *,
    options: ScreenshotOptions,
    config: RenderConfig,
    logger: Logger,
) -> bytes:
    skin = load_skin(buffer_map, config=config, logger=logger)
    width, height = canvas_size(skin.asset_set, options=options, config=config)
    canvas = new_canvas(width, height, skin.pledit.normal_bg or config.background_color)
    paint(
        canvas,
        compute_layout(skin.asset_set, options=options, config=config),
        skin.asset_set,
    )
    return encode_png(canvas)


def default_screenshot_path(wsz_path):
    return os.path.splitext(os.path.basename(wsz_path))[0] + ".png"


def wsz_screenshot(
    wsz_path,
    *,
    png_path=None,
    options: Optional[ScreenshotOptions] = None,
    config: Optional[RenderConfig] = None,
):
    options = options or make_screenshot_options()
    config = config or make_render_config()
    png_path = png_path or default_screenshot_path(wsz_path)
    logger = start_log()
    logger.append(f"== Screenshot of {wsz_path} ==")
    archive = SkinArchive.from_path(wsz_path)
    png_data = render_screenshot(
        archive.read_buffer_map(), options=options, config=config, logger=logger
    )
    write_file_atomically(png_path, png_data)
    return png_path


def screenshot_job(job) -> Tuple[str, Optional[str]]:
    """Runs in a worker process; failures come back as text since the
    error classes take more than one constructor argument and do not
    survive pickling.
    """
    wsz_path, png_path, options, config = job
    try:
        wsz_screenshot(wsz_path, png_path=png_path, options=options, config=config)
    except WszError as e:
        return wsz_path, f"{e.kind}: {e}"
    return wsz_path, None


def screenshot_all(jobs, *, workers=1) -> List[Tuple[str, Optional[str]]]:
    if workers <= 1 or len(jobs) <= 1:
        return [screenshot_job(job) for job in jobs]
    with ProcessPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(screenshot_job, jobs))


# Extraction


def decode_sheet(sheet: SpriteSheet, buffer_map, *, config: RenderConfig, logger: Logger):
    found = lookup_buffer(buffer_map, sheet.name)
    if found is None:
        logger.append(f"{sheet.name:<12} not in skin")
        return None
    key, data = found
    bitmap = decode_bmp(data, name=key, color_key=config.color_key)
    logger.append(f"{sheet.name:<12} {key} {bitmap.width}x{bitmap.height} {bitmap.bit_depth}-bit")
    extent = sheet_extent(sheet.name)
    if bitmap.width < extent[0] or bitmap.height < extent[1]:
        logger.append(
            f"Warning: {key} is smaller than {extent[0]}x{extent[1]}; missing parts are extracted as the color key"
        )
        bitmap = pad_bitmap(bitmap, *extent)
    return key, bitmap


def extract_sprites(*, workdir, outdir, sheet: SpriteSheet, bitmap: DecodedBitmap):
    sheet_dir = sheet_dir_name(sheet.name)
    os.mkdir(os.path.join(workdir, sheet_dir))
    for region in sprites_for_sheet(sheet.name):
        sprite = crop_bitmap(bitmap, region.x, region.y, region.width, region.height)
        filename = os.path.join(sheet_dir, f"{region.semantic_id}.png")
        with open(os.path.join(workdir, filename), "wb") as f:
            print(f"writing {os.path.join(outdir, filename)}")
            f.write(encode_png(sprite))


def extract_other_members(*, workdir, outdir, archive: SkinArchive, used, logger: Logger):
    """Copies members that are not a decoded sheet to the top level of
    workdir. Further copies of a sheet are dropped, and so are names that
    would collide with a sheet folder or the log file.
    """
    sheet_names = {sheet.name for sheet in SPRITE_SHEETS}
    written = {sheet_dir_name(sheet.name) for sheet in SPRITE_SHEETS}
    written.add(LOG_FILENAME.upper())
    for name in sorted(archive.list_entries()):
        if canonical_name(name) in used:
            continue
        if base_name(name) in sheet_names:
            logger.append(f"Warning: skipping {name}, another copy of {base_name(name)}")
            continue
        filename = to_host_fs_name(name)
        if filename.upper() in written:
            logger.append(f"Warning: skipping {name}, {filename} is already taken")
            continue
        written.add(filename.upper())
        with open(os.path.join(workdir, filename), "wb") as f:
            print(f"writing {os.path.join(outdir, filename)}")
            f.write(archive.read_entry(name))


def wsz_extract(wsz_path, *, outdir=None, config: Optional[RenderConfig] = None):
    config = config or make_render_config()
    logger = start_log()
    logger.append(f"== Extracting {wsz_path} ==")
    archive = SkinArchive.from_path(wsz_path)
    buffer_map = archive.read_buffer_map()
    if outdir is None:
        outdir = disambiguate(os.path.splitext(os.path.basename(wsz_path))[0])
    elif os.path.exists(outdir):
        raise ArchiveWriteError(outdir, "already exists")

    sheets = []
    for sheet in SPRITE_SHEETS:
        decoded = decode_sheet(sheet, buffer_map, config=config, logger=logger)
        if decoded is not None:
            sheets.append((sheet, decoded))
    pledit, vis_colors, regions = load_text_files(buffer_map, logger=logger)
    log_text_summary(pledit=pledit, vis_colors=vis_colors, regions=regions, logger=logger)

    parent = os.path.dirname(os.path.abspath(outdir))
    try:
        workdir = tempfile.mkdtemp(prefix=".wsz_tool_", dir=parent)
    except OSError as e:
        raise ArchiveWriteError(outdir, e.strerror or str(e)) from e
    try:
        os.chmod(workdir, 0o755)  # mkdtemp creates it private
        print(f"mkdir {outdir}")
        for sheet, (_key, bitmap) in sheets:
            extract_sprites(workdir=workdir, outdir=outdir, sheet=sheet, bitmap=bitmap)
        extract_other_members(
            workdir=workdir,
            outdir=outdir,
            archive=archive,
            used={key for _, (key, _) in sheets},
            logger=logger,
        )
        save_log(outdir=workdir, logger=logger)
        os.rename(workdir, outdir)
    except OSError as e:
        shutil.rmtree(workdir, ignore_errors=True)
        raise ArchiveWriteError(outdir, e.strerror or str(e)) from e
    except BaseException:
        shutil.rmtree(workdir, ignore_errors=True)
        raise
    print("\nDone.")
    return outdir


# Packing


def construct_sprite_sheet(sheet: SpriteSheet, sprite_dir, *, color_key, logger: Logger):
    """Pastes every sprite PNG of sprite_dir at its catalog position over
    a color key filled sheet of the canonical size. Absent sprites stay
    transparent; oversized ones are cropped.
    """
    image = Image.new("RGB", (sheet.width, sheet.height), color_key)
    for region in sprites_for_sheet(sheet.name):
        sprite_path = os.path.join(sprite_dir, f"{region.semantic_id}.png")
        if not os.path.exists(sprite_path):
            logger.append(f"Warning: {sprite_path} not found")
            continue
        with Image.open(sprite_path) as sprite_image:
            sprite = bitmap_to_image(image_to_bitmap(sprite_image, color_key=color_key))
        if sprite.width > region.width or sprite.height > region.height:
            logger.append(
                f"Warning: {sprite_path} is {sprite.width}x{sprite.height}, "
                f"cropping to {region.width}x{region.height}"
            )
            sprite = sprite.crop(
                (0, 0, min(sprite.width, region.width), min(sprite.height, region.height))
            )
        image.paste(sprite, (region.x, region.y))
    return image_to_bitmap(image, color_key=color_key)


def collect_pack_entries(srcdir, *, config: RenderConfig, logger: Logger) -> List[Tuple[str, bytes]]:
    entries = []
    sheet_dirs = set()
    for sheet in SPRITE_SHEETS:
        sheet_dir = sheet_dir_name(sheet.name)
        sprite_dir = os.path.join(srcdir, sheet_dir)
        if not os.path.isdir(sprite_dir):
            continue
        sheet_dirs.add(sheet_dir)
        bitmap = construct_sprite_sheet(
            sheet, sprite_dir, color_key=config.color_key, logger=logger
        )
        logger.append(f"{sheet.name:<12} from {sprite_dir}")
        entries.append((sheet.name, encode_bmp(bitmap)))
    rebuilt = {name for name, _ in entries}
    for filename in sorted(os.listdir(srcdir)):
        path = os.path.join(srcdir, filename)
        if filename == LOG_FILENAME or filename in sheet_dirs:
            continue
        if os.path.isdir(path):
            logger.append(f"Warning: skipping unknown folder {path}")
            continue
        name = from_host_fs_name(filename)
        if canonical_name(name) in rebuilt:
            logger.append(f"Warning: skipping {path}, {canonical_name(name)} was rebuilt from sprites")
            continue
        with open(path, "rb") as f:
            entries.append((name, f.read()))
    return entries


def wsz_pack(srcdir, *, wsz_path=None, config: Optional[RenderConfig] = None):
    config = config or make_render_config()
    logger = start_log()
    logger.append(f"== Packing {srcdir} ==")
    if not os.path.isdir(srcdir):
        raise ArchiveReadError(srcdir, "not a directory")
    wsz_path = wsz_path or os.path.normpath(srcdir) + ".wsz"
    try:
        entries = collect_pack_entries(srcdir, config=config, logger=logger)
    except OSError as e:
        raise ArchiveReadError(srcdir, e.strerror or str(e)) from e
    with SkinArchiveWriter(wsz_path) as writer:
        for name, data in entries:
            writer.write_entry(name, data)
    return wsz_path


# Command line


def build_parser():
    parser = argparse.ArgumentParser(
        prog="wsz_tool.py",
        description="Unpack, repack and screenshot classic media player skins (.wsz).",
    )
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--extract", metavar="WSZ", help="extract a skin into a folder")
    mode.add_argument("--pack", metavar="DIR", help="pack an extracted folder into a skin")
    mode.add_argument("--screenshot", metavar="WSZ", nargs="+", help="render skin mockups as PNG")
    parser.add_argument("-o", "--output", metavar="PATH", help="output folder, skin or PNG")
    parser.add_argument(
        "--playlist-rows",
        type=int,
        default=DEFAULT_PLAYLIST_ROWS,
        metavar="N",
        help=f"playlist rows to draw (default {DEFAULT_PLAYLIST_ROWS})",
    )
    equalizer = parser.add_mutually_exclusive_group()
    equalizer.add_argument(
        "--equalizer", dest="include_equalizer", action="store_true", help="always draw the equalizer"
    )
    equalizer.add_argument(
        "--no-equalizer", dest="include_equalizer", action="store_false", help="never draw the equalizer"
    )
    parser.set_defaults(include_equalizer=None)
    parser.add_argument("--title", metavar="TEXT", help="song title shown in the main window")
    parser.add_argument("--jobs", type=int, default=1, metavar="N", help="screenshots to render at once")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.jobs < 1:
        parser.error("--jobs must be at least 1")
    if args.screenshot and args.output and len(args.screenshot) > 1:
        parser.error("-o/--output takes a single screenshot input")

    config = make_render_config() if args.title is None else make_render_config(title_text=args.title)
    try:
        if args.extract:
            wsz_extract(args.extract, outdir=args.output, config=config)
        elif args.pack:
            wsz_pack(args.pack, wsz_path=args.output, config=config)
        else:
            options = make_screenshot_options(
                playlist_rows=args.playlist_rows, include_equalizer=args.include_equalizer
            )
            jobs = [(path, args.output, options, config) for path in args.screenshot]
            failures = [
                message
                for _, message in screenshot_all(jobs, workers=args.jobs)
                if message is not None
            ]
            for message in failures:
                print(message, file=sys.stderr)
            if failures:
                return 1
    except WszError as e:
        print(f"{e.kind}: {e}", file=sys.stderr)
        return 1
    return 0


def smoke_test_everything():
    smoke_test_catalog()
    smoke_test_bmp()
    smoke_test_host_fs_names()


smoke_test_everything()  # do this at import time so a broken module
# gets noticed as soon as possible

if __name__ == "__main__":
    sys.exit(main())
