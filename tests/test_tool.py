import io
import os
import zipfile

import pytest
from PIL import Image

from skin_builder import (
    ALL_SHEETS,
    SHEET_COLORS,
    build_skin,
    keyed_sheet_bmp,
    paletted_sheet_bmp,
    sheet_bmp,
    skin_members,
    write_skin,
    zip_members,
)
from wsz_archive import SkinArchive
from wsz_config import make_render_config, make_screenshot_options
from wsz_errors import ArchiveReadError, ArchiveWriteError, CorruptAsset, MissingRequiredAsset
from wsz_log import start_log
from wsz_tool import load_skin, main, render_screenshot, wsz_extract, wsz_pack, wsz_screenshot

PLEDIT = b"[Text]\r\nNormal=#00FF00\r\nNormalBG=#102030\r\n"


def png_image(path):
    with Image.open(path) as image:
        return image.convert("RGB")


def screenshot(tmp_path, members, name="skin", **options):
    skin = write_skin(tmp_path / f"{name}.wsz", zip_members(members))
    png = tmp_path / f"{name}.png"
    wsz_screenshot(skin, png_path=png, options=make_screenshot_options(**options))
    return png_image(png)


def test_skin_without_equalizer(tmp_path):
    image = screenshot(tmp_path, skin_members())
    assert image.size == (275, 116 + 58 + 2 * 29)
    assert image.getpixel((1, 20)) == SHEET_COLORS["MAIN.BMP"]
    assert image.getpixel((1, 116 + 25)) == SHEET_COLORS["PLEDIT.BMP"]


def test_skin_with_equalizer_adds_its_window(tmp_path):
    without = screenshot(tmp_path, skin_members(), name="without")
    image = screenshot(tmp_path, skin_members(ALL_SHEETS), name="with")
    assert image.size == (275, without.size[1] + 116)
    assert image.getpixel((1, 116 + 20)) == SHEET_COLORS["EQMAIN.BMP"]


def test_zero_playlist_rows(tmp_path):
    image = screenshot(tmp_path, skin_members(), playlist_rows=0)
    assert image.size == (275, 116 + 58)


def test_corrupt_asset_writes_nothing(tmp_path):
    members = skin_members()
    members["NUMBERS.BMP"] = sheet_bmp("NUMBERS.BMP")[:-100]
    skin = write_skin(tmp_path / "broken.wsz", zip_members(members))
    png = tmp_path / "broken.png"
    with pytest.raises(CorruptAsset) as excinfo:
        wsz_screenshot(skin, png_path=png)
    assert excinfo.value.name == "NUMBERS.BMP"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["broken.wsz"]


def test_screenshots_are_byte_identical(tmp_path):
    skin = write_skin(tmp_path / "skin.wsz", build_skin())
    wsz_screenshot(skin, png_path=tmp_path / "a.png")
    wsz_screenshot(skin, png_path=tmp_path / "b.png")
    assert (tmp_path / "a.png").read_bytes() == (tmp_path / "b.png").read_bytes()


def test_transparent_title_bar_shows_main_window(tmp_path):
    members = skin_members()
    members["TITLEBAR.BMP"] = keyed_sheet_bmp("TITLEBAR.BMP")
    image = screenshot(tmp_path, members)
    assert image.getpixel((1, 1)) == SHEET_COLORS["MAIN.BMP"]
    assert image.getpixel((265, 4)) == SHEET_COLORS["MAIN.BMP"]


def test_playlist_background_from_pledit(tmp_path):
    plain = screenshot(tmp_path, skin_members(), name="plain")
    assert plain.getpixel((100, 150)) == (0, 0, 0)
    colored = screenshot(tmp_path, skin_members(extra={"pledit.txt": PLEDIT}), name="colored")
    assert colored.getpixel((100, 150)) == (0x10, 0x20, 0x30)


def test_malformed_text_files_are_not_fatal(tmp_path):
    members = skin_members(
        extra={"pledit.txt": b"NormalBG=#102030\n", "viscolor.txt": b"1,2,999\n", "region.txt": b"[Bogus]\n"}
    )
    image = screenshot(tmp_path, members)
    assert image.getpixel((100, 150)) == (0, 0, 0)


def test_load_skin():
    logger = start_log(echo=False)
    buffer_map = SkinArchive.from_bytes(
        build_skin(extra={"PLEDIT.TXT": PLEDIT, "viscolor.txt": b"1,2,3\n"})
    ).read_buffer_map()
    skin = load_skin(buffer_map, config=make_render_config(), logger=logger)
    assert skin.pledit.normal == (0, 255, 0)
    assert skin.vis_colors.colors == ((1, 2, 3),)
    assert skin.regions.main is None
    assert skin.asset_set.is_found("MAIN.BMP")


def test_render_screenshot_is_png():
    buffer_map = SkinArchive.from_bytes(build_skin()).read_buffer_map()
    png = render_screenshot(
        buffer_map,
        options=make_screenshot_options(),
        config=make_render_config(),
        logger=start_log(echo=False),
    )
    with Image.open(io.BytesIO(png)) as image:
        assert image.format == "PNG"


def test_extract(tmp_path):
    members = skin_members(extra={"pledit.txt": PLEDIT, "skin/Read me?.txt": b"hello"})
    skin = write_skin(tmp_path / "skin.wsz", zip_members(members))
    outdir = wsz_extract(skin, outdir=str(tmp_path / "out"))
    out = tmp_path / "out"
    assert outdir == str(out)
    background = png_image(out / "MAIN" / "MAIN_WINDOW_BACKGROUND.png")
    assert background.size == (275, 116)
    assert background.getpixel((0, 0)) == SHEET_COLORS["MAIN.BMP"]
    assert (out / "CBUTTONS" / "MAIN_PLAY_BUTTON.png").exists()
    assert not (out / "EQMAIN").exists()
    assert (out / "pledit.txt").read_bytes() == PLEDIT
    assert (out / "Read me%3F.txt").read_bytes() == b"hello"
    assert (out / "_wsz_tool_output.txt").exists()
    assert not (out / "MAIN.BMP").exists()
    assert sorted(p.name for p in tmp_path.iterdir()) == ["out", "skin.wsz"]


def test_extract_default_folder_is_disambiguated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    write_skin(tmp_path / "skin.wsz", build_skin())
    assert wsz_extract("skin.wsz") == "skin"
    assert wsz_extract("skin.wsz") == "skin (1)"
    assert wsz_extract("skin.wsz") == "skin (2)"


def test_extract_refuses_existing_folder(tmp_path):
    skin = write_skin(tmp_path / "skin.wsz", build_skin())
    (tmp_path / "out").mkdir()
    with pytest.raises(ArchiveWriteError):
        wsz_extract(skin, outdir=str(tmp_path / "out"))


def test_extract_corrupt_skin_leaves_nothing(tmp_path):
    members = skin_members()
    members["MAIN.BMP"] = b"BM not really"
    skin = write_skin(tmp_path / "skin.wsz", zip_members(members))
    with pytest.raises(CorruptAsset):
        wsz_extract(skin, outdir=str(tmp_path / "out"))
    assert sorted(p.name for p in tmp_path.iterdir()) == ["skin.wsz"]


def test_extract_then_pack_renders_the_same(tmp_path):
    members = skin_members(ALL_SHEETS, extra={"pledit.txt": PLEDIT, "Read me?.txt": b"hello"})
    members["VOLUME.BMP"] = paletted_sheet_bmp("VOLUME.BMP")
    members["TITLEBAR.BMP"] = keyed_sheet_bmp("TITLEBAR.BMP")
    skin = write_skin(tmp_path / "skin.wsz", zip_members(members))
    wsz_extract(skin, outdir=str(tmp_path / "out"))
    repacked = wsz_pack(str(tmp_path / "out"), wsz_path=str(tmp_path / "repacked.wsz"))
    assert repacked == str(tmp_path / "repacked.wsz")

    archive = SkinArchive.from_path(repacked)
    entries = archive.list_entries()
    assert set(ALL_SHEETS) <= entries
    assert "Read me?.txt" in entries
    assert "_wsz_tool_output.txt" not in entries
    assert archive.read_entry("pledit.txt") == PLEDIT

    wsz_screenshot(skin, png_path=tmp_path / "original.png")
    wsz_screenshot(repacked, png_path=tmp_path / "repacked.png")
    assert (tmp_path / "original.png").read_bytes() == (tmp_path / "repacked.png").read_bytes()


def test_extract_drops_second_copies_of_sheets(tmp_path):
    members = skin_members(extra={"backup/MAIN.BMP": sheet_bmp("MAIN.BMP"), "notes.txt": b"hi"})
    skin = write_skin(tmp_path / "skin.wsz", zip_members(members))
    wsz_extract(skin, outdir=str(tmp_path / "out"))
    assert not (tmp_path / "out" / "MAIN.BMP").exists()
    assert (tmp_path / "out" / "notes.txt").read_bytes() == b"hi"
    log = (tmp_path / "out" / "_wsz_tool_output.txt").read_text()
    assert "skipping backup/MAIN.BMP" in log

    repacked = wsz_pack(str(tmp_path / "out"), wsz_path=str(tmp_path / "repacked.wsz"))
    with zipfile.ZipFile(repacked) as zf:
        assert zf.namelist().count("MAIN.BMP") == 1


def test_pack_prefers_rebuilt_sheets_over_loose_copies(tmp_path):
    skin = write_skin(tmp_path / "skin.wsz", build_skin())
    wsz_extract(skin, outdir=str(tmp_path / "out"))
    (tmp_path / "out" / "main.bmp").write_bytes(b"stale")
    repacked = wsz_pack(str(tmp_path / "out"), wsz_path=str(tmp_path / "repacked.wsz"))
    with zipfile.ZipFile(repacked) as zf:
        names = [name.upper() for name in zf.namelist()]
        assert names.count("MAIN.BMP") == 1
        assert zf.read("MAIN.BMP").startswith(b"BM")


def test_extract_skips_members_named_like_sheet_folders(tmp_path):
    members = skin_members(extra={"Main": b"not a folder", "_wsz_tool_output.txt": b"old log"})
    skin = write_skin(tmp_path / "skin.wsz", zip_members(members))
    wsz_extract(skin, outdir=str(tmp_path / "out"))
    out = tmp_path / "out"
    assert (out / "MAIN" / "MAIN_WINDOW_BACKGROUND.png").exists()
    log = (out / "_wsz_tool_output.txt").read_text()
    assert "old log" not in log
    assert "skipping Main" in log


def test_pack_is_deterministic(tmp_path):
    skin = write_skin(tmp_path / "skin.wsz", build_skin())
    wsz_extract(skin, outdir=str(tmp_path / "out"))
    first = wsz_pack(str(tmp_path / "out"), wsz_path=str(tmp_path / "a.wsz"))
    second = wsz_pack(str(tmp_path / "out"), wsz_path=str(tmp_path / "b.wsz"))
    with open(first, "rb") as a, open(second, "rb") as b:
        assert a.read() == b.read()


def test_pack_default_name(tmp_path):
    skin = write_skin(tmp_path / "skin.wsz", build_skin())
    wsz_extract(skin, outdir=str(tmp_path / "out"))
    assert wsz_pack(str(tmp_path / "out") + os.sep) == str(tmp_path / "out.wsz")
    assert (tmp_path / "out.wsz").exists()


def test_pack_with_missing_sprites_leaves_them_transparent(tmp_path):
    skin = write_skin(tmp_path / "skin.wsz", build_skin())
    wsz_extract(skin, outdir=str(tmp_path / "out"))
    os.remove(tmp_path / "out" / "MAIN" / "MAIN_WINDOW_BACKGROUND.png")
    wsz_pack(str(tmp_path / "out"), wsz_path=str(tmp_path / "repacked.wsz"))
    image = screenshot(tmp_path, SkinArchive.from_path(tmp_path / "repacked.wsz").read_buffer_map(), name="shot")
    assert image.getpixel((1, 20)) == (0, 0, 0)


def test_pack_requires_a_folder(tmp_path):
    with pytest.raises(ArchiveReadError):
        wsz_pack(str(tmp_path / "nope"))


def test_cli_screenshot(tmp_path):
    skin = write_skin(tmp_path / "skin.wsz", build_skin(ALL_SHEETS))
    png = tmp_path / "out.png"
    assert main(["--screenshot", str(skin), "-o", str(png), "--playlist-rows", "4"]) == 0
    assert png_image(png).size == (275, 116 + 116 + 58 + 4 * 29)
    assert main(["--screenshot", str(skin), "-o", str(png), "--no-equalizer", "--title", "Hello"]) == 0
    assert png_image(png).size == (275, 116 + 58 + 2 * 29)


def test_cli_forced_equalizer_without_eqmain(tmp_path, capsys):
    skin = write_skin(tmp_path / "skin.wsz", build_skin())
    assert main(["--screenshot", str(skin), "-o", str(tmp_path / "x.png"), "--equalizer"]) == 1
    assert "MissingRequiredAsset: EQMAIN.BMP not found in skin" in capsys.readouterr().err
    assert not (tmp_path / "x.png").exists()


def test_cli_reports_corrupt_assets(tmp_path, capsys):
    members = skin_members()
    members["NUMBERS.BMP"] = sheet_bmp("NUMBERS.BMP")[:-100]
    skin = write_skin(tmp_path / "broken.wsz", zip_members(members))
    assert main(["--screenshot", str(skin), "-o", str(tmp_path / "broken.png")]) == 1
    err = capsys.readouterr().err
    assert err.startswith("CorruptAsset: NUMBERS.BMP: truncated pixel data")


def test_cli_missing_archive(tmp_path, capsys):
    assert main(["--extract", str(tmp_path / "nope.wsz")]) == 1
    assert capsys.readouterr().err.startswith("ArchiveReadError: cannot read")


def test_cli_several_screenshots_in_parallel(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    write_skin(tmp_path / "one.wsz", build_skin())
    write_skin(tmp_path / "two.wsz", build_skin(ALL_SHEETS))
    assert main(["--screenshot", "one.wsz", "two.wsz", "--jobs", "2"]) == 0
    assert png_image(tmp_path / "one.png").size == (275, 232)
    assert png_image(tmp_path / "two.png").size == (275, 348)


def test_cli_extract_and_pack(tmp_path):
    skin = write_skin(tmp_path / "skin.wsz", build_skin())
    assert main(["--extract", str(skin), "-o", str(tmp_path / "out")]) == 0
    assert main(["--pack", str(tmp_path / "out"), "-o", str(tmp_path / "new.wsz")]) == 0
    assert SkinArchive.from_path(tmp_path / "new.wsz").find_entry("MAIN.BMP") == "MAIN.BMP"


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["--extract", "a.wsz", "--pack", "dir"],
        ["--screenshot", "a.wsz", "b.wsz", "-o", "x.png"],
        ["--screenshot", "a.wsz", "--equalizer", "--no-equalizer"],
        ["--screenshot", "a.wsz", "--jobs", "0"],
    ],
)
def test_cli_usage_errors(argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    assert excinfo.value.code == 2
