import pytest

from wsz_catalog import (
    BUILTIN_DEFAULT,
    OPTIONAL,
    REQUIRED,
    SPRITE_SHEETS,
    SPRITES,
    digit_id,
    glyph_id,
    sheet_extent,
    smoke_test_catalog,
    sprite_region,
    sprite_sheet,
    sprites_for_sheet,
    sub_region,
)


def test_catalog_smoke_test_passes():
    smoke_test_catalog()


def test_every_region_inside_its_sheet():
    for region in SPRITES:
        sheet = sprite_sheet(region.sheet)
        assert region.x + region.width <= sheet.width, region
        assert region.y + region.height <= sheet.height, region


def test_sheet_requirements():
    requirements = {sheet.name: sheet.requirement for sheet in SPRITE_SHEETS}
    assert requirements["MAIN.BMP"] == REQUIRED
    assert requirements["PLEDIT.BMP"] == BUILTIN_DEFAULT
    assert requirements["GEN.BMP"] == BUILTIN_DEFAULT
    assert requirements["EQMAIN.BMP"] == OPTIONAL
    assert requirements["NUMS_EX.BMP"] == OPTIONAL
    assert sprite_sheet("BALANCE.BMP").fallback == "VOLUME.BMP"
    assert sprite_sheet("NUMBERS.BMP").fallback == "NUMS_EX.BMP"
    assert len(SPRITE_SHEETS) == 16


def test_sheet_lookup_ignores_case():
    assert sprite_sheet("main.bmp").name == "MAIN.BMP"


def test_unknown_sprite_is_a_key_error():
    with pytest.raises(KeyError):
        sprite_region("NOT_A_SPRITE")


def test_main_window_background():
    region = sprite_region("MAIN_WINDOW_BACKGROUND")
    assert (region.sheet, region.x, region.y, region.width, region.height) == ("MAIN.BMP", 0, 0, 275, 116)
    assert region in sprites_for_sheet("MAIN.BMP")
    assert sheet_extent("MAIN.BMP") == (275, 116)


def test_glyphs():
    assert glyph_id("W") == glyph_id("w") == "CHARACTER_119"
    a = sprite_region(glyph_id("a"))
    zero = sprite_region(glyph_id("0"))
    assert (a.x, a.y, a.width, a.height) == (0, 0, 5, 6)
    assert (zero.x, zero.y) == (0, 6)
    assert glyph_id("☃") == glyph_id(" ")


def test_digits():
    assert digit_id("3", extended=False) == "DIGIT_3"
    assert digit_id("3", extended=True) == "DIGIT_3_EX"
    assert digit_id("-", extended=False) == "MINUS_SIGN"
    assert sprite_region("DIGIT_3").x == 27
    assert sprite_region("DIGIT_3_EX").sheet == "NUMS_EX.BMP"


def test_sub_region_offsets_inside_region():
    volume = sprite_region("MAIN_VOLUME_BACKGROUND")
    frame = sub_region(volume, y=15 * 27, height=13)
    assert (frame.x, frame.y, frame.width, frame.height) == (0, 405, 68, 13)
    with pytest.raises(AssertionError):
        sub_region(volume, y=15 * 28, height=13)


def test_nordic_glyphs_are_named_by_upper_case():
    assert glyph_id("å") == glyph_id("Å") == "CHARACTER_197"
    assert glyph_id("ö") == "CHARACTER_214"
    assert glyph_id("Ä") == "CHARACTER_196"
    assert sprite_region("CHARACTER_197").y == 12
    assert glyph_id("a") == "CHARACTER_97"
