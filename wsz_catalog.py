"""Sprite catalog for classic (2.x style) skins.

Every sheet a skin may ship, and every sprite cut from those sheets, as flat
constant tables. Coordinates are in sheet pixels, top-down. Elements with
several visual states (released/depressed buttons, focused/unfocused title
bars) have one row per state, usually from adjacent areas of the same sheet.

A guide to the format can be found at <https://winampskins.neocities.org/>
"""

from typing import Dict, NamedTuple, Optional, Tuple

REQUIRED = "required"
BUILTIN_DEFAULT = "builtin-default"
OPTIONAL = "optional"


class SpriteSheet(NamedTuple):
    name: str
    width: int  # canonical size, used for validation and built-in defaults
    height: int
    requirement: str
    fallback: Optional[str]  # another sheet drawn in place of this one when absent


def make_sprite_sheet(**kw) -> SpriteSheet:
    kw.setdefault("fallback", None)
    return SpriteSheet(**kw)


class SpriteRegion(NamedTuple):
    sheet: str
    x: int
    y: int
    width: int
    height: int
    semantic_id: str


SPRITE_SHEETS = (
    make_sprite_sheet(name="BALANCE.BMP", width=47, height=433, requirement=REQUIRED, fallback="VOLUME.BMP"),
    make_sprite_sheet(name="CBUTTONS.BMP", width=136, height=36, requirement=REQUIRED),
    make_sprite_sheet(name="MAIN.BMP", width=275, height=116, requirement=REQUIRED),
    make_sprite_sheet(name="MONOSTER.BMP", width=56, height=24, requirement=REQUIRED),
    make_sprite_sheet(name="NUMBERS.BMP", width=99, height=13, requirement=REQUIRED, fallback="NUMS_EX.BMP"),
    make_sprite_sheet(name="NUMS_EX.BMP", width=108, height=13, requirement=OPTIONAL),
    make_sprite_sheet(name="PLAYPAUS.BMP", width=42, height=9, requirement=REQUIRED),
    make_sprite_sheet(name="PLEDIT.BMP", width=280, height=186, requirement=BUILTIN_DEFAULT),
    make_sprite_sheet(name="EQ_EX.BMP", width=275, height=82, requirement=OPTIONAL),
    make_sprite_sheet(name="EQMAIN.BMP", width=275, height=315, requirement=OPTIONAL),
    make_sprite_sheet(name="POSBAR.BMP", width=307, height=10, requirement=REQUIRED),
    make_sprite_sheet(name="SHUFREP.BMP", width=92, height=85, requirement=REQUIRED),
    make_sprite_sheet(name="TEXT.BMP", width=155, height=18, requirement=REQUIRED),
    make_sprite_sheet(name="TITLEBAR.BMP", width=344, height=87, requirement=REQUIRED),
    make_sprite_sheet(name="VOLUME.BMP", width=68, height=433, requirement=REQUIRED),
    make_sprite_sheet(name="GEN.BMP", width=194, height=109, requirement=BUILTIN_DEFAULT),
)


def _rows(sheet, *rows):
    return tuple(
        SpriteRegion(sheet=sheet, x=x, y=y, width=w, height=h, semantic_id=semantic_id)
        for semantic_id, x, y, w, h in rows
    )


# (semantic_id, x, y, width, height)
BALANCE_SPRITES = _rows(
    "BALANCE.BMP",
    ("MAIN_BALANCE_BACKGROUND", 9, 0, 38, 420),
    ("MAIN_BALANCE_THUMB", 15, 422, 14, 11),
    ("MAIN_BALANCE_THUMB_ACTIVE", 0, 422, 14, 11),
)

CBUTTONS_SPRITES = _rows(
    "CBUTTONS.BMP",
    ("MAIN_PREVIOUS_BUTTON", 0, 0, 23, 18),
    ("MAIN_PREVIOUS_BUTTON_ACTIVE", 0, 18, 23, 18),
    ("MAIN_PLAY_BUTTON", 23, 0, 23, 18),
    ("MAIN_PLAY_BUTTON_ACTIVE", 23, 18, 23, 18),
    ("MAIN_PAUSE_BUTTON", 46, 0, 23, 18),
    ("MAIN_PAUSE_BUTTON_ACTIVE", 46, 18, 23, 18),
    ("MAIN_STOP_BUTTON", 69, 0, 23, 18),
    ("MAIN_STOP_BUTTON_ACTIVE", 69, 18, 23, 18),
    ("MAIN_NEXT_BUTTON", 92, 0, 22, 18),
    ("MAIN_NEXT_BUTTON_ACTIVE", 92, 18, 22, 18),
    ("MAIN_EJECT_BUTTON", 114, 0, 22, 16),
    ("MAIN_EJECT_BUTTON_ACTIVE", 114, 16, 22, 16),
)

MAIN_SPRITES = _rows(
    "MAIN.BMP",
    ("MAIN_WINDOW_BACKGROUND", 0, 0, 275, 116),
)

MONOSTER_SPRITES = _rows(
    "MONOSTER.BMP",
    ("MAIN_STEREO", 0, 12, 29, 12),
    ("MAIN_STEREO_ACTIVE", 0, 0, 29, 12),
    ("MAIN_MONO", 29, 12, 27, 12),
    ("MAIN_MONO_ACTIVE", 29, 0, 27, 12),
)

DIGIT_WIDTH = 9
DIGIT_HEIGHT = 13

NUMBERS_SPRITES = _rows(
    "NUMBERS.BMP",
    *[(f"DIGIT_{n}", DIGIT_WIDTH * n, 0, DIGIT_WIDTH, DIGIT_HEIGHT) for n in range(10)],
    ("DIGIT_BLANK", 90, 0, DIGIT_WIDTH, DIGIT_HEIGHT),
    ("NO_MINUS_SIGN", 9, 6, 5, 1),
    ("MINUS_SIGN", 20, 6, 5, 1),
)

NUMS_EX_SPRITES = _rows(
    "NUMS_EX.BMP",
    *[(f"DIGIT_{n}_EX", DIGIT_WIDTH * n, 0, DIGIT_WIDTH, DIGIT_HEIGHT) for n in range(10)],
    ("NO_MINUS_SIGN_EX", 90, 0, DIGIT_WIDTH, DIGIT_HEIGHT),
    ("MINUS_SIGN_EX", 99, 0, DIGIT_WIDTH, DIGIT_HEIGHT),
)

PLAYPAUS_SPRITES = _rows(
    "PLAYPAUS.BMP",
    ("MAIN_PLAYING_INDICATOR", 0, 0, 9, 9),
    ("MAIN_PAUSED_INDICATOR", 9, 0, 9, 9),
    ("MAIN_STOPPED_INDICATOR", 18, 0, 9, 9),
    ("MAIN_NOT_WORKING_INDICATOR", 36, 0, 3, 9),
    ("MAIN_WORKING_INDICATOR", 39, 0, 3, 9),
)

PLEDIT_SPRITES = _rows(
    "PLEDIT.BMP",
    ("PLAYLIST_TOP_TILE", 127, 21, 25, 20),
    ("PLAYLIST_TOP_LEFT_CORNER", 0, 21, 25, 20),
    ("PLAYLIST_TITLE_BAR", 26, 21, 100, 20),
    ("PLAYLIST_TOP_RIGHT_CORNER", 153, 21, 25, 20),
    ("PLAYLIST_TOP_TILE_SELECTED", 127, 0, 25, 20),
    ("PLAYLIST_TOP_LEFT_SELECTED", 0, 0, 25, 20),
    ("PLAYLIST_TITLE_BAR_SELECTED", 26, 0, 100, 20),
    ("PLAYLIST_TOP_RIGHT_CORNER_SELECTED", 153, 0, 25, 20),
    ("PLAYLIST_LEFT_TILE", 0, 42, 12, 29),
    ("PLAYLIST_RIGHT_TILE", 31, 42, 20, 29),
    ("PLAYLIST_BOTTOM_TILE", 179, 0, 25, 38),
    ("PLAYLIST_BOTTOM_LEFT_CORNER", 0, 72, 125, 38),
    ("PLAYLIST_BOTTOM_RIGHT_CORNER", 126, 72, 150, 38),
    ("PLAYLIST_VISUALIZER_BACKGROUND", 205, 0, 75, 38),
    ("PLAYLIST_SHADE_BACKGROUND", 72, 57, 25, 14),
    ("PLAYLIST_SHADE_BACKGROUND_LEFT", 72, 42, 25, 14),
    ("PLAYLIST_SHADE_BACKGROUND_RIGHT", 99, 57, 50, 14),
    ("PLAYLIST_SHADE_BACKGROUND_RIGHT_SELECTED", 99, 42, 50, 14),
    ("PLAYLIST_SCROLL_HANDLE", 52, 53, 8, 18),
    ("PLAYLIST_SCROLL_HANDLE_SELECTED", 61, 53, 8, 18),
    ("PLAYLIST_CLOSE_SELECTED", 52, 42, 9, 9),
    ("PLAYLIST_COLLAPSE_SELECTED", 62, 42, 9, 9),
    ("PLAYLIST_ADD_URL", 0, 111, 22, 18),
    ("PLAYLIST_ADD_URL_SELECTED", 23, 111, 22, 18),
    ("PLAYLIST_ADD_DIR", 0, 130, 22, 18),
    ("PLAYLIST_ADD_DIR_SELECTED", 23, 130, 22, 18),
    ("PLAYLIST_ADD_FILE", 0, 149, 22, 18),
    ("PLAYLIST_ADD_FILE_SELECTED", 23, 149, 22, 18),
    ("PLAYLIST_ADD_MENU_BAR", 48, 111, 3, 54),
)

EQ_EX_SPRITES = _rows(
    "EQ_EX.BMP",
    ("EQ_SHADE_BACKGROUND_SELECTED", 0, 0, 275, 14),
    ("EQ_SHADE_BACKGROUND", 0, 15, 275, 14),
    ("EQ_SHADE_VOLUME_SLIDER_LEFT", 1, 30, 3, 7),
    ("EQ_SHADE_VOLUME_SLIDER_CENTER", 4, 30, 3, 7),
    ("EQ_SHADE_VOLUME_SLIDER_RIGHT", 7, 30, 3, 7),
    ("EQ_SHADE_BALANCE_SLIDER_LEFT", 11, 30, 3, 7),
    ("EQ_SHADE_BALANCE_SLIDER_CENTER", 14, 30, 3, 7),
    ("EQ_SHADE_BALANCE_SLIDER_RIGHT", 17, 30, 3, 7),
    ("EQ_MAXIMIZE_BUTTON_ACTIVE", 1, 38, 9, 9),
    ("EQ_MINIMIZE_BUTTON_ACTIVE", 1, 47, 9, 9),
    ("EQ_SHADE_CLOSE_BUTTON", 11, 38, 9, 9),
    ("EQ_SHADE_CLOSE_BUTTON_ACTIVE", 11, 47, 9, 9),
)

EQ_SLIDER_FRAME_WIDTH = 14
EQ_SLIDER_FRAME_HEIGHT = 63
EQ_SLIDER_FRAME_STEP_X = 15
EQ_SLIDER_FRAME_STEP_Y = 65
EQ_SLIDER_FRAMES_PER_ROW = 14

EQMAIN_SPRITES = _rows(
    "EQMAIN.BMP",
    ("EQ_WINDOW_BACKGROUND", 0, 0, 275, 116),
    ("EQ_TITLE_BAR", 0, 149, 275, 14),
    ("EQ_TITLE_BAR_SELECTED", 0, 134, 275, 14),
    ("EQ_SLIDER_BACKGROUND", 13, 164, 209, 129),
    ("EQ_SLIDER_THUMB", 0, 164, 11, 11),
    ("EQ_SLIDER_THUMB_SELECTED", 0, 176, 11, 11),
    ("EQ_ON_BUTTON", 10, 119, 26, 12),
    ("EQ_ON_BUTTON_DEPRESSED", 128, 119, 26, 12),
    ("EQ_ON_BUTTON_SELECTED", 69, 119, 26, 12),
    ("EQ_ON_BUTTON_SELECTED_DEPRESSED", 187, 119, 26, 12),
    ("EQ_AUTO_BUTTON", 36, 119, 32, 12),
    ("EQ_AUTO_BUTTON_DEPRESSED", 154, 119, 32, 12),
    ("EQ_AUTO_BUTTON_SELECTED", 95, 119, 32, 12),
    ("EQ_AUTO_BUTTON_SELECTED_DEPRESSED", 213, 119, 32, 12),
    ("EQ_GRAPH_BACKGROUND", 0, 294, 113, 19),
    ("EQ_GRAPH_LINE_COLORS", 115, 294, 1, 19),
    ("EQ_PRESETS_BUTTON", 224, 164, 44, 12),
    ("EQ_PRESETS_BUTTON_SELECTED", 224, 176, 44, 12),
    ("EQ_PREAMP_LINE", 0, 314, 113, 1),
    ("EQ_CLOSE_BUTTON", 0, 116, 9, 9),
    ("EQ_CLOSE_BUTTON_ACTIVE", 0, 125, 9, 9),
)

POSBAR_SPRITES = _rows(
    "POSBAR.BMP",
    ("MAIN_POSITION_SLIDER_BACKGROUND", 0, 0, 248, 10),
    ("MAIN_POSITION_SLIDER_THUMB", 248, 0, 29, 10),
    ("MAIN_POSITION_SLIDER_THUMB_SELECTED", 278, 0, 29, 10),
)

SHUFREP_SPRITES = _rows(
    "SHUFREP.BMP",
    ("MAIN_SHUFFLE_BUTTON", 28, 0, 47, 15),
    ("MAIN_SHUFFLE_BUTTON_DEPRESSED", 28, 15, 47, 15),
    ("MAIN_SHUFFLE_BUTTON_SELECTED", 28, 30, 47, 15),
    ("MAIN_SHUFFLE_BUTTON_SELECTED_DEPRESSED", 28, 45, 47, 15),
    ("MAIN_REPEAT_BUTTON", 0, 0, 28, 15),
    ("MAIN_REPEAT_BUTTON_DEPRESSED", 0, 15, 28, 15),
    ("MAIN_REPEAT_BUTTON_SELECTED", 0, 30, 28, 15),
    ("MAIN_REPEAT_BUTTON_SELECTED_DEPRESSED", 0, 45, 28, 15),
    ("MAIN_EQ_BUTTON", 0, 61, 23, 12),
    ("MAIN_EQ_BUTTON_SELECTED", 0, 73, 23, 12),
    ("MAIN_EQ_BUTTON_DEPRESSED", 46, 61, 23, 12),
    ("MAIN_EQ_BUTTON_DEPRESSED_SELECTED", 46, 73, 23, 12),
    ("MAIN_PLAYLIST_BUTTON", 23, 61, 23, 12),
    ("MAIN_PLAYLIST_BUTTON_SELECTED", 23, 73, 23, 12),
    ("MAIN_PLAYLIST_BUTTON_DEPRESSED", 69, 61, 23, 12),
    ("MAIN_PLAYLIST_BUTTON_DEPRESSED_SELECTED", 69, 73, 23, 12),
)

TITLEBAR_SPRITES = _rows(
    "TITLEBAR.BMP",
    ("MAIN_TITLE_BAR", 27, 15, 275, 14),
    ("MAIN_TITLE_BAR_SELECTED", 27, 0, 275, 14),
    ("MAIN_EASTER_EGG_TITLE_BAR", 27, 72, 275, 14),
    ("MAIN_EASTER_EGG_TITLE_BAR_SELECTED", 27, 57, 275, 14),
    ("MAIN_OPTIONS_BUTTON", 0, 0, 9, 9),
    ("MAIN_OPTIONS_BUTTON_DEPRESSED", 0, 9, 9, 9),
    ("MAIN_MINIMIZE_BUTTON", 9, 0, 9, 9),
    ("MAIN_MINIMIZE_BUTTON_DEPRESSED", 9, 9, 9, 9),
    ("MAIN_SHADE_BUTTON", 0, 18, 9, 9),
    ("MAIN_SHADE_BUTTON_DEPRESSED", 9, 18, 9, 9),
    ("MAIN_CLOSE_BUTTON", 18, 0, 9, 9),
    ("MAIN_CLOSE_BUTTON_DEPRESSED", 18, 9, 9, 9),
    ("MAIN_CLUTTER_BAR_BACKGROUND", 304, 0, 8, 43),
    ("MAIN_CLUTTER_BAR_BACKGROUND_DISABLED", 312, 0, 8, 43),
    ("MAIN_SHADE_BACKGROUND", 27, 42, 275, 14),
    ("MAIN_SHADE_BACKGROUND_SELECTED", 27, 29, 275, 14),
    ("MAIN_SHADE_BUTTON_SELECTED", 0, 27, 9, 9),
    ("MAIN_SHADE_BUTTON_SELECTED_DEPRESSED", 9, 27, 9, 9),
    ("MAIN_SHADE_POSITION_BACKGROUND", 0, 36, 17, 7),
    ("MAIN_SHADE_POSITION_THUMB", 20, 36, 3, 7),
    ("MAIN_SHADE_POSITION_THUMB_LEFT", 17, 36, 3, 7),
    ("MAIN_SHADE_POSITION_THUMB_RIGHT", 23, 36, 3, 7),
)

VOLUME_FRAME_COUNT = 28
VOLUME_FRAME_STEP = 15
SLIDER_HEIGHT = 13

VOLUME_SPRITES = _rows(
    "VOLUME.BMP",
    ("MAIN_VOLUME_BACKGROUND", 0, 0, 68, 420),
    ("MAIN_VOLUME_THUMB", 15, 422, 14, 11),
    ("MAIN_VOLUME_THUMB_SELECTED", 0, 422, 14, 11),
)

GEN_SPRITES = _rows(
    "GEN.BMP",
    ("GEN_TOP_LEFT_SELECTED", 0, 0, 25, 20),
    ("GEN_TOP_LEFT_END_SELECTED", 26, 0, 25, 20),
    ("GEN_TOP_CENTER_FILL_SELECTED", 52, 0, 25, 20),
    ("GEN_TOP_RIGHT_END_SELECTED", 78, 0, 25, 20),
    ("GEN_TOP_LEFT_RIGHT_FILL_SELECTED", 104, 0, 25, 20),
    ("GEN_TOP_RIGHT_SELECTED", 130, 0, 25, 20),
    ("GEN_TOP_LEFT", 0, 21, 25, 20),
    ("GEN_TOP_LEFT_END", 26, 21, 25, 20),
    ("GEN_TOP_CENTER_FILL", 52, 21, 25, 20),
    ("GEN_TOP_RIGHT_END", 78, 21, 25, 20),
    ("GEN_TOP_LEFT_RIGHT_FILL", 104, 21, 25, 20),
    ("GEN_TOP_RIGHT", 130, 21, 25, 20),
    ("GEN_BOTTOM_LEFT", 0, 42, 125, 14),
    ("GEN_BOTTOM_RIGHT", 0, 57, 125, 14),
    ("GEN_BOTTOM_FILL", 127, 72, 25, 14),
    ("GEN_MIDDLE_LEFT", 127, 42, 11, 29),
    ("GEN_MIDDLE_LEFT_BOTTOM", 158, 42, 11, 24),
    ("GEN_MIDDLE_RIGHT", 139, 42, 8, 29),
    ("GEN_MIDDLE_RIGHT_BOTTOM", 170, 42, 8, 24),
    ("GEN_CLOSE_SELECTED", 148, 42, 9, 9),
)

# Bitmap font: TEXT.BMP is a 31x3 grid of 5x6 cells. Latin letters are
# keyed lower case, the three Nordic letters upper case; lookups try
# both. Brackets stand in for the angle and curly brackets.
GLYPH_WIDTH = 5
GLYPH_HEIGHT = 6

FONT_CELLS = {
    **{ch: (0, col) for col, ch in enumerate('abcdefghijklmnopqrstuvwxyz"@')},
    " ": (0, 30),
    **{ch: (1, col) for col, ch in enumerate("0123456789….:()-'!_+\\/[]^&%,=$#")},
    "Å": (2, 0),
    "Ö": (2, 1),
    "Ä": (2, 2),
    "?": (2, 3),
    "*": (2, 4),
    "<": (1, 22),
    ">": (1, 23),
    "{": (1, 22),
    "}": (1, 23),
}

TEXT_SPRITES = _rows(
    "TEXT.BMP",
    *[
        (
            f"CHARACTER_{ord(ch)}",
            col * GLYPH_WIDTH,
            row * GLYPH_HEIGHT,
            GLYPH_WIDTH,
            GLYPH_HEIGHT,
        )
        for ch, (row, col) in FONT_CELLS.items()
    ],
)

SPRITES = (
    BALANCE_SPRITES
    + CBUTTONS_SPRITES
    + MAIN_SPRITES
    + MONOSTER_SPRITES
    + NUMBERS_SPRITES
    + NUMS_EX_SPRITES
    + PLAYPAUS_SPRITES
    + PLEDIT_SPRITES
    + EQ_EX_SPRITES
    + EQMAIN_SPRITES
    + POSBAR_SPRITES
    + SHUFREP_SPRITES
    + TEXT_SPRITES
    + TITLEBAR_SPRITES
    + VOLUME_SPRITES
    + GEN_SPRITES
)

_SHEETS_BY_NAME: Dict[str, SpriteSheet] = {sheet.name: sheet for sheet in SPRITE_SHEETS}
_SPRITES_BY_ID: Dict[str, SpriteRegion] = {
    region.semantic_id: region for region in SPRITES
}


def sprite_sheet(name: str) -> SpriteSheet:
    return _SHEETS_BY_NAME[name.upper()]


def sprite_region(semantic_id: str) -> SpriteRegion:
    return _SPRITES_BY_ID[semantic_id]


def sprites_for_sheet(name: str) -> Tuple[SpriteRegion, ...]:
    name = name.upper()
    return tuple(region for region in SPRITES if region.sheet == name)


def sheet_extent(name: str) -> Tuple[int, int]:
    """Smallest (width, height) containing every sprite cut from a sheet."""
    regions = sprites_for_sheet(name)
    return (
        max(region.x + region.width for region in regions),
        max(region.y + region.height for region in regions),
    )


def glyph_id(ch: str) -> str:
    for key in (ch.lower(), ch.upper()):
        if key in FONT_CELLS:
            return f"CHARACTER_{ord(key)}"
    return f"CHARACTER_{ord(' ')}"


def digit_id(ch: str, *, extended: bool) -> str:
    suffix = "_EX" if extended else ""
    if ch == "-":
        return f"MINUS_SIGN{suffix}"
    if ch.isdigit():
        return f"DIGIT_{ch}{suffix}"
    return f"NO_MINUS_SIGN{suffix}" if extended else "DIGIT_BLANK"


def sub_region(region: SpriteRegion, *, x=0, y=0, width=None, height=None) -> SpriteRegion:
    """A rectangle inside region, e.g. one frame of a slider strip."""
    width = region.width - x if width is None else width
    height = region.height - y if height is None else height
    assert 0 <= x and 0 <= y and width >= 0 and height >= 0, (
        f"negative sub-region of {region.semantic_id}"
    )
    assert x + width <= region.width and y + height <= region.height, (
        f"sub-region ({x}, {y}, {width}, {height}) leaves {region.semantic_id} "
        f"({region.width}x{region.height})"
    )
    return region._replace(x=region.x + x, y=region.y + y, width=width, height=height)


def smoke_test_catalog():
    assert len(_SPRITES_BY_ID) == len(SPRITES), "duplicate sprite ids in catalog"
    assert len(_SHEETS_BY_NAME) == len(SPRITE_SHEETS), "duplicate sheet names"
    for sheet in SPRITE_SHEETS:
        assert sheet.fallback is None or sheet.fallback in _SHEETS_BY_NAME, sheet
        assert sprites_for_sheet(sheet.name), f"{sheet.name} has no sprites"
        extent = sheet_extent(sheet.name)
        assert extent[0] <= sheet.width and extent[1] <= sheet.height, (
            f"{sheet.name} sprites reach {extent}, sheet is {(sheet.width, sheet.height)}"
        )
    for region in SPRITES:
        assert region.sheet in _SHEETS_BY_NAME, region
        assert region.width > 0 and region.height > 0, region
        assert region.x >= 0 and region.y >= 0, region
    assert glyph_id("A") == glyph_id("a") == "CHARACTER_97"
    assert glyph_id("\x00") == glyph_id(" ")
    assert digit_id("7", extended=True) == "DIGIT_7_EX"
    assert digit_id(" ", extended=False) == "DIGIT_BLANK"
