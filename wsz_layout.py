"""Where every sprite of the mockup goes.

The main window sits at the canvas origin, the equalizer window (when
drawn) directly below it, and the playlist window below that. Within a
window every element is a (semantic_id, x, y) row of a placement table,
relative to the window's top left corner; tables are listed in paint
order, backgrounds first, so the compositor never has to sort.

Only the default appearance is drawn: buttons released, player stopped,
sliders at their configured level, displays showing fixed strings.
"""

from typing import Dict, List, NamedTuple, Tuple

from wsz_catalog import (
    EQ_SLIDER_FRAME_HEIGHT,
    EQ_SLIDER_FRAME_STEP_X,
    EQ_SLIDER_FRAME_STEP_Y,
    EQ_SLIDER_FRAME_WIDTH,
    EQ_SLIDER_FRAMES_PER_ROW,
    GLYPH_WIDTH,
    SLIDER_HEIGHT,
    VOLUME_FRAME_COUNT,
    VOLUME_FRAME_STEP,
    SpriteRegion,
    digit_id,
    glyph_id,
    sprite_region,
    sub_region,
)
from wsz_config import RenderConfig, ScreenshotOptions, playlist_frame_height
from wsz_errors import MissingRequiredAsset
from wsz_resolver import AssetSet

MAIN_WINDOW = "main"
EQUALIZER_WINDOW = "equalizer"
PLAYLIST_WINDOW = "playlist"


class PlacedRegion(NamedTuple):
    semantic_id: str
    dest_x: int
    dest_y: int
    source: SpriteRegion


class WindowFrame(NamedTuple):
    x: int
    y: int
    width: int
    height: int


# (semantic_id, x, y), paint order
MAIN_WINDOW_BACKGROUND_PLACEMENTS = (
    ("MAIN_WINDOW_BACKGROUND", 0, 0),
    ("MAIN_TITLE_BAR_SELECTED", 0, 0),
    ("MAIN_OPTIONS_BUTTON", 6, 3),
    ("MAIN_MINIMIZE_BUTTON", 244, 3),
    ("MAIN_SHADE_BUTTON", 254, 3),
    ("MAIN_CLOSE_BUTTON", 264, 3),
    ("MAIN_CLUTTER_BAR_BACKGROUND", 10, 22),
    ("MAIN_STOPPED_INDICATOR", 26, 28),
    ("MAIN_MONO", 212, 41),
    ("MAIN_STEREO", 239, 41),
)

MAIN_WINDOW_CONTROL_PLACEMENTS = (
    ("MAIN_EQ_BUTTON", 219, 58),
    ("MAIN_PLAYLIST_BUTTON", 242, 58),
    ("MAIN_POSITION_SLIDER_BACKGROUND", 17, 72),
    ("MAIN_POSITION_SLIDER_THUMB", 17, 72),
    ("MAIN_PREVIOUS_BUTTON", 16, 88),
    ("MAIN_PLAY_BUTTON", 39, 88),
    ("MAIN_PAUSE_BUTTON", 62, 88),
    ("MAIN_STOP_BUTTON", 85, 88),
    ("MAIN_NEXT_BUTTON", 108, 88),
    ("MAIN_EJECT_BUTTON", 136, 89),
    ("MAIN_SHUFFLE_BUTTON", 164, 89),
    ("MAIN_REPEAT_BUTTON", 210, 89),
)

TIME_DIGIT_POSITIONS = ((48, 26), (60, 26), (78, 26), (90, 26))

# (display id, config field, x, y, width in pixels)
TEXT_DISPLAYS = (
    ("MAIN_TITLE_TEXT", "title_text", 111, 27, 154),
    ("MAIN_KBPS_TEXT", "kbps_text", 111, 43, 15),
    ("MAIN_KHZ_TEXT", "khz_text", 156, 43, 10),
)

# (background id, thumb id, x, y, width)
VOLUME_SLIDER = ("MAIN_VOLUME_BACKGROUND", "MAIN_VOLUME_THUMB", 107, 57, 68)
BALANCE_SLIDER = ("MAIN_BALANCE_BACKGROUND", "MAIN_BALANCE_THUMB", 177, 57, 38)
SLIDER_THUMB_Y_OFFSET = 1

EQ_WINDOW_PLACEMENTS = (
    ("EQ_WINDOW_BACKGROUND", 0, 0),
    ("EQ_TITLE_BAR", 0, 0),
    ("EQ_ON_BUTTON", 14, 18),
    ("EQ_AUTO_BUTTON", 40, 18),
    ("EQ_PRESETS_BUTTON", 217, 18),
    ("EQ_GRAPH_BACKGROUND", 86, 17),
    ("EQ_PREAMP_LINE", 86, 26),
)

EQ_SLIDER_X_POSITIONS = (21,) + tuple(78 + 18 * band for band in range(10))
EQ_SLIDER_Y = 38
EQ_SLIDER_LEVEL = 50  # percent, flat
EQ_THUMB_X_OFFSET = 1

PLAYLIST_CORNER_WIDTH = 25
PLAYLIST_TILE_WIDTH = 25
PLAYLIST_RIGHT_TILE_WIDTH = 20
PLAYLIST_SCROLL_HANDLE_X_FROM_RIGHT = 15
PLAYLIST_BOTTOM_LEFT_WIDTH = 125
PLAYLIST_BOTTOM_RIGHT_WIDTH = 150


def include_equalizer(asset_set: AssetSet, *, options: ScreenshotOptions) -> bool:
    if options.include_equalizer is None:
        return asset_set.is_found("EQMAIN.BMP")
    if options.include_equalizer and not asset_set.is_available("EQMAIN.BMP"):
        raise MissingRequiredAsset("EQMAIN.BMP")
    return bool(options.include_equalizer)


def playlist_height(*, options: ScreenshotOptions, config: RenderConfig) -> int:
    rows = max(0, options.playlist_rows)
    return playlist_frame_height(config) + rows * config.playlist_row_height


def window_frames(
    asset_set: AssetSet, *, options: ScreenshotOptions, config: RenderConfig
) -> Dict[str, WindowFrame]:
    frames = {}
    main_width, main_height = config.main_window_size
    frames[MAIN_WINDOW] = WindowFrame(x=0, y=0, width=main_width, height=main_height)
    y = main_height
    if include_equalizer(asset_set, options=options):
        eq_width, eq_height = config.equalizer_window_size
        frames[EQUALIZER_WINDOW] = WindowFrame(x=0, y=y, width=eq_width, height=eq_height)
        y += eq_height
    frames[PLAYLIST_WINDOW] = WindowFrame(
        x=0,
        y=y,
        width=config.playlist_width,
        height=playlist_height(options=options, config=config),
    )
    return frames


def window_origins(
    asset_set: AssetSet, *, options: ScreenshotOptions, config: RenderConfig
) -> Dict[str, Tuple[int, int]]:
    frames = window_frames(asset_set, options=options, config=config)
    return {name: (frame.x, frame.y) for name, frame in frames.items()}


def canvas_size(
    asset_set: AssetSet, *, options: ScreenshotOptions, config: RenderConfig
) -> Tuple[int, int]:
    frames = window_frames(asset_set, options=options, config=config)
    return (
        max(frame.x + frame.width for frame in frames.values()),
        max(frame.y + frame.height for frame in frames.values()),
    )


def place(semantic_id, x, y, frame: WindowFrame, source=None) -> PlacedRegion:
    return PlacedRegion(
        semantic_id=semantic_id,
        dest_x=frame.x + x,
        dest_y=frame.y + y,
        source=sprite_region(semantic_id) if source is None else source,
    )


def place_table(table, frame: WindowFrame) -> List[PlacedRegion]:
    return [place(semantic_id, x, y, frame) for semantic_id, x, y in table]


def place_text(display_id, text, x, y, width, frame: WindowFrame) -> List[PlacedRegion]:
    """One glyph per character, clipped to width pixels. A glyph cut by
    the right edge is drawn from a narrower source rectangle.
    """
    placed = []
    for i, ch in enumerate(text):
        offset = i * GLYPH_WIDTH
        if offset >= width:
            break
        glyph = sprite_region(glyph_id(ch))
        if offset + GLYPH_WIDTH > width:
            glyph = sub_region(glyph, width=width - offset)
        placed.append(place(f"{display_id}[{i}]", x + offset, y, frame, source=glyph))
    return placed


def place_time(time_text, frame: WindowFrame, *, extended: bool) -> List[PlacedRegion]:
    digits = [ch for ch in time_text if ch != ":"][: len(TIME_DIGIT_POSITIONS)]
    digits += [" "] * (len(TIME_DIGIT_POSITIONS) - len(digits))
    return [
        place(
            f"MAIN_TIME_DIGIT[{i}]",
            x,
            y,
            frame,
            source=sprite_region(digit_id(ch, extended=extended)),
        )
        for i, (ch, (x, y)) in enumerate(zip(digits, TIME_DIGIT_POSITIONS))
    ]


def place_slider(slider, *, frame_index, fraction, frame: WindowFrame) -> List[PlacedRegion]:
    background_id, thumb_id, x, y, width = slider
    background = sub_region(
        sprite_region(background_id),
        y=frame_index * VOLUME_FRAME_STEP,
        height=SLIDER_HEIGHT,
    )
    thumb = sprite_region(thumb_id)
    thumb_x = x + round((width - thumb.width) * fraction)
    return [
        place(background_id, x, y, frame, source=background),
        place(thumb_id, thumb_x, y + SLIDER_THUMB_Y_OFFSET, frame),
    ]


def layout_main_window(asset_set: AssetSet, frame: WindowFrame, *, config: RenderConfig):
    placed = place_table(MAIN_WINDOW_BACKGROUND_PLACEMENTS, frame)
    placed += place_time(
        config.time_text, frame, extended=asset_set.is_found("NUMS_EX.BMP")
    )
    for display_id, field, x, y, width in TEXT_DISPLAYS:
        placed += place_text(display_id, getattr(config, field), x, y, width, frame)
    last_frame = VOLUME_FRAME_COUNT - 1
    placed += place_slider(
        VOLUME_SLIDER,
        frame_index=round(config.volume / 100 * last_frame),
        fraction=config.volume / 100,
        frame=frame,
    )
    placed += place_slider(
        BALANCE_SLIDER,
        frame_index=round(abs(config.balance) / 100 * last_frame),
        fraction=(config.balance + 100) / 200,
        frame=frame,
    )
    placed += place_table(MAIN_WINDOW_CONTROL_PLACEMENTS, frame)
    return placed


def eq_slider_frame(level) -> SpriteRegion:
    frame_index = (EQ_SLIDER_FRAMES_PER_ROW * 2 - 1) * level // 100
    return sub_region(
        sprite_region("EQ_SLIDER_BACKGROUND"),
        x=(frame_index % EQ_SLIDER_FRAMES_PER_ROW) * EQ_SLIDER_FRAME_STEP_X,
        y=(frame_index // EQ_SLIDER_FRAMES_PER_ROW) * EQ_SLIDER_FRAME_STEP_Y,
        width=EQ_SLIDER_FRAME_WIDTH,
        height=EQ_SLIDER_FRAME_HEIGHT,
    )


def layout_equalizer_window(frame: WindowFrame):
    placed = place_table(EQ_WINDOW_PLACEMENTS, frame)
    slider = eq_slider_frame(EQ_SLIDER_LEVEL)
    thumb = sprite_region("EQ_SLIDER_THUMB")
    thumb_y = EQ_SLIDER_Y + round(
        (EQ_SLIDER_FRAME_HEIGHT - thumb.height) * (100 - EQ_SLIDER_LEVEL) / 100
    )
    for i, x in enumerate(EQ_SLIDER_X_POSITIONS):
        placed.append(place(f"EQ_SLIDER[{i}]", x, EQ_SLIDER_Y, frame, source=slider))
        placed.append(place(f"EQ_SLIDER_THUMB[{i}]", x + EQ_THUMB_X_OFFSET, thumb_y, frame, source=thumb))
    return placed


def layout_playlist_window(frame: WindowFrame, *, options: ScreenshotOptions, config: RenderConfig):
    width = frame.width
    top = config.playlist_top_height
    rows = max(0, options.playlist_rows)
    bottom_y = top + rows * config.playlist_row_height
    placed = []
    for x in range(PLAYLIST_CORNER_WIDTH, width - PLAYLIST_CORNER_WIDTH, PLAYLIST_TILE_WIDTH):
        placed.append(place("PLAYLIST_TOP_TILE", x, 0, frame))
    placed.append(place("PLAYLIST_TOP_LEFT_CORNER", 0, 0, frame))
    title = sprite_region("PLAYLIST_TITLE_BAR")
    placed.append(place("PLAYLIST_TITLE_BAR", (width - title.width) // 2, 0, frame))
    placed.append(place("PLAYLIST_TOP_RIGHT_CORNER", width - PLAYLIST_CORNER_WIDTH, 0, frame))
    for row in range(rows):
        y = top + row * config.playlist_row_height
        placed.append(place("PLAYLIST_LEFT_TILE", 0, y, frame))
        placed.append(place("PLAYLIST_RIGHT_TILE", width - PLAYLIST_RIGHT_TILE_WIDTH, y, frame))
    if rows:
        placed.append(
            place("PLAYLIST_SCROLL_HANDLE", width - PLAYLIST_SCROLL_HANDLE_X_FROM_RIGHT, top, frame)
        )
    for x in range(
        PLAYLIST_BOTTOM_LEFT_WIDTH,
        width - PLAYLIST_BOTTOM_RIGHT_WIDTH,
        PLAYLIST_TILE_WIDTH,
    ):
        placed.append(place("PLAYLIST_BOTTOM_TILE", x, bottom_y, frame))
    placed.append(place("PLAYLIST_BOTTOM_LEFT_CORNER", 0, bottom_y, frame))
    placed.append(
        place("PLAYLIST_BOTTOM_RIGHT_CORNER", width - PLAYLIST_BOTTOM_RIGHT_WIDTH, bottom_y, frame)
    )
    return placed


def compute_layout(
    asset_set: AssetSet, *, options: ScreenshotOptions, config: RenderConfig
) -> List[PlacedRegion]:
    frames = window_frames(asset_set, options=options, config=config)
    placed = layout_main_window(asset_set, frames[MAIN_WINDOW], config=config)
    if EQUALIZER_WINDOW in frames:
        placed += layout_equalizer_window(frames[EQUALIZER_WINDOW])
    placed += layout_playlist_window(frames[PLAYLIST_WINDOW], options=options, config=config)
    return placed
