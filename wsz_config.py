"""Immutable settings threaded through one screenshot run."""

from typing import NamedTuple, Optional, Tuple

from wsz_bmp import DEFAULT_COLOR_KEY


class RenderConfig(NamedTuple):
    color_key: Tuple[int, int, int]
    background_color: Tuple[int, int, int]  # used when pledit.txt has no NormalBG
    main_window_size: Tuple[int, int]
    equalizer_window_size: Tuple[int, int]
    playlist_width: int
    playlist_top_height: int
    playlist_bottom_height: int
    playlist_row_height: int
    title_text: str
    time_text: str
    kbps_text: str
    khz_text: str
    volume: int  # percent
    balance: int  # -100 (left) .. 100 (right)


def make_render_config(**kw) -> RenderConfig:
    defaults = dict(
        color_key=DEFAULT_COLOR_KEY,
        background_color=(0, 0, 0),
        main_window_size=(275, 116),
        equalizer_window_size=(275, 116),
        playlist_width=275,
        playlist_top_height=20,
        playlist_bottom_height=38,
        playlist_row_height=29,
        title_text="Winamp 2.91",
        time_text="00:00",
        kbps_text="128",
        khz_text="44",
        volume=78,
        balance=0,
    )
    defaults.update(kw)
    config = RenderConfig(**defaults)
    assert 0 <= config.volume <= 100, f"volume must be 0-100, got {config.volume}"
    assert -100 <= config.balance <= 100, f"balance must be -100-100, got {config.balance}"
    return config


DEFAULT_PLAYLIST_ROWS = 2


class ScreenshotOptions(NamedTuple):
    playlist_rows: int
    include_equalizer: Optional[bool]  # None: only when the skin has EQMAIN.BMP


def make_screenshot_options(**kw) -> ScreenshotOptions:
    kw.setdefault("playlist_rows", DEFAULT_PLAYLIST_ROWS)
    kw.setdefault("include_equalizer", None)
    return ScreenshotOptions(**kw)


def playlist_frame_height(config: RenderConfig) -> int:
    return config.playlist_top_height + config.playlist_bottom_height
