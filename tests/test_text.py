import pytest

from wsz_errors import InvalidFormat
from wsz_text import (
    oscilloscope_colors,
    parse_hex_color,
    parse_pledit,
    parse_region,
    parse_viscolor,
    spectrum_color,
    vis_color,
)

PLEDIT = b"""[Text]
Normal=#00FF00
Current=#FFFFFF
NormalBG=#000000
SelectedBG=#0000C6
Font=Arial
mbBG=#000000
[Extra]
Flavor=vanilla
"""


def test_parse_pledit():
    settings = parse_pledit(PLEDIT)
    assert settings.normal == (0, 255, 0)
    assert settings.current == (255, 255, 255)
    assert settings.normal_bg == (0, 0, 0)
    assert settings.selected_bg == (0, 0, 198)
    assert settings.font == "Arial"
    assert settings.custom == {"mbBG": "#000000", "Extra.Flavor": "vanilla"}


def test_pledit_keys_ignore_case_and_comments():
    settings = parse_pledit(b"; comment\r\n[text]\r\nnormalbg = 102030\r\n")
    assert settings.normal_bg == (0x10, 0x20, 0x30)
    assert settings.normal is None


@pytest.mark.parametrize(
    "data, line",
    [
        (b"Normal=#00FF00\n", 1),
        (b"[Text]\nNormal=#00FF0\n", 2),
        (b"[Text]\n\nthis line has no equals sign\n", 3),
    ],
)
def test_malformed_pledit(data, line):
    with pytest.raises(InvalidFormat) as excinfo:
        parse_pledit(data, name="skin/pledit.txt")
    assert excinfo.value.line == line
    assert excinfo.value.name == "skin/pledit.txt"


def test_parse_hex_color_rejects_garbage():
    with pytest.raises(InvalidFormat):
        parse_hex_color("#GG0000", name="pledit.txt", line=1)


def test_parse_viscolor():
    lines = [f"{i},{i * 2},{i * 3} // color {i}" for i in range(24)]
    vis_colors = parse_viscolor("\n".join(lines).encode())
    assert len(vis_colors.colors) == 24
    assert vis_color(vis_colors, 0) == (0, 0, 0)
    assert vis_color(vis_colors, 23) == (23, 46, 69)
    assert vis_color(vis_colors, 24) is None
    assert spectrum_color(vis_colors, 0) == vis_color(vis_colors, 17)
    assert spectrum_color(vis_colors, 15) == vis_color(vis_colors, 2)
    assert spectrum_color(vis_colors, 16) is None
    assert oscilloscope_colors(vis_colors) == tuple((i, i * 2, i * 3) for i in range(18, 23))


def test_viscolor_skips_lines_without_colors():
    vis_colors = parse_viscolor(b"// header\n\n1, 2, 3,\n")
    assert vis_colors.colors == ((1, 2, 3),)


def test_malformed_viscolor():
    with pytest.raises(InvalidFormat) as excinfo:
        parse_viscolor(b"1,2,3\n1,2,300\n")
    assert excinfo.value.line == 2


def test_parse_region():
    regions = parse_region(
        b"[Normal]\nNumPoints=4, 3\nPointList=0,0, 275,0, 275,116, 0,116  1,1 2,2 3,3\n"
        b"[Equalizer]\nNumPoints=3\nPointList=0 0 10 0 10 10\n"
    )
    assert regions.main == [[(0, 0), (275, 0), (275, 116), (0, 116)], [(1, 1), (2, 2), (3, 3)]]
    assert regions.equalizer == [[(0, 0), (10, 0), (10, 10)]]
    assert regions.main_shade is None


def test_region_point_count_mismatch():
    with pytest.raises(InvalidFormat) as excinfo:
        parse_region(b"[Normal]\nNumPoints=4\nPointList=0,0,1,1\n")
    assert excinfo.value.line == 1


def test_region_unknown_section():
    with pytest.raises(InvalidFormat):
        parse_region(b"[Playlist]\nNumPoints=1\nPointList=0,0\n")
