"""Parsers for the text files a skin may carry next to its bitmaps.

pledit.txt -- playlist editor colors and font (INI style, [Text] section)
viscolor.txt -- 24 "r,g,b" lines for the visualizer, // comments allowed
region.txt -- polygons outlining the visible part of the main and
              equalizer windows
"""

from typing import Dict, List, NamedTuple, Optional, Tuple

from wsz_errors import InvalidFormat

Color = Tuple[int, int, int]
Polygon = List[Tuple[int, int]]


def parse_hex_color(value: str, *, name: str, line: int) -> Color:
    digits = value.strip().lstrip("#")
    if len(digits) != 6:
        raise InvalidFormat(name, line, f"invalid hex color '{value}'")
    try:
        return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
    except ValueError:
        raise InvalidFormat(name, line, f"invalid hex color '{value}'") from None


def text_lines(data: bytes):
    return data.decode("latin-1").splitlines()


class PleditSettings(NamedTuple):
    normal: Optional[Color]
    current: Optional[Color]
    normal_bg: Optional[Color]
    selected_bg: Optional[Color]
    font: Optional[str]
    custom: Dict[str, str]  # keys outside the standard set, "Section.Key" outside [Text]


def make_pledit_settings(**kw) -> PleditSettings:
    defaults = dict(
        normal=None, current=None, normal_bg=None, selected_bg=None, font=None, custom={}
    )
    defaults.update(kw)
    return PleditSettings(**defaults)


PLEDIT_COLOR_KEYS = {
    "normal": "normal",
    "current": "current",
    "normalbg": "normal_bg",
    "selectedbg": "selected_bg",
}


def parse_pledit(data: bytes, *, name="pledit.txt") -> PleditSettings:
    fields = {}
    custom = {}
    section = ""
    for line_num, line in enumerate(text_lines(data), 1):
        line = line.strip()
        if not line or line.startswith(";"):
            continue
        if line.startswith("[") and line.endswith("]"):
            section = line[1:-1].strip()
            continue
        if "=" not in line:
            raise InvalidFormat(name, line_num, f"invalid line format: '{line}'")
        key, value = (part.strip() for part in line.split("=", 1))
        if not section:
            raise InvalidFormat(name, line_num, "key-value pair outside of any section")
        if section.lower() != "text":
            custom[f"{section}.{key}"] = value
        elif key.lower() in PLEDIT_COLOR_KEYS:
            fields[PLEDIT_COLOR_KEYS[key.lower()]] = parse_hex_color(
                value, name=name, line=line_num
            )
        elif key.lower() == "font":
            fields["font"] = value
        else:
            custom[key] = value
    return make_pledit_settings(custom=custom, **fields)


VIS_COLOR_SPEC_0 = 17  # spectrum colors run from the top (15, index 2) to the bottom (0) bar
VIS_COLOR_OSC_1 = 18
VIS_COLOR_OSC_5 = 22


class VisColors(NamedTuple):
    colors: Tuple[Color, ...]


def parse_viscolor(data: bytes, *, name="viscolor.txt") -> VisColors:
    colors = []
    for line_num, line in enumerate(text_lines(data), 1):
        line = line.split("//", 1)[0].strip()
        if "," not in line:
            continue
        parts = [part.strip() for part in line.split(",")]
        if len(parts) < 3:
            raise InvalidFormat(name, line_num, "expected three comma-separated RGB values")
        rgb = []
        for part in parts[:3]:
            if not part.isdigit() or int(part) > 255:
                raise InvalidFormat(name, line_num, f"invalid color value: '{part}'")
            rgb.append(int(part))
        colors.append(tuple(rgb))
    return VisColors(colors=tuple(colors))


def vis_color(vis_colors: VisColors, index) -> Optional[Color]:
    if 0 <= index < len(vis_colors.colors):
        return vis_colors.colors[index]
    return None


def spectrum_color(vis_colors: VisColors, level) -> Optional[Color]:
    """Color of spectrum bar level 0 (bottom) .. 15 (top)."""
    if not 0 <= level <= 15:
        return None
    return vis_color(vis_colors, VIS_COLOR_SPEC_0 - level)


def oscilloscope_colors(vis_colors: VisColors) -> Tuple[Color, ...]:
    return vis_colors.colors[VIS_COLOR_OSC_1 : VIS_COLOR_OSC_5 + 1]


REGION_SECTIONS = {
    "normal": "main",
    "windowshade": "main_shade",
    "equalizer": "equalizer",
    "equalizerws": "equalizer_shade",
}


class Regions(NamedTuple):
    main: Optional[List[Polygon]]
    main_shade: Optional[List[Polygon]]
    equalizer: Optional[List[Polygon]]
    equalizer_shade: Optional[List[Polygon]]


def make_regions(**kw) -> Regions:
    defaults = dict(main=None, main_shade=None, equalizer=None, equalizer_shade=None)
    defaults.update(kw)
    return Regions(**defaults)


def parse_int_list(value, *, name, line):
    try:
        return [int(s) for s in value.replace(",", " ").split()]
    except ValueError:
        raise InvalidFormat(name, line, f"invalid number list: '{value}'") from None


def build_polygons(num_points, points, *, name, line) -> List[Polygon]:
    if sum(num_points) * 2 != len(points):
        raise InvalidFormat(
            name,
            line,
            f"NumPoints adds up to {sum(num_points)} points but PointList has {len(points) // 2}",
        )
    polygons = []
    offset = 0
    for count in num_points:
        polygons.append(
            [(points[2 * i], points[2 * i + 1]) for i in range(offset, offset + count)]
        )
        offset += count
    return polygons


def parse_region(data: bytes, *, name="region.txt") -> Regions:
    regions = {}
    section = None
    num_points = points = None
    section_line = 0

    def finish():
        if section is not None and num_points is not None and points is not None:
            regions[section] = build_polygons(num_points, points, name=name, line=section_line)

    for line_num, line in enumerate(text_lines(data), 1):
        line = line.strip()
        if not line or line.startswith(";"):
            continue
        if line.startswith("[") and line.endswith("]"):
            finish()
            header = line[1:-1].strip().lower()
            if header not in REGION_SECTIONS:
                raise InvalidFormat(name, line_num, f"invalid region type: '{line[1:-1]}'")
            section = REGION_SECTIONS[header]
            num_points = points = None
            section_line = line_num
            continue
        if "=" not in line:
            raise InvalidFormat(name, line_num, f"invalid line format: '{line}'")
        if section is None:
            raise InvalidFormat(name, line_num, "key-value pair outside of any section")
        key, value = (part.strip() for part in line.split("=", 1))
        if key.lower() == "numpoints":
            num_points = parse_int_list(value, name=name, line=line_num)
        elif key.lower() == "pointlist":
            points = parse_int_list(value, name=name, line=line_num)
        else:
            raise InvalidFormat(name, line_num, f"invalid key: '{key}'")
    finish()
    return make_regions(**regions)
