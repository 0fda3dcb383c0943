"""
Filename colors and header building
"""

import logging
import zlib
from collections import namedtuple

log = logging.getLogger()

Color = namedtuple('Color', ['long', 'code', 'escape'])

esc = '\x1b['
reset = esc + '0m'


def build_colors():
    """generate the ANSI foreground Color objects, by name"""
    names = ['black', 'red', 'green', 'yellow', 'blue',
             'magenta', 'cyan', 'white']
    return {name: Color(name, code, esc + '%im' % code)
            for code, name in enumerate(names, 30)}


color_lookup = build_colors()
AutoColor = Color('auto', -1, None)
NoColor = Color('none', 0, '')
Red = color_lookup['red']
Green = color_lookup['green']
Yellow = color_lookup['yellow']
Blue = color_lookup['blue']
Magenta = color_lookup['magenta']
Cyan = color_lookup['cyan']

# black and white are left out, one of them is usually the background
PALETTE = (Red, Green, Yellow, Blue, Magenta, Cyan)


def checksum(name):
    """Adler-32 checksum of name, stable between runs"""
    if isinstance(name, str):
        name = name.encode('utf-8')
    return zlib.adler32(name) & 0xffffffff


def resolve_color(basename, index, consistent, enabled=True):
    """
    Pick the display color of a file.
    :param basename: file name without directories
    :param index: position of the file in the input order
    :param consistent: pick by checksum of basename instead of index
    :param enabled: False disables color output entirely
    :return: Color from PALETTE, or NoColor
    """
    if not enabled:
        return NoColor
    if consistent:
        return PALETTE[checksum(basename) % len(PALETTE)]
    return PALETTE[index % len(PALETTE)]


def header(basename, width, color=NoColor):
    """right justified basename followed by ': ', colored if color is set"""
    name = '%*s' % (width, basename)
    if color.escape:
        name = color.escape + name + reset
    return name + ': '
