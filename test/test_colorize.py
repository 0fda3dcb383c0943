"""
Test colorize
"""

import logging

import pytest

from ntails.colorize import (
    PALETTE, AutoColor, NoColor, Red, Green, Cyan,
    checksum, header, resolve_color, color_lookup,
)

log = logging.getLogger()


def test_palette():
    assert len(PALETTE) == 6
    assert [c.code for c in PALETTE] == [31, 32, 33, 34, 35, 36]
    assert Red.escape == '\x1b[31m'
    assert color_lookup['black'].code == 30
    assert color_lookup['white'] not in PALETTE


@pytest.mark.parametrize('index,expected', [
    (0, Red), (1, Green), (5, Cyan), (6, Red), (13, Green),
])
def test_positional(index, expected):
    assert resolve_color('a.log', index, False) == expected
    assert resolve_color('other.log', index, False) == PALETTE[index % 6]


def test_consistent():
    first = resolve_color('syslog', 0, True)
    assert first in PALETTE
    assert resolve_color('syslog', 4, True) == first
    assert first == PALETTE[checksum('syslog') % 6]


def test_checksum():
    # zlib adler32 reference values
    assert checksum('') == 1
    assert checksum('Wikipedia') == 0x11E60398
    assert checksum(b'Wikipedia') == checksum('Wikipedia')


def test_disabled():
    assert resolve_color('a.log', 0, False, enabled=False) is NoColor
    assert resolve_color('a.log', 0, True, enabled=False) is NoColor


def test_header():
    assert header('a.log', 6) == ' a.log: '
    assert header('bb.log', 6) == 'bb.log: '
    assert header('a.log', 6, Red) == '\x1b[31m a.log\x1b[0m: '
    assert header('a.log', 6, AutoColor) == ' a.log: '
