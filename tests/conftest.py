"""Shared helpers for the hexc test suite."""

from binascii import hexlify
from os.path import dirname, join as joinpath, normpath, pardir
import sys

import pytest

LIBDIR = normpath(joinpath(dirname(__file__), pardir, 'library', 'py'))
if LIBDIR not in sys.path:
    sys.path.insert(0, LIBDIR)


def make_line(type_, address, data=b''):
    """Encode an iHex line with a valid checksum."""
    body = bytes([len(data), address >> 8, address & 0xff, type_]) + data
    csum = (-sum(body)) & 0xff
    return ':%s%02X' % (hexlify(body).decode().upper(), csum)


@pytest.fixture
def hexfile(tmp_path):
    """Write iHex lines into a temporary file and return its path."""
    def _write(lines, name='in.hex'):
        path = tmp_path / name
        path.write_text(''.join(['%s\n' % line for line in lines]))
        return path
    return _write
