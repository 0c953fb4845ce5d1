"""Memory image presentation: C include, raw binary and info report.
"""

from typing import BinaryIO, Optional, TextIO
from .misc import pretty_size
from .recfmt import Image


C_NAME = 'hex2c'
"""Default name of the C array"""

C_WRAP = 8
"""Default count of array items per line"""

C_PADDING = 4
"""Default count of leading spaces per line"""


def dump_c(image: Image, out: TextIO, wrap: Optional[int] = None,
           padding: Optional[int] = None, name: str = C_NAME) -> None:
    """Write a memory image as a C array definition.

       Each line of items is followed with a comment giving the offset of
       its first item within the array.

       :param image: the image to dump
       :param out: text output stream
       :param wrap: maximum count of items per line
       :param padding: count of leading spaces per line
       :param name: the C identifier of the array
    """
    wrap = wrap or C_WRAP
    padding = padding or C_PADDING
    data = image.data
    size = len(data)
    out.write('const uint8_t %s[%d] = {\n' % (name, size))
    for pos in range(0, size, wrap):
        chunk = data[pos:pos+wrap]
        items = ''.join(['0x%02x, ' % b for b in chunk])
        # the trailing comment is aligned on the last column of a full line
        trail = max(1, (wrap - len(chunk)) * 6 - 1 + padding)
        out.write('%s%s%s// %03x\n' % (' ' * padding, items, ' ' * trail,
                                       pos))
    out.write('};\n')


def dump_binary(image: Image, out: BinaryIO, origin: bool = False,
                filler: int = 0xff) -> None:
    """Write a memory image as raw bytes.

       :param image: the image to dump
       :param out: binary output stream
       :param origin: whether to emit the bytes below the image base, which
                      makes the output start at address 0
       :param filler: value of the bytes below the image base
    """
    if origin and image.base:
        out.write(bytes([filler]) * image.base)
    out.write(image.data)


def report(image: Image, out: TextIO) -> None:
    """Write a human readable summary of a memory image."""
    if image.is_empty:
        print('Memory:  empty', file=out)
    else:
        print('Memory:  [%04x..%04x], %s' %
              (image.base, image.end, pretty_size(len(image))), file=out)
    if image.entry:
        print('Entry:   %04x' % image.entry, file=out)
    else:
        print('Entry:   none', file=out)
