"""Convert between Intel HEX, Binary and C Include format.

Intel HEX format is 8-bit only (64KB max).
"""

from argparse import ArgumentParser
from logging import getLogger
import sys
from io import TextIOWrapper
from traceback import format_exc
from typing import List, Optional
from .cinclude import dump_binary, dump_c, report
from .log import BareLogger
from .misc import configure_logging, to_int
from .recfmt import IHexBuilder, IHexLoader, Image


# pylint: disable-msg=broad-except


def get_option(value: Optional[str], upper: int = 0xff) -> int:
    """Parse a numeric option, out of range values select the default one.

       :param value: the option string
       :param upper: highest accepted value
       :return: the option value, or 0 for the default value
    """
    value = to_int(value)
    if not 0 <= value <= upper:
        return 0
    return value


def load_image(args) -> Image:
    """Load the input file as a memory image"""
    if args.from_binary:
        if args.input == '-':
            data = sys.stdin.buffer.read()
        else:
            with open(args.input, 'rb') as bfp:
                data = bfp.read()
        return Image.from_binary(data, to_int(args.address))
    loader = IHexLoader(filler=to_int(args.fill or 0xff),
                        extended=args.strict and 'error' or 'warn')
    if args.input == '-':
        # undecodable bytes only invalidate their own line
        return loader.load(TextIOWrapper(sys.stdin.buffer, encoding='ascii',
                                         errors='replace'))
    with open(args.input, 'rt', encoding='ascii', errors='replace') as hfp:
        return loader.load(hfp)


def write_image(args, image: Image) -> None:
    """Write the memory image in the selected output format"""
    if image.is_empty and args.format != 'info':
        getLogger('hexc.tool').info('Nothing to output')
        return
    binary = args.format == 'binary'
    if not args.output or args.output == '-':
        out = sys.stdout.buffer if binary else sys.stdout
        close = False
    else:
        out = open(args.output, binary and 'wb' or 'wt')
        close = True
    try:
        if args.format == 'info':
            report(image, out)
        elif binary:
            dump_binary(image, out, args.origin, to_int(args.fill or 0xff))
        elif args.format == 'c':
            dump_c(image, out, get_option(args.wrap),
                   get_option(args.padding))
        else:
            filler = to_int(args.fill) if args.fill else None
            builder = IHexBuilder(get_option(args.wrap) or None, filler,
                                  entry_first=args.entry_first)
            builder.dump(image, out)
        out.flush()
    finally:
        if close:
            out.close()


def main(argv: Optional[List[str]] = None):
    """Main routine"""

    debug = False
    silent = False
    try:
        argparser = ArgumentParser(description=sys.modules[__name__].__doc__,
                                   add_help=False)
        argparser.add_argument('input',
                               help='path to the input file, - for stdin')
        argparser.add_argument('-B', '--from-binary', action='store_true',
                               help='FILE has no specific format')
        argparser.add_argument('-H', '--from-hex', action='store_false',
                               dest='from_binary',
                               help='FILE has Intel HEX format [default]')
        argparser.add_argument('-b', '--binary', action='store_const',
                               dest='format', const='binary',
                               help='Binary dump output')
        argparser.add_argument('-c', '--c', action='store_const',
                               dest='format', const='c',
                               help='C Include output [default]')
        argparser.add_argument('-h', '--hex', action='store_const',
                               dest='format', const='hex',
                               help='Intel HEX format output')
        argparser.add_argument('-i', '--info', action='store_const',
                               dest='format', const='info',
                               help='show image extent and entry point')
        argparser.add_argument('-o', '--output',
                               help='set output file name (default: stdout)')
        argparser.add_argument('-p', '--padding',
                               help='extra space on line')
        argparser.add_argument('-w', '--wrap',
                               help='maximum output bytes per line')
        argparser.add_argument('-a', '--address',
                               help='load address of a binary input file')
        argparser.add_argument('-f', '--fill',
                               help='value of undefined bytes (default: '
                                    '0xff), Intel HEX output skips long '
                                    'runs of this value if set')
        argparser.add_argument('-z', '--origin', action='store_true',
                               help='binary output starts at address 0')
        argparser.add_argument('-e', '--entry-first', action='store_true',
                               help='emit the start record before data')
        argparser.add_argument('-x', '--strict', action='store_true',
                               help='reject extended address records')
        argparser.add_argument('-s', '--silent', action='store_true',
                               help='suppress messages')
        argparser.add_argument('-l', '--log',
                               help='logfile (defaults to stderr)')
        argparser.add_argument('-v', '--verbose', action='count', default=0,
                               help='increase verbosity')
        argparser.add_argument('-d', '--debug', action='store_true',
                               help='enable debug mode')
        argparser.add_argument('--help', action='help',
                               help='show this help message and exit')
        argparser.set_defaults(format='c', from_binary=False)
        args = argparser.parse_args(argv)
        debug = args.debug
        silent = args.silent

        configure_logging(0 if silent else args.verbose + 1, debug, args.log,
                          [BareLogger])

        image = load_image(args)
        write_image(args, image)

    except Exception as exc:
        if not silent:
            print('Error: %s' % exc, file=sys.stderr)
            if debug:
                print(format_exc(chain=False), file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(2)


if __name__ == '__main__':
    main()
