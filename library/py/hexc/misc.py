"""Miscelleanous helpers

"""

import logging
import sys
from re import match
from typing import Iterable, Optional, Union


def to_int(value: Union[str, int, None]) -> int:
    """Parse a value and convert it into an integer value if possible.

       Input value may be:
       - a string with an integer coded as a decimal value
       - a string with an integer coded as a hexadecimal value
       - a integral value
       - a integral value with a unit specifier (kilo or mega)

       :param value: input value to convert to an integer
       :return: the value as an integer
       :raise ValueError: if the input value cannot be converted into an int
    """
    if not value:
        return 0
    if isinstance(value, int):
        return value
    mo = match(r'^\s*(\d+)\s*(?:([KMkm]i?)?B?)?\s*$', value)
    if mo:
        mult = {'K': (1000),
                'KI': (1 << 10),
                'M': (1000 * 1000),
                'MI': (1 << 20)}
        value = int(mo.group(1))
        if mo.group(2):
            value *= mult[mo.group(2).upper()]
        return value
    value = value.strip()
    return int(value, value.lower().startswith('0x') and 16 or 10)


def pretty_size(size, sep=' ', lim_k=1 << 10, lim_m=10 << 20, plural=True,
                floor=True):
    """Convert a size into a more readable unit-indexed size (KiB, MiB)

       :param int size: integral value to convert
       :param str sep: the separator character between the integral value and
            the unit specifier
       :param int lim_k: any value above this limit is a candidate for KiB
            conversion.
       :param int lim_m: any value above this limit is a candidate for MiB
            conversion.
       :param bool plural: whether to append a final 's' to byte(s)
       :param bool floor: how to behave when exact conversion cannot be
            achieved: take the closest, smaller value or fallback to the next
            unit that allows the exact representation of the input value
       :return: the prettyfied size
       :rtype: str
    """
    size = int(size)
    if size > lim_m:
        ssize = size >> 20
        if floor or (ssize << 20) == size:
            return '%d%sMiB' % (ssize, sep)
    if size > lim_k:
        ssize = size >> 10
        if floor or (ssize << 10) == size:
            return '%d%sKiB' % (ssize, sep)
    return '%d%sbyte%s' % (size, sep, (plural and 's' or ''))


def configure_logging(verbosity: Optional[int], longfmt: bool,
                      logdest: Optional[str] = None,
                      loggers: Optional[Iterable] = None) -> int:
    """Create a default configuration for logging.

       Note: the order of loggers does matter, as any logger which does not
       have at least a handler is assigned all the handlers of the first logger
       that does have one or more.

       :param verbosity: a verbosity level, usually args.verbose; 0 only
                         reports errors, 1 adds warnings, 2 information
       :param longfmt: a boolean value, to use a detailed format
       :param logdest: a log file for the output stream, defaults to stderr
       :param loggers: an iterable of logger classes to reconfigure
       :return: the loglevel, in logging enumerated value
    """
    loglevel = max(logging.DEBUG, logging.ERROR - (10 * (verbosity or 0)))
    loglevel = min(logging.ERROR, loglevel)

    dsthandler = None
    if logdest:
        dsthandler = logging.FileHandler(logdest)

    if longfmt:
        formatter = logging.Formatter(r'%(asctime)s.%(msecs)03d '
                                      r'%(levelname)-8s %(name)-16s '
                                      r'%(message)s', '%H:%M:%S')
    else:
        formatter = logging.Formatter('%(message)s')
    default_handlers = []

    def _need_handler(logcls):
        if not logcls.log.hasHandlers():
            return True
        return not any([handler for handler in logcls.log.handlers
                        if not isinstance(handler, logging.NullHandler)])

    for logger in loggers or []:
        # Do not propagate log message above this top-level logger
        logger.log.propagate = False
        # replicate the handlers of the first loggger to all other handlers
        # which have not been assigned one or more handlers yet
        if not default_handlers and logger.log.handlers:
            default_handlers = logger.log.handlers
        elif _need_handler(logger) and default_handlers:
            for handler in default_handlers:
                logger.log.addHandler(handler)
        # create a copy of handlers, as we need to modify it
        handlers = list(logger.log.handlers)
        for handler in handlers:
            if not isinstance(handler, logging.StreamHandler):
                continue
            if dsthandler:
                # FileHandler is a StreamHandler as well
                logger.log.removeHandler(handler)
            elif not isinstance(handler, logging.FileHandler):
                # stderr may have been replaced since the handler creation
                handler.stream = sys.stderr
        if dsthandler:
            logger.log.addHandler(dsthandler)
        logger.set_formatter(formatter)
        logger.set_level(loglevel)
    return loglevel
