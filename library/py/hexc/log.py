"""Logging helpers."""

from logging import Formatter, StreamHandler, WARNING, getLogger
import sys


class BareLogger:

    log = getLogger('hexc')
    log.addHandler(StreamHandler(sys.stderr))
    log.setLevel(level=WARNING)

    @classmethod
    def set_formatter(cls, formatter: Formatter):
        handlers = list(cls.log.handlers)
        for handler in handlers:
            handler.setFormatter(formatter)

    @classmethod
    def get_level(cls):
        return cls.log.getEffectiveLevel()

    @classmethod
    def set_level(cls, level):
        cls.log.setLevel(level=level)
