"""Intel HEX, binary and C include converter"""

__version__ = '1.0.0'
