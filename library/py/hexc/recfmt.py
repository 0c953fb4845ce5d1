"""Intel HEX record tools

   Decode Intel HEX text records into a flat 16-bit memory image, and
   encode such an image back into Intel HEX records.
"""

from binascii import hexlify, unhexlify
from io import StringIO
from logging import getLogger
from re import compile as re_compile
from struct import pack as spack
from typing import IO, Iterable, List, Optional


# pylint: disable-msg=broad-except,invalid-name


MAX_ADDRESS = 0xffff
"""Highest address of the 16-bit address space"""

MIN_LINE = 1 + 2 * 5
"""Shortest record line: start code, count, address, type and checksum"""

MAX_LINE = MIN_LINE + 2 * 0xff
"""Longest record line: the shortest one with 255 data bytes"""


class RecordError(ValueError):
    """Error in text record content"""


class IHexError(RecordError):
    """Error in iHex content"""


class MalformedRecordError(IHexError):
    """Structural violation of the iHex line grammar"""


class ChecksumError(IHexError):
    """iHex record checksum mismatch"""


class AddressOverflowError(IHexError):
    """iHex data record beyond the 16-bit address space"""


class InvalidTypeError(IHexError):
    """Unknown iHex record type"""


class UnsupportedRecordError(IHexError):
    """Known iHex record which is not supported in a 16-bit address space.

       :param type_: the raw record type
    """

    def __init__(self, type_, *args):
        super(UnsupportedRecordError, self).__init__(*args)
        self.type = type_


class Record:
    """Decoded iHex record.

       :param type_: raw record type
       :param address: 16-bit record address
       :param payload: record data bytes
    """

    (DATA, EOF, EXTENDED, START) = range(1, 5)

    KINDS = {0: DATA, 1: EOF, 2: EXTENDED, 3: START, 4: EXTENDED, 5: START}
    """Record kinds, indexed by raw record type"""

    __slots__ = ('_type', '_address', '_payload')

    def __init__(self, type_: int, address: int = 0, payload: bytes = b''):
        if type_ not in self.KINDS:
            raise InvalidTypeError('Unsupported IHEX record: %d' % type_)
        self._type = type_
        self._address = address
        self._payload = bytes(payload)

    @property
    def kind(self) -> int:
        return self.KINDS[self._type]

    @property
    def type(self) -> int:
        return self._type

    @property
    def address(self) -> int:
        return self._address

    @property
    def payload(self) -> bytes:
        return self._payload

    def __len__(self):
        return len(self._payload)

    def __eq__(self, other):
        if not isinstance(other, Record):
            return NotImplemented
        return ((self._type, self._address, self._payload) ==
                (other.type, other.address, other.payload))

    def __repr__(self):
        return 'Record(%d, 0x%04x, %r)' % (self._type, self._address,
                                            self._payload)


class Image:
    """Contiguous memory image.

       :param data: image content
       :param base: address of the first byte of the image
       :param entry: execution start address, 0 if none
    """

    __slots__ = ('_data', '_base', '_entry')

    def __init__(self, data: bytes = b'', base: int = 0, entry: int = 0):
        if not 0 <= base <= MAX_ADDRESS:
            raise ValueError('Invalid base address: 0x%x' % base)
        if not 0 <= entry <= MAX_ADDRESS:
            raise ValueError('Invalid entry address: 0x%x' % entry)
        self._data = bytes(data)
        self._base = base if self._data else 0
        self._entry = entry

    @classmethod
    def from_binary(cls, data: bytes, base: int = 0) -> 'Image':
        """Create an image from a raw binary buffer.

           :param data: raw content
           :param base: address where the content is to be loaded
           :return: the new image
        """
        if base + len(data) > MAX_ADDRESS + 1:
            raise ValueError('Binary content too large for the 16-bit '
                             'address space: %d bytes @ 0x%04x' %
                             (len(data), base))
        return cls(data, base)

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def base(self) -> int:
        return self._base

    @property
    def entry(self) -> int:
        return self._entry

    @property
    def end(self) -> int:
        """Address right after the last byte of the image"""
        return self._base + len(self._data)

    @property
    def is_empty(self) -> bool:
        return not self._data

    def __len__(self):
        return len(self._data)

    def __bool__(self):
        return bool(self._data)

    def __eq__(self, other):
        if not isinstance(other, Image):
            return NotImplemented
        return ((self._data, self._base, self._entry) ==
                (other.data, other.base, other.entry))

    def __str__(self):
        return 'Image @ %04x %d bytes' % (self._base, len(self._data))


class RecordWarning:
    """Recoverable issue met while loading a record stream.

       :param lineno: 1-based line number
       :param reason: description of the issue
    """

    __slots__ = ('lineno', 'reason')

    def __init__(self, lineno: int, reason: str):
        self.lineno = lineno
        self.reason = reason

    def __str__(self):
        return 'line %u: %s' % (self.lineno, self.reason)

    def __repr__(self):
        return 'RecordWarning(%d, %r)' % (self.lineno, self.reason)


class IHexLineParser:
    """Intel Hex record line parser.
    """

    HEX_CRE = re_compile(r'(?a)^:[0-9A-Fa-f]*$')

    @classmethod
    def parse(cls, line: str) -> Record:
        """Decode a single iHex line.

           :param line: the text line, with an optional CR/LF terminator
           :return: the decoded record
           :raise IHexError: if the line cannot be decoded
        """
        line = line.rstrip('\r\n')
        length = len(line)
        if not length:
            raise MalformedRecordError('Empty line')
        if line[0] != ':':
            raise MalformedRecordError('Invalid IHEX header')
        if length < MIN_LINE:
            raise MalformedRecordError('Line too short: %d chars' % length)
        if length > MAX_LINE:
            raise MalformedRecordError('Line too long: %d chars' % length)
        if not length & 1:
            raise MalformedRecordError('Odd count of hex digits')
        if not cls.HEX_CRE.match(line):
            raise MalformedRecordError('Invalid hex digit')
        bvalues = unhexlify(line[1:])
        size = bvalues[0]
        address = (bvalues[1] << 8) | bvalues[2]
        type_ = bvalues[3]
        if MIN_LINE + 2 * size != length:
            raise MalformedRecordError('Expected %d bytes, got %d' %
                                       (size, len(bvalues) - 5))
        if type_ == 0 and address + size > MAX_ADDRESS + 1:
            raise AddressOverflowError('Data beyond 16-bit address space: '
                                       '0x%04x+%d' % (address, size))
        csum = sum(bvalues) & 0xff
        if csum:
            rsum = bvalues[-1]
            raise ChecksumError('Invalid checksum: 0x%02x / 0x%02x' %
                                (rsum, (rsum - csum) & 0xff))
        if type_ not in Record.KINDS:
            raise InvalidTypeError('Unsupported IHEX record: %d' % type_)
        return Record(type_, address, bvalues[4:-1])


class IHexLoader:
    """Intel Hex record stream loader.

       Assemble the data records of a stream into a single memory image.

       :param filler: value of the bytes within the image extent that no
                      record defines
       :param extended: policy for extended address records, one of
                        ``warn``, ``ignore`` or ``error``
    """

    POLICIES = ('warn', 'ignore', 'error')

    def __init__(self, filler: int = 0xff, extended: str = 'warn'):
        if not 0 <= filler <= 0xff:
            raise ValueError('Invalid filler value: %d' % filler)
        if extended not in self.POLICIES:
            raise ValueError('Invalid extended record policy: %s' % extended)
        self.log = getLogger('hexc.recfmt')
        self._filler = filler
        self._extended = extended
        self._warnings = []

    @property
    def warnings(self) -> List[RecordWarning]:
        """Warnings emitted by the last load pass"""
        return list(self._warnings)

    @classmethod
    def is_valid_syntax(cls, file) -> bool:
        """Tell whether the file contains a valid HEX syntax.

           Lines are only checked against the record grammar, checksums are
           not verified.

           :param file: either a filepath or a file-like object
           :return: True if the file content looks valid
        """
        last = False
        with isinstance(file, str) and open(file, 'rt') or file as hfp:
            try:
                for line in hfp:
                    line = line.strip()
                    if not line:
                        last = True
                        continue
                    if not IHexLineParser.HEX_CRE.match(line) or last:
                        # there should be no empty line but the last one(s)
                        return False
                    if len(line) < MIN_LINE or not len(line) & 1:
                        return False
            except (OSError, UnicodeDecodeError):
                return False
        return True

    def load(self, lines: Iterable[str]) -> Image:
        """Load an iHex record stream.

           :param lines: line source, such as a text file object
           :return: the memory image, which is empty if no data record
                    was found
           :raise OSError: if the line source cannot be read
        """
        self._warnings = []
        buffer = bytearray([self._filler]) * (MAX_ADDRESS + 1)
        min_addr = MAX_ADDRESS + 1
        max_addr = 0
        entry = 0
        lineno = 0
        eof = False
        for lineno, line in enumerate(lines, start=1):
            try:
                record = IHexLineParser.parse(line)
            except IHexError as exc:
                self._warn(lineno, str(exc))
                continue
            kind = record.kind
            if kind == Record.DATA:
                if not record.payload:
                    continue
                end = record.address + len(record)
                buffer[record.address:end] = record.payload
                min_addr = min(min_addr, record.address)
                max_addr = max(max_addr, end)
            elif kind == Record.EOF:
                if record.address:
                    self.log.debug('Unexpected non-zero address in EOF: '
                                   '%04x', record.address)
                eof = True
                break
            elif kind == Record.START:
                address = self._decode_start(record)
                if address is None:
                    self._warn(lineno, 'invalid start record')
                elif address > MAX_ADDRESS:
                    self._warn(lineno, 'start address 0x%x out of range' %
                               address)
                else:
                    entry = address
            elif kind == Record.EXTENDED:
                if self._extended == 'error':
                    raise UnsupportedRecordError(
                        record.type, 'Extended record type %d @ line %d' %
                        (record.type, lineno))
                if self._extended == 'warn':
                    self._warn(lineno, 'extended record ignored')
            else:
                raise RuntimeError('Internal error')
        if not eof:
            self._warn(lineno + 1, 'no EOF record')
        if max_addr <= min_addr:
            self.log.info('No data record')
            return Image(entry=entry)
        image = Image(buffer[min_addr:max_addr], min_addr, entry)
        self.log.info('%s', image)
        return image

    @classmethod
    def _decode_start(cls, record: Record) -> Optional[int]:
        data = record.payload
        if len(data) != 4:
            return None
        if record.type == 3:
            cs = (data[0] << 8) + data[1]
            ip = (data[2] << 8) + data[3]
            return (cs << 4) + ip
        return int.from_bytes(data, 'big')

    def _warn(self, lineno: int, reason: str) -> None:
        self._warnings.append(RecordWarning(lineno, reason))
        self.log.warning('Warning (line %u): %s', lineno, reason)


class IHexBuilder:
    """Intel Hex generator.

       :param wrap: maximum count of data bytes per record
       :param filler: optional byte value whose long runs need not be
                      emitted
       :param crlf: whether to use CRLF line terminators
       :param entry_first: whether to emit the start record before the
                           data records
    """

    DEFAULT_WRAP = 16

    def __init__(self, wrap: Optional[int] = None,
                 filler: Optional[int] = None, crlf: bool = False,
                 entry_first: bool = False):
        if wrap is None:
            wrap = self.DEFAULT_WRAP
        if not 1 <= wrap <= 0xff:
            raise ValueError('Invalid wrap value: %d' % wrap)
        if filler is not None and not 0 <= filler <= 0xff:
            raise ValueError('Invalid filler value: %d' % filler)
        self._wrap = wrap
        self._filler = filler
        self._linesep = crlf and '\r\n' or '\n'
        self._entry_first = entry_first
        self._buffer = StringIO()

    def build(self, image: Image) -> None:
        """Build the iHex stream from a memory image, see :py:meth:`getvalue`
        """
        self.dump(image, self._buffer)

    def getvalue(self) -> str:
        return self._buffer.getvalue()

    def dump(self, image: Image, out: IO) -> None:
        """Write the iHex stream of a memory image.

           :param image: the image to encode
           :param out: text output stream
           :raise OSError: if the output stream cannot be written
        """
        for line in self.iter_lines(image):
            out.write(line)
            out.write(self._linesep)

    def iter_lines(self, image: Image) -> Iterable[str]:
        """Generate the iHex lines of a memory image, without terminator."""
        if image.end > MAX_ADDRESS + 1:
            raise ValueError('Image exceeds 16-bit address space')
        if self._entry_first and image.entry:
            yield self._create_exec(image.entry)
        yield from self._create_data(image)
        if not self._entry_first and image.entry:
            yield self._create_exec(image.entry)
        yield self._create_eof()

    @classmethod
    def checksum(cls, hexastr: str) -> int:
        csum = sum(unhexlify(hexastr))
        csum = (-csum) & 0xff
        return csum

    def _create_data(self, image: Image) -> Iterable[str]:
        data = image.data
        size = len(data)
        wrap = self._wrap
        filler = self._filler
        pos = 0
        while pos < size:
            if filler is not None and pos:
                end = pos
                while end < size and data[end] == filler:
                    end += 1
                if end - pos > wrap and end < size:
                    pos = end
                    continue
            chunk = data[pos:pos+wrap]
            yield self._create_line(0, image.base + pos, chunk)
            pos += len(chunk)

    @classmethod
    def _create_exec(cls, address: int) -> str:
        return cls._create_line(3, 0, spack('>HH', 0, address))

    @classmethod
    def _create_eof(cls) -> str:
        return cls._create_line(1)

    @classmethod
    def _create_line(cls, type_: int, address: int = 0,
                     data: Optional[bytes] = None) -> str:
        if not data:
            data = b''
        hexdat = hexlify(data).decode()
        length = len(data)
        datastr = '%02X%04X%02X%s' % (length, address, type_, hexdat)
        checksum = cls.checksum(datastr)
        line = ':%s%02X' % (datastr, checksum)
        return line.upper()
