"""hex2c command line tests."""

import pytest

from conftest import make_line
from hexc.tool import get_option, main


EOF_LINE = ':00000001FF'


def run(*args):
    with pytest.raises(SystemExit) as exc:
        main(list(args))
        raise SystemExit(0)
    return exc.value.code


def test_hex_to_hex(hexfile, tmp_path):
    src = hexfile([':0300300002337A1E', EOF_LINE])
    dst = tmp_path / 'out.hex'
    assert run('-h', '-s', '-o', str(dst), str(src)) == 0
    assert dst.read_text() == ':0300300002337A1E\n:00000001FF\n'


def test_hex_to_c(hexfile, tmp_path):
    src = hexfile([':0300300002337A1E', EOF_LINE])
    dst = tmp_path / 'out.h'
    assert run('-o', str(dst), str(src)) == 0
    text = dst.read_text()
    assert text.startswith('const uint8_t hex2c[3] = {\n')
    assert '0x02, 0x33, 0x7a, ' in text


def test_hex_to_binary(hexfile, tmp_path):
    src = hexfile([make_line(0, 2, b'\x01'), make_line(0, 4, b'\x02'),
                   EOF_LINE])
    dst = tmp_path / 'out.bin'
    assert run('-b', '-o', str(dst), str(src)) == 0
    assert dst.read_bytes() == b'\x01\xff\x02'
    assert run('-b', '-z', '-f', '0', '-o', str(dst), str(src)) == 0
    assert dst.read_bytes() == b'\x00\x00\x01\x00\x02'


def test_binary_to_hex(tmp_path):
    src = tmp_path / 'in.bin'
    src.write_bytes(bytes(range(20)))
    dst = tmp_path / 'out.hex'
    assert run('-B', '-h', '-w', '0x10', '-a', '0x100', '-o', str(dst),
               str(src)) == 0
    assert dst.read_text().splitlines() == [
        make_line(0, 0x100, bytes(range(16))),
        make_line(0, 0x110, bytes(range(16, 20))),
        EOF_LINE]


def test_wrap_out_of_range_uses_default(tmp_path):
    src = tmp_path / 'in.bin'
    src.write_bytes(bytes(20))
    dst = tmp_path / 'out.hex'
    assert run('-B', '-h', '-w', '300', '-o', str(dst), str(src)) == 0
    lines = dst.read_text().splitlines()
    assert len(lines) == 3


def test_empty_image_emits_nothing(hexfile, tmp_path):
    src = hexfile([EOF_LINE])
    dst = tmp_path / 'out.h'
    assert run('-s', '-o', str(dst), str(src)) == 0
    assert not dst.exists()


def test_bad_lines_do_not_abort(hexfile, tmp_path):
    src = hexfile([':01003000FFFF', ':0300300002337A1E', 'garbage'])
    dst = tmp_path / 'out.hex'
    assert run('-h', '-s', '-o', str(dst), str(src)) == 0
    assert dst.read_text() == ':0300300002337A1E\n:00000001FF\n'


def test_info(hexfile, tmp_path):
    src = hexfile([':0300300002337A1E', ':0400000300001234B3', EOF_LINE])
    dst = tmp_path / 'info.txt'
    assert run('-i', '-o', str(dst), str(src)) == 0
    assert dst.read_text() == ('Memory:  [0030..0033], 3 bytes\n'
                               'Entry:   1234\n')


def test_strict_rejects_extended(hexfile, tmp_path):
    src = hexfile([':020000040001F9', EOF_LINE])
    assert run('-x', '-s', '-o', str(tmp_path / 'out.h'), str(src)) == 1


def test_missing_input(tmp_path):
    assert run('-s', str(tmp_path / 'nosuchfile.hex')) == 1


@pytest.mark.parametrize('value, expected', [
    (None, 0), ('8', 8), ('0xff', 255), ('256', 0)])
def test_get_option(value, expected):
    assert get_option(value) == expected


def test_undecodable_line_is_skipped(tmp_path, capfd):
    src = tmp_path / 'in.hex'
    src.write_bytes(b':0300300002337A1E\n:01\xff\xfe3000FFFF\n:00000001FF\n')
    dst = tmp_path / 'out.hex'
    assert run('-h', '-o', str(dst), str(src)) == 0
    assert dst.read_text() == ':0300300002337A1E\n:00000001FF\n'
    err = capfd.readouterr().err
    assert 'Warning (line 2): Invalid hex digit' in err
    assert 'Error' not in err


def test_warnings_go_to_stderr(hexfile, capfd):
    src = hexfile([':01003000FFFF', ':0300300002337A1E', EOF_LINE])
    assert run('-h', str(src)) == 0
    out, err = capfd.readouterr()
    assert out == ':0300300002337A1E\n:00000001FF\n'
    assert 'Warning (line 1): Invalid checksum' in err
    assert ':0300300002337A1E' not in err
