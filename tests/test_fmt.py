import io

import pytest

from minicore.fmt import format_string, fprintf, printf


@pytest.mark.parametrize("n", [0, 7, 42, -1, -123456, 2147483647, -2147483648])
def test_decimal_matches_python(n):
    assert format_string("%d", n) == str(n)


@pytest.mark.parametrize("n", [0, 10, 255, 4096, 0x7FFFFFFF])
def test_hex_is_uppercase(n):
    assert format_string("%x", n) == format(n, "X")


def test_hex_of_negative_is_unsigned_32_bit():
    result = format_string("%x", -1)
    assert int(result, 16) == 0xFFFFFFFF


def test_decimal_wraps_at_32_bits():
    assert format_string("%d", 1 << 32) == "0"


def test_pointer_has_prefix_and_sixteen_digits():
    result = format_string("%p", 0xABC)
    assert result.startswith("0x")
    assert len(result) == 18
    assert int(result, 16) == 0xABC


def test_string_and_null_string():
    assert format_string("%s!", "hi") == "hi!"
    assert format_string("%s", None) == "(null)"


def test_char_from_int_and_str():
    assert format_string("%c%c", ord("o"), "k") == "ok"


def test_percent_and_unknown_conversion():
    assert format_string("100%%") == "100%"
    assert format_string("%q") == "%q"


def test_trailing_percent_is_dropped():
    assert format_string("abc%") == "abc"


def test_missing_argument_raises():
    with pytest.raises(TypeError):
        format_string("%d %d", 1)


def test_mixed_format():
    assert format_string("%s %d %d", "wc", 3, -4) == "wc 3 -4"


def test_fprintf_writes_to_stream():
    buf = io.StringIO()
    fprintf(buf, "cat: cannot open %s\n", "x")
    assert buf.getvalue() == "cat: cannot open x\n"


def test_printf_writes_to_stdout(capsys):
    printf("%d received: %s\n", 5, "ping")
    assert capsys.readouterr().out == "5 received: ping\n"