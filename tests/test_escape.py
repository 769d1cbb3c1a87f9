from __future__ import annotations

import pytest

from termxfer.errors import UnsupportedCharacterError
from termxfer.escape import (
    build_escape_chars,
    decode_escape_table,
    encode_escape_table,
    escape_data,
    unescape_data,
)


def test_base_table():
    assert build_escape_chars(False) == [("î", "îî"), ("~", "î1")]


def test_full_table():
    chars = build_escape_chars(True)
    assert len(chars) == 7
    assert chars[:2] == build_escape_chars(False)
    assert chars[2:] == [
        ("\x02", "îA"),
        ("\x10", "îB"),
        ("\x1b", "îC"),
        ("\x1d", "îD"),
        ("\x9d", "îE"),
    ]


def test_encode_table_latin1():
    table = encode_escape_table(build_escape_chars(True))
    assert table[0] == b"\xee\xee\xee"
    assert table[1] == b"~\xee1"
    assert table[-1] == b"\x9d\xeeE"
    assert all(len(code) == 3 for code in table)
    assert decode_escape_table(table) == build_escape_chars(True)


def test_replacements_never_carry_other_triggers():
    table = encode_escape_table(build_escape_chars(True))
    triggers = {code[0] for code in table}
    leader = table[0][0]
    for code in table:
        for b in code[1:]:
            assert b == leader or b not in triggers
        if code[0] != leader:
            assert code[0] not in code[1:]


def test_unsupported_character():
    with pytest.raises(UnsupportedCharacterError) as e:
        encode_escape_table(build_escape_chars(False), "ascii")
    assert e.value.char == "î"
    assert e.value.encoding == "ascii"

    with pytest.raises(UnsupportedCharacterError):
        encode_escape_table([("€", "îZ")])


def test_replacement_must_be_two_bytes():
    with pytest.raises(UnsupportedCharacterError):
        encode_escape_table([("~", "î")])


def test_escape_all_bytes():
    table = encode_escape_table(build_escape_chars(True))
    data = bytes(range(256)) * 2
    escaped = escape_data(data, table)
    for trigger in b"\x02\x10\x1b\x1d\x9d~":
        assert trigger not in escaped
    assert unescape_data(escaped, table) == data


def test_empty_table_is_identity():
    assert escape_data(b"\x1b~", []) == b"\x1b~"
    assert unescape_data(b"\xee", []) == b"\xee"


def test_dangling_escape():
    table = encode_escape_table(build_escape_chars(True))
    with pytest.raises(ValueError):
        unescape_data(b"abc\xee", table)
    with pytest.raises(ValueError):
        unescape_data(b"\xeeZ", table)


def test_first_entry_wins_for_repeated_trigger():
    table = [b"~\xee1", b"~\xee2"]
    assert escape_data(b"a~", table) == b"a\xee1"
    assert unescape_data(escape_data(b"a~", table), table) == b"a~"
