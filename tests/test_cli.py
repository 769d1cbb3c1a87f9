from __future__ import annotations

import json

from termxfer.cli import main


def test_escape_table_json(capsys):
    assert main(["escape-table", "--all", "--json"]) == 0
    table = json.loads(capsys.readouterr().out)
    assert len(table) == 7
    assert table[0] == "eeeeee"
    assert table[1] == "7eee31"


def test_escape_table_text(capsys):
    assert main(["escape-table"]) == 0
    assert capsys.readouterr().out.splitlines() == ["ee -> eeee", "7e -> ee31"]


def test_escape_table_bad_encoding(capsys):
    assert main(["escape-table", "--encoding", "ascii"]) == 2
    assert "ascii" in capsys.readouterr().err


def test_decode(capsys, legacy_act):
    assert main(["decode", "--json", legacy_act.decode("ascii").strip()]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["marker"] == "ACT"
    assert out["payload"]["lang"] == "py"


def test_decode_errors(capsys):
    assert main(["decode", "#ZZZ:abc"]) == 2
    assert main(["decode", "just text"]) == 1


def test_handshake(capsys):
    assert main(["handshake", "--json", "-b", "-e", "-B", "64K", "--chatter", "$ "]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["protocol"] == 2
    assert out["config"]["binary"] is True
    assert out["config"]["max_buf_size"] == 64 * 1024
    assert out["config"]["escape_codes"][0] == "eeeeee"


def test_handshake_windows_client(capsys):
    assert main(["handshake", "--json", "-b", "--client-windows"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["config"]["binary"] is False
    assert out["config"]["newline"] == "!\n"


def test_handshake_slow_terminal(capsys):
    assert main(["handshake", "--json", "--fragment-size", "32", "--delay-ms", "1"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["protocol"] == 2
    assert out["config"]["newline"] == "\n"
