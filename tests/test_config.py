"""Tests for config loading and the CLI."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import io
import json

from jsserialize import EncodeOptions, create_options, load_config, load_from_yaml
from jsserialize.cli import main, to_plain
from jsserialize.types import HOLE, JSMap


# ── Config ───────────────────────────────────────────────────────────

def test_load_config_defaults():
    assert load_config({}) == {
        "space": None, "is_json": False, "unsafe": False, "ignore_function": False,
    }


def test_load_config_nested_and_camel_case():
    cfg = load_config({"jsserialize": {"space": "4", "isJSON": True, "ignoreFunction": True}})
    assert cfg["space"] == 4
    assert cfg["is_json"] is True
    assert cfg["ignore_function"] is True


def test_create_options():
    opts = create_options({"unsafe": True}, space=2)
    assert opts == EncodeOptions(space=2, unsafe=True)


def test_load_from_yaml(tmp_path):
    path = tmp_path / "opts.yaml"
    path.write_text("jsserialize:\n  space: 2\n  unsafe: true\n")
    cfg = load_from_yaml(path)
    assert cfg["space"] == 2
    assert cfg["unsafe"] is True


# ── CLI ──────────────────────────────────────────────────────────────

def test_cli_encode(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO('{"html": "</b>", "n": NaN}'))
    main(["encode"])
    assert capsys.readouterr().out == '{"html":"\\u003C\\u002Fb\\u003E","n":NaN}\n'


def test_cli_encode_unsafe_with_space(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO('["<b>"]'))
    main(["encode", "--space", "2", "--unsafe"])
    assert capsys.readouterr().out == '[\n  "<b>"\n]\n'


def test_cli_encode_with_yaml_config(monkeypatch, capsys, tmp_path):
    path = tmp_path / "opts.yaml"
    path.write_text("unsafe: true\n")
    monkeypatch.setattr(sys, "stdin", io.StringIO('"<b>"'))
    main(["--config", str(path), "encode"])
    assert capsys.readouterr().out == '"<b>"\n'


def test_cli_decode(monkeypatch, capsys):
    text = '{"s":new Set([1]),"d":new Date("2024-01-01T00:00:00.000Z"),"a":[1,,3]}'
    monkeypatch.setattr(sys, "stdin", io.StringIO(text))
    main(["decode"])
    out = json.loads(capsys.readouterr().out)
    assert out == {"s": [1], "d": "2024-01-01T00:00:00.000Z", "a": [1, None, 3]}


def test_to_plain_map():
    assert to_plain(JSMap([(1, HOLE)])) == [[1, None]]
