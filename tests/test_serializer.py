"""Tests for encode — walker, collector, escaping and placeholder rewriting."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import re
from datetime import date, datetime, timezone

import pytest

from jsserialize import (
    HOLE, UNDEFINED, EncodeOptions, JSBigInt, JSFunction, JSMap, JSRegExp,
    NativeFunctionError, UnsupportedValueError, encode,
)
from jsserialize.collector import Collector, generate_uid
from jsserialize.patterns import escape_unsafe_chars
from jsserialize.types import Kind
from jsserialize.walker import classify, walk


# ── Session identifier / collector ───────────────────────────────────

def test_uid_is_32_hex_chars():
    uid = generate_uid()
    assert len(uid) == 32
    assert re.fullmatch(r"[0-9a-f]{32}", uid)


def test_uid_differs_per_call():
    assert generate_uid() != generate_uid()


def test_collector_placeholder_format():
    c = Collector(uid="a" * 32)
    assert c.push(Kind.DATE, "x") == f"@__D-{'a' * 32}-0__@"
    assert c.push(Kind.DATE, "y") == f"@__D-{'a' * 32}-1__@"
    assert c.push(Kind.SET, "z") == f"@__S-{'a' * 32}-0__@"
    assert c.get(Kind.DATE, 1) == "y"


def test_collector_empty_and_counts():
    c = Collector()
    assert c.empty
    c.push(Kind.UNDEFINED, UNDEFINED)
    assert not c.empty
    assert c.counts() == {"UNDEFINED": 1}


# ── Classification ───────────────────────────────────────────────────

def test_classify_order():
    assert classify(re.compile("a")) is Kind.REGEXP
    assert classify(JSRegExp("a", "g")) is Kind.REGEXP
    assert classify(datetime(2020, 1, 1)) is Kind.DATE
    assert classify(date(2020, 1, 1)) is Kind.DATE
    assert classify(JSMap()) is Kind.MAP
    assert classify(set()) is Kind.SET
    assert classify(frozenset({1})) is Kind.SET
    assert classify([1, HOLE]) is Kind.SPARSE_ARRAY
    assert classify(JSFunction("x => x")) is Kind.FUNCTION
    assert classify(len) is Kind.FUNCTION
    assert classify(UNDEFINED) is Kind.UNDEFINED
    assert classify(float("nan")) is Kind.INFINITY
    assert classify(float("-inf")) is Kind.INFINITY
    assert classify(2 ** 53) is Kind.BIGINT
    assert classify(JSBigInt(1)) is Kind.BIGINT


def test_classify_json_natives():
    for value in ({}, [1, 2], "s", 1, 1.5, True, None, 2 ** 53 - 1):
        assert classify(value) is None


def test_walk_does_not_mutate_input():
    data = {"a": 1, "f": JSFunction("x => x"), "l": [JSFunction("y => y")]}
    walk(data, Collector(), ignore_function=True)
    assert "f" in data
    assert isinstance(data["l"][0], JSFunction)


# ── Plain JSON ───────────────────────────────────────────────────────

def test_plain_json_is_compact():
    assert encode({"a": 1, "b": [True, None, "x"]}) == '{"a":1,"b":[true,null,"x"]}'


def test_falsy_values_pass_through():
    assert encode([0, "", False, None]) == '[0,"",false,null]'


def test_tuple_encodes_as_array():
    assert encode((1, 2)) == "[1,2]"


def test_space_number():
    assert encode({"a": [1]}, 2) == '{\n  "a": [\n    1\n  ]\n}'


def test_space_string():
    assert encode([1], "\t") == "[\n\t1\n]"


def test_space_zero_is_compact():
    assert encode([1, 2], space=0) == "[1,2]"


def test_space_is_clamped_to_ten():
    assert encode([1], 25) == "[\n" + " " * 10 + "1\n]"


def test_options_object_and_overrides():
    opts = EncodeOptions(unsafe=True)
    assert encode("<b>", opts) == '"<b>"'
    assert encode("<b>", opts, unsafe=False) == '"\\u003Cb\\u003E"'


def test_unserializable_without_default():
    class Point:
        pass
    with pytest.raises(TypeError):
        encode(Point())


def test_default_hook():
    class Point:
        def __init__(self, x, y):
            self.x, self.y = x, y
    text = encode([Point(1, 2)], default=lambda p: {"x": p.x, "y": p.y, "at": UNDEFINED})
    assert text == '[{"x":1,"y":2,"at":undefined}]'


# ── Escaping ─────────────────────────────────────────────────────────

def test_escapes_script_tags():
    text = encode({"html": "<script>alert(1)</script>"})
    assert "<" not in text
    assert ">" not in text
    assert "/" not in text
    assert text == '{"html":"\\u003Cscript\\u003Ealert(1)\\u003C\\u002Fscript\\u003E"}'


def test_escapes_line_terminators():
    assert encode("a\u2028b\u2029") == '"a\\u2028b\\u2029"'


def test_unsafe_leaves_characters():
    assert encode("<script>", unsafe=True) == '"<script>"'


def test_is_json_fast_path_still_escapes():
    assert encode({"a": "</b>"}, is_json=True) == '{"a":"\\u003C\\u002Fb\\u003E"}'


def test_escape_unsafe_chars_directly():
    assert escape_unsafe_chars("<>/") == "\\u003C\\u003E\\u002F"


def test_nested_values_are_escaped_too():
    assert encode({"<"}) == 'new Set(["\\u003C"])'


# ── Special kinds ────────────────────────────────────────────────────

def test_undefined_top_level():
    assert encode(UNDEFINED) == "undefined"


def test_undefined_in_containers():
    assert encode({"a": UNDEFINED, "b": [UNDEFINED]}) == '{"a":undefined,"b":[undefined]}'


def test_infinity_and_nan():
    assert encode([float("inf"), float("-inf"), float("nan")]) == "[Infinity,-Infinity,NaN]"


def test_bigint():
    assert encode(2 ** 64) == 'BigInt("18446744073709551616")'
    assert encode(-(2 ** 64)) == 'BigInt("-18446744073709551616")'
    assert encode(JSBigInt(5)) == 'BigInt("5")'
    assert encode(JSBigInt(0)) == 'BigInt("0")'
    assert encode(2 ** 53 - 1) == "9007199254740991"


def test_date():
    dt = datetime(2016, 4, 28, 22, 2, 17, 156000, tzinfo=timezone.utc)
    assert encode({"d": dt}) == '{"d":new Date("2016-04-28T22:02:17.156Z")}'


def test_date_is_converted_to_utc():
    from datetime import timedelta
    dt = datetime(2020, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert encode(dt) == 'new Date("2020-01-01T10:00:00.000Z")'


def test_naive_datetime_and_date_are_utc():
    assert encode(datetime(2020, 1, 1, 8, 30)) == 'new Date("2020-01-01T08:30:00.000Z")'
    assert encode(date(2020, 1, 2)) == 'new Date("2020-01-02T00:00:00.000Z")'


def test_date_out_of_range_in_utc():
    from datetime import timedelta
    early = datetime.min.replace(tzinfo=timezone(timedelta(hours=5)))
    with pytest.raises(UnsupportedValueError, match="out of range"):
        encode(early)


def test_regexp_from_pattern():
    assert encode(re.compile(r"^a+$", re.I)) == 'new RegExp("^a+$", "i")'
    assert encode(re.compile("x", re.M | re.S)) == 'new RegExp("x", "ms")'


def test_regexp_source_is_escaped():
    assert encode(re.compile("a/b")) == 'new RegExp("a\\u002Fb", "")'


def test_js_regexp_flags_are_ordered():
    assert encode(JSRegExp("a", "yg")) == 'new RegExp("a", "gy")'


def test_regexp_verbose_is_unsupported():
    with pytest.raises(UnsupportedValueError):
        encode(re.compile("a", re.X))


def test_map():
    m = JSMap([("a", 1), (2, [3])])
    assert encode({"m": m}) == '{"m":new Map([["a",1],[2,[3]]])}'


def test_empty_map_and_set():
    assert encode([JSMap(), set()]) == "[new Map([]),new Set([])]"


def test_set():
    assert encode({"s": {"x"}}) == '{"s":new Set(["x"])}'


def test_set_with_nested_special_values():
    assert encode({datetime(2000, 1, 1)}) == 'new Set([new Date("2000-01-01T00:00:00.000Z")])'


def test_sparse_array():
    assert encode([1, HOLE, 3]) == 'Array.prototype.slice.call({"length":3,"0":1,"2":3})'


def test_dense_array_with_undefined_is_not_sparse():
    assert encode([1, UNDEFINED, 3]) == "[1,undefined,3]"


# ── Functions ────────────────────────────────────────────────────────

def test_function_expression():
    fn = JSFunction("function (a) { return a }")
    assert encode({"fn": fn}) == '{"fn":function (a) { return a }}'


def test_function_source_is_not_escaped():
    fn = JSFunction("(a) => a < 1")
    assert encode([fn]) == "[(a) => a < 1]"


def test_method_shorthand_is_normalized():
    assert encode(JSFunction("foo(x) { return x }")) == "function (x) { return x }"


def test_native_python_function_fails():
    with pytest.raises(NativeFunctionError, match="Serializing native function: len"):
        encode({"f": len})


def test_native_js_function_fails():
    with pytest.raises(NativeFunctionError, match="push"):
        encode(JSFunction("function push() { [native code] }"))


def test_ignore_function_drops_object_members():
    data = {"a": 1, "f": JSFunction("x => x"), "g": print}
    assert encode(data, ignore_function=True) == '{"a":1}'


def test_ignore_function_top_level():
    assert encode(JSFunction("x => x"), ignore_function=True) == "undefined"
    assert encode(len, ignore_function=True) == "undefined"


def test_ignore_function_leaves_holes_in_arrays():
    text = encode([1, JSFunction("x => x")], ignore_function=True)
    assert text == 'Array.prototype.slice.call({"length":2,"0":1})'


def test_ignore_function_inside_map():
    m = JSMap([("f", JSFunction("x => x"))])
    assert encode(m, ignore_function=True) == 'new Map([Array.prototype.slice.call({"length":2,"0":"f"})])'


# ── Placeholder safety ───────────────────────────────────────────────

def test_placeholder_shaped_string_is_left_alone():
    fake = "@__F-" + "0" * 32 + "-0__@"
    text = encode({"s": fake, "u": UNDEFINED})
    assert text == '{"s":"' + fake + '","u":undefined}'


def test_placeholder_shaped_string_with_quotes():
    fake = '"@__U-' + "0" * 32 + '-0__@"'
    text = encode([fake, UNDEFINED])
    assert fake.replace('"', '\\"') in text
    assert text.endswith(",undefined]")


def test_placeholders_never_leak():
    data = {
        "d": datetime(2020, 1, 1),
        "r": re.compile("x"),
        "m": JSMap([(1, {2})]),
        "a": [HOLE, JSFunction("x => x")],
        "u": UNDEFINED,
        "i": float("nan"),
        "b": 2 ** 80,
    }
    assert "@__" not in encode(data)
