import pytest

from skyquery.textutil import flatten_row, sha256_hex, to_map, unique


@pytest.mark.parametrize(
    "items, expected",
    [
        (None, None),
        ([], []),
        (["a"], ["a"]),
        (["b", "a"], ["a", "b"]),
        (["a", "b"], ["a", "b"]),
        (["a", "c", "b", "d"], ["a", "b", "c", "d"]),
        (["a", "c", "b", "d", "b", "c"], ["a", "b", "c", "d"]),
        (["a", "c", "b", "d", "b", "c", "e"], ["a", "b", "c", "d", "e"]),
    ],
)
def test_unique(items, expected):
    assert unique(items) == expected


def test_to_map_pairs():
    err = ValueError("error")
    actual = to_map(["key", "value", "error", err])
    assert actual == {"key": "value", "error": err}
    assert actual["error"] is err


def test_to_map_odd_length_gets_none():
    assert to_map(["a", 1, "b"]) == {"a": 1, "b": None}


def test_to_map_empty():
    assert to_map([]) == {}


def test_to_map_non_string_key():
    assert to_map([5, "x"]) == {"5": "x"}


def test_flatten_row_lifts_nested_and_drops_none():
    row = {"a": 1, "b": None, "c": {"d": 2, "e": None, "f": {"g": "h"}}}
    assert flatten_row(row) == {"a": 1, "d": 2, "g": "h"}


def test_flatten_row_empty_nested():
    assert flatten_row({"x": {}, "y": "z"}) == {"y": "z"}


def test_sha256_hex_empty():
    assert sha256_hex(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_sha256_hex_is_lowercase_hex():
    digest = sha256_hex(b"some data")
    assert len(digest) == 64
    assert digest == digest.lower()
    int(digest, 16)
    assert digest != sha256_hex(b"other data")