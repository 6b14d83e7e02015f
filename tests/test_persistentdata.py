import os

import pytest

from skyquery.persistentdata import (
    IsDirectoryError,
    PersistentData,
    Value,
    read_order,
    write_order,
)

FN = "the-file"


@pytest.fixture
def dirs(tmp_path):
    home = tmp_path / "home"
    data_dir = tmp_path / "work" / ".cq"
    home.mkdir()
    return str(home), str(data_dir)


def _write(path, text):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as fh:
        fh.write(text)


def test_read_order_prefers_home(dirs):
    home, data_dir = dirs
    _write(os.path.join(data_dir, FN), "bar")
    _write(os.path.join(home, ".cq", FN), "foo")
    for _ in range(2):
        v = PersistentData(FN, lambda: "boo", data_dir=data_dir, home=home).get()
        assert v.created is False
        assert v.content == "foo"


def test_read_dir_raises(dirs):
    home, data_dir = dirs
    _write(os.path.join(home, ".cq", FN, "inner-file"), "we're in a directory!")
    for _ in range(2):
        with pytest.raises(IsDirectoryError):
            PersistentData(FN, lambda: "boo", data_dir=data_dir, home=home).get()


def test_regular_read(dirs):
    home, data_dir = dirs
    _write(os.path.join(data_dir, FN), "bar")
    for _ in range(2):
        v = PersistentData(FN, lambda: "boo", data_dir=data_dir, home=home).get()
        assert v.created is False
        assert v.content == "bar"


def test_gen(dirs):
    home, data_dir = dirs
    v = PersistentData(FN, lambda: "hello", data_dir=data_dir, home=home).get()
    assert v.created is True
    assert v.content == "hello"
    assert v.path == os.path.join(data_dir, FN)

    v = PersistentData(FN, lambda: "boo", data_dir=data_dir, home=home).get()
    assert v.created is False
    assert v.content == "hello"


def test_empty_generation_returns_empty_value(dirs):
    home, data_dir = dirs
    v = PersistentData(FN, lambda: "", data_dir=data_dir, home=home).get()
    assert v == Value(content="", created=False, path="")
    assert not os.path.exists(os.path.join(data_dir, FN))


def test_value_update(dirs):
    home, data_dir = dirs
    v = PersistentData(FN, lambda: "first", data_dir=data_dir, home=home).get()
    v.update("second")
    again = PersistentData(FN, lambda: "boo", data_dir=data_dir, home=home).get()
    assert again.content == "second"


def test_no_home(tmp_path):
    data_dir = str(tmp_path / ".cq")
    v = PersistentData(FN, lambda: "x", data_dir=data_dir, home=None).get()
    assert v.created is True
    assert v.content == "x"


def test_order_helpers():
    assert read_order("d", "/h") == [os.path.join("/h", ".cq"), "d"]
    assert read_order("d", None) == ["d"]
    assert write_order("d") == ["d"]