"""Persistent values stored in ``~/.cq`` or the data directory."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable


class IsDirectoryError(Exception):
    """The persistent file path exists but is a directory."""

    def __init__(self, path: str = "") -> None:
        super().__init__("file is directory")
        self.path = path


@dataclass(frozen=True)
class Value:
    content: str
    created: bool
    path: str

    def update(self, content: str) -> None:
        """Write new content to the value's file."""
        Path(self.path).write_text(content)


def _user_home() -> str | None:
    try:
        return str(Path.home())
    except (RuntimeError, KeyError):
        return None


def read_order(data_dir: str, home: str | None) -> list[str]:
    """Directories searched for an existing value, in order."""
    order = []
    if home is not None:
        order.append(os.path.join(home, ".cq"))
    order.append(data_dir)
    return order


def write_order(data_dir: str) -> list[str]:
    """Directories a newly generated value is written to, in order."""
    return [data_dir]


def _read(path: str) -> str:
    p = Path(path)
    try:
        is_dir = p.is_dir()
        exists = is_dir or p.exists()
    except OSError:
        raise
    if is_dir:
        raise IsDirectoryError(path)
    if not exists:
        return ""
    return p.read_text()


@dataclass
class PersistentData:
    """Reads a value from the first location holding it, or generates and stores one."""

    filename: str
    generate: Callable[[], str]
    data_dir: str = "./.cq"
    home: str | None = field(default_factory=_user_home)

    def get(self) -> Value:
        last_error: OSError | None = None
        for prefix in read_order(self.data_dir, self.home):
            path = os.path.join(prefix, self.filename)
            try:
                content = _read(path)
            except OSError as exc:
                last_error = exc
                continue
            last_error = None
            if content:
                return Value(content=content, created=False, path=path)
        if last_error is not None:
            raise last_error

        content = self.generate()
        if not content:
            return Value(content="", created=False, path="")

        path = ""
        for prefix in write_order(self.data_dir):
            path = os.path.join(prefix, self.filename)
            try:
                os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
                Path(path).write_text(content)
            except OSError as exc:
                last_error = exc
                continue
            last_error = None
            break
        if last_error is not None:
            raise last_error
        return Value(content=content, created=True, path=path)