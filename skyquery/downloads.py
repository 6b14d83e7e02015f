"""Downloading files over HTTP and reading files relative to a base path."""

from __future__ import annotations

import os
from typing import BinaryIO, Callable, Optional

import requests

ProgressCallback = Callable[[int, Optional[int]], None]
CHUNK_SIZE = 64 * 1024


class DownloadError(Exception):
    """A download failed."""


def _stream_to(out: BinaryIO, url: str, progress: ProgressCallback | None) -> None:
    try:
        response = requests.get(url, stream=True)
    except requests.RequestException as exc:
        raise DownloadError(str(exc)) from exc
    with response:
        if response.status_code != 200:
            raise DownloadError(
                f"got {response.status_code} http code instead expected 200"
            )
        length = response.headers.get("Content-Length")
        total = int(length) if length and length.isdigit() else None
        written = 0
        try:
            for chunk in response.iter_content(CHUNK_SIZE):
                out.write(chunk)
                written += len(chunk)
                if progress is not None:
                    progress(written, total)
        except requests.RequestException as exc:
            raise DownloadError(str(exc)) from exc


def download_file(
    path: str | os.PathLike[str],
    url: str,
    progress: ProgressCallback | None = None,
) -> None:
    """Stream ``url`` to ``path``.

    Data is written to ``path + ".tmp"`` and renamed into place once complete.
    ``progress`` is called with the bytes written so far and the total size
    (``None`` when unknown).
    """
    target = os.fspath(path)
    tmp = target + ".tmp"
    with open(tmp, "wb") as out:
        try:
            _stream_to(out, url, progress)
        except BaseException:
            out.close()
            os.remove(tmp)
            raise
    os.replace(tmp, target)


def read_file(base_path: str, path: str) -> str:
    """Read ``path`` as text; if it does not exist, try it relative to ``base_path``."""
    try:
        os.stat(path)
    except OSError:
        path = os.path.join(base_path, path)
        os.stat(path)
    with open(path, encoding="utf-8") as f:
        return f.read()