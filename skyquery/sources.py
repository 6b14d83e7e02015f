"""Policy source strings: normalisation, sub-policy splitting and GitHub detection."""

from __future__ import annotations

import posixpath
from urllib.parse import quote, unquote, urlsplit


class SourceError(ValueError):
    """A source string could not be interpreted."""


def _join(*parts: str) -> str:
    present = [p for p in parts if p]
    if not present:
        return ""
    return _clean("/".join(present))


def _clean(path: str) -> str:
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _ext(path: str) -> str:
    for i in range(len(path) - 1, -1, -1):
        if path[i] == ".":
            return path[i:]
        if path[i] == "/":
            break
    return ""


def normalize_path(src: str) -> str:
    """Reduce a source to host and path, without forced getter, version or extension."""
    parts = src.split("::")
    src = parts[1] if len(parts) > 1 else parts[0]
    try:
        url = urlsplit(src)
    except ValueError:
        pass
    else:
        host = url.netloc.rpartition("@")[2]
        src = _join(host, unquote(url.path))
    src = src.split("@")[0]
    return src.rstrip(_ext(src))


def parse_source_sub_policy(src: str) -> tuple[str, str]:
    """Split a source into the URL without the sub-policy and the sub-policy.

    ``proto://dom.com/path//sub?q=p`` becomes ``("proto://dom.com/path?q=p", "sub")``.
    """
    stop = len(src)
    idx = src.find("?")
    if idx > -1:
        stop = idx
    idx = src.find("@")
    if idx > -1:
        stop = idx

    offset = 0
    idx = src[:stop].find("://")
    if idx > -1:
        offset = idx + 3

    idx = src[offset:stop].find("//")
    if idx == -1:
        return src, ""

    idx += offset
    subdir = src[idx + 2:]
    src = src[:idx]

    for marker in ("?", "@"):
        idx = subdir.find(marker)
        if idx > -1:
            src += subdir[idx:]
            subdir = subdir[:idx]

    if subdir:
        subdir = _clean(subdir)
    return src, subdir


def detect_github(src: str) -> str | None:
    """Turn a ``github.com/owner/repo`` source into a git getter URL.

    Returns ``None`` if the source is not a GitHub source.
    """
    if not src or not src.startswith("github.com/"):
        return None

    parts = src.split("/")
    if len(parts) < 3:
        raise SourceError("GitHub URLs should be github.com/username/repo")

    url_str = "https://" + "/".join(parts[:3])
    try:
        url = urlsplit(url_str)
    except ValueError as exc:
        raise SourceError(f"error parsing GitHub URL: {exc}") from exc

    path = unquote(url.path)
    if not path.endswith(".git"):
        path += ".git"
    if len(parts) > 3:
        path += "//" + "/".join(parts[3:])

    result = f"{url.scheme}://{url.netloc}{quote(path, safe='$&+,/:;=@')}"
    if url.query or "?" in url_str.split("#", 1)[0]:
        result += "?" + url.query
    if url.fragment:
        result += "#" + url.fragment
    return "git::" + result