"""Front matter for generated command documentation pages."""

from __future__ import annotations

import os
import posixpath

COMMAND_PREFIX = "cloudquery_"

_FRONT_MATTER = '---\nid: "{id}"\nhide_title: true\nsidebar_label: "{label}"\n---\n'


def front_matter(filename: str) -> str:
    """Return the front matter block for a generated documentation file."""
    name = posixpath.basename(filename.rstrip("/")) or "."
    dot = name.rfind(".")
    base = name[:dot] if dot >= 0 else name
    page_id = base[len(COMMAND_PREFIX):] if base.startswith(COMMAND_PREFIX) else base
    return _FRONT_MATTER.format(id=page_id, label=page_id.replace("_", " "))


def link_handler(link: str | os.PathLike[str]) -> str:
    """Return the link target as a plain string, otherwise unchanged."""
    return os.fspath(link)