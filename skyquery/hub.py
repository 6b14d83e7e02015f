"""Detection of local-file and hub policy sources."""

from __future__ import annotations

import os
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit

import requests

from .registry import RegistryClient, RegistryError
from .sources import SourceError

HUB_OWNER = "cloudquery-policies"
_REPO_TO_REGISTRY_ORG = {"cloudquery-policies": "cloudquery"}
HTTP_TIMEOUT = 15.0


def detect_file(src: str, pwd: str) -> str | None:
    """Return a ``file://`` URL if ``src`` names an existing local path, else ``None``."""
    if not src:
        return None
    check_path = src
    if pwd and not os.path.isabs(src):
        check_path = os.path.join(pwd, src)
    if not os.path.exists(check_path):
        return None

    if os.path.isabs(src):
        return "file://" + src
    if not pwd:
        raise SourceError("relative paths require a module with a pwd")
    if not os.path.isabs(pwd):
        raise SourceError(f"pwd must be an absolute path, got: {pwd}")
    if os.path.islink(pwd):
        pwd = os.path.realpath(pwd)
    return "file://" + os.path.normpath(os.path.join(pwd, src))


def _latest_ref(client: RegistryClient, owner: str, repo: str) -> str:
    org = _REPO_TO_REGISTRY_ORG.get(owner, owner)
    try:
        return client.latest_policy_release(org, repo)
    except RegistryError as exc:
        raise SourceError(f"failed to find latest version: {exc}") from exc


def detect_hub(src: str, pwd: str, client: RegistryClient | None = None) -> str | None:
    """Turn a hub policy name into a git getter URL pinned to its latest release.

    Returns ``None`` for local paths and for policies the hub does not have.
    """
    if not src:
        return None
    try:
        if detect_file(src, pwd) is not None:
            return None
    except SourceError:
        return None

    parts = f"github.com/{HUB_OWNER}/{src}".split("/")
    url = urlsplit("https://" + "/".join(parts[:3]))
    if not url.scheme or not url.netloc:
        raise SourceError("error parsing GitHub URL: invalid URI")

    try:
        response = requests.get(url.geturl(), timeout=HTTP_TIMEOUT)
    except requests.RequestException as exc:
        raise SourceError(f"failed to check if policy in hub: {exc}") from exc
    with response:
        if response.status_code == 404:
            return None

    query = url.query
    if "ref" not in dict(parse_qsl(query, keep_blank_values=True)):
        latest = _latest_ref(client or RegistryClient(), parts[1], parts[2])
        if latest:
            pairs = parse_qsl(query, keep_blank_values=True) + [("ref", latest)]
            query = urlencode(sorted(pairs, key=lambda kv: kv[0]))

    path = unquote(url.path)
    if not path.endswith(".git"):
        path += ".git"
    if len(parts) > 3:
        path += "//" + "/".join(parts[3:])

    result = f"{url.scheme}://{url.netloc}{quote(path, safe='$&+,/:;=@')}"
    if query:
        result += "?" + query
    if url.fragment:
        result += "#" + url.fragment
    return "git::" + result