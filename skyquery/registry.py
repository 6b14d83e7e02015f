"""Client for the provider and policy registry."""

from __future__ import annotations

import logging
from typing import Any, Mapping
from urllib.parse import urlencode

import requests

from .config import Version, parse_version

CLOUDQUERY_REGISTRY_URL = (
    "https://firestore.googleapis.com/v1/projects/hub-cloudquery/databases/(default)/documents/orgs/"
)
_PROVIDER_VERSIONS_PATH = "{org}/providers/{name}/versions"
_POLICY_VERSIONS_PATH = "{org}/policies/{name}/versions"
_PROVIDER_PATH = "{org}/providers/{name}"
_LATEST_ORDER = "v_major desc, v_minor desc, v_patch desc, published_at desc"
DEFAULT_TIMEOUT = 15.0

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """The registry could not be queried or held no usable answer."""


def _prerelease_key(prerelease: str) -> tuple[Any, ...]:
    if not prerelease:
        return (1,)
    ids = []
    for part in prerelease.split("."):
        if part.isdigit():
            ids.append((0, int(part), ""))
        else:
            ids.append((1, 0, part))
    return (0, tuple(ids))


def _version_key(version: Version) -> tuple[Any, ...]:
    return (version.major, version.minor, version.patch, _prerelease_key(version.prerelease))


class RegistryClient:
    """Looks up registered providers and their latest published releases."""

    def __init__(
        self,
        url: str = CLOUDQUERY_REGISTRY_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_json(self, url: str, params: Mapping[str, str]) -> Any:
        full = f"{url}?{urlencode(sorted(params.items()))}"
        try:
            response = self.session.get(full, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RegistryError(str(exc)) from exc
        with response:
            if response.status_code != 200:
                raise RegistryError(f"unexpected status code {response.status_code}")
            try:
                return response.json()
            except ValueError as exc:
                raise RegistryError(str(exc)) from exc

    def is_provider_registered(self, organization: str, provider_name: str) -> bool:
        """True if the registry knows the provider; any failure counts as unknown."""
        url = self.url + _PROVIDER_PATH.format(org=organization, name=provider_name)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException:
            logger.exception("failed to check if provider is registered")
            return False
        with response:
            return response.status_code == 200

    def latest_provider_release(self, organization: str, provider_name: str) -> str:
        """Return the tag of the newest release of a provider."""
        url = self.url + _PROVIDER_VERSIONS_PATH.format(org=organization, name=provider_name)
        doc = self._get_json(
            url,
            {"pageSize": "1", "orderBy": _LATEST_ORDER, "mask.fieldPaths": "tag"},
        )
        documents = (doc or {}).get("documents") or []
        tag = ""
        if documents:
            tag = (
                ((documents[0] or {}).get("fields") or {}).get("tag") or {}
            ).get("stringValue") or ""
        if not tag:
            raise RegistryError(f"failed to find provider[{provider_name}] latest version")
        return tag

    def latest_policy_release(self, organization: str, policy_name: str) -> str:
        """Return the highest semantic version published for a policy."""
        url = self.url + _POLICY_VERSIONS_PATH.format(org=organization, name=policy_name)
        doc = self._get_json(url, {"mask.fieldPaths": "policy.Name"})
        valid: list[Version] = []
        for document in (doc or {}).get("documents") or []:
            name = (document or {}).get("name") or ""
            try:
                valid.append(parse_version(name.split("/")[-1]))
            except ValueError:
                continue
        valid.sort(key=_version_key, reverse=True)
        if not valid or not valid[0].original:
            raise RegistryError(f"failed to find policy {policy_name} latest version")
        return valid[0].original