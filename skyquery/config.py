"""Configuration model: providers, connection settings and versions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable
from urllib.parse import quote, quote_plus

DEFAULT_PORT = 5432
DEFAULT_DB_TYPE = "postgres"


@dataclass
class LoggingConfig:
    """Logging settings as they may appear in the configuration file."""

    console_logging_enabled: bool = False
    verbose: bool = False
    encode_logs_as_json: bool = False
    file_logging_enabled: bool = False
    directory: str = ""
    filename: str = ""
    max_size: int = 0
    max_backups: int = 0
    max_age: int = 0
    console_no_color: bool = False
    instance_id: str = ""


@dataclass
class Provider:
    """Configuration block of one provider."""

    name: str = ""
    alias: str = ""
    resources: list[str] = field(default_factory=list)
    skip_resources: list[str] = field(default_factory=list)
    env: list[str] = field(default_factory=list)
    config_bytes: bytes | None = None
    max_parallel_resource_fetch_limit: int = 0
    max_goroutines: int = 0
    resource_timeout: int = 0
    configuration: dict[str, Any] | None = None


@dataclass
class RequiredProvider:
    """A provider the installation requires, with optional source and version."""

    name: str = ""
    source: str | None = None
    version: str = ""

    def __str__(self) -> str:
        source = f"{self.source}/" if self.source is not None else ""
        return f"{source}cq-provider-{self.name}@{self.version}"


@dataclass
class Connection:
    """Database connection, either as a DSN or as separate parameters."""

    dsn: str = ""
    type: str = ""
    username: str = ""
    password: str = ""
    host: str = ""
    port: int = 0
    database: str = ""
    sslmode: str = ""
    extras: list[str] | None = None

    def is_any_conn_params_set(self) -> bool:
        return bool(
            self.type or self.username or self.password or self.host or self.port
            or self.database or self.sslmode or self.extras
        )

    def build_from_conn_params(self) -> None:
        """Fill defaults and build :attr:`dsn` from the separate parameters."""
        if self.port == 0:
            self.port = DEFAULT_PORT
        if not self.type:
            self.type = DEFAULT_DB_TYPE

        userinfo = ""
        if self.username:
            userinfo = _escape_userinfo(self.username)
            if self.password:
                userinfo += ":" + _escape_userinfo(self.password)
            userinfo += "@"

        query: dict[str, list[str]] = {}
        for extra in self.extras or ():
            key, _, value = extra.partition("=")
            query.setdefault(key, []).append(value)
        if self.sslmode:
            query["sslmode"] = [self.sslmode]
        raw_query = "&".join(
            f"{quote_plus(k)}={quote_plus(v)}" for k in sorted(query) for v in query[k]
        )

        path = quote(self.database, safe="/")
        if path and not path.startswith("/"):
            path = "/" + path
        dsn = f"{self.type}://{userinfo}{self.host}:{self.port}{path}"
        if raw_query:
            dsn += "?" + raw_query
        self.dsn = dsn


def _escape_userinfo(value: str) -> str:
    return quote(value, safe="$&+,;=")


@dataclass
class Policy:
    db_persistence: bool = False


@dataclass
class CloudQuery:
    """The ``cloudquery`` block of the configuration."""

    logger: LoggingConfig | None = None
    providers: list[RequiredProvider] = field(default_factory=list)
    connection: Connection | None = None
    policy: Policy | None = None
    plugin_directory: str = ""
    policy_directory: str = ""

    def get_required_provider(self, name: str) -> RequiredProvider:
        for provider in self.providers:
            if provider.name == name:
                return provider
        raise LookupError(f"provider {name} does not exist")


@dataclass
class Config:
    cloudquery: CloudQuery = field(default_factory=CloudQuery)
    providers: list[Provider] = field(default_factory=list)

    def get_provider(self, name: str) -> Provider:
        """Return the provider block whose alias is ``name``."""
        for provider in self.providers:
            if provider.alias == name:
                return provider
        raise LookupError(f"provider {name} does not exist")


def provider_names(providers: Iterable[Provider]) -> list[str]:
    return [p.name for p in providers]


def distinct_providers(providers: Iterable[RequiredProvider]) -> list[RequiredProvider]:
    """Keep the first required provider of each name, in order."""
    seen: set[str] = set()
    result = []
    for p in providers:
        if p.name not in seen:
            seen.add(p.name)
            result.append(p)
    return result


def required_provider_names(providers: Iterable[RequiredProvider]) -> list[str]:
    return sorted({p.name for p in providers})


def find_required_provider(
    providers: Iterable[RequiredProvider], name: str
) -> RequiredProvider | None:
    return next((p for p in providers if p.name == name), None)


_IDENT = r"[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*"
_VERSION_RE = re.compile(
    rf"^v?([0-9]+)(\.[0-9]+)?(\.[0-9]+)?(?:-({_IDENT}))?(?:\+({_IDENT}))?$"
)


@dataclass(frozen=True)
class Version:
    """A semantic version; partial versions are completed with zeros."""

    major: int
    minor: int
    patch: int
    prerelease: str = ""
    metadata: str = ""
    original: str = ""

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + self.prerelease
        if self.metadata:
            text += "+" + self.metadata
        return text


def parse_version(version: str) -> Version:
    """Parse a (possibly partial) semantic version, raising ValueError if invalid."""
    match = _VERSION_RE.match(version)
    if not match:
        raise ValueError("Invalid Semantic Version")
    major, minor, patch, pre, meta = match.groups()
    return Version(
        major=int(major),
        minor=int(minor[1:]) if minor else 0,
        patch=int(patch[1:]) if patch else 0,
        prerelease=pre or "",
        metadata=meta or "",
        original=version,
    )


def format_version(version: Version) -> str:
    return "v" + str(version)