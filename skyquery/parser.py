"""Loading, validating and normalising configuration files."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping
from urllib.parse import unquote, urlsplit

import yaml

from .config import (
    CloudQuery,
    Config,
    Connection,
    LoggingConfig,
    Policy,
    Provider,
    RequiredProvider,
    format_version,
    parse_version,
)
from .diagnostics import Diagnostic, Diagnostics, DiagnosticType

ENV_VAR_PREFIX = "CQ_VAR_"
LATEST = "latest"
_NOT_EXIST_HINT = "file does not exist. Hint: Try `cloudquery init <provider>`"


class ConfigError(Exception):
    """Configuration could not be loaded; carries the diagnostics."""

    def __init__(self, diagnostics: Iterable[Diagnostic]) -> None:
        self.diagnostics = Diagnostics(diagnostics)
        super().__init__(str(self.diagnostics))


class _DecodeError(ValueError):
    pass


class _Loader(yaml.SafeLoader):
    """Safe loader that keeps float-looking scalars as strings (e.g. ``0.10``)."""


_Loader.yaml_implicit_resolvers = {
    key: [r for r in resolvers if r[0] != "tag:yaml.org,2002:float"]
    for key, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _q(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def environment_variables(prefix: str, env: Iterable[str]) -> dict[str, str]:
    """Collect ``NAME=value`` entries starting with ``prefix``, prefix removed."""
    variables = {}
    for entry in env:
        name, _, value = entry.partition("=")
        if name.startswith(prefix):
            variables[name[len(prefix):]] = value
    return variables


_SPECIAL = set("*#$@!?-0123456789")


def _is_name_char(c: str) -> bool:
    return c == "_" or ("0" <= c <= "9") or ("a" <= c <= "z") or ("A" <= c <= "Z")


def _shell_name(s: str) -> tuple[str, int]:
    if s[0] == "{":
        if len(s) > 2 and s[1] in _SPECIAL and s[2] == "}":
            return s[1], 3
        end = s.find("}", 1)
        if end == -1:
            return "", 1
        if end == 1:
            return "", 2
        return s[1:end], end + 1
    if s[0] in _SPECIAL:
        return s[0], 1
    k = 0
    while k < len(s) and _is_name_char(s[k]):
        k += 1
    return s[:k], k


def _expand(s: str, mapping: Callable[[str], str]) -> str:
    out = []
    i = 0
    while i < len(s):
        if s[i] == "$" and i + 1 < len(s):
            name, width = _shell_name(s[i + 1:])
            if name:
                out.append(mapping(name))
            elif width == 0:
                out.append("$")
            i += 1 + width
        else:
            out.append(s[i])
            i += 1
    return "".join(out)


def _fields(node: Any, allowed: set[str], where: str) -> dict[str, Any]:
    if node is None:
        return {}
    if not isinstance(node, Mapping):
        raise _DecodeError(f"cannot decode {type(node).__name__} into {where}")
    for key in node:
        if key not in allowed:
            raise _DecodeError(f"field {key} not found in type {where}")
    return dict(node)


def _str(value: Any, name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise _DecodeError(f"field {name} must be a string")


def _int(value: Any, name: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        try:
            return int(str(value))
        except ValueError:
            raise _DecodeError(f"field {name} must be an integer") from None
    return value


def _bool(value: Any, name: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise _DecodeError(f"field {name} must be a boolean")
    return value


def _str_list(value: Any, name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise _DecodeError(f"field {name} must be a list")
    return [_str(v, name) for v in value]


def _decode_logging(node: Any, base: LoggingConfig) -> LoggingConfig:
    names = {
        "enable_console_logging": ("console_logging_enabled", _bool),
        "verbose": ("verbose", _bool),
        "encode_logs_as_json": ("encode_logs_as_json", _bool),
        "file_logging_enabled": ("file_logging_enabled", _bool),
        "directory": ("directory", _str),
        "filename": ("filename", _str),
        "max_size": ("max_size", _int),
        "max_backups": ("max_backups", _int),
        "max_age": ("max_age", _int),
        "console_no_color": ("console_no_color", _bool),
    }
    data = _fields(node, set(names), "logging")
    for key, value in data.items():
        attr, convert = names[key]
        setattr(base, attr, convert(value, key))
    return base


def _decode_connection(node: Any) -> Connection | None:
    if node is None:
        return None
    d = _fields(
        node,
        {"dsn", "type", "username", "password", "host", "port", "database", "sslmode", "extras"},
        "connection",
    )
    return Connection(
        dsn=_str(d.get("dsn"), "dsn"),
        type=_str(d.get("type"), "type"),
        username=_str(d.get("username"), "username"),
        password=_str(d.get("password"), "password"),
        host=_str(d.get("host"), "host"),
        port=_int(d.get("port"), "port"),
        database=_str(d.get("database"), "database"),
        sslmode=_str(d.get("sslmode"), "sslmode"),
        extras=_str_list(d["extras"], "extras") if d.get("extras") is not None else None,
    )


def _decode_required(node: Any) -> RequiredProvider:
    d = _fields(node, {"name", "source", "version"}, "required provider")
    source = d.get("source")
    return RequiredProvider(
        name=_str(d.get("name"), "name"),
        source=_str(source, "source") if source is not None else None,
        version=_str(d.get("version"), "version"),
    )


def _decode_provider(node: Any) -> Provider:
    d = _fields(
        node,
        {
            "name", "alias", "resources", "skip_resources", "env",
            "max_parallel_resource_fetch_limit", "max_goroutines",
            "resource_timeout", "configuration",
        },
        "provider",
    )
    configuration = d.get("configuration")
    if configuration is not None and not isinstance(configuration, Mapping):
        raise _DecodeError("field configuration must be a mapping")
    return Provider(
        name=_str(d.get("name"), "name"),
        alias=_str(d.get("alias"), "alias"),
        resources=_str_list(d.get("resources"), "resources"),
        skip_resources=_str_list(d.get("skip_resources"), "skip_resources"),
        env=_str_list(d.get("env"), "env"),
        max_parallel_resource_fetch_limit=_int(
            d.get("max_parallel_resource_fetch_limit"), "max_parallel_resource_fetch_limit"
        ),
        max_goroutines=_int(d.get("max_goroutines"), "max_goroutines"),
        resource_timeout=_int(d.get("resource_timeout"), "resource_timeout"),
        configuration=dict(configuration) if configuration is not None else None,
    )


def _list(node: Any, name: str) -> list[Any]:
    if node is None:
        return []
    if not isinstance(node, list):
        raise _DecodeError(f"field {name} must be a list")
    return node


def decode_config(text: str) -> Config:
    """Decode YAML text into a :class:`Config`, rejecting unknown fields."""
    try:
        raw = yaml.load(text, Loader=_Loader)
        if raw is None:
            raise _DecodeError("EOF")
        root = _fields(raw, {"cloudquery", "providers"}, "config")
        cq = _fields(
            root.get("cloudquery"), {"logging", "providers", "connection", "policy"}, "cloudquery"
        )
        policy = None
        if cq.get("policy") is not None:
            pd = _fields(cq["policy"], {"db_persistence"}, "policy")
            policy = Policy(db_persistence=_bool(pd.get("db_persistence"), "db_persistence"))
        cloudquery = CloudQuery(
            logger=_decode_logging(cq.get("logging"), LoggingConfig()),
            providers=[_decode_required(p) for p in _list(cq.get("providers"), "providers")],
            connection=_decode_connection(cq.get("connection")),
            policy=policy,
        )
        providers = [_decode_provider(p) for p in _list(root.get("providers"), "providers")]
    except (yaml.YAMLError, _DecodeError) as exc:
        raise ConfigError(
            [Diagnostic.from_error(exc, DiagnosticType.USER, summary="Failed to parse yaml")]
        ) from exc

    for provider in providers:
        provider.config_bytes = yaml.safe_dump(
            provider.configuration or {}, sort_keys=False
        ).encode("utf-8")
    return Config(cloudquery=cloudquery, providers=providers)


def _is_latest(version: str) -> bool:
    return version == LATEST


def _validate_required_providers(providers: Iterable[RequiredProvider]) -> Diagnostics:
    diags = Diagnostics()
    for p in providers:
        if _is_latest(p.version):
            continue
        try:
            parse_version(p.version)
        except ValueError:
            diags.add(Diagnostic.from_error(
                f"Provider {_q(p.name)} version {_q(p.version)} is invalid. "
                "Please set to 'latest' a or valid semantic version",
                DiagnosticType.USER,
            ))
    return diags


def _connection_error(detail: str) -> Diagnostic:
    return Diagnostic.from_error(
        "invalid connection configuration", DiagnosticType.USER, detail=detail
    )


def _validate_connection(connection: Connection, dsn_flag: str) -> Diagnostics:
    diags = Diagnostics()
    if connection.dsn:
        if not dsn_flag and connection.is_any_conn_params_set():
            diags.add(_connection_error(
                "DSN specified along with explicit attributes, only one type is supported"
            ))
        return diags
    if not connection.host:
        diags.add(_connection_error("missing host"))
    if not connection.database:
        diags.add(_connection_error("missing database"))
    return diags


def _validate_providers_block(config: Config) -> Diagnostics:
    diags = Diagnostics()
    existing: set[str] = set()
    for p in config.providers:
        if p.alias:
            if p.alias in existing:
                diags.add(Diagnostic.from_error(
                    f"provider with alias {p.alias} for provider {p.name} already exists, "
                    "give it a different alias",
                    DiagnosticType.USER, summary="Duplicate Alias",
                ))
                continue
            existing.add(p.alias)
        else:
            if p.name in existing:
                diags.add(Diagnostic.from_error(
                    f"provider with name {p.name} already exists, "
                    "use alias in provider configuration block",
                    DiagnosticType.USER, summary="Provider Alias Required",
                ))
                continue
            existing.add(p.name)
    return diags


def process_config(config: Config, data_dir: str = "", dsn: str = "") -> Diagnostics:
    """Assign defaults, apply overrides, validate and normalise ``config`` in place.

    Raises :class:`ConfigError` when validation finds errors.
    """
    if config.cloudquery.connection is None:
        config.cloudquery.connection = Connection()
    connection = config.cloudquery.connection
    if data_dir:
        config.cloudquery.plugin_directory = os.path.join(data_dir, "providers")
        config.cloudquery.policy_directory = os.path.join(data_dir, "policies")
    if dsn:
        connection.dsn = dsn

    diags = Diagnostics()
    diags.add(_validate_required_providers(config.cloudquery.providers))
    diags.add(_validate_connection(connection, dsn))
    diags.add(_validate_providers_block(config))
    if diags.has_errors():
        raise ConfigError(diags)

    for p in config.cloudquery.providers:
        if not _is_latest(p.version):
            p.version = format_version(parse_version(p.version))
    if not connection.dsn:
        connection.build_from_conn_params()
    for p in config.providers:
        if not p.alias:
            p.alias = p.name
    return diags


class Parser:
    """Reads configuration files, substituting ``$VAR`` from its variables."""

    def __init__(
        self,
        variables: Mapping[str, str] | None = None,
        data_dir: str = "",
        dsn: str = "",
    ) -> None:
        self.variables = dict(variables or {})
        self.data_dir = data_dir
        self.dsn = dsn

    def _read_error(self, path: str, message: str) -> ConfigError:
        return ConfigError([Diagnostic.from_error(
            message, DiagnosticType.USER,
            summary=f"Failed to read file: {message}",
            detail=f"The file {_q(path)} could not be read",
        )])

    def load_file(self, path: str) -> bytes:
        """Read a local path or a ``file://`` URL."""
        try:
            url = urlsplit(path)
        except ValueError as exc:
            raise ConfigError([Diagnostic.from_error(
                exc, DiagnosticType.USER,
                summary="Failed to load config file: invalid path",
                detail=f"The file {_q(path)} could not be read",
            )]) from exc

        if not url.scheme:
            local = path
        elif url.scheme == "file":
            local = unquote(url.path)
        else:
            raise self._read_error(path, f"unsupported scheme {url.scheme}")

        try:
            contents = Path(local).read_bytes()
        except FileNotFoundError:
            raise self._read_error(path, _NOT_EXIST_HINT) from None
        except OSError as exc:
            raise self._read_error(path, exc.strerror or str(exc)) from exc
        if not contents:
            raise ConfigError([Diagnostic.from_error(
                "file is empty", DiagnosticType.USER,
                summary="Failed to read file",
                detail=f"The file {_q(path)} is empty",
            )])
        return contents

    def load_config_from_source(self, data: bytes | str) -> Config:
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        expanded = _expand(text, lambda name: self.variables.get(name, ""))
        config = decode_config(expanded)
        process_config(config, self.data_dir, self.dsn)
        return config

    def load_config_file(self, path: str) -> Config:
        return self.load_config_from_source(self.load_file(path))