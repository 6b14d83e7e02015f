"""Anonymous environment attributes used for telemetry."""

from __future__ import annotations

import hashlib
import os
import socket
import sys
from dataclasses import dataclass
from pathlib import Path

CI_ENV_VARS = (
    "CI",
    "BUILD_ID",
    "BUILDKITE",
    "CIRCLECI",
    "CIRCLE_CI",
    "CIRRUS_CI",
    "CODEBUILD_BUILD_ID",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "HEROKU_TEST_RUN_ID",
    "TEAMCITY_VERSION",
    "TF_BUILD",
    "TRAVIS",
)

FAAS_ENV_VARS = (
    "LAMBDA_TASK_ROOT",
    "AWS_LAMBDA_FUNCTION_NAME",
    "FUNCTION_TARGET",
    "AZURE_FUNCTIONS_ENVIRONMENT",
)

_PLATFORM_NAMES = {"win32": "windows", "cygwin": "windows"}


@dataclass(frozen=True)
class Environment:
    os: str
    terminal: bool
    ci: bool
    faas: bool
    hostname: str
    mac_addr: str


def hash_attribute(value: str) -> str:
    """Return a one-way SHA-256 hex hash of ``value``."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _any_set(names: tuple[str, ...]) -> bool:
    return any(os.environ.get(name) for name in names)


def is_ci() -> bool:
    """True when a CI-specific environment variable is set and non-empty."""
    return _any_set(CI_ENV_VARS)


def is_faas() -> bool:
    """True when running inside a function-as-a-service environment."""
    return _any_set(FAAS_ENV_VARS)


def _hostname() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return ""


def _hardware_addresses() -> list[str]:
    root = Path("/sys/class/net")
    try:
        entries = list(root.iterdir())
    except OSError:
        return []
    addresses = []
    for entry in entries:
        try:
            address = (entry / "address").read_text().strip()
        except OSError:
            continue
        if address and set(address) - set("0:"):
            addresses.append(address)
    return addresses


def mac_host() -> str:
    """Hash the sorted hardware addresses together with the hostname."""
    parts = sorted(_hardware_addresses())
    hostname = _hostname()
    if hostname:
        parts.append(hostname)
    return hash_attribute(",".join(parts))


def environment_attributes(terminal: bool) -> Environment:
    """Collect the environment attributes of the current process."""
    hostname = _hostname()
    return Environment(
        os=_PLATFORM_NAMES.get(sys.platform, sys.platform),
        terminal=terminal,
        ci=is_ci(),
        faas=is_faas(),
        hostname=hash_attribute(hostname) if hostname else "",
        mac_addr=mac_host(),
    )