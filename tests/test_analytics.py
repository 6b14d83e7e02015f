import socket
import string

import pytest

from skyquery.analytics import (
    CI_ENV_VARS,
    FAAS_ENV_VARS,
    environment_attributes,
    hash_attribute,
    is_ci,
    is_faas,
    mac_host,
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in CI_ENV_VARS + FAAS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_hash_attribute_known_values():
    assert hash_attribute("") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    assert hash_attribute("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_hash_attribute_deterministic_and_distinct():
    assert hash_attribute("host-a") == hash_attribute("host-a")
    assert hash_attribute("host-a") != hash_attribute("host-b")


def test_is_ci(clean_env):
    assert is_ci() is False
    clean_env.setenv("GITHUB_ACTIONS", "true")
    assert is_ci() is True


def test_is_ci_ignores_empty(clean_env):
    clean_env.setenv("CI", "")
    assert is_ci() is False


def test_is_faas(clean_env):
    assert is_faas() is False
    clean_env.setenv("AWS_LAMBDA_FUNCTION_NAME", "fn")
    assert is_faas() is True


def test_mac_host_is_stable_hash():
    value = mac_host()
    assert len(value) == 64
    assert set(value) <= set(string.hexdigits.lower())
    assert mac_host() == value


def test_environment_attributes(clean_env):
    clean_env.setenv("TRAVIS", "1")
    env = environment_attributes(True)
    assert env.terminal is True
    assert env.ci is True
    assert env.faas is False
    assert env.hostname == hash_attribute(socket.gethostname())
    assert env.mac_addr == mac_host()
    assert environment_attributes(False).terminal is False