import logging

import pytest

from krn import InvalidDomainError, Krn, config, is_valid_version
from krn.config import VERSION_POLICY_ENV, VersionPolicy, version_policy_from_env


def test_version_policy_defaults_to_strict():
    assert version_policy_from_env({}) is VersionPolicy.STRICT
    assert version_policy_from_env({VERSION_POLICY_ENV: ""}) is VersionPolicy.STRICT


def test_version_policy_from_env():
    assert version_policy_from_env({VERSION_POLICY_ENV: "permissive"}) is VersionPolicy.PERMISSIVE
    assert version_policy_from_env({VERSION_POLICY_ENV: " Permissive "}) is VersionPolicy.PERMISSIVE
    assert version_policy_from_env({VERSION_POLICY_ENV: "strict"}) is VersionPolicy.STRICT


def test_unknown_version_policy_falls_back(caplog):
    with caplog.at_level(logging.WARNING, logger="krn.config"):
        policy = version_policy_from_env({VERSION_POLICY_ENV: "anything"})
    assert policy is VersionPolicy.STRICT
    assert "anything" in caplog.text


def test_default_policy_applies_everywhere(monkeypatch):
    assert not is_valid_version("2022")

    monkeypatch.setattr(config, "DEFAULT_VERSION_POLICY", VersionPolicy.PERMISSIVE)
    assert is_valid_version("2022")
    k = Krn.from_string("//kopexa.com/frameworks/iso27001@2022")
    assert k.with_version("2023").version == "2023"


def test_parse_failure_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="krn.krn"):
        with pytest.raises(InvalidDomainError):
            Krn.from_string("//google.com/frameworks/iso27001")
    assert "google.com" in caplog.text
