import pytest

from krn import config
from krn.config import VersionPolicy


@pytest.fixture(autouse=True)
def strict_version_policy(monkeypatch):
    """Run every test under the strict policy regardless of KRN_VERSION_POLICY"""
    monkeypatch.setattr(config, "DEFAULT_VERSION_POLICY", VersionPolicy.STRICT)
