"""Runtime configuration for KRN validation

Settings are resolved once at import time from the environment:

- ``KRN_VERSION_POLICY``: ``strict`` (default) or ``permissive``
"""

import logging
import os
from enum import Enum


logger = logging.getLogger(__name__)

VERSION_POLICY_ENV = "KRN_VERSION_POLICY"


class VersionPolicy(Enum):
    """Which version tags are accepted after the ``@`` separator

    STRICT accepts ``latest``, ``draft`` and ``v`` followed by one to three
    dot-separated integer groups (``v1``, ``v1.2``, ``v1.2.3``).

    PERMISSIVE additionally accepts any alphanumeric tag with inner ``-``,
    ``_`` or ``.`` (``2022``, ``2022-01-15``, ``1.0.0``) so that tags from
    external catalogs such as OSCAL can be carried unchanged. A bare ``v``
    is still rejected.
    """
    STRICT = "strict"
    PERMISSIVE = "permissive"


def version_policy_from_env(environ=None) -> VersionPolicy:
    """Read the version policy from the environment, falling back to STRICT"""
    if environ is None:
        environ = os.environ
    raw = environ.get(VERSION_POLICY_ENV, "").strip().lower()
    if not raw:
        return VersionPolicy.STRICT
    try:
        return VersionPolicy(raw)
    except ValueError:
        logger.warning(
            "Unknown %s value %r, using %r",
            VERSION_POLICY_ENV, raw, VersionPolicy.STRICT.value,
        )
        return VersionPolicy.STRICT


DEFAULT_VERSION_POLICY = version_policy_from_env()
