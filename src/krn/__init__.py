"""KRN - Kopexa Resource Names

This package parses, validates, builds and derives hierarchical resource
names of the form `//[service.]kopexa.com/collection/id[...][@version]`.
"""

from .config import DEFAULT_VERSION_POLICY, VersionPolicy
from .krn import (
    DOMAIN,
    ERROR_CLASSES,
    Krn,
    KrnBuilder,
    KrnError,
    KrnPanic,
    EmptyKrnError,
    MalformedKrnError,
    MissingResourceError,
    InvalidDomainError,
    InvalidResourceIdError,
    InvalidVersionError,
    ResourceNotFoundError,
    Segment,
    get_resource,
    is_valid,
    is_valid_resource_id,
    is_valid_service,
    is_valid_version,
    must_parse,
    new_child,
    new_child_from_string,
    parse,
    safe_resource_id,
)

__version__ = "0.1.0"

__all__ = [
    "DOMAIN",
    "DEFAULT_VERSION_POLICY",
    "ERROR_CLASSES",
    "VersionPolicy",
    "Krn",
    "KrnBuilder",
    "KrnError",
    "KrnPanic",
    "EmptyKrnError",
    "MalformedKrnError",
    "MissingResourceError",
    "InvalidDomainError",
    "InvalidResourceIdError",
    "InvalidVersionError",
    "ResourceNotFoundError",
    "Segment",
    "get_resource",
    "is_valid",
    "is_valid_resource_id",
    "is_valid_service",
    "is_valid_version",
    "must_parse",
    "new_child",
    "new_child_from_string",
    "parse",
    "safe_resource_id",
]
