"""Kopexa Resource Names (KRN)

This module implements hierarchical resource names in the style of Google's
resource name design:

    //kopexa.com/{collection}/{resource-id}[/{collection}/{resource-id}][@{version}]
    //{service}.kopexa.com/{collection}/{resource-id}[...][@{version}]

Examples:
- `//kopexa.com/frameworks/iso27001`
- `//kopexa.com/frameworks/iso27001/controls/a-5-1@v2`
- `//catalog.kopexa.com/frameworks/iso27001`
"""

import logging
import re
from typing import Iterable, List, NamedTuple, Optional, Tuple, Union

from . import config
from .config import VersionPolicy


logger = logging.getLogger(__name__)

# Base domain for all KRNs
DOMAIN = "kopexa.com"

PATH_ROOT = "//"
PATH_SEPARATOR = "/"
VERSION_SEPARATOR = "@"

MAX_RESOURCE_ID_LENGTH = 200
MAX_SERVICE_LENGTH = 63
# Upper bound on raw input accepted by the parser
MAX_KRN_LENGTH = 4096

_RESOURCE_ID_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyz"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "0123456789-_."
)

_RESOURCE_ID_PATTERN = re.compile(r"[A-Za-z0-9](?:[A-Za-z0-9._-]{0,198}[A-Za-z0-9])?")
_SERVICE_PATTERN = re.compile(r"[a-z](?:[a-z0-9-]{0,61}[a-z0-9])?")
_STRICT_VERSION_PATTERN = re.compile(r"latest|draft|v[0-9]+(?:\.[0-9]+){0,2}")
_PERMISSIVE_VERSION_PATTERN = re.compile(r"[A-Za-z0-9](?:[A-Za-z0-9._-]*[A-Za-z0-9])?")


# Error classes
class KrnError(Exception):
    """Base exception for KRN errors"""
    code = "KRN_ERROR"


class EmptyKrnError(KrnError):
    """KRN string is empty"""
    code = "EMPTY_KRN"


class MalformedKrnError(KrnError):
    """KRN does not follow the //domain/collection/id structure"""
    code = "INVALID_KRN"


class InvalidDomainError(KrnError):
    """Domain is not kopexa.com, or the service label is invalid"""
    code = "INVALID_DOMAIN"


class InvalidResourceIdError(KrnError):
    """Resource ID violates the resource ID grammar"""
    code = "INVALID_RESOURCE_ID"


class InvalidVersionError(KrnError):
    """Version violates the active version policy"""
    code = "INVALID_VERSION"


class MissingResourceError(MalformedKrnError):
    """Builder finished without any resource segment"""
    pass


class ResourceNotFoundError(KrnError):
    """No segment with the requested collection"""
    code = "RESOURCE_NOT_FOUND"

    def __init__(self, collection: str):
        self.collection = collection
        super().__init__(f"resource not found: {collection}")


class KrnPanic(RuntimeError):
    """Raised by the must_* helpers when their fallible counterpart fails

    Not a KrnError subclass, so `except KrnError` does not catch it.
    The original error is available as `__cause__`.
    """
    pass


ERROR_CLASSES = {
    cls.code: cls
    for cls in (
        EmptyKrnError,
        MalformedKrnError,
        InvalidDomainError,
        InvalidResourceIdError,
        InvalidVersionError,
        ResourceNotFoundError,
    )
}


# Grammar predicates
def is_valid_resource_id(resource_id: str) -> bool:
    """Check if a string is a valid resource ID

    1-200 characters from [A-Za-z0-9-_.], starting and ending with a letter
    or digit.
    """
    if not isinstance(resource_id, str):
        return False
    if not resource_id or len(resource_id) > MAX_RESOURCE_ID_LENGTH:
        return False
    return _RESOURCE_ID_PATTERN.fullmatch(resource_id) is not None


def is_valid_version(version: str, policy: Optional[VersionPolicy] = None) -> bool:
    """Check if a string is a valid version under the given policy

    Uses `config.DEFAULT_VERSION_POLICY` when no policy is passed.
    """
    if not isinstance(version, str) or not version:
        return False
    if policy is None:
        policy = config.DEFAULT_VERSION_POLICY
    if policy is VersionPolicy.PERMISSIVE:
        if version == "v":
            return False
        return _PERMISSIVE_VERSION_PATTERN.fullmatch(version) is not None
    return _STRICT_VERSION_PATTERN.fullmatch(version) is not None


def is_valid_service(service: str) -> bool:
    """Check if a string is a valid service name (a lowercase DNS label)"""
    if not isinstance(service, str):
        return False
    if not service or len(service) > MAX_SERVICE_LENGTH:
        return False
    return _SERVICE_PATTERN.fullmatch(service) is not None


def safe_resource_id(s: str) -> str:
    """Convert arbitrary text to a resource ID by replacing invalid characters

    Invalid characters become `-`, leading and trailing `-`/`.` are trimmed
    and the result is cut to 200 characters. Never raises; the result may be
    empty.

    The result is not guaranteed to pass `is_valid_resource_id`: a leading
    or trailing `_` is kept, so `"_abc"` comes back unchanged. Check the
    result before using it in a KRN.
    """
    if not s:
        return ""

    result = "".join(c if c in _RESOURCE_ID_CHARS else "-" for c in s)
    result = result.strip("-.")

    if len(result) > MAX_RESOURCE_ID_LENGTH:
        result = result[:MAX_RESOURCE_ID_LENGTH].rstrip("-.")

    return result


class Segment(NamedTuple):
    """One collection/resource-id pair of a KRN path"""
    collection: str
    resource_id: str


def _check_segment(collection: str, resource_id: str) -> Segment:
    if not collection:
        raise MalformedKrnError("collection cannot be empty")
    if not is_valid_resource_id(resource_id):
        raise InvalidResourceIdError(f"invalid resource ID: {resource_id}")
    return Segment(collection, resource_id)


def _check_service(service: str) -> str:
    if not is_valid_service(service):
        raise InvalidDomainError(f"invalid service name: {service}")
    return service


def _check_version(version: str, policy: Optional[VersionPolicy]) -> str:
    if not is_valid_version(version, policy):
        raise InvalidVersionError(f"invalid version: {version}")
    return version


class Krn:
    """An immutable Kopexa Resource Name

    Values are usually created with `Krn.from_string`, `KrnBuilder` or
    `new_child`. The constructor validates a non-empty service, every segment
    and a non-empty version, raising the same errors as the parser. An
    instance built with no segments is a degenerate value whose accessors
    return empty results.

    Each value keeps the version policy it was validated under, and
    derivations and `equals_string` reuse it.
    """

    __slots__ = ("_service", "_segments", "_version", "_version_policy")

    def __init__(
        self,
        service: str = "",
        segments: Iterable[Tuple[str, str]] = (),
        version: str = "",
        version_policy: Optional[VersionPolicy] = None,
    ):
        if version_policy is None:
            version_policy = config.DEFAULT_VERSION_POLICY
        self._version_policy = version_policy
        self._service = _check_service(service) if service else ""
        self._segments = tuple(_check_segment(c, r) for c, r in segments)
        self._version = _check_version(version, version_policy) if version else ""

    @classmethod
    def from_string(cls, s: str, version_policy: Optional[VersionPolicy] = None) -> 'Krn':
        """Parse a KRN string

        Raises a KrnError subclass describing the first problem found.
        """
        try:
            return cls._parse(s, version_policy)
        except KrnError as e:
            logger.debug("Rejected KRN %r: %s", s, e)
            raise

    parse = from_string

    @classmethod
    def _parse(cls, s: str, version_policy: Optional[VersionPolicy]) -> 'Krn':
        if not s:
            raise EmptyKrnError("KRN cannot be empty")

        if len(s) > MAX_KRN_LENGTH:
            raise MalformedKrnError(f"KRN longer than {MAX_KRN_LENGTH} characters")

        if not s.startswith(PATH_ROOT):
            raise MalformedKrnError(f"KRN must start with {PATH_ROOT}")

        body = s[len(PATH_ROOT):]

        version = ""
        at_pos = body.rfind(VERSION_SEPARATOR)
        if at_pos != -1:
            version = _check_version(body[at_pos + 1:], version_policy)
            body = body[:at_pos]

        parts = body.split(PATH_SEPARATOR)
        if len(parts) < 3:
            raise MalformedKrnError("KRN must have at least domain/collection/id")

        domain = parts[0]
        service = ""
        if domain == DOMAIN:
            pass
        elif domain.endswith("." + DOMAIN):
            service = _check_service(domain[:-len("." + DOMAIN)])
        else:
            raise InvalidDomainError(f"expected {DOMAIN} or {{service}}.{DOMAIN}, got {domain}")

        path = parts[1:]
        if len(path) % 2 != 0:
            raise MalformedKrnError("resource path must be pairs of collection/id")
        if "" in path:
            raise MalformedKrnError("resource path contains an empty component")

        segments = [_check_segment(path[i], path[i + 1]) for i in range(0, len(path), 2)]
        return cls(service, segments, version, version_policy)

    @classmethod
    def must_parse(cls, s: str, version_policy: Optional[VersionPolicy] = None) -> 'Krn':
        """Parse a KRN string known to be valid, raising KrnPanic otherwise"""
        try:
            return cls.from_string(s, version_policy)
        except KrnError as e:
            raise KrnPanic(str(e)) from e

    def to_string(self) -> str:
        """Get the canonical string representation of this KRN"""
        parts = [PATH_ROOT, self.full_domain]
        for seg in self._segments:
            parts.append(f"{PATH_SEPARATOR}{seg.collection}{PATH_SEPARATOR}{seg.resource_id}")
        if self._version:
            parts.append(f"{VERSION_SEPARATOR}{self._version}")
        return "".join(parts)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Krn('{self.to_string()}')"

    # Accessors

    @property
    def service(self) -> str:
        """Service label, or "" when the KRN has no service"""
        return self._service

    def has_service(self) -> bool:
        return self._service != ""

    @property
    def version(self) -> str:
        """Version tag, or "" when the KRN is unversioned"""
        return self._version

    def has_version(self) -> bool:
        return self._version != ""

    @property
    def version_policy(self) -> VersionPolicy:
        """The version policy this value was validated under"""
        return self._version_policy

    @property
    def full_domain(self) -> str:
        """`kopexa.com`, or `{service}.kopexa.com` when a service is set"""
        if self._service:
            return f"{self._service}.{DOMAIN}"
        return DOMAIN

    @property
    def path(self) -> str:
        """Resource path without domain and version, e.g. `frameworks/iso27001`"""
        return PATH_SEPARATOR.join(
            f"{seg.collection}{PATH_SEPARATOR}{seg.resource_id}" for seg in self._segments
        )

    @property
    def relative_resource_name(self) -> str:
        return self.path

    @property
    def segments(self) -> List[Segment]:
        """A copy of the segments, root first"""
        return list(self._segments)

    @property
    def depth(self) -> int:
        return len(self._segments)

    @property
    def basename(self) -> str:
        """Resource ID of the last segment"""
        if not self._segments:
            return ""
        return self._segments[-1].resource_id

    @property
    def basename_collection(self) -> str:
        """Collection of the last segment"""
        if not self._segments:
            return ""
        return self._segments[-1].collection

    def resource_id(self, collection: str) -> str:
        """Get the resource ID for a collection

        The first segment with a matching collection wins, so with repeated
        collection names the outermost one is returned.
        """
        for seg in self._segments:
            if seg.collection == collection:
                return seg.resource_id
        raise ResourceNotFoundError(collection)

    def must_resource_id(self, collection: str) -> str:
        try:
            return self.resource_id(collection)
        except KrnError as e:
            raise KrnPanic(str(e)) from e

    def has_resource(self, collection: str) -> bool:
        return any(seg.collection == collection for seg in self._segments)

    # Derivations

    def parent(self) -> Optional['Krn']:
        """Get the KRN without its last segment, or None for a root resource

        The parent keeps the service but never the version.
        """
        if len(self._segments) <= 1:
            return None
        return Krn(self._service, self._segments[:-1], "", self._version_policy)

    def child(self, collection: str, resource_id: str) -> 'Krn':
        return new_child(self, collection, resource_id)

    def with_version(self, version: str, version_policy: Optional[VersionPolicy] = None) -> 'Krn':
        """Get a copy with `version`, checked under `version_policy` or this value's policy"""
        if version_policy is None:
            version_policy = self._version_policy
        return Krn(self._service, self._segments, _check_version(version, version_policy), version_policy)

    def without_version(self) -> 'Krn':
        return Krn(self._service, self._segments, "", self._version_policy)

    def with_service(self, service: str) -> 'Krn':
        return Krn(_check_service(service), self._segments, self._version, self._version_policy)

    def without_service(self) -> 'Krn':
        return Krn("", self._segments, self._version, self._version_policy)

    # Comparison

    def equals(self, other: Optional['Krn']) -> bool:
        """Check if two KRNs have the same canonical string"""
        if other is None:
            return False
        return self.to_string() == other.to_string()

    def equals_string(self, other: str) -> bool:
        """Check if this KRN equals a KRN string; unparsable strings are never equal

        The string is parsed under this value's version policy.
        """
        try:
            other_krn = Krn.from_string(other, self._version_policy)
        except KrnError:
            return False
        return self.equals(other_krn)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Krn):
            return False
        return self.to_string() == other.to_string()

    def __hash__(self) -> int:
        return hash(self.to_string())


def parse(s: str, version_policy: Optional[VersionPolicy] = None) -> Krn:
    """Parse a KRN string (see `Krn.from_string`)"""
    return Krn.from_string(s, version_policy)


def must_parse(s: str, version_policy: Optional[VersionPolicy] = None) -> Krn:
    return Krn.must_parse(s, version_policy)


def is_valid(s: str, version_policy: Optional[VersionPolicy] = None) -> bool:
    """Check if a string is a valid KRN"""
    try:
        Krn.from_string(s, version_policy)
    except KrnError:
        return False
    return True


def get_resource(krn_string: str, collection: str, version_policy: Optional[VersionPolicy] = None) -> str:
    """Parse a KRN string and get the resource ID for a collection"""
    return Krn.from_string(krn_string, version_policy).resource_id(collection)


def new_child(parent: Optional[Krn], collection: str, resource_id: str) -> Krn:
    """Create a KRN one level below `parent`

    The child inherits the parent's service and version policy but not its
    version.
    """
    if parent is None:
        raise MalformedKrnError("parent cannot be None")
    segment = _check_segment(collection, resource_id)
    return Krn(parent.service, parent._segments + (segment,), "", parent.version_policy)


def new_child_from_string(
    parent_krn: str,
    collection: str,
    resource_id: str,
    version_policy: Optional[VersionPolicy] = None,
) -> Krn:
    return new_child(Krn.from_string(parent_krn, version_policy), collection, resource_id)


class _Accumulating(NamedTuple):
    service: str
    segments: Tuple[Segment, ...]
    version: str


class _Failed(NamedTuple):
    error: KrnError


_BuilderState = Union[_Accumulating, _Failed]


class KrnBuilder:
    """Builder for creating KRNs fluently

    Each step validates its input right away. The first failure is kept and
    every later step becomes a no-op; the failure is raised by `build()`.

        KrnBuilder().service("catalog").resource("frameworks", "iso27001").version("v1").build()
    """

    def __init__(self, version_policy: Optional[VersionPolicy] = None):
        self.version_policy = version_policy
        self._state: _BuilderState = _Accumulating("", (), "")

    @property
    def error(self) -> Optional[KrnError]:
        """The first recorded failure, if any"""
        if isinstance(self._state, _Failed):
            return self._state.error
        return None

    def _step(self, update) -> 'KrnBuilder':
        state = self._state
        if isinstance(state, _Failed):
            return self
        try:
            self._state = update(state)
        except KrnError as e:
            self._state = _Failed(e)
        return self

    def service(self, service: str) -> 'KrnBuilder':
        """Set the service (optional)"""
        return self._step(lambda st: st._replace(service=_check_service(service)))

    def resource(self, collection: str, resource_id: str) -> 'KrnBuilder':
        """Append a collection/resource-id segment"""
        return self._step(
            lambda st: st._replace(segments=st.segments + (_check_segment(collection, resource_id),))
        )

    def version(self, version: str) -> 'KrnBuilder':
        """Set the version (optional)"""
        return self._step(
            lambda st: st._replace(version=_check_version(version, self.version_policy))
        )

    def build(self) -> Krn:
        """Build the KRN

        Raises the first recorded error, or MissingResourceError if no resource
        was added.
        """
        state = self._state
        if isinstance(state, _Failed):
            raise state.error
        if not state.segments:
            raise MissingResourceError("KRN must have at least one resource")
        return Krn(state.service, state.segments, state.version, self.version_policy)

    def must_build(self) -> Krn:
        try:
            return self.build()
        except KrnError as e:
            raise KrnPanic(str(e)) from e
