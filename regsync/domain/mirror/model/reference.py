"""Repository and tagged image references.

Implements the subset of the distribution reference grammar needed to name
repositories on a registry (``domain/path``) and tagged images
(``domain/path:tag``). Names without a registry domain are normalized to
Docker Hub the same way container tooling does it.
"""

import re

from pydantic import Field, ValidationError

from regsync.domain.mirror.model.address import RegistryAddress
from regsync.domain.shared.error import InvalidReferenceError
from regsync.domain.shared.model.value import ValueObject

DEFAULT_DOMAIN = "docker.io"
LEGACY_DEFAULT_DOMAIN = "index.docker.io"
OFFICIAL_REPO_PREFIX = "library/"
NAME_TOTAL_LENGTH_MAX = 255

_ALPHANUMERIC = r"[a-z0-9]+"
_SEPARATOR = r"(?:[._]|__|[-]+)"
_PATH_COMPONENT = rf"{_ALPHANUMERIC}(?:{_SEPARATOR}{_ALPHANUMERIC})*"
_DOMAIN_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_DOMAIN_NAME = rf"{_DOMAIN_COMPONENT}(?:\.{_DOMAIN_COMPONENT})*"
_IPV6 = r"\[(?:[a-fA-F0-9:]+)\]"
_DOMAIN = rf"(?:{_DOMAIN_NAME}|{_IPV6})(?::[0-9]+)?"
_TAG = r"[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}"
_DIGEST = r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9A-Fa-f]{32,}"
_NAME = rf"(?:{_DOMAIN}/)?{_PATH_COMPONENT}(?:/{_PATH_COMPONENT})*"

# Matched with fullmatch so a trailing newline is never accepted
REFERENCE_RE = re.compile(
    rf"(?P<name>{_NAME})(?::(?P<tag>{_TAG}))?(?:@(?P<digest>{_DIGEST}))?", re.ASCII
)
TAG_RE = re.compile(_TAG, re.ASCII)


def _split_domain(name: str) -> tuple[str, str]:
    """Split a name into (domain, path), defaulting the domain to Docker Hub."""
    first, sep, remainder = name.partition("/")
    if not sep or (
        not any(c in first for c in ".:") and first != "localhost" and first.lower() == first
    ):
        domain, path = DEFAULT_DOMAIN, name
    else:
        domain, path = first, remainder
    if domain == LEGACY_DEFAULT_DOMAIN:
        domain = DEFAULT_DOMAIN
    if domain == DEFAULT_DOMAIN and "/" not in path:
        path = OFFICIAL_REPO_PREFIX + path
    return domain, path


class RepositoryRef(ValueObject):
    """A name-only reference to a repository: no tag, no digest."""

    domain: str
    path: str

    @property
    def name(self) -> str:
        return f"{self.domain}/{self.path}"

    def __str__(self) -> str:
        return self.name

    def with_tag(self, tag: str) -> "TaggedImageRef":
        """Combine this repository with a tag.

        Raises:
            InvalidReferenceError: If the tag does not match the tag grammar.
        """
        if not isinstance(tag, str) or not TAG_RE.fullmatch(tag):
            raise InvalidReferenceError(f"invalid tag format: {tag!r}", f"{self.name}:{tag}")
        try:
            return TaggedImageRef(repository=self, tag=tag)
        except ValidationError as e:
            raise InvalidReferenceError(f"invalid tag format: {tag!r}", f"{self.name}:{tag}") from e


class TaggedImageRef(ValueObject):
    """A repository plus a tag."""

    repository: RepositoryRef
    tag: str = Field(pattern=rf"^{_TAG}$")

    @property
    def domain(self) -> str:
        return self.repository.domain

    def __str__(self) -> str:
        return f"{self.repository.name}:{self.tag}"


def parse_repository_reference(value: str) -> RepositoryRef:
    """Parse a ``registry/path`` string into a name-only reference.

    Raises:
        InvalidReferenceError: If the value is malformed or carries a tag or digest.
    """
    match = REFERENCE_RE.fullmatch(value)
    if not match:
        raise InvalidReferenceError(f"invalid reference format: {value!r}", value)
    if match.group("tag") or match.group("digest"):
        raise InvalidReferenceError("input names a reference, not a repository", value)
    name = match.group("name")
    if len(name) > NAME_TOTAL_LENGTH_MAX:
        raise InvalidReferenceError(
            f"repository name must not be more than {NAME_TOTAL_LENGTH_MAX} characters", value
        )
    domain, path = _split_domain(name)
    return RepositoryRef(domain=domain, path=path)


def destination_reference(
    image: TaggedImageRef,
    source: RegistryAddress,
    destination: RegistryAddress,
) -> str:
    """Re-home a source image under a destination registry.

    The source address is stripped as a literal prefix of the fully qualified
    reference and the remainder is joined under ``destination``.

    Raises:
        InvalidReferenceError: If the reference is not rooted at ``source``.
    """
    qualified = str(image)
    prefix = f"{source}/"
    if not qualified.startswith(prefix):
        raise InvalidReferenceError(
            f"image {qualified!r} is not served by source registry {source!r}", qualified
        )
    return f"{destination}/{qualified[len(prefix):]}"
