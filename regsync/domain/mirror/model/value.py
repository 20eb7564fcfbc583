from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from pydantic import Field

from regsync.domain.mirror.model.address import RegistryAddress
from regsync.domain.mirror.model.reference import TaggedImageRef
from regsync.domain.shared.model.value import ValueObject

# Subdirectory of a bundle mount that holds its registry storage
REGISTRY_DIR_NAME = "registry"


class ImageBundle(ValueObject):
    """A mounted, self-contained local image store to be mirrored outward."""

    mount_point: str
    root: Path
    port: int | None = Field(default=None, ge=1, le=65535)  # None = pick a free port

    @property
    def registry_root(self) -> Path:
        return self.root / REGISTRY_DIR_NAME


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class SystemContext:
    """Transfer-wide settings shared read-only by every concurrent task."""

    insecure_skip_tls_verify: bool = True
    auth_file: Path | None = None  # Where logins are recorded for the copy tool


class ImageListSelection(StrEnum):
    """Which images of a multi-arch list to copy."""

    SYSTEM = "system"  # Only the image matching the current platform
    ALL = "all"


@dataclass(frozen=True)
class SyncTask:
    """One image to copy from a source registry to a destination."""

    source: TaggedImageRef
    destination: str


@dataclass
class PairReport:
    """Outcome of mirroring one bundle to one destination host."""

    mount_point: str
    source: RegistryAddress
    destination: RegistryAddress
    copied: list[SyncTask] = field(default_factory=list)


@dataclass
class SyncReport:
    """Outcome of a whole sync invocation."""

    pairs: list[PairReport] = field(default_factory=list)

    @property
    def image_count(self) -> int:
        return sum(len(p.copied) for p in self.pairs)
