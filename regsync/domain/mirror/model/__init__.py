from regsync.domain.mirror.model.address import (
    DEFAULT_PORT,
    LOCALHOST,
    RegistryAddress,
    resolve_registry_address,
)
from regsync.domain.mirror.model.reference import (
    RepositoryRef,
    TaggedImageRef,
    destination_reference,
    parse_repository_reference,
)
from regsync.domain.mirror.model.value import (
    REGISTRY_DIR_NAME,
    Credentials,
    ImageBundle,
    ImageListSelection,
    PairReport,
    SyncReport,
    SyncTask,
    SystemContext,
)

__all__ = [
    "DEFAULT_PORT",
    "LOCALHOST",
    "REGISTRY_DIR_NAME",
    "Credentials",
    "ImageBundle",
    "ImageListSelection",
    "PairReport",
    "RegistryAddress",
    "RepositoryRef",
    "SyncReport",
    "SyncTask",
    "SystemContext",
    "TaggedImageRef",
    "destination_reference",
    "parse_repository_reference",
    "resolve_registry_address",
]
