"""RegistryClient port - the registry HTTP API operations the mirror needs."""

from typing import Protocol

from regsync.domain.mirror.model.address import RegistryAddress
from regsync.domain.mirror.model.reference import RepositoryRef
from regsync.domain.mirror.model.value import Credentials, SystemContext


class RegistryClient(Protocol):
    """Talks to a registry over its HTTP API."""

    async def login(
        self,
        system: SystemContext,
        registry: RegistryAddress,
        credentials: Credentials,
    ) -> None:
        """Check credentials against a registry and record them for later transfers.

        Raises:
            LoginError: If the registry rejects the credentials or cannot be reached.
        """
        ...

    async def search_repositories(
        self,
        system: SystemContext,
        registry: RegistryAddress,
        limit: int,
    ) -> list[str]:
        """Return up to ``limit`` repository names hosted by ``registry``."""
        ...

    async def list_tags(self, system: SystemContext, repository: RepositoryRef) -> list[str]:
        """Return every tag of ``repository``."""
        ...
