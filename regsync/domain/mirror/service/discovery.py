"""DiscoveryService - find every tagged image a source registry serves."""

import logging
from collections.abc import AsyncIterator

from regsync.domain.mirror.model.address import RegistryAddress
from regsync.domain.mirror.model.reference import TaggedImageRef, parse_repository_reference
from regsync.domain.mirror.model.value import SystemContext
from regsync.domain.mirror.port.registry_client import RegistryClient
from regsync.domain.shared.error import DiscoveryError, InvalidReferenceError
from regsync.domain.shared.service import Service

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 1 << 10


class DiscoveryService(Service):
    """Searches a source registry for repositories, then lists tags per repository.

    Images are yielded repository by repository so transfers can start before
    the whole catalog has been walked.
    """

    client: RegistryClient
    search_limit: int = SEARCH_LIMIT

    async def images(
        self,
        system: SystemContext,
        source: RegistryAddress,
    ) -> AsyncIterator[TaggedImageRef]:
        """Yield every tagged image on ``source``.

        Raises:
            DiscoveryError: If the catalog or a tag listing cannot be fetched.
            InvalidReferenceError: If a repository name does not form a name-only reference.
        """
        try:
            repos = await self.client.search_repositories(system, source, self.search_limit)
        except Exception as e:
            raise DiscoveryError(f"error searching repositories on {source}: {e}") from e

        if not repos:
            logger.info("No repositories found on %s", source)
            return

        for name in repos:
            repo = parse_repository_reference(f"{source}/{name}")
            try:
                tags = await self.client.list_tags(system, repo)
            except Exception as e:
                raise DiscoveryError(f"error determining repository tags for {repo}: {e}") from e

            for tag in tags:
                try:
                    ref = repo.with_tag(tag)
                except InvalidReferenceError as e:
                    logger.warning(
                        "Error creating a tagged reference from registry tag %s:%s list: %s",
                        repo.name,
                        tag,
                        e,
                    )
                    continue
                yield ref

    async def discover(self, system: SystemContext, source: RegistryAddress) -> list[TaggedImageRef]:
        """Collect every tagged image on ``source`` into a list."""
        return [ref async for ref in self.images(system, source)]
