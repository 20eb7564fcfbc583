"""LoginCoordinator - authenticate against every destination before any transfer."""

import logging

from regsync.domain.mirror.model.address import RegistryAddress
from regsync.domain.mirror.model.value import SystemContext
from regsync.domain.mirror.port.registry_client import RegistryClient
from regsync.domain.mirror.service.credentials import CredentialResolver
from regsync.domain.shared.error import LoginError
from regsync.domain.shared.service import Service
from regsync.util.tasks import gather_fail_fast

logger = logging.getLogger(__name__)


class LoginCoordinator(Service):
    """Logs in to all destinations concurrently; all must succeed.

    The first failure cancels the remaining attempts and is raised as a
    ``LoginError``.
    """

    client: RegistryClient
    credentials: CredentialResolver

    async def login_all(
        self,
        system: SystemContext,
        destinations: list[RegistryAddress],
    ) -> None:
        await gather_fail_fast(*(self._login(system, d) for d in destinations))
        logger.info("Logged in to %d destination registries", len(destinations))

    async def _login(self, system: SystemContext, registry: RegistryAddress) -> None:
        creds = self.credentials.resolve(registry)
        try:
            await self.client.login(system, registry, creds)
        except LoginError:
            raise
        except Exception as e:
            raise LoginError(f"login to {registry} failed: {e}", registry) from e
        logger.debug("Logged in to %s as %s", registry, creds.username)
