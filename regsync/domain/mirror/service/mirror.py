"""MirrorService - orchestrates a multi-host mirror of local image bundles."""

import asyncio
import logging

from regsync.domain.mirror.model.address import RegistryAddress, resolve_registry_address
from regsync.domain.mirror.model.value import ImageBundle, PairReport, SyncReport, SystemContext
from regsync.domain.mirror.port.image_copier import PolicyContext, PolicyProvider
from regsync.domain.mirror.port.registry_server import RegistryServerFactory
from regsync.domain.mirror.service.lifecycle import EphemeralRegistry
from regsync.domain.mirror.service.login import LoginCoordinator
from regsync.domain.mirror.service.transfer import TransferService
from regsync.domain.shared.service import Service
from regsync.util.tasks import gather_fail_fast, gather_independent

logger = logging.getLogger(__name__)


class MirrorService(Service):
    """Copies every image of every bundle to every destination host.

    Stages:
    1. Resolve destination hosts to canonical addresses.
    2. Log in to every destination (all-or-fail). Nothing else starts on failure.
    3. Build the shared policy context.
    4. One task per bundle: start its local registry, mirror it to every
       destination concurrently, then shut the registry down.

    Bundles form a fail-fast group: the first bundle failure cancels the
    others. Destinations within a bundle are independent: a failing
    (bundle, destination) pair does not cancel its siblings, and its error is
    raised once they all finish. The first error wins; later ones are dropped.
    """

    system: SystemContext
    login: LoginCoordinator
    transfer: TransferService
    policies: PolicyProvider
    servers: RegistryServerFactory
    shutdown_timeout: float = 10.0

    async def sync(
        self,
        bundles: list[ImageBundle],
        hosts: list[str],
        timeout: float | None = None,
    ) -> SyncReport:
        """Run a full sync, bounded by an optional overall deadline in seconds.

        Raises:
            InvalidAddressError: If a destination host is malformed.
            LoginError: If any destination rejects its credentials.
            PolicyInitError: If the policy context cannot be built.
            BindError, ServeError, DiscoveryError, TransferError: From a bundle's mirror.
            TimeoutError: If the deadline expires.
        """
        async with asyncio.timeout(timeout):
            return await self._sync(bundles, hosts)

    async def _sync(self, bundles: list[ImageBundle], hosts: list[str]) -> SyncReport:
        destinations = [resolve_registry_address(h) for h in hosts]
        await self.login.login_all(self.system, destinations)

        policy = self.policies.create()
        try:
            results = await gather_fail_fast(
                *(self._sync_bundle(bundle, destinations, policy) for bundle in bundles)
            )
        finally:
            policy.release()

        report = SyncReport(pairs=[pair for pairs in results for pair in pairs])
        logger.info(
            "Sync finished: %d images across %d bundle/destination pairs",
            report.image_count,
            len(report.pairs),
        )
        return report

    async def _sync_bundle(
        self,
        bundle: ImageBundle,
        destinations: list[RegistryAddress],
        policy: PolicyContext,
    ) -> list[PairReport]:
        logger.info("Starting registry for bundle %s (%s)", bundle.mount_point, bundle.registry_root)
        async with EphemeralRegistry(self.servers(bundle), self.shutdown_timeout) as registry:
            source = registry.address
            return await registry.run(
                gather_independent(
                    *(
                        self.transfer.mirror(
                            self.system, policy, source, dest, mount_point=bundle.mount_point
                        )
                        for dest in destinations
                    )
                )
            )
