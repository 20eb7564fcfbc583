"""TransferService - copy every image of a source registry to one destination."""

import logging

from regsync.domain.mirror.model.address import RegistryAddress
from regsync.domain.mirror.model.reference import destination_reference
from regsync.domain.mirror.model.value import (
    ImageListSelection,
    PairReport,
    SyncTask,
    SystemContext,
)
from regsync.domain.mirror.port.image_copier import ImageCopier, PolicyContext
from regsync.domain.mirror.service.discovery import DiscoveryService
from regsync.domain.shared.error import InvalidReferenceError, TransferError
from regsync.domain.shared.service import Service

logger = logging.getLogger(__name__)


class TransferService(Service):
    """Mirrors one (source registry, destination host) pair.

    Images are copied one at a time in discovery order. The first failed copy
    aborts the pair with a ``TransferError``; nothing is retried.
    """

    discovery: DiscoveryService
    copier: ImageCopier
    selection: ImageListSelection = ImageListSelection.SYSTEM

    async def mirror(
        self,
        system: SystemContext,
        policy: PolicyContext,
        source: RegistryAddress,
        destination: RegistryAddress,
        mount_point: str = "",
    ) -> PairReport:
        report = PairReport(mount_point=mount_point, source=source, destination=destination)
        async for ref in self.discovery.images(system, source):
            try:
                dest = destination_reference(ref, source, destination)
            except InvalidReferenceError as e:
                raise TransferError(e.message, source=str(ref)) from e

            task = SyncTask(source=ref, destination=dest)
            await self._copy(system, policy, task)
            report.copied.append(task)

        logger.info(
            "Mirrored %d images from %s to %s", len(report.copied), source, destination
        )
        return report

    async def _copy(self, system: SystemContext, policy: PolicyContext, task: SyncTask) -> None:
        logger.info("Copying %s to %s", task.source, task.destination)
        try:
            await self.copier.copy(
                policy,
                task.source,
                task.destination,
                source_ctx=system,
                destination_ctx=system,
                selection=self.selection,
            )
        except TransferError:
            raise
        except Exception as e:
            raise TransferError(
                f"copying {task.source} to {task.destination} failed: {e}",
                source=str(task.source),
                destination=task.destination,
            ) from e
