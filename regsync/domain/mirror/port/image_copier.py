"""Ports for copying images and for the trust policy that governs copies."""

from pathlib import Path
from typing import Protocol

from regsync.domain.mirror.model.reference import TaggedImageRef
from regsync.domain.mirror.model.value import ImageListSelection, SystemContext


class PolicyContext(Protocol):
    """Signature-trust configuration shared by every copy of a sync run.

    Must be released once every transfer referencing it has completed.
    """

    @property
    def path(self) -> Path: ...

    def release(self) -> None: ...


class PolicyProvider(Protocol):
    def create(self) -> PolicyContext:
        """Build a policy context.

        Raises:
            PolicyInitError: If the policy cannot be constructed.
        """
        ...


class ImageCopier(Protocol):
    """Copies a single image between registries."""

    async def copy(
        self,
        policy: PolicyContext,
        source: TaggedImageRef,
        destination: str,
        *,
        source_ctx: SystemContext,
        destination_ctx: SystemContext,
        selection: ImageListSelection = ImageListSelection.SYSTEM,
    ) -> None: ...
