"""EphemeralRegistry - lifecycle of one bundle's local registry service."""

import asyncio
import logging
from collections.abc import Awaitable
from enum import StrEnum
from typing import Any, Self, TypeVar

from regsync.domain.mirror.model.address import LOCALHOST, RegistryAddress, resolve_registry_address
from regsync.domain.mirror.port.registry_server import RegistryServer
from regsync.domain.shared.error import InvalidStateError, ServeError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RegistryState(StrEnum):
    CREATED = "created"
    LISTENING = "listening"
    SERVING = "serving"
    DRAINING = "draining"
    STOPPED = "stopped"


class EphemeralRegistry:
    """Drives a RegistryServer through created → listening → serving → draining → stopped.

    Serving runs in a background task whose outcome is the service's result
    future: post-bind failures surface there rather than from ``serve()``.
    Used as an async context manager, shutdown is guaranteed on exit whatever
    the outcome of the work done in between.

    Example:
        async with EphemeralRegistry(server) as registry:
            await registry.run(transfer(registry.address))
    """

    def __init__(self, server: RegistryServer, shutdown_timeout: float = 10.0) -> None:
        self._server = server
        self._shutdown_timeout = shutdown_timeout
        self._state = RegistryState.CREATED
        self._serving: asyncio.Task[None] | None = None
        self._address: RegistryAddress | None = None

    @property
    def state(self) -> RegistryState:
        return self._state

    @property
    def address(self) -> RegistryAddress:
        """Canonical loopback address of the running service."""
        if self._address is None:
            raise InvalidStateError(f"registry has no address while {self._state}")
        return self._address

    def _transition(self, expected: RegistryState, target: RegistryState) -> None:
        if self._state != expected:
            raise InvalidStateError(
                f"cannot move registry to {target}: state is {self._state}, expected {expected}"
            )
        self._state = target

    async def listen(self) -> None:
        """Bind the listener. Raises ``BindError`` from the server on failure."""
        if self._state != RegistryState.CREATED:
            raise InvalidStateError(f"cannot listen while {self._state}")
        await self._server.bind()
        self._address = resolve_registry_address(LOCALHOST, self._server.listen_address)
        self._transition(RegistryState.CREATED, RegistryState.LISTENING)
        logger.debug("Registry listening on %s", self._address)

    def serve(self) -> None:
        """Start serving in the background."""
        self._transition(RegistryState.LISTENING, RegistryState.SERVING)
        self._serving = asyncio.create_task(self._server.serve(), name=f"registry-{self._address}")

    async def run(self, work: Awaitable[T]) -> T:
        """Await ``work`` while the service is serving.

        If the service stops first, ``work`` is cancelled and the serving
        failure is raised.
        """
        if self._state != RegistryState.SERVING or self._serving is None:
            raise InvalidStateError(f"cannot run work while {self._state}")

        work_task: asyncio.Future[T] = asyncio.ensure_future(work)
        try:
            await asyncio.wait({work_task, self._serving}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work_task.cancel()
            await asyncio.gather(work_task, return_exceptions=True)
            raise

        if work_task.done():
            return work_task.result()

        work_task.cancel()
        await asyncio.gather(work_task, return_exceptions=True)
        error = self._serving.exception()
        if isinstance(error, ServeError):
            raise error
        if error is not None:
            raise ServeError(f"registry {self._address} failed while serving: {error}") from error
        raise ServeError(f"registry {self._address} stopped before transfers finished")

    async def shutdown(self) -> None:
        """Drain and stop the service. Errors are logged, never raised."""
        if self._state in (RegistryState.DRAINING, RegistryState.STOPPED):
            return
        if self._state == RegistryState.CREATED:
            self._state = RegistryState.STOPPED
            return

        self._state = RegistryState.DRAINING
        try:
            await asyncio.wait_for(self._server.shutdown(), timeout=self._shutdown_timeout)
        except Exception as e:
            logger.error("Error shutting down registry %s: %s", self._address, e)

        if self._serving is not None:
            if not self._serving.done():
                self._serving.cancel()
            await asyncio.gather(self._serving, return_exceptions=True)
        self._state = RegistryState.STOPPED
        logger.debug("Registry %s stopped", self._address)

    async def __aenter__(self) -> Self:
        try:
            await self.listen()
            self.serve()
        except BaseException:
            await self.shutdown()
            raise
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()
