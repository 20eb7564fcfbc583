"""RegistryServer port - a local registry service exposing one bundle."""

from typing import Protocol

from regsync.domain.mirror.model.value import ImageBundle


class RegistryServer(Protocol):
    """A registry service rooted at a bundle's registry directory."""

    @property
    def listen_address(self) -> str:
        """Address the service listens on (``host:port`` or ``:port``).

        Only meaningful once ``bind()`` has returned.
        """
        ...

    async def bind(self) -> None:
        """Start listening.

        Raises:
            BindError: On a port conflict, an invalid root or a service that never gets ready.
        """
        ...

    async def serve(self) -> None:
        """Block for as long as the service keeps serving.

        Returning or raising both mean the service is gone; a failure is raised
        as ``ServeError``.
        """
        ...

    async def shutdown(self) -> None:
        """Stop the service and release its listener."""
        ...


class RegistryServerFactory(Protocol):
    def __call__(self, bundle: ImageBundle) -> RegistryServer: ...
