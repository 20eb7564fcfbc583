"""In-memory fakes for the mirror ports."""

import asyncio
from pathlib import Path

import pytest

from regsync.domain.mirror.model import (
    Credentials,
    ImageBundle,
    ImageListSelection,
    RepositoryRef,
    SystemContext,
    TaggedImageRef,
)
from regsync.domain.shared.error import BindError, LoginError, TransferError


class FakeRegistryClient:
    """Registry API backed by ``{registry: {repo: [tags]}}``."""

    def __init__(self, catalogs: dict[str, dict[str, list]] | None = None) -> None:
        self.catalogs = catalogs or {}
        self.rejected_logins: set[str] = set()
        self.logins: list[tuple[str, Credentials]] = []
        self.broken_catalogs: set[str] = set()
        self.broken_repos: set[str] = set()

    async def login(self, system: SystemContext, registry: str, credentials: Credentials) -> None:
        await asyncio.sleep(0)
        if registry in self.rejected_logins:
            raise LoginError(f"invalid username/password for {registry}", registry)
        self.logins.append((registry, credentials))

    async def search_repositories(self, system: SystemContext, registry: str, limit: int) -> list[str]:
        await asyncio.sleep(0)
        if registry in self.broken_catalogs:
            raise ConnectionError("catalog unavailable")
        return list(self.catalogs.get(registry, {}))[:limit]

    async def list_tags(self, system: SystemContext, repository: RepositoryRef) -> list:
        await asyncio.sleep(0)
        if repository.path in self.broken_repos:
            raise ConnectionError("tags unavailable")
        return list(self.catalogs[repository.domain][repository.path])


class FakeCopier:
    """Records copies; fails for (source, destination) pairs listed in ``failures``."""

    def __init__(self) -> None:
        self.copies: list[tuple[str, str]] = []
        self.failures: set[tuple[str, str]] = set()
        self.selections: list[ImageListSelection] = []
        self.delay = 0.0

    async def copy(
        self,
        policy,
        source: TaggedImageRef,
        destination: str,
        *,
        source_ctx: SystemContext,
        destination_ctx: SystemContext,
        selection: ImageListSelection = ImageListSelection.SYSTEM,
    ) -> None:
        await asyncio.sleep(self.delay)
        self.selections.append(selection)
        if (str(source), destination) in self.failures:
            raise TransferError("manifest upload refused", str(source), destination)
        self.copies.append((str(source), destination))


class FakePolicy:
    def __init__(self) -> None:
        self.path = Path("/tmp/policy.json")
        self.released = False

    def release(self) -> None:
        self.released = True


class FakePolicyProvider:
    def __init__(self) -> None:
        self.created: list[FakePolicy] = []

    def create(self) -> FakePolicy:
        policy = FakePolicy()
        self.created.append(policy)
        return policy


class FakeServer:
    """Registry server that serves until shut down, or until ``crash()``."""

    def __init__(self, port: int, fail_bind: bool = False) -> None:
        self.port = port
        self.fail_bind = fail_bind
        self.bound = False
        self.shut_down = False
        self.shutdown_error: Exception | None = None
        self._stopped = asyncio.Event()
        self._crash: Exception | None = None

    @property
    def listen_address(self) -> str:
        return f":{self.port}"

    async def bind(self) -> None:
        if self.fail_bind:
            raise BindError(f"port {self.port} already in use")
        self.bound = True

    async def serve(self) -> None:
        await self._stopped.wait()
        if self._crash is not None:
            raise self._crash

    def crash(self, error: Exception) -> None:
        self._crash = error
        self._stopped.set()

    async def shutdown(self) -> None:
        self.shut_down = True
        if self.shutdown_error is not None:
            raise self.shutdown_error


class FakeServerFactory:
    def __init__(self, base_port: int = 5001) -> None:
        self.base_port = base_port
        self.servers: dict[str, FakeServer] = {}
        self.fail_bind: set[str] = set()

    def __call__(self, bundle: ImageBundle) -> FakeServer:
        port = bundle.port or self.base_port + len(self.servers)
        server = FakeServer(port, fail_bind=bundle.mount_point in self.fail_bind)
        self.servers[bundle.mount_point] = server
        return server


@pytest.fixture
def system() -> SystemContext:
    return SystemContext(insecure_skip_tls_verify=True)


@pytest.fixture
def registry_client() -> FakeRegistryClient:
    return FakeRegistryClient()


@pytest.fixture
def copier() -> FakeCopier:
    return FakeCopier()


@pytest.fixture
def policies() -> FakePolicyProvider:
    return FakePolicyProvider()


@pytest.fixture
def servers() -> FakeServerFactory:
    return FakeServerFactory()


@pytest.fixture
def policy() -> FakePolicy:
    return FakePolicy()


@pytest.fixture
def make_server():
    return FakeServer
