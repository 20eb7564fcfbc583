"""DI providers wiring the mirror domain to its infrastructure adapters."""

import tempfile
from pathlib import Path
from typing import AsyncIterable, Iterable, NewType

import aiodocker
from dishka import AsyncContainer, Provider, from_context, make_async_container, provide

from regsync.config import Config
from regsync.domain.mirror.model.value import SystemContext
from regsync.domain.mirror.port import (
    ImageCopier,
    PolicyProvider,
    RegistryClient,
    RegistryServerFactory,
)
from regsync.domain.mirror.service import (
    CredentialResolver,
    DiscoveryService,
    LoginCoordinator,
    MirrorService,
    TransferService,
)
from regsync.infrastructure.http.registry_client import HttpRegistryClient
from regsync.infrastructure.oci.auth_file import AuthFile
from regsync.infrastructure.oci.policy import FilePolicyProvider
from regsync.infrastructure.oci.registry_server import OciRegistryServerFactory
from regsync.infrastructure.oci.skopeo import SkopeoImageCopier
from regsync.util.di.scope import Scope

# Scratch directory holding the auth and policy files of one process
WorkDir = NewType("WorkDir", Path)

# Extra time the lifecycle allows on top of the container stop timeout
_SHUTDOWN_GRACE = 5.0


class OciProvider(Provider):
    """Container, subprocess and file adapters."""

    config = from_context(provides=Config, scope=Scope.APP)

    @provide(scope=Scope.APP)
    async def get_docker(self) -> AsyncIterable[aiodocker.Docker]:
        docker = aiodocker.Docker()
        yield docker
        await docker.close()

    @provide(scope=Scope.APP)
    def get_work_dir(self) -> Iterable[WorkDir]:
        with tempfile.TemporaryDirectory(prefix="regsync-") as tmp:
            yield WorkDir(Path(tmp))

    @provide(scope=Scope.APP)
    def get_auth_file(self, work_dir: WorkDir) -> AuthFile:
        return AuthFile(work_dir / "auth.json")

    @provide(scope=Scope.APP)
    def get_system_context(self, config: Config, auth_file: AuthFile) -> SystemContext:
        return SystemContext(
            insecure_skip_tls_verify=not config.transfer.tls_verify,
            auth_file=auth_file.path,
        )

    @provide(scope=Scope.APP, provides=PolicyProvider)
    def get_policy_provider(self, config: Config, work_dir: WorkDir) -> FilePolicyProvider:
        return FilePolicyProvider(policy_file=config.transfer.policy_file, tmp_dir=work_dir)

    @provide(scope=Scope.APP, provides=ImageCopier)
    def get_image_copier(self, config: Config) -> SkopeoImageCopier:
        return SkopeoImageCopier(binary=config.transfer.skopeo_binary)

    @provide(scope=Scope.APP, provides=RegistryServerFactory)
    def get_server_factory(
        self, docker: aiodocker.Docker, config: Config
    ) -> OciRegistryServerFactory:
        return OciRegistryServerFactory(docker=docker, config=config.registry)


class HttpProvider(Provider):
    """Registry HTTP API adapter."""

    @provide(scope=Scope.APP, provides=RegistryClient)
    async def get_registry_client(
        self, config: Config, auth_file: AuthFile
    ) -> AsyncIterable[HttpRegistryClient]:
        client = HttpRegistryClient(auth_file=auth_file, timeout=config.transfer.request_timeout)
        yield client
        await client.aclose()


class MirrorProvider(Provider):
    """Domain services for one sync run."""

    @provide(scope=Scope.RUN)
    def get_credential_resolver(self, config: Config) -> CredentialResolver:
        return CredentialResolver(config=config.credentials)

    @provide(scope=Scope.RUN)
    def get_login_coordinator(
        self, client: RegistryClient, credentials: CredentialResolver
    ) -> LoginCoordinator:
        return LoginCoordinator(client=client, credentials=credentials)

    @provide(scope=Scope.RUN)
    def get_discovery(self, client: RegistryClient, config: Config) -> DiscoveryService:
        return DiscoveryService(client=client, search_limit=config.registry.search_limit)

    @provide(scope=Scope.RUN)
    def get_transfer(self, discovery: DiscoveryService, copier: ImageCopier) -> TransferService:
        return TransferService(discovery=discovery, copier=copier)

    @provide(scope=Scope.RUN)
    def get_mirror_service(
        self,
        config: Config,
        system: SystemContext,
        login: LoginCoordinator,
        transfer: TransferService,
        policies: PolicyProvider,
        servers: RegistryServerFactory,
    ) -> MirrorService:
        return MirrorService(
            system=system,
            login=login,
            transfer=transfer,
            policies=policies,
            servers=servers,
            shutdown_timeout=config.registry.shutdown_timeout + _SHUTDOWN_GRACE,
        )


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()  # type: ignore[call-arg]

    return make_async_container(
        OciProvider(),
        HttpProvider(),
        MirrorProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
