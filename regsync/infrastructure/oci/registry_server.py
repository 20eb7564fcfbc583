"""RegistryServer adapter running a ``registry:2`` container via aiodocker."""

import asyncio
import socket
import time

import aiodocker
import httpx
import logfire

from regsync.config import RegistryConfig
from regsync.domain.mirror.model.address import LOCALHOST
from regsync.domain.mirror.model.value import ImageBundle
from regsync.domain.shared.error import BindError, ServeError

# Where the distribution registry keeps its filesystem storage
REGISTRY_STORAGE_DIR = "/var/lib/registry"
_READY_POLL_INTERVAL = 0.2
_LOG_TAIL = 2000


def free_port(host: str = LOCALHOST) -> int:
    """Ask the kernel for an unused TCP port on ``host``."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        return sock.getsockname()[1]


class OciRegistryServer:
    """Serves one bundle's registry directory from a registry container.

    The bundle's ``registry/`` directory is bind-mounted as the registry
    storage and the registry port is published on ``127.0.0.1`` only.

    When running inside a container with the Docker socket mounted (sibling
    containers), set ``host_data_dir`` and ``container_data_dir`` so the
    bind-mount path is translated to a path the Docker daemon can resolve.
    """

    def __init__(
        self,
        docker: aiodocker.Docker,
        bundle: ImageBundle,
        config: RegistryConfig | None = None,
        http: httpx.AsyncClient | None = None,
        host_data_dir: str | None = None,
        container_data_dir: str = "/data",
    ):
        self._docker = docker
        self._bundle = bundle
        self._config = config or RegistryConfig()
        self._http = http
        self._host_data_dir = host_data_dir
        self._container_data_dir = container_data_dir
        self._port: int | None = bundle.port
        self._container = None

    @property
    def listen_address(self) -> str:
        return f"{LOCALHOST}:{self._port}"

    def _host_path(self, path: str) -> str:
        """Translate a container-internal path to a host path for bind mounts."""
        if not self._host_data_dir:
            return path
        prefix = self._container_data_dir.rstrip("/")
        if path == prefix or path.startswith(prefix + "/"):
            return self._host_data_dir.rstrip("/") + path[len(prefix) :]
        return path

    def _container_config(self, port: int) -> dict:
        container_port = f"{self._config.container_port}/tcp"
        root = self._host_path(str(self._bundle.registry_root.resolve()))
        return {
            "Image": self._config.image,
            "Env": [f"REGISTRY_HTTP_ADDR=0.0.0.0:{self._config.container_port}"],
            "ExposedPorts": {container_port: {}},
            "Labels": {"io.regsync.bundle": self._bundle.mount_point},
            "HostConfig": {
                "Binds": [f"{root}:{REGISTRY_STORAGE_DIR}:rw"],
                "PortBindings": {container_port: [{"HostIp": LOCALHOST, "HostPort": str(port)}]},
            },
        }

    async def bind(self) -> None:
        root = self._bundle.registry_root
        if not root.is_dir():
            raise BindError(f"registry root {root} of bundle {self._bundle.mount_point} is not a directory")

        if self._port is None:
            self._port = free_port()

        try:
            self._container = await self._docker.containers.create(self._container_config(self._port))
            await self._container.start()
        except aiodocker.DockerError as e:
            logfire.error(
                "Registry container failed to start",
                bundle=self._bundle.mount_point,
                port=self._port,
                error=str(e),
            )
            await self._remove()
            raise BindError(
                f"cannot bind registry for {self._bundle.mount_point} on {self.listen_address}: {e}"
            ) from e

        try:
            await self._wait_ready()
        except BindError:
            await self._remove()
            raise
        logfire.info("Registry serving", bundle=self._bundle.mount_point, address=self.listen_address)

    async def _wait_ready(self) -> None:
        """Poll ``/v2/`` until the registry answers or the timeout expires."""
        http = self._http or httpx.AsyncClient(timeout=2.0)
        url = f"http://{self.listen_address}/v2/"
        deadline = time.monotonic() + self._config.ready_timeout
        try:
            while True:
                try:
                    response = await http.get(url)
                    if response.status_code < 500:
                        return
                except httpx.TransportError:
                    pass
                if time.monotonic() >= deadline:
                    raise BindError(
                        f"registry for {self._bundle.mount_point} not ready on "
                        f"{self.listen_address} after {self._config.ready_timeout}s"
                    )
                await asyncio.sleep(_READY_POLL_INTERVAL)
        finally:
            if self._http is None:
                await http.aclose()

    async def serve(self) -> None:
        if self._container is None:
            raise ServeError(f"registry for {self._bundle.mount_point} was never bound")
        wait_result = await self._container.wait()
        exit_code = wait_result.get("StatusCode", -1)
        logs = await self._container.log(stdout=True, stderr=True)
        logs_str = "".join(logs) if logs else ""
        logfire.error(
            "Registry container exited", bundle=self._bundle.mount_point, exit_code=exit_code
        )
        raise ServeError(
            f"registry for {self._bundle.mount_point} exited with code {exit_code}: "
            f"{logs_str[-_LOG_TAIL:]}"
        )

    async def shutdown(self) -> None:
        if self._container is None:
            return
        try:
            await self._container.stop(t=int(self._config.shutdown_timeout))
        finally:
            await self._remove()

    async def _remove(self) -> None:
        container, self._container = self._container, None
        if container is None:
            return
        try:
            await container.delete(force=True)
        except aiodocker.DockerError as e:
            logfire.warn("Failed to remove registry container", error=str(e))


class OciRegistryServerFactory:
    """Creates one OciRegistryServer per bundle, sharing the Docker client."""

    def __init__(self, docker: aiodocker.Docker, config: RegistryConfig):
        self._docker = docker
        self._config = config

    def __call__(self, bundle: ImageBundle) -> OciRegistryServer:
        return OciRegistryServer(
            docker=self._docker,
            bundle=bundle,
            config=self._config,
            host_data_dir=self._config.host_data_dir,
            container_data_dir=self._config.container_data_dir,
        )
