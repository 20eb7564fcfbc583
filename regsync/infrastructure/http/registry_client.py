"""HTTP adapter for the RegistryClient port (Docker Registry HTTP API v2)."""

import logging
import re
from urllib.parse import urljoin

import httpx

from regsync.domain.mirror.model.address import RegistryAddress
from regsync.domain.mirror.model.reference import RepositoryRef
from regsync.domain.mirror.model.value import Credentials, SystemContext
from regsync.domain.shared.error import LoginError
from regsync.infrastructure.oci.auth_file import AuthFile

logger = logging.getLogger(__name__)

_CHALLENGE_PARAM_RE = re.compile(r'(\w+)="([^"]*)"')


def parse_challenge(header: str) -> tuple[str, dict[str, str]]:
    """Split a WWW-Authenticate header into (scheme, params).

    Example:
        >>> parse_challenge('Bearer realm="https://auth.example.com/token",service="reg"')
        ('bearer', {'realm': 'https://auth.example.com/token', 'service': 'reg'})
    """
    scheme, _, rest = header.strip().partition(" ")
    return scheme.lower(), dict(_CHALLENGE_PARAM_RE.findall(rest))


class HttpRegistryClient:
    """Talks to registries with httpx.

    With ``insecure_skip_tls_verify`` set, certificates are not verified and a
    registry that does not speak TLS is reached over plain HTTP. Credentials
    recorded by ``login`` go to the shared auth file and are presented to any
    later Basic or Bearer challenge from the same registry.
    """

    def __init__(
        self,
        auth_file: AuthFile | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._auth_file = auth_file
        self._timeout = timeout
        self._transport = transport
        self._clients: dict[bool, httpx.AsyncClient] = {}

    def _client(self, verify: bool) -> httpx.AsyncClient:
        if verify not in self._clients:
            self._clients[verify] = httpx.AsyncClient(
                verify=verify, timeout=self._timeout, transport=self._transport
            )
        return self._clients[verify]

    async def aclose(self) -> None:
        for client in self._clients.values():
            await client.aclose()
        self._clients.clear()

    # -------------------------------------------------------------------------
    # RegistryClient port
    # -------------------------------------------------------------------------

    async def login(
        self,
        system: SystemContext,
        registry: RegistryAddress,
        credentials: Credentials,
    ) -> None:
        try:
            response = await self._get(system, registry, "/v2/", credentials=credentials)
        except httpx.HTTPError as e:
            raise LoginError(f"cannot reach registry {registry}: {e}", registry) from e

        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise LoginError(f"invalid username/password for {registry}", registry)
        if response.is_error:
            raise LoginError(
                f"unexpected status {response.status_code} logging in to {registry}", registry
            )

        if self._auth_file is not None:
            await self._auth_file.store(registry, credentials)

    async def search_repositories(
        self,
        system: SystemContext,
        registry: RegistryAddress,
        limit: int,
    ) -> list[str]:
        response = await self._get(
            system, registry, "/v2/_catalog", params={"n": limit}, scope="registry:catalog:*"
        )
        response.raise_for_status()
        repositories = response.json().get("repositories") or []
        return repositories[:limit]

    async def list_tags(self, system: SystemContext, repository: RepositoryRef) -> list[str]:
        registry = RegistryAddress(repository.domain)
        path: str | None = f"/v2/{repository.path}/tags/list"
        scope = f"repository:{repository.path}:pull"

        tags: list[str] = []
        while path is not None:
            response = await self._get(system, registry, path, scope=scope)
            response.raise_for_status()
            tags.extend(response.json().get("tags") or [])
            path = self._next_page(response)
        return tags

    # -------------------------------------------------------------------------
    # Transport helpers
    # -------------------------------------------------------------------------

    def _schemes(self, system: SystemContext) -> list[str]:
        return ["https", "http"] if system.insecure_skip_tls_verify else ["https"]

    @staticmethod
    def _next_page(response: httpx.Response) -> str | None:
        next_link = response.links.get("next", {}).get("url")
        if not next_link:
            return None
        return urljoin(str(response.url), next_link)

    async def _get(
        self,
        system: SystemContext,
        registry: RegistryAddress,
        path: str,
        params: dict | None = None,
        credentials: Credentials | None = None,
        scope: str | None = None,
    ) -> httpx.Response:
        """GET a registry path, answering one authentication challenge if raised.

        ``path`` may also be an absolute URL (pagination links).
        """
        if credentials is None and self._auth_file is not None:
            credentials = self._auth_file.get(registry)

        client = self._client(verify=not system.insecure_skip_tls_verify)
        last_error: httpx.TransportError | None = None
        for scheme in self._schemes(system):
            url = path if path.startswith(("http://", "https://")) else f"{scheme}://{registry}{path}"
            try:
                response = await client.get(url, params=params)
                if response.status_code == httpx.codes.UNAUTHORIZED:
                    response = await self._answer_challenge(
                        client, response, credentials, scope, url, params
                    )
                return response
            except httpx.TransportError as e:
                logger.debug("GET %s failed: %s", url, e)
                last_error = e
                if path.startswith(("http://", "https://")):
                    break
        assert last_error is not None
        raise last_error

    async def _answer_challenge(
        self,
        client: httpx.AsyncClient,
        response: httpx.Response,
        credentials: Credentials | None,
        scope: str | None,
        url: str,
        params: dict | None,
    ) -> httpx.Response:
        header = response.headers.get("WWW-Authenticate")
        if not header:
            return response
        scheme, challenge = parse_challenge(header)

        if scheme == "basic":
            if credentials is None:
                return response
            return await client.get(
                url, params=params, auth=(credentials.username, credentials.password)
            )

        if scheme == "bearer" and "realm" in challenge:
            token_params = {k: v for k, v in challenge.items() if k in ("service", "scope")}
            if scope and "scope" not in token_params:
                token_params["scope"] = scope
            auth = None
            if credentials is not None:
                token_params["account"] = credentials.username
                auth = (credentials.username, credentials.password)
            token_response = await client.get(challenge["realm"], params=token_params, auth=auth)
            if token_response.is_error:
                return token_response
            body = token_response.json()
            token = body.get("token") or body.get("access_token")
            if not token:
                return response
            return await client.get(
                url, params=params, headers={"Authorization": f"Bearer {token}"}
            )

        logger.warning("Unsupported WWW-Authenticate scheme from %s: %s", url, scheme)
        return response
