"""CredentialResolver - username/password for a destination registry."""

from regsync.config import CredentialsConfig
from regsync.domain.mirror.model.address import RegistryAddress
from regsync.domain.mirror.model.value import Credentials
from regsync.domain.shared.service import Service

DEFAULT_REGISTRY_USERNAME = "admin"
DEFAULT_REGISTRY_PASSWORD = "passw0rd"


class CredentialResolver(Service):
    """Resolves credentials per field: configured override, else built-in default.

    The same credentials are used for every destination; ``registry`` is
    accepted so per-host resolution can be added without changing callers.
    """

    config: CredentialsConfig

    def resolve(self, registry: RegistryAddress) -> Credentials:
        username = self.config.username
        password = self.config.password
        return Credentials(
            username=DEFAULT_REGISTRY_USERNAME if username is None else username,
            password=DEFAULT_REGISTRY_PASSWORD if password is None else password,
        )
