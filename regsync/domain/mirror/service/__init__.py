from regsync.domain.mirror.service.credentials import CredentialResolver
from regsync.domain.mirror.service.discovery import DiscoveryService
from regsync.domain.mirror.service.lifecycle import EphemeralRegistry, RegistryState
from regsync.domain.mirror.service.login import LoginCoordinator
from regsync.domain.mirror.service.mirror import MirrorService
from regsync.domain.mirror.service.transfer import TransferService

__all__ = [
    "CredentialResolver",
    "DiscoveryService",
    "EphemeralRegistry",
    "LoginCoordinator",
    "MirrorService",
    "RegistryState",
    "TransferService",
]
