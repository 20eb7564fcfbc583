from regsync.domain.mirror.port.image_copier import ImageCopier, PolicyContext, PolicyProvider
from regsync.domain.mirror.port.registry_client import RegistryClient
from regsync.domain.mirror.port.registry_server import RegistryServer, RegistryServerFactory

__all__ = [
    "ImageCopier",
    "PolicyContext",
    "PolicyProvider",
    "RegistryClient",
    "RegistryServer",
    "RegistryServerFactory",
]
