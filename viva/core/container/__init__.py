__all__ = [
    "AuthContainer",
    "BootConfiguration",
    "StorageContainer",
    "VivaContainer",
]

from .auth import AuthContainer
from .storage import StorageContainer
from .viva import BootConfiguration, VivaContainer
