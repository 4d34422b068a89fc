__all__ = [
    "BootConfiguration",
    "di",
    "VivaContainer",
    "LoggingProvider",
    "Settings",
    "Secrets",
    "TimestampProvider",
]


from . import di
from .config import Secrets, Settings
from .container import BootConfiguration, VivaContainer
from .provider import LoggingProvider, TimestampProvider
