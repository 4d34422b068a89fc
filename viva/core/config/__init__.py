__all__ = [
    "AuthSettings",
    "EvaluationSettings",
    "LoggingSettings",
    "Secrets",
    "Settings",
    "StorageSettings",
    "VivaWebSettings",
    "WebSettings",
]


from .evaluation import EvaluationSettings
from .logging import LoggingSettings
from .secrets import Secrets
from .settings import Settings
from .storage import StorageSettings
from .web import AuthSettings, VivaWebSettings, WebSettings
