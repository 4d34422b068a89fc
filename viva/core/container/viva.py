from __future__ import annotations

import types
from pathlib import Path

import pydantic as p
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Object, Provider, Resource, Singleton

import viva
from viva.model import BaseModel, DeploymentEnvironment

from ..config import Secrets, Settings
from ..di import NotReady
from ..provider import LoggingProvider, TimestampProvider, utcnow
from .auth import AuthContainer
from .storage import StorageContainer

WiredPackages = (
    "viva.auth",
    "viva.cli",
    "viva.evaluation",
    "viva.storage",
    "viva.web",
)


class BootConfiguration(BaseModel):
    debug: bool
    env: DeploymentEnvironment
    config_root: p.AnyUrl
    secrets_path: p.AnyUrl | None = None
    override: tuple[str, ...]


class VivaContainer(DeclarativeContainer):
    config: Configuration = Configuration()
    secrets: Configuration = Configuration()

    debug: Provider[bool] = Singleton(bool)
    env: Provider[DeploymentEnvironment] = Singleton(DeploymentEnvironment)
    root: Object[NotReady | Path] = Object(NotReady())

    logging: Provider[LoggingProvider] = Resource(LoggingProvider, config=config.logging, debug=debug)
    storage: Provider[StorageContainer] = Container(
        StorageContainer, config=config.storage, secrets=secrets, logging=logging, root=root
    )
    auth: Provider[AuthContainer] = Container(AuthContainer, config=config.web.viva.auth, secrets=secrets.auth)

    utcnow: Provider[TimestampProvider] = Object(utcnow)

    _boot_config: Provider[BootConfiguration | NotReady] = Object(NotReady())

    @staticmethod
    def boot(
        ct: VivaContainer,
        /,
        debug: bool,
        env: DeploymentEnvironment,
        config_root: p.FileUrl,
        secrets_path: p.AnyUrl | None = None,
        override: tuple[str, ...] | None = None,
        wiring: tuple[str | types.ModuleType, ...] | None = None,
    ):
        """Load settings and secrets, then wire every viva package.

        The arguments are kept as `_boot_config` so `viva web serve` can hand
        them to uvicorn workers, which boot their own container.
        """
        boot_cf = BootConfiguration(
            debug=debug, env=env, config_root=config_root, secrets_path=secrets_path, override=override or ()
        )
        if config_root.scheme != "file":
            raise ValueError(f"configuration root must be a file:// URL, not {config_root.scheme}://")

        ct.debug.override(debug)
        ct.env.override(env)
        ct.root.override(Path(viva.__file__).resolve().parent.parent)
        ct.config.from_pydantic(Settings(env=env, root=config_root, override=boot_cf.override))
        ct.secrets.from_pydantic(Secrets(env=env, root=secrets_path or config_root))

        ct.wire(packages=list(WiredPackages), modules=list(wiring or ()))
        ct._boot_config.override(boot_cf)

        logger = ct.logging().get_logger()
        for option in boot_cf.override:
            key, _, value = option.partition("=")
            logger.info("configuration override", extra={"key": key.strip(), "value": value.strip()})
        logger.debug("container booted", extra={"config": str(config_root), "env": env.value, "debug": debug})
