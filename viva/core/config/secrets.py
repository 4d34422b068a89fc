from __future__ import annotations

import pydantic as p
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from viva.model import BaseModel, DeploymentEnvironment

from .base import BaseSettings as BaseSecrets
from .source import YAMLSecretsSource


class PostgresqlSecrets(BaseSecrets):
    model_config = SettingsConfigDict(env_prefix="VIVA_POSTGRESQL_")

    username: p.Secret[str] | None = None
    password: p.Secret[str] | None = None


class AuthSecrets(BaseModel):
    """Shared secret used to verify bearer tokens."""

    jwt: p.Secret[str]


class Secrets(BaseSecrets):  # pyright: ignore [reportIncompatibleVariableOverride]
    model_config = SettingsConfigDict(env_prefix="VIVA_", env_nested_delimiter="__")

    root: p.AnyUrl
    env: DeploymentEnvironment

    auth: AuthSecrets | None = None
    postgresql: PostgresqlSecrets = p.Field(default_factory=PostgresqlSecrets)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, YAMLSecretsSource(settings_cls)
