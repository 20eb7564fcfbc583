"""regsync settings: pydantic-settings with env, .env and YAML sources."""

import logging
import os
import sys
from pathlib import Path

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)
from typing_extensions import Self


# =============================================================================
# Mirror Configuration
# =============================================================================


class CredentialsConfig(BaseModel):
    """Credential overrides used against every destination registry.

    ``None`` means "not overridden": the built-in default is used instead.
    An empty string is a valid override.
    """

    username: str | None = None
    password: str | None = Field(default=None, repr=False)


class RegistryConfig(BaseModel):
    """Ephemeral local registry service settings."""

    image: str = "registry:2"
    container_port: int = 5000  # Port the registry listens on inside its container
    ready_timeout: float = 30.0  # Seconds to wait for /v2/ to answer after start
    shutdown_timeout: float = 10.0  # Seconds a graceful stop may take
    search_limit: int = 1 << 10  # Max repositories returned by one catalog search
    # Set when regsync itself runs in a container next to the Docker daemon:
    # bundle paths under container_data_dir are rewritten to host_data_dir
    host_data_dir: str | None = None
    container_data_dir: str = "/data"


class TransferConfig(BaseModel):
    """Image copy settings."""

    skopeo_binary: str = "skopeo"
    tls_verify: bool = False
    policy_file: Path | None = None  # Existing containers-policy.json; None = accept anything
    request_timeout: float = 30.0  # Seconds per registry API request


class SyncConfig(BaseModel):
    timeout: float | None = None  # Overall deadline for one sync run; None = no deadline


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file: Path | None = None  # Log to this file instead of stderr


# =============================================================================
# Settings
# =============================================================================


class Config(BaseSettings):
    """regsync settings.

    Sources, highest priority first: constructor arguments, ``REGSYNC_*``
    environment variables, ``.env``, then the YAML file named by
    ``REGSYNC_CONFIG_FILE``.
    """

    credentials: CredentialsConfig = CredentialsConfig()
    registry: RegistryConfig = RegistryConfig()
    transfer: TransferConfig = TransferConfig()
    sync: SyncConfig = SyncConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_prefix="REGSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # REGSYNC_REGISTRY__IMAGE=...
        extra="ignore",
    )

    @model_validator(mode="after")
    def apply_default_credential_env(self) -> Self:
        """Fill unset credentials from DEFAULT_REGISTRY_USERNAME / DEFAULT_REGISTRY_PASSWORD."""
        username = self.credentials.username
        password = self.credentials.password
        if username is None:
            username = os.environ.get("DEFAULT_REGISTRY_USERNAME")
        if password is None:
            password = os.environ.get("DEFAULT_REGISTRY_PASSWORD")
        self.credentials = CredentialsConfig(username=username, password=password)
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        yaml_settings = YamlConfigSettingsSource(
            settings_cls, yaml_file=os.environ.get("REGSYNC_CONFIG_FILE")
        )
        return init_settings, env_settings, dotenv_settings, yaml_settings, file_secret_settings


_NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "aiodocker")


def configure_logging(config: LoggingConfig) -> None:
    """Install a single root handler. Call once at CLI startup."""
    if config.file is not None:
        path = config.file.expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path)
    else:
        handler = logging.StreamHandler(sys.stderr)

    logging.basicConfig(
        level=config.level,
        format=config.format,
        datefmt=config.date_format,
        handlers=[handler],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
