import os
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

_CONFIG_PATH = os.getenv("MCPORTAL_CONFIG", "config.toml")
_ENV_PATH = os.getenv("MCPORTAL_ENV", ".env")


class ProxySettings(BaseModel):
    connect_timeout_seconds: float = 10.0
    total_timeout_seconds: float = 300.0
    # Map backends are plain HTTP today; self-signed TLS backends must still work
    verify_tls: bool = False


class StatusSettings(BaseModel):
    query_timeout_seconds: float = 1.0
    ping_timeout_seconds: float = 1.0
    cache_seconds: int = 60
    error_cache_seconds: int = 10
    map_players_timeout_seconds: float = 2.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        toml_file=_CONFIG_PATH,
        env_file=_ENV_PATH,
        env_prefix="MCPORTAL_",
    )

    host: str = "0.0.0.0"
    port: int = 8080
    site_title: str = "Minecraft Servers"

    servers_file: Path = Field(default=Path("servers.yml"))
    data_path: Path = Field(default=Path("data"))
    logs_dir: Path = Field(default=Path("logs"))

    proxy: ProxySettings = Field(default_factory=ProxySettings)
    status: StatusSettings = Field(default_factory=StatusSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Source order: init args > OS env > .env > config.toml > secrets
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


settings = Settings()
