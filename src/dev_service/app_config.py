from collections.abc import Sequence
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from dev_service.libs.classes.port_inspector import PortInspectorKind

TEMPLATES_DIR = Path(__file__).parent / "templates"


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DEV_SERVICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    root: Path = Field(
        default_factory=Path.cwd,
        description="Project root holding the manifest and the services folder.",
    )
    templates_dir: Path = Field(
        default=TEMPLATES_DIR,
        description="Directory with one <service>.yml template per supported image.",
    )
    manifest_files: list[Path] = Field(
        default=[
            Path("dev-service.yaml"),
            Path("dev-service.yml"),
            Path("package.json"),
        ],
        description="Manifest candidates, relative to the root. The first existing one is read.",
    )
    docker_command: list[str] = Field(
        default=["docker"],
    )
    compose_command: list[str] = Field(
        default=["docker", "compose"],
        examples=[["docker", "compose"], ["docker-compose"]],
    )
    port_inspector: PortInspectorKind = Field(
        default="auto",
        description="How listening processes are found: lsof, psutil or auto (by platform).",
    )
    log_level: str = Field(
        default="WARNING",
        examples=["DEBUG", "INFO", "WARNING"],
    )


@lru_cache(maxsize=1)
def load_app_config(paths: Sequence[Path], **overrides) -> AppConfig:
    class LoadedAppConfig(AppConfig):
        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,
            file_secret_settings: PydanticBaseSettingsSource,
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            return (
                init_settings,
                env_settings,
                dotenv_settings,
                file_secret_settings,
                *(
                    YamlConfigSettingsSource(
                        settings_cls, yaml_file=path, yaml_file_encoding="utf-8"
                    )
                    for path in paths
                ),
            )

    return LoadedAppConfig(**overrides)
