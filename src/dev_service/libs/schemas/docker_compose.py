from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DockerComposeServiceModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    image: str
    container_name: str | None = None
    ports: list[str | int | dict[str, Any]] | None = None
    volumes: list[str | dict[str, Any]] | None = None
    environment: dict[str, Any] | list[str] | None = None


class DockerComposeVolumeModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None
    external: bool | dict[str, Any] | None = None

    def external_name(self) -> str | None:
        """Name of the engine-managed volume this declaration refers to.

        Both the current form (``external: true`` + ``name``) and the legacy
        form (``external: {name: ...}``) are understood.
        """
        if isinstance(self.external, dict):
            return self.external.get("name") or self.name
        if self.external:
            return self.name
        return None


class DockerComposeModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    services: dict[str, DockerComposeServiceModel] = Field(default_factory=dict)
    volumes: dict[str, DockerComposeVolumeModel | None] | None = None

    def external_volume_names(self) -> list[str]:
        names: list[str] = []
        for volume in (self.volumes or {}).values():
            if volume is None:
                continue
            name = volume.external_name()
            if name and name not in names:
                names.append(name)
        return names
