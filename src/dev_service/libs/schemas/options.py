from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, model_validator


class VolumeMode(StrEnum):
    CLASSIC = "classic"
    VOLUMES_ID = "volumes-id"
    MAPPED_VOLUMES = "mapped-volumes"


class VolumeSection(StrEnum):
    """Template section names selecting how volumes are declared."""

    NAMED_VOLUMES = "named-volumes"
    MAPPED_VOLUMES = "mapped-volumes"


class VolumeSettings(BaseModel):
    mode: VolumeMode
    id: str | None = None

    @model_validator(mode="after")
    def _check_id(self) -> Self:
        if self.mode is VolumeMode.VOLUMES_ID and not self.id:
            raise ValueError("volumes-id mode requires an id")
        if self.mode is not VolumeMode.VOLUMES_ID and self.id is not None:
            raise ValueError(f"{self.mode} mode does not take an id")
        return self


class ServiceOptions(BaseModel):
    model_config = ConfigDict(extra="allow")

    volumes: VolumeSettings | None = None

    @property
    def volume_mode(self) -> VolumeMode:
        return self.volumes.mode if self.volumes else VolumeMode.CLASSIC
