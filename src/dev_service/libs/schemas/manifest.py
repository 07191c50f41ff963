from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CustomService(BaseModel):
    """A service given as a compose service record instead of an image reference."""

    model_config = ConfigDict(extra="allow")

    image: str = Field(min_length=1)
    ports: list[str | int | dict[str, Any]] | None = None
    volumes: list[str | dict[str, Any]] | None = None


ServiceSpec = str | dict[str, Any]


class Manifest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(
        description="Project name. Defaults to the name of the project root folder.",
    )
    services: list[ServiceSpec] = Field(
        description="Image references or custom service records to install.",
        examples=[["mongo:latest", "nginx"], [{"image": "redis:7", "ports": ["6379:6379"]}]],
    )
