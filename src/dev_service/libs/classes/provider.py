import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

import yaml

from dev_service.libs.functions.templates import get_name, marker
from dev_service.libs.schemas.manifest import CustomService, ServiceSpec
from dev_service.libs.schemas.options import VolumeSection
from dev_service.libs.schemas.paths import VOLUMES_DIR_NAME
from dev_service.libs.schemas.service import ServiceTemplate

# moby/moby#21786: anything else is a host path, not a volume name
VOLUME_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]+$")

# bind mounts are relative to the compose directory
MAPPED_VOLUMES_PATH = f"../{VOLUMES_DIR_NAME}"


@dataclass(kw_only=True)
class ProviderContext:
    templates_dir: Path


@dataclass(kw_only=True)
class Provider(ABC):
    @classmethod
    @abstractmethod
    def service_match(cls, service: ServiceSpec) -> bool: ...

    @abstractmethod
    def load(self, service: ServiceSpec, context: ProviderContext) -> ServiceTemplate: ...


def _dump_yaml(data: dict[str, Any]) -> str:
    return yaml.dump(data, sort_keys=False, width=float("inf"))


@dataclass
class TemplateFileProvider(Provider):
    """Bundled templates, looked up by the image's service name."""

    extensions: ClassVar[tuple[str, ...]] = (".yml", ".yaml")

    @classmethod
    def service_match(cls, service: ServiceSpec) -> bool:
        return isinstance(service, str)

    def load(self, service: ServiceSpec, context: ProviderContext) -> ServiceTemplate:
        if not isinstance(service, str):
            raise TypeError(f"Expected an image reference, got: {service!r}")
        name = get_name(service)

        for extension in self.extensions:
            path = context.templates_dir / f"{name}{extension}"
            if path.is_file():
                return ServiceTemplate(
                    name=name,
                    image=service,
                    template=path.read_text(encoding="utf-8"),
                )

        return ServiceTemplate(name=name, image=service)


@dataclass
class CustomServiceProvider(Provider):
    """Synthesizes a template from a compose service record."""

    dump_fn: Callable[[dict[str, Any]], str] = field(default=_dump_yaml)

    @classmethod
    def service_match(cls, service: ServiceSpec) -> bool:
        return isinstance(service, dict)

    def load(self, service: ServiceSpec, context: ProviderContext) -> ServiceTemplate:
        custom = CustomService.model_validate(service)
        name = get_name(custom.image)

        record = custom.model_dump(exclude_none=True)
        record["container_name"] = marker("container_name")

        named_volumes = _named_volumes(record.get("volumes") or [])
        if not named_volumes:
            return ServiceTemplate(
                name=name,
                image=custom.image,
                template=self.dump_fn({"services": {name: record}}),
            )

        named_document = {
            "services": {name: record},
            "volumes": {
                volume: {
                    "external": True,
                    "name": f"{marker('volumesPrefix')}-{volume}",
                }
                for volume in named_volumes
            },
        }
        mapped_document = {
            "services": {
                name: {
                    **record,
                    "volumes": [
                        _map_volume(v, named_volumes) for v in record["volumes"]
                    ],
                }
            },
        }

        template = _section(
            VolumeSection.NAMED_VOLUMES, self.dump_fn(named_document)
        ) + _section(VolumeSection.MAPPED_VOLUMES, self.dump_fn(mapped_document))

        return ServiceTemplate(name=name, image=custom.image, template=template)


def _named_volumes(volumes: list[str | dict[str, Any]]) -> list[str]:
    names: list[str] = []
    for volume in volumes:
        # Format: [SOURCE:]TARGET[:MODE]
        if not isinstance(volume, str):
            continue
        parts = volume.split(":")
        if len(parts) == 1:
            continue
        if VOLUME_NAME_PATTERN.match(parts[0]) and parts[0] not in names:
            names.append(parts[0])
    return names


def _map_volume(volume: str | dict[str, Any], named_volumes: list[str]) -> str | dict[str, Any]:
    if not isinstance(volume, str):
        return volume
    source, _, rest = volume.partition(":")
    if source not in named_volumes or not rest:
        return volume
    return f"{MAPPED_VOLUMES_PATH}/{source}:{rest}"


def _section(section: str, text: str) -> str:
    return f"{marker(section)}\n{text}{marker(section, closing=True)}\n"


DEFAULT_PROVIDERS: list[Provider] = [TemplateFileProvider(), CustomServiceProvider()]


def load_service_template(
    service: ServiceSpec,
    context: ProviderContext,
    providers: list[Provider] = DEFAULT_PROVIDERS,
) -> ServiceTemplate:
    for provider in providers:
        if provider.service_match(service):
            return provider.load(service, context)

    raise TypeError(f"No provider found for service: {service!r}")
