import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import yaml

from dev_service.libs.classes.docker import DockerClient
from dev_service.libs.classes.provider import ProviderContext, load_service_template
from dev_service.libs.errors import ConfigurationError
from dev_service.libs.functions.compose_dir import (
    copy_additional_files,
    ensure_volumes_dir,
    reset_compose_dir,
)
from dev_service.libs.functions.load_manifest import validate_custom_services
from dev_service.libs.functions.options import (
    VolumeFlags,
    VolumeResolution,
    load_options,
    resolve_volume_mode,
    save_options,
)
from dev_service.libs.functions.templates import escape, render_template
from dev_service.libs.schemas.docker_compose import DockerComposeModel
from dev_service.libs.schemas.manifest import Manifest
from dev_service.libs.schemas.options import VolumeSection
from dev_service.libs.schemas.paths import ServicePaths
from dev_service.libs.schemas.service import RenderedService, ServiceTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class InstallResult:
    services: list[RenderedService]
    volumes: VolumeResolution


def render_service(
    service: ServiceTemplate, project_name: str, volumes: VolumeResolution
) -> RenderedService:
    if service.template is None:
        raise ConfigurationError(f"Unsupported services: {service.name}")
    content = render_template(
        service.template,
        {
            "image": service.image,
            "container_name": f"{project_name}_{service.name}",
            "projectname": project_name,
            "volumesPrefix": volumes.prefix,
        },
        remove_sections=volumes.removed_sections,
        keep_sections=[volumes.section],
    )
    return RenderedService(name=service.name, image=service.image, content=content)


def ensure_named_volumes(docker: DockerClient, content: str) -> list[str]:
    data = yaml.safe_load(content)
    if not data:
        return []

    names = DockerComposeModel.model_validate(data).external_volume_names()
    if names:
        with ThreadPoolExecutor() as executor:
            list(executor.map(docker.create_volume, names))
    return names


def install(
    *,
    paths: ServicePaths,
    manifest: Manifest,
    docker: DockerClient,
    flags: VolumeFlags,
) -> InstallResult:
    project_name = escape(manifest.name)
    services = [s for s in manifest.services if s]

    validate_custom_services(services)

    context = ProviderContext(templates_dir=paths.templates_dir)
    templates = [load_service_template(s, context) for s in services]

    unsupported = [t.name for t in templates if t.template is None]
    if unsupported:
        raise ConfigurationError(f"Unsupported services: {', '.join(unsupported)}")

    options = load_options(paths)
    volumes = resolve_volume_mode(options, flags, project_name)

    reset_compose_dir(paths.compose_dir)

    if volumes.changed or paths.legacy_volumes_id_path.exists():
        save_options(paths, volumes.options)
    logger.info(
        "Volumes: %s (%s)", volumes.options.volume_mode, volumes.prefix or "no prefix"
    )

    if volumes.section is VolumeSection.MAPPED_VOLUMES:
        ensure_volumes_dir(paths.volumes_dir)

    rendered: list[RenderedService] = []
    for template in templates:
        service = render_service(template, project_name, volumes)

        if volumes.section is VolumeSection.NAMED_VOLUMES:
            created = ensure_named_volumes(docker, service.content)
            logger.debug("Ensured volumes for %s: %s", service.name, created)

        paths.compose_file(service.name).write_text(service.content, encoding="utf-8")
        if copy_additional_files(paths, service.name):
            logger.info("Copied additional files for %s", service.name)

        logger.info("Installed %s (%s)", service.name, service.image)
        rendered.append(service)

    return InstallResult(services=rendered, volumes=volumes)
