import json
import logging
import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import ValidationError

from dev_service.libs.errors import ConfigurationError
from dev_service.libs.schemas.options import (
    ServiceOptions,
    VolumeMode,
    VolumeSection,
    VolumeSettings,
)
from dev_service.libs.schemas.paths import ServicePaths

logger = logging.getLogger(__name__)

VOLUMES_ID_ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase
VOLUMES_ID_LENGTH = 12


def generate_volumes_id() -> str:
    return "".join(secrets.choice(VOLUMES_ID_ALPHABET) for _ in range(VOLUMES_ID_LENGTH))


def load_options(paths: ServicePaths) -> ServiceOptions:
    """Read the persisted options, falling back to the legacy ``.volumesid`` file."""
    if paths.options_path.exists():
        raw = paths.options_path.read_text(encoding="utf-8")
        if not raw.strip():
            return ServiceOptions()
        try:
            return ServiceOptions.model_validate_json(raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid options file {paths.options_path}: {e}") from e

    if paths.legacy_volumes_id_path.exists():
        legacy_id = paths.legacy_volumes_id_path.read_text(encoding="utf-8").strip()
        if legacy_id:
            logger.info("Migrating legacy volumes id from %s", paths.legacy_volumes_id_path)
            return ServiceOptions(
                volumes=VolumeSettings(mode=VolumeMode.VOLUMES_ID, id=legacy_id)
            )

    return ServiceOptions()


def save_options(paths: ServicePaths, options: ServiceOptions) -> None:
    paths.services_dir.mkdir(parents=True, exist_ok=True)
    data = options.model_dump(mode="json", exclude_none=True)
    paths.options_path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    if paths.legacy_volumes_id_path.exists():
        paths.legacy_volumes_id_path.unlink()


@dataclass(frozen=True, kw_only=True)
class VolumeFlags:
    enable_classic_volumes: bool = False
    enable_volumes_id: bool = False
    enable_mapped_volumes: bool = False

    def __post_init__(self):
        enabled = [
            self.enable_classic_volumes,
            self.enable_volumes_id,
            self.enable_mapped_volumes,
        ]
        if sum(enabled) > 1:
            raise ConfigurationError(
                "Only one of --enable-classic-volumes, --enable-volumes-id "
                "and --enable-mapped-volumes can be given"
            )


@dataclass(frozen=True, kw_only=True)
class VolumeResolution:
    options: ServiceOptions
    changed: bool
    section: VolumeSection
    prefix: str | None

    @property
    def removed_sections(self) -> list[str]:
        return [s.value for s in VolumeSection if s is not self.section]


def resolve_volume_mode(
    options: ServiceOptions,
    flags: VolumeFlags,
    project_name: str,
    *,
    id_factory: Callable[[], str] = generate_volumes_id,
) -> VolumeResolution:
    options = options.model_copy(deep=True)
    changed = False

    if flags.enable_volumes_id:
        current = options.volumes
        volumes_id = (
            current.id
            if current and current.mode is VolumeMode.VOLUMES_ID and current.id
            else id_factory()
        )
        options.volumes = VolumeSettings(mode=VolumeMode.VOLUMES_ID, id=volumes_id)
        changed = True
    elif flags.enable_mapped_volumes:
        options.volumes = VolumeSettings(mode=VolumeMode.MAPPED_VOLUMES)
        changed = True
    elif flags.enable_classic_volumes:
        options.volumes = None
        changed = True

    match options.volume_mode:
        case VolumeMode.VOLUMES_ID:
            section, prefix = VolumeSection.NAMED_VOLUMES, options.volumes.id
        case VolumeMode.MAPPED_VOLUMES:
            section, prefix = VolumeSection.MAPPED_VOLUMES, None
        case _:
            section, prefix = VolumeSection.NAMED_VOLUMES, project_name

    return VolumeResolution(options=options, changed=changed, section=section, prefix=prefix)
