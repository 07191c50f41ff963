import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any, cast

from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException
from pydantic import ValidationError
from yaml import YAMLError

from dev_service.libs.errors import ConfigurationError
from dev_service.libs.schemas.manifest import CustomService, Manifest, ServiceSpec

logger = logging.getLogger(__name__)


def find_manifest(root: Path, candidates: Sequence[Path]) -> Path:
    for candidate in candidates:
        path = candidate if candidate.is_absolute() else root / candidate
        if path.is_file():
            return path

    raise ConfigurationError(
        f"No manifest found in {root} (looked for {', '.join(str(c) for c in candidates)})"
    )


def _load_file_content(path: Path) -> dict[str, Any]:
    try:
        # interpolations are left alone, package.json scripts often contain ${...}
        content = OmegaConf.to_container(OmegaConf.load(path), resolve=False)
    except (OmegaConfBaseException, YAMLError) as e:
        raise ConfigurationError(f"Invalid manifest {path}: {e}") from e

    if not isinstance(content, dict):
        raise ConfigurationError(f"Invalid manifest {path}: expected a mapping")

    return cast(dict[str, Any], content)


def load_manifest(root: Path, candidates: Sequence[Path]) -> Manifest:
    path = find_manifest(root, candidates)
    logger.debug("Reading manifest %s", path)
    content = _load_file_content(path)

    raw_services = content.get("services") or []
    if not isinstance(raw_services, list):
        raise ConfigurationError(f"Invalid manifest {path}: services must be a list")

    services = [s for s in raw_services if s]
    if not services:
        raise ConfigurationError("No services defined")

    try:
        return Manifest(name=content.get("name") or root.name, services=services)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid manifest {path}: {e}") from e


def invalid_custom_services(services: Sequence[ServiceSpec]) -> list[dict[str, Any]]:
    invalid: list[dict[str, Any]] = []
    for service in services:
        if not isinstance(service, dict):
            continue
        try:
            CustomService.model_validate(service)
        except ValidationError:
            invalid.append(service)
    return invalid


def validate_custom_services(services: Sequence[ServiceSpec]) -> None:
    invalid = invalid_custom_services(services)
    if invalid:
        raise ConfigurationError(
            "Invalid custom services:\n"
            + ",\n".join(json.dumps(i, indent=2, default=str) for i in invalid)
        )
