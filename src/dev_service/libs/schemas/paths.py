from dataclasses import dataclass
from pathlib import Path

SERVICES_DIR_NAME = "services"
COMPOSE_DIR_NAME = ".compose"
VOLUMES_DIR_NAME = "volumes"


@dataclass(frozen=True, kw_only=True)
class ServicePaths:
    root: Path
    templates_dir: Path

    @property
    def services_dir(self) -> Path:
        return self.root / SERVICES_DIR_NAME

    @property
    def compose_dir(self) -> Path:
        return self.services_dir / COMPOSE_DIR_NAME

    @property
    def volumes_dir(self) -> Path:
        return self.services_dir / VOLUMES_DIR_NAME

    @property
    def options_path(self) -> Path:
        return self.services_dir / ".options"

    @property
    def legacy_volumes_id_path(self) -> Path:
        return self.services_dir / ".volumesid"

    def compose_file(self, name: str) -> Path:
        return self.compose_dir / f"{name}.yml"
