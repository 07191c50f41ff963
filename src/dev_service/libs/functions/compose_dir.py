import shutil
from pathlib import Path

from dev_service.libs.errors import NoServicesInstalledError
from dev_service.libs.schemas.paths import ServicePaths

GITIGNORE = ".gitignore"


def check_compose_dir(compose_dir: Path) -> bool:
    return compose_dir.is_dir() and any(compose_dir.iterdir())


def require_compose_dir(compose_dir: Path) -> None:
    if not check_compose_dir(compose_dir):
        raise NoServicesInstalledError()


def list_compose_files(compose_dir: Path) -> list[str]:
    return sorted(
        path.name
        for path in compose_dir.iterdir()
        if path.is_file() and path.name != GITIGNORE
    )


def _write_gitignore(directory: Path) -> None:
    (directory / GITIGNORE).write_text("*", encoding="utf-8")


def reset_compose_dir(compose_dir: Path) -> None:
    shutil.rmtree(compose_dir, ignore_errors=True)
    compose_dir.mkdir(parents=True)
    _write_gitignore(compose_dir)


def ensure_volumes_dir(volumes_dir: Path) -> None:
    volumes_dir.mkdir(parents=True, exist_ok=True)
    _write_gitignore(volumes_dir)


def copy_additional_files(paths: ServicePaths, name: str) -> bool:
    """Copy ``<templates>/<name>/`` next to the compose dir unless already there."""
    src = paths.templates_dir / name
    dest = paths.services_dir / name

    if not src.is_dir() or dest.exists():
        return False

    shutil.copytree(src, dest)
    return True
