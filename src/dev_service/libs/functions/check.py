import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from dev_service.libs.classes.docker import DockerClient
from dev_service.libs.classes.port_inspector import PortInspector
from dev_service.libs.errors import ConfigurationError, PortConflictError, ProcessError
from dev_service.libs.functions.compose_dir import list_compose_files, require_compose_dir
from dev_service.libs.schemas.docker_compose import DockerComposeModel
from dev_service.libs.schemas.paths import (
    COMPOSE_DIR_NAME,
    SERVICES_DIR_NAME,
    ServicePaths,
)
from dev_service.libs.schemas.process import PortConflict, ProcessInfo

logger = logging.getLogger(__name__)

COMPOSE_DIR_SUFFIX = f"/{SERVICES_DIR_NAME}/{COMPOSE_DIR_NAME}"


def host_port(entry: str | int | dict[str, Any]) -> str | None:
    """Host side of a compose ``ports`` entry, ``None`` for container-only ports.

    ``"8080:80"`` → ``"8080"``, ``"127.0.0.1:8080:80/udp"`` → ``"8080"``,
    ``{"published": 8080, "target": 80}`` → ``"8080"``, ``"80"`` → ``None``.
    """
    if isinstance(entry, dict):
        published = entry.get("published")
        return str(published) if published not in (None, "") else None

    # plain numbers only name the container port
    if not isinstance(entry, str):
        return None

    parts = entry.split("/", 1)[0].split(":")
    if len(parts) < 2:
        return None

    return parts[-2] or None


def _load_compose_file(path: Path) -> DockerComposeModel:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        return DockerComposeModel.model_validate(data or {})
    except (yaml.YAMLError, ValidationError) as e:
        raise ConfigurationError(
            f"Invalid compose file {path}: {e}. Try running `service install`"
        ) from e


def get_required_ports(paths: ServicePaths, service: str | None = None) -> list[str]:
    require_compose_dir(paths.compose_dir)

    files = list_compose_files(paths.compose_dir)
    if service:
        target = paths.compose_file(service).name
        if target not in files:
            raise ConfigurationError(f"Service {service} is not installed")
        files = [target]

    ports: list[str] = []
    for file in files:
        compose = _load_compose_file(paths.compose_dir / file)

        for compose_service in compose.services.values():
            for entry in compose_service.ports or []:
                port = host_port(entry)
                if port and port not in ports:
                    ports.append(port)

    return ports


def get_own_ports(
    *, paths: ServicePaths, project_name: str, docker: DockerClient
) -> list[str]:
    """Ports published by this project's running containers."""
    ids = docker.project_container_ids(
        project_name=project_name,
        compose_dir=paths.compose_dir,
        files=list_compose_files(paths.compose_dir),
    )
    if not ids:
        return []

    with ThreadPoolExecutor() as executor:
        per_container = list(executor.map(docker.container_ports, ids))

    return list(dict.fromkeys(port for ports in per_container for port in ports))


def get_pids(inspector: PortInspector, ports: list[str]) -> dict[str, str]:
    with ThreadPoolExecutor() as executor:
        pids = list(executor.map(inspector.find_listener, ports))

    return {port: pid for port, pid in zip(ports, pids) if pid}


def get_processes(inspector: PortInspector, pids: list[str]) -> dict[str, ProcessInfo]:
    processes: dict[str, ProcessInfo] = {}
    for pid in pids:
        process = inspector.describe_process(pid)
        if process:
            processes[pid] = process
    return processes


def check_used_ports(
    *,
    paths: ServicePaths,
    project_name: str,
    docker: DockerClient,
    inspector: PortInspector,
    service: str | None = None,
) -> None:
    required_ports = get_required_ports(paths, service)
    own_ports = get_own_ports(paths=paths, project_name=project_name, docker=docker)
    ports = [p for p in required_ports if p not in own_ports]
    logger.info(
        "Required ports: %s, own ports: %s",
        ", ".join(required_ports) or "-",
        ", ".join(own_ports) or "-",
    )

    ports_to_pids = get_pids(inspector, ports)
    if not ports_to_pids:
        return

    processes = get_processes(inspector, list(dict.fromkeys(ports_to_pids.values())))

    raise PortConflictError(
        [
            PortConflict(
                port=port,
                pid=pid,
                cmd=processes[pid].cmd if pid in processes else None,
            )
            for port, pid in ports_to_pids.items()
        ]
    )


def get_compose_paths(docker: DockerClient) -> set[str]:
    """Compose working directories of every running container on this host."""
    paths: set[str] = set()
    for container_id in docker.running_container_ids():
        working_dir = docker.compose_working_dir(container_id)
        if working_dir:
            paths.add(working_dir)
    return paths


def check_other_services(*, paths: ServicePaths, docker: DockerClient) -> list[Path]:
    try:
        compose_paths = get_compose_paths(docker)
    except ProcessError as e:
        logger.info("Could not look for other running instances: %s", e)
        return []

    own = str(paths.compose_dir)
    folders = sorted(
        Path(p.removesuffix(COMPOSE_DIR_SUFFIX))
        for p in compose_paths
        if p != own and p.endswith(COMPOSE_DIR_SUFFIX)
    )

    if folders:
        logger.warning(
            "\n".join(
                [
                    "dev-service is already running, started in following folder(s):",
                    *(f"  {folder}" for folder in folders),
                ]
            )
        )

    return folders
