from dev_service.libs.classes.docker import DockerClient
from dev_service.libs.classes.process_runner import ProcessResult
from dev_service.libs.functions.compose_dir import list_compose_files, require_compose_dir
from dev_service.libs.schemas.paths import ServicePaths


def run_compose(
    *args: str,
    paths: ServicePaths,
    project_name: str,
    docker: DockerClient,
) -> ProcessResult:
    """Forward *args* to docker compose with every installed service file."""
    require_compose_dir(paths.compose_dir)

    return docker.compose(
        *args,
        project_name=project_name,
        compose_dir=paths.compose_dir,
        files=list_compose_files(paths.compose_dir),
    )


def with_service(args: list[str], service: str | None) -> list[str]:
    return [*args, service] if service else args
