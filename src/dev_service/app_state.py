from dataclasses import dataclass
from functools import cached_property

from dev_service.app_config import AppConfig
from dev_service.libs.classes.docker import DockerClient
from dev_service.libs.classes.port_inspector import PortInspector, get_port_inspector
from dev_service.libs.classes.process_runner import ProcessRunner
from dev_service.libs.functions.load_manifest import load_manifest
from dev_service.libs.functions.templates import escape
from dev_service.libs.schemas.manifest import Manifest
from dev_service.libs.schemas.paths import ServicePaths


@dataclass
class AppState:
    app_config: AppConfig
    paths: ServicePaths
    docker: DockerClient
    inspector: PortInspector

    @cached_property
    def manifest(self) -> Manifest:
        return load_manifest(self.paths.root, self.app_config.manifest_files)

    @property
    def project_name(self) -> str:
        return escape(self.manifest.name)


def create_app_state(app_config: AppConfig) -> AppState:
    runner = ProcessRunner()

    return AppState(
        app_config=app_config,
        paths=ServicePaths(
            root=app_config.root.resolve(),
            templates_dir=app_config.templates_dir.resolve(),
        ),
        docker=DockerClient(
            runner=runner,
            docker_command=app_config.docker_command,
            compose_command=app_config.compose_command,
        ),
        inspector=get_port_inspector(app_config.port_inspector, runner=runner),
    )
