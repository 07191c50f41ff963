import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from dev_service.libs.classes.process_runner import ProcessResult, ProcessRunner

WORKING_DIR_LABEL = "com.docker.compose.project.working_dir"

_PORT_LINE_PATTERN = re.compile(r".*:(\d+)\s*$")


@dataclass(kw_only=True)
class DockerClient:
    runner: ProcessRunner = field(default_factory=ProcessRunner)
    docker_command: list[str] = field(default_factory=lambda: ["docker"])
    compose_command: list[str] = field(default_factory=lambda: ["docker", "compose"])

    def docker(self, *args: str, **kwargs) -> ProcessResult:
        return self.runner.run([*self.docker_command, *args], **kwargs)

    def compose(
        self,
        *args: str,
        project_name: str,
        compose_dir: Path,
        files: Sequence[str],
        capture: bool = False,
    ) -> ProcessResult:
        params = ["-p", project_name]
        for file in files:
            params += ["-f", file]

        return self.runner.run(
            [*self.compose_command, *params, *args],
            cwd=compose_dir,
            capture=capture,
        )

    def create_volume(self, name: str) -> None:
        self.docker("volume", "create", f"--name={name}", "--label=keep")

    def running_container_ids(self) -> list[str]:
        result = self.docker("ps", "-q")
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def project_container_ids(
        self, *, project_name: str, compose_dir: Path, files: Sequence[str]
    ) -> list[str]:
        result = self.compose(
            "ps",
            "-q",
            project_name=project_name,
            compose_dir=compose_dir,
            files=files,
            capture=True,
        )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def container_ports(self, container_id: str) -> list[str]:
        """Host ports published by a container, e.g. ``0.0.0.0:27017`` → ``27017``."""
        result = self.docker("port", container_id, fail_on_stderr=True)

        ports: list[str] = []
        for line in result.stdout.splitlines():
            match = _PORT_LINE_PATTERN.match(line)
            if match and match.group(1) not in ports:
                ports.append(match.group(1))
        return ports

    def compose_working_dir(self, container_id: str) -> str | None:
        result = self.docker(
            "inspect",
            "--format",
            f'{{{{ index .Config.Labels "{WORKING_DIR_LABEL}" }}}}',
            container_id,
        )
        working_dir = result.stdout.strip()
        if not working_dir or working_dir == "<no value>":
            return None
        return working_dir
