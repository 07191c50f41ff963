"""
Tests for the port conflict checker and the other-instance detector.
"""

import logging
from itertools import combinations
from pathlib import Path

import pytest
from fakes import FakeDocker, FakePortInspector

from dev_service.libs.errors import (
    ConfigurationError,
    NoServicesInstalledError,
    PortConflictError,
)
from dev_service.libs.functions.check import (
    check_other_services,
    check_used_ports,
    get_required_ports,
    host_port,
)
from dev_service.libs.functions.install import install
from dev_service.libs.functions.options import VolumeFlags
from dev_service.libs.schemas.manifest import Manifest
from dev_service.libs.schemas.paths import ServicePaths


@pytest.fixture
def installed(paths: ServicePaths, docker: FakeDocker) -> ServicePaths:
    install(
        paths=paths,
        manifest=Manifest(name="dev-service-test", services=["mongo:latest", "nginx"]),
        docker=docker,
        flags=VolumeFlags(),
    )
    return paths


def _check(paths, docker, inspector, service=None):
    check_used_ports(
        paths=paths,
        project_name="dev-service-test",
        docker=docker,
        inspector=inspector,
        service=service,
    )


class TestHostPort:
    @pytest.mark.parametrize(
        ("entry", "expected"),
        [
            ("8080:80", "8080"),
            ("27017:27017/tcp", "27017"),
            ("127.0.0.1:5432:5432", "5432"),
            ("[::1]:6379:6379", "6379"),
            ("8000-8010:8000-8010", "8000-8010"),
            ("127.0.0.1::80", None),
            ("80", None),
            (80, None),
            ({"target": 80, "published": 8080}, "8080"),
            ({"target": 80, "published": "8081"}, "8081"),
            ({"target": 80}, None),
        ],
    )
    def test_host_side(self, entry, expected):
        assert host_port(entry) == expected


class TestGetRequiredPorts:
    def test_requires_compose_dir(self, paths: ServicePaths):
        with pytest.raises(NoServicesInstalledError, match="service install"):
            get_required_ports(paths)

    def test_requires_non_empty_compose_dir(self, paths: ServicePaths):
        paths.compose_dir.mkdir(parents=True)

        with pytest.raises(NoServicesInstalledError):
            get_required_ports(paths)

    def test_all_services(self, installed: ServicePaths):
        assert get_required_ports(installed) == ["27017", "80"]

    def test_single_service(self, installed: ServicePaths):
        assert get_required_ports(installed, "nginx") == ["80"]

    def test_unknown_service(self, installed: ServicePaths):
        with pytest.raises(ConfigurationError, match="Service redis is not installed"):
            get_required_ports(installed, "redis")

    def test_deduplicates(self, paths: ServicePaths):
        paths.compose_dir.mkdir(parents=True)
        paths.compose_file("a").write_text(
            "services:\n  a:\n    image: a\n    ports: ['8080:80', '9000:9000']\n"
            "  b:\n    image: b\n    ports: ['8080:81', 3000]\n"
        )

        assert get_required_ports(paths) == ["8080", "9000"]

    @pytest.mark.parametrize(
        "content",
        ["services: [unclosed\n", "services:\n  a:\n    image: a\n    ports: 8080\n"],
    )
    def test_malformed_compose_file(self, paths: ServicePaths, content: str):
        paths.compose_dir.mkdir(parents=True)
        paths.compose_file("a").write_text(content)

        with pytest.raises(ConfigurationError, match="Invalid compose file .*a.yml"):
            get_required_ports(paths)


class TestCheckUsedPorts:
    def test_all_ports_available(self, installed, docker, inspector: FakePortInspector):
        _check(installed, docker, inspector)

        assert sorted(inspector.lookups) == ["27017", "80"]

    def test_reports_blocked_port_only(self, installed, docker, inspector: FakePortInspector):
        inspector.listen("27017", "4242", "/usr/local/bin/mongod --config /etc/mongod.conf")

        with pytest.raises(PortConflictError) as info:
            _check(installed, docker, inspector)

        assert str(info.value) == "\n".join(
            [
                "Required port(s) are already allocated:",
                "- port 27017 is used by process with pid 4242 "
                "(/usr/local/bin/mongod --config /etc/mongod.conf)",
            ]
        )
        assert [c.port for c in info.value.conflicts] == ["27017"]

    def test_command_omitted_when_unknown(self, installed, docker, inspector: FakePortInspector):
        inspector.listen("80", "99")

        with pytest.raises(PortConflictError, match=r"pid 99$"):
            _check(installed, docker, inspector)

    def test_every_conflict_listed(self, installed, docker, inspector: FakePortInspector):
        inspector.listen("27017", "1", "mongod")
        inspector.listen("80", "1", "mongod")

        with pytest.raises(PortConflictError) as info:
            _check(installed, docker, inspector)

        assert str(info.value).splitlines()[1:] == [
            "- port 27017 is used by process with pid 1 (mongod)",
            "- port 80 is used by process with pid 1 (mongod)",
        ]

    def test_own_containers_are_not_conflicts(self, installed, docker, inspector):
        docker.project_containers = {"c0ffee": ["27017"]}
        inspector.listen("27017", "777", "com.docker.backend")

        _check(installed, docker, inspector)

        assert "27017" not in inspector.lookups

    def test_service_filter(self, installed, docker, inspector: FakePortInspector):
        inspector.listen("27017", "4242", "mongod")

        _check(installed, docker, inspector, service="nginx")

        assert inspector.lookups == ["80"]

    def test_disjoint_services_pass_for_every_subset(self, paths: ServicePaths, docker):
        services = ["mongo", "nginx", "redis", "postgres"]

        for size in range(1, len(services) + 1):
            for subset in combinations(services, size):
                install(
                    paths=paths,
                    manifest=Manifest(name="t", services=list(subset)),
                    docker=docker,
                    flags=VolumeFlags(),
                )
                _check(paths, docker, FakePortInspector())


class TestCheckOtherServices:
    def test_warns_about_other_instances(
        self, paths: ServicePaths, docker: FakeDocker, caplog: pytest.LogCaptureFixture
    ):
        docker.running_containers = {
            "a": str(paths.compose_dir),
            "b": "/home/me/other/services/.compose",
            "c": "/home/me/other/services/.compose",
            "d": "/home/me/unrelated/compose",
            "e": None,
        }

        with caplog.at_level(logging.WARNING):
            folders = check_other_services(paths=paths, docker=docker)

        assert folders == [Path("/home/me/other")]
        assert "dev-service is already running" in caplog.text
        assert "  /home/me/other" in caplog.text

    def test_silent_without_other_instances(
        self, paths: ServicePaths, docker: FakeDocker, caplog: pytest.LogCaptureFixture
    ):
        docker.running_containers = {"a": str(paths.compose_dir)}

        with caplog.at_level(logging.WARNING):
            assert check_other_services(paths=paths, docker=docker) == []

        assert caplog.text == ""

    def test_never_fails(self, paths: ServicePaths, docker: FakeDocker):
        docker.unavailable = True

        assert check_other_services(paths=paths, docker=docker) == []
