import logging
import socket
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Literal

import psutil

from dev_service.libs.classes.process_runner import ProcessRunner
from dev_service.libs.schemas.process import ProcessInfo

logger = logging.getLogger(__name__)

PortInspectorKind = Literal["auto", "lsof", "psutil"]


class PortInspector(ABC):
    """Maps ports to the local processes listening on them."""

    @abstractmethod
    def find_listener(self, port: str) -> str | None:
        """Pid of a process listening on *port*, or ``None``."""

    @abstractmethod
    def describe_process(self, pid: str) -> ProcessInfo | None: ...


@dataclass(kw_only=True)
class LsofPortInspector(PortInspector):
    """BSD/macOS flavour, shelling out to ``lsof`` and ``ps``."""

    runner: ProcessRunner = field(default_factory=ProcessRunner)

    def find_listener(self, port: str) -> str | None:
        # lsof exits non-zero when nothing matches
        result = self.runner.run(["lsof", "-nP", f"-i:{port}"], check=False)

        for row in result.stdout.splitlines()[1:]:
            columns = row.split()
            if len(columns) < 9:
                continue
            if _is_listening(columns, port):
                return columns[1]
        return None

    def describe_process(self, pid: str) -> ProcessInfo | None:
        result = self.runner.run(
            ["ps", "-p", pid, "-ww", "-o", "pid,ppid,uid,gid,args"], check=False
        )
        if result.returncode != 0:
            return None

        for row in result.stdout.splitlines()[1:]:
            columns = row.split()
            if len(columns) < 5:
                continue
            pid_, ppid, uid, gid, *args = columns
            return ProcessInfo(pid=pid_, ppid=ppid, uid=uid, gid=gid, cmd=" ".join(args))
        return None


def _is_listening(columns: list[str], port: str) -> bool:
    protocol, name = columns[7], columns[8]
    state = " ".join(columns[9:])

    if "(LISTEN)" in state:
        return True
    # bound UDP sockets have no state
    return protocol == "UDP" and "->" not in name and name.endswith(f":{port}")


@dataclass(kw_only=True)
class PsutilPortInspector(PortInspector):
    """Linux flavour, reading the procfs socket and process tables via psutil."""

    def find_listener(self, port: str) -> str | None:
        for conn in psutil.net_connections(kind="inet"):
            if not conn.laddr or str(conn.laddr.port) != port:
                continue

            listening = conn.status == psutil.CONN_LISTEN or (
                conn.type == socket.SOCK_DGRAM and not conn.raddr
            )
            if not listening:
                continue

            if conn.pid is None:
                # owned by another user; the port is taken all the same
                logger.debug("Port %s is held by a process of another user", port)
                return "unknown"
            return str(conn.pid)
        return None

    def describe_process(self, pid: str) -> ProcessInfo | None:
        if not pid.isdigit():
            return None

        try:
            process = psutil.Process(int(pid))
            with process.oneshot():
                return ProcessInfo(
                    pid=str(process.pid),
                    ppid=str(process.ppid()),
                    uid=str(process.uids().real),
                    gid=str(process.gids().real),
                    cmd=" ".join(process.cmdline()) or process.name(),
                )
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return None


def get_port_inspector(
    kind: PortInspectorKind = "auto",
    *,
    runner: ProcessRunner | None = None,
) -> PortInspector:
    match kind:
        case "lsof":
            return LsofPortInspector(runner=runner or ProcessRunner())
        case "psutil":
            return PsutilPortInspector()
        case "auto":
            if sys.platform.startswith("linux"):
                return PsutilPortInspector()
            return LsofPortInspector(runner=runner or ProcessRunner())
