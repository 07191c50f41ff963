from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class ProcessInfo:
    pid: str
    ppid: str
    uid: str
    gid: str
    cmd: str


@dataclass(frozen=True, kw_only=True)
class PortConflict:
    port: str
    pid: str
    cmd: str | None = None

    def describe(self) -> str:
        description = f"port {self.port} is used by process with pid {self.pid}"
        if self.cmd:
            description += f" ({self.cmd})"
        return description
