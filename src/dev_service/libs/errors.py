from collections.abc import Sequence

from dev_service.libs.schemas.process import PortConflict


class DevServiceError(Exception):
    code: int = 1

    def __init__(self, message: str, *, code: int | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class ConfigurationError(DevServiceError):
    pass


class NoServicesInstalledError(DevServiceError):
    def __init__(self):
        super().__init__("No services found. Try running `service install`")


class PortConflictError(DevServiceError):
    def __init__(self, conflicts: Sequence[PortConflict]):
        self.conflicts = list(conflicts)
        super().__init__(
            "\n".join(
                [
                    "Required port(s) are already allocated:",
                    *(f"- {conflict.describe()}" for conflict in self.conflicts),
                ]
            )
        )


class ProcessError(DevServiceError):
    def __init__(self, command: Sequence[str], code: int, stderr: str = ""):
        self.command = list(command)
        self.stderr = stderr.strip()

        message = f'Running "{" ".join(self.command)}" returns exit code {code}'
        if self.stderr:
            message = f"{message}: {self.stderr}"

        super().__init__(message, code=code)
