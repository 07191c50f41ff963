import logging
import subprocess  # noqa: S404
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from dev_service.libs.errors import ProcessError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ProcessResult:
    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""


class ProcessRunner:
    """Runs external commands, raising ``ProcessError`` on failure."""

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = True,
        check: bool = True,
        fail_on_stderr: bool = False,
    ) -> ProcessResult:
        """Run *args* and wait for it to exit.

        With ``capture=False`` the child inherits the terminal, which is what
        interactive compose commands (``up``, ``logs -f``) need.
        """
        args = list(args)
        logger.debug("Running %s (cwd=%s)", " ".join(args), cwd)

        try:
            completed = subprocess.run(  # noqa: S603
                args,
                cwd=cwd,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise ProcessError(args, 127, f"{args[0]}: command not found") from e

        result = ProcessResult(
            args=args,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

        if check and result.returncode != 0:
            raise ProcessError(args, result.returncode, result.stderr)
        if fail_on_stderr and result.stderr.strip():
            raise ProcessError(args, result.returncode or 1, result.stderr)

        return result
