from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from typing import Protocol, Sequence

from .errors import Aborted, ProcessLaunchError


@dataclass(frozen=True)
class ProcessResult:
    exit_code: int
    output: bytes
    # OSError, or ValueError for argv the OS cannot take (embedded NUL).
    launch_error: OSError | ValueError | None = None

    @property
    def ok(self) -> bool:
        return self.launch_error is None and self.exit_code == 0

    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace")

    def raise_for_launch(self, argv: Sequence[str]) -> None:
        if self.launch_error is not None:
            raise ProcessLaunchError(list(argv), self.launch_error) from self.launch_error


class ProcessRunner(Protocol):
    def run(self, argv: Sequence[str]) -> ProcessResult: ...


class SubprocessRunner:
    """Runs a collaborator and captures stdout and stderr as one stream."""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    def run(self, argv: Sequence[str]) -> ProcessResult:
        cmd = list(argv)
        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise Aborted(cmd, exc.timeout) from exc
        except (OSError, ValueError) as exc:
            return ProcessResult(exit_code=1, output=b"", launch_error=exc)
        return ProcessResult(exit_code=proc.returncode, output=proc.stdout or b"")


def command_str(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)
