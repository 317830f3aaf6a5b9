from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Callable, Sequence

import pytest

from image_pipeline import ProcessResult, Toolchain
from image_pipeline.log import ROOT_LOGGER_NAME

Handler = Callable[[list[str]], ProcessResult]


def ok(output: bytes | str = b"") -> ProcessResult:
    if isinstance(output, str):
        output = output.encode("utf-8")
    return ProcessResult(exit_code=0, output=output)


def fail(exit_code: int = 1, output: bytes | str = b"") -> ProcessResult:
    if isinstance(output, str):
        output = output.encode("utf-8")
    return ProcessResult(exit_code=exit_code, output=output)


def not_found(argv: Sequence[str]) -> ProcessResult:
    err = FileNotFoundError(2, "No such file or directory", argv[0])
    return ProcessResult(exit_code=1, output=b"", launch_error=err)


def identify_report(width: int, height: int, fmt: str) -> ProcessResult:
    return ok(json.dumps({"w": width, "h": height, "m": fmt}, separators=(",", ":")) + "\n")


class FakeRunner:
    """Records every argv and answers per tool (argv[0] basename)."""

    def __init__(self, handlers: dict[str, Handler | ProcessResult] | None = None):
        self.handlers: dict[str, Handler | ProcessResult] = dict(handlers or {})
        self.calls: list[list[str]] = []
        self._lock = threading.Lock()

    def run(self, argv: Sequence[str]) -> ProcessResult:
        cmd = list(argv)
        with self._lock:
            self.calls.append(cmd)
        handler = self.handlers.get(Path(cmd[0]).name, ok())
        if isinstance(handler, ProcessResult):
            return handler
        return handler(cmd)

    def tools(self) -> list[str]:
        return [Path(c[0]).name for c in self.calls]

    def calls_for(self, tool: str) -> list[list[str]]:
        return [c for c in self.calls if Path(c[0]).name == tool]


@pytest.fixture
def toolchain() -> Toolchain:
    return Toolchain(identify=("identify",), convert=("convert",), pngquant=("pngquant",))


@pytest.fixture
def debug_toolchain() -> Toolchain:
    return Toolchain(
        identify=("identify",),
        convert=("convert",),
        pngquant=("pngquant",),
        debug=True,
        show_errors=True,
    )


@pytest.fixture
def image_file(tmp_path: Path) -> Callable[[str], Path]:
    def make(name: str, content: bytes = b"not-really-pixels") -> Path:
        path = tmp_path / name
        path.write_bytes(content)
        return path

    return make


@pytest.fixture(autouse=True)
def _restore_package_logger():
    root = logging.getLogger(ROOT_LOGGER_NAME)
    level = root.level
    handlers = list(root.handlers)
    yield
    root.setLevel(level)
    root.handlers[:] = handlers
