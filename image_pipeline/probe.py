from __future__ import annotations

import dataclasses
import json
import os
from pathlib import Path
from typing import Any, Union

from .errors import FileAccessError, MalformedMetadataError
from .log import get_logger
from .runner import ProcessRunner, SubprocessRunner, command_str
from .toolchain import Toolchain

logger = get_logger(__name__)

JPEG = "JPEG"
PNG = "PNG"
GIF = "GIF"
BMP = "BMP"

# One record per frame; the trailing newline keeps multi-frame output line-separated.
IDENTIFY_FORMAT = '{"w":%w,"h":%h,"m":"%m"}\n'

PathLike = Union[str, "os.PathLike[str]"]


@dataclasses.dataclass(frozen=True)
class ImageInfo:
    is_recognized: bool
    width: int = 0
    height: int = 0
    size_bytes: int = 0
    path: str = ""
    format: str = ""
    # identify failure text when the file was not recognized.
    error: str = ""

    def as_json(self) -> dict[str, Any]:
        return {
            "isimg": self.is_recognized,
            "w": self.width,
            "h": self.height,
            "size": self.size_bytes,
            "path": self.path,
            "m": self.format,
        }


def parse_identify_report(raw: str) -> tuple[int, int, str]:
    """
    Decode the identify report produced with IDENTIFY_FORMAT.

    Grammar: the first line starting with ``{`` is a JSON object with keys
    ``w`` (int >= 0), ``h`` (int >= 0) and ``m`` (non-empty string).
    Other lines (warnings on the shared stream, extra frames) are ignored.
    """
    lines = [line.strip() for line in raw.splitlines() if line.strip().startswith("{")]
    if not lines:
        raise MalformedMetadataError(raw, "no record found")
    first = lines[0]
    try:
        record = json.loads(first)
    except json.JSONDecodeError as exc:
        raise MalformedMetadataError(raw, f"not JSON: {exc.msg}") from exc
    if not isinstance(record, dict):
        raise MalformedMetadataError(raw, "expected an object")

    dims: list[int] = []
    for key in ("w", "h"):
        value = record.get(key)
        # bool is an int subclass; reject it explicitly.
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise MalformedMetadataError(raw, f"{key!r} must be a non-negative integer")
        dims.append(value)

    fmt = record.get("m")
    if not isinstance(fmt, str) or not fmt.strip():
        raise MalformedMetadataError(raw, "'m' must be a non-empty string")
    return (dims[0], dims[1], fmt.strip().upper())


def inspect_image(
    toolchain: Toolchain,
    path: PathLike,
    runner: ProcessRunner | None = None,
) -> ImageInfo:
    """Measure an image with identify.

    A file identify cannot read yields ``is_recognized=False``; only the
    path, size and identify failure text are filled in that case.
    """
    runner = runner or SubprocessRunner()
    file = os.fspath(path)
    try:
        size = Path(file).stat().st_size
    except (OSError, ValueError) as exc:
        # ValueError covers paths the OS rejects outright, e.g. embedded NUL.
        if toolchain.show_errors:
            logger.error("get info error: %s", exc)
        reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
        raise FileAccessError(file, reason) from exc

    argv = [*toolchain.identify, "-ping", "-format", IDENTIFY_FORMAT, file]
    if toolchain.debug:
        logger.debug("run: %s", command_str(argv))
    result = runner.run(argv)
    result.raise_for_launch(argv)

    if result.exit_code != 0:
        detail = f"identify exited {result.exit_code}: {result.text().strip() or 'no output'}"
        if toolchain.show_errors:
            logger.error("get info error for %s: %s", file, detail)
        return ImageInfo(is_recognized=False, size_bytes=size, path=file, error=detail)

    raw = result.text()
    if toolchain.debug:
        logger.debug("get info output: %s", raw.strip())
    try:
        width, height, fmt = parse_identify_report(raw)
    except MalformedMetadataError as exc:
        if toolchain.show_errors:
            logger.error("get info error: %s", exc)
        raise

    return ImageInfo(
        is_recognized=True,
        width=width,
        height=height,
        size_bytes=size,
        path=file,
        format=fmt,
    )
