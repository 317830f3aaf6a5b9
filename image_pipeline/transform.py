"""
Transformation planning and execution

A conversion is at most two collaborator stages, run in order:

1. convert: forced resize and/or quality re-encode, or a plain container
   change when the extensions differ.
2. pngquant: lossy palette compression, only for PNG output with a quality.

build_plan() decides the stages from the measured input; convert() runs them
and stops at the first non-zero exit.
"""

from __future__ import annotations

import dataclasses
import os
import shutil
from pathlib import Path
from typing import Literal

from .errors import ConversionFailed, FileAccessError, PngCompressionFailed, StageFailed, UnknownImageFormat
from .log import get_logger
from .probe import PNG, ImageInfo, PathLike, inspect_image
from .resolution import plan_resolution, resize_geometry
from .runner import ProcessRunner, SubprocessRunner, command_str
from .toolchain import Toolchain

logger = get_logger(__name__)

ToolName = Literal["convert", "pngquant"]

MAX_QUALITY = 100


@dataclasses.dataclass(frozen=True)
class Option:
    width: int = 0
    height: int = 0
    quality: int = 0
    png_quality_min: int = 0

    def __post_init__(self) -> None:
        for name in ("width", "height", "quality", "png_quality_min"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer (got {value!r})")
            if value < 0:
                raise ValueError(f"{name} must be >= 0 (got {value})")
        if self.quality > MAX_QUALITY:
            raise ValueError(f"quality must be 0..{MAX_QUALITY} (got {self.quality})")

    @property
    def wants_resize(self) -> bool:
        return self.width > 0 or self.height > 0

    def png_quality_range(self) -> tuple[int, int]:
        return (min(self.png_quality_min, self.quality), self.quality)


@dataclasses.dataclass(frozen=True)
class Stage:
    tool: ToolName
    args: tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class TransformPlan:
    output_format: str
    stages: tuple[Stage, ...]
    # Set when no stage writes the output and the input must be copied there.
    copy_from: str | None = None


@dataclasses.dataclass(frozen=True)
class ConvertResult:
    success: bool
    input_path: str
    output_path: str
    stages: tuple[str, ...]
    copied: bool = False


def extension_of(path: PathLike) -> str:
    """Everything from the last dot of the base name, so ".png" keeps its extension."""
    name = os.path.basename(os.fspath(path))
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def output_format_of(path: PathLike) -> str:
    return extension_of(path).replace(".", "").upper()


def build_plan(info: ImageInfo, output_path: PathLike, option: Option) -> TransformPlan:
    if not info.is_recognized:
        raise UnknownImageFormat(info.path, info.error)

    src = info.path
    dst = os.fspath(output_path)
    out_format = output_format_of(dst)

    args: list[str] = []
    if option.wants_resize:
        w, h = plan_resolution(info.width, info.height, option.width, option.height)
        args += ["-resize", resize_geometry(w, h)]
    if option.quality > 0 and out_format != PNG:
        args += ["-quality", str(option.quality)]

    stages: list[Stage] = []
    current = src
    # Same extension and nothing to change means the input already is the intermediate.
    if args or extension_of(src) != extension_of(dst):
        stages.append(Stage("convert", (*args, src, dst)))
        current = dst

    if option.quality > 0 and out_format == PNG:
        qmin, qmax = option.png_quality_range()
        stages.append(
            Stage(
                "pngquant",
                ("--force", "--quiet", "--ordered", "--speed=1", f"--quality={qmin}-{qmax}", current, "--output", dst),
            )
        )
        current = dst

    copy_from = None
    if current != dst and not _same_file(current, dst):
        copy_from = current
    return TransformPlan(output_format=out_format, stages=tuple(stages), copy_from=copy_from)


def resolve_path(path: PathLike) -> Path:
    try:
        return Path(os.fspath(path)).resolve()
    except (OSError, ValueError):
        return Path(os.path.abspath(os.fspath(path)))


def _same_file(a: str, b: str) -> bool:
    return resolve_path(a) == resolve_path(b)


_FAILURES: dict[str, type[StageFailed]] = {
    "convert": ConversionFailed,
    "pngquant": PngCompressionFailed,
}


def run_stage(toolchain: Toolchain, stage: Stage, runner: ProcessRunner) -> None:
    command = toolchain.convert if stage.tool == "convert" else toolchain.pngquant
    argv = [*command, *stage.args]
    if toolchain.debug:
        logger.debug("run: %s", command_str(argv))
    result = runner.run(argv)
    result.raise_for_launch(argv)

    output = result.text()
    if toolchain.debug:
        logger.debug("%s exit with code (%d) output: %s", stage.tool, result.exit_code, output.strip())
    if result.exit_code != 0:
        if toolchain.show_errors:
            logger.error("%s failed with code %d: %s", stage.tool, result.exit_code, output.strip())
        raise _FAILURES[stage.tool](stage.tool, result.exit_code, output)


def convert(
    toolchain: Toolchain,
    input_path: PathLike,
    output_path: PathLike,
    option: Option | None = None,
    runner: ProcessRunner | None = None,
) -> ConvertResult:
    """Transform input_path into output_path.

    Raises on the first failing step; the output file is only meaningful
    when a result is returned.
    """
    option = option or Option()
    runner = runner or SubprocessRunner()
    src = os.fspath(input_path)
    dst = os.fspath(output_path)

    info = inspect_image(toolchain, src, runner=runner)
    if not info.is_recognized:
        if toolchain.show_errors:
            logger.error("unknown image format: %s", src)
        raise UnknownImageFormat(src, info.error)

    plan = build_plan(info, dst, option)
    for stage in plan.stages:
        run_stage(toolchain, stage, runner)

    copied = False
    if plan.copy_from is not None:
        try:
            shutil.copyfile(plan.copy_from, dst)
        except (OSError, ValueError) as exc:
            reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
            raise FileAccessError(dst, reason) from exc
        copied = True
        if toolchain.debug:
            logger.debug("no stage needed, copied %s -> %s", plan.copy_from, dst)

    return ConvertResult(
        success=True,
        input_path=src,
        output_path=dst,
        stages=tuple(stage.tool for stage in plan.stages),
        copied=copied,
    )
