from __future__ import annotations

from .batch import BatchOutcome, ConvertJob, convert_many
from .errors import (
    Aborted,
    CollaboratorUnavailable,
    ConversionFailed,
    DegenerateSourceDimensions,
    FileAccessError,
    ImagePipelineError,
    MalformedMetadataError,
    PngCompressionFailed,
    ProcessLaunchError,
    StageFailed,
    UnknownImageFormat,
)
from .probe import BMP, GIF, JPEG, PNG, ImageInfo, inspect_image, parse_identify_report
from .resolution import plan_resolution
from .runner import ProcessResult, ProcessRunner, SubprocessRunner
from .toolchain import Config, Toolchain, initialize
from .transform import ConvertResult, Option, Stage, TransformPlan, build_plan, convert

__version__ = "1.0.0"

__all__ = [
    "Aborted",
    "BMP",
    "BatchOutcome",
    "CollaboratorUnavailable",
    "Config",
    "ConversionFailed",
    "ConvertJob",
    "ConvertResult",
    "DegenerateSourceDimensions",
    "FileAccessError",
    "GIF",
    "ImageInfo",
    "ImagePipelineError",
    "JPEG",
    "MalformedMetadataError",
    "Option",
    "PNG",
    "PngCompressionFailed",
    "ProcessLaunchError",
    "ProcessResult",
    "ProcessRunner",
    "Stage",
    "StageFailed",
    "SubprocessRunner",
    "Toolchain",
    "TransformPlan",
    "UnknownImageFormat",
    "build_plan",
    "convert",
    "convert_many",
    "initialize",
    "inspect_image",
    "parse_identify_report",
    "plan_resolution",
]
