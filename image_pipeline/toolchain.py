from __future__ import annotations

import dataclasses
import os
import shutil
from typing import Mapping, Sequence, Union

from .errors import CollaboratorUnavailable
from .log import configure_logging, get_logger
from .runner import ProcessRunner, SubprocessRunner, command_str

logger = get_logger(__name__)

DEFAULT_IDENTIFY = "identify"
DEFAULT_CONVERT = "convert"
DEFAULT_PNGQUANT = "pngquant"

ENV_PREFIX = "IMAGE_PIPELINE_"
TRUTHY = {"1", "true", "yes", "on"}

CommandSpec = Union[str, Sequence[str], None]


def _env_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in TRUTHY


def _as_command(spec: CommandSpec) -> list[str] | None:
    if spec is None:
        return None
    if isinstance(spec, str):
        return [spec] if spec.strip() else None
    cmd = [str(part) for part in spec]
    return cmd or None


@dataclasses.dataclass(frozen=True)
class Config:
    """Startup overrides. Empty paths keep the defaults."""

    identify_path: CommandSpec = None
    convert_path: CommandSpec = None
    pngquant_path: CommandSpec = None
    debug: bool = False
    show_errors: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Config":
        env = os.environ if environ is None else environ
        return cls(
            identify_path=env.get(f"{ENV_PREFIX}IDENTIFY") or None,
            convert_path=env.get(f"{ENV_PREFIX}CONVERT") or None,
            pngquant_path=env.get(f"{ENV_PREFIX}PNGQUANT") or None,
            debug=_env_flag(env.get(f"{ENV_PREFIX}DEBUG")),
            show_errors=_env_flag(env.get(f"{ENV_PREFIX}SHOW_ERRORS")),
        )


@dataclasses.dataclass(frozen=True)
class Toolchain:
    identify: tuple[str, ...]
    convert: tuple[str, ...]
    pngquant: tuple[str, ...]
    debug: bool = False
    show_errors: bool = False

    def commands(self) -> dict[str, tuple[str, ...]]:
        return {"identify": self.identify, "convert": self.convert, "pngquant": self.pngquant}


def resolve_commands(config: Config) -> tuple[list[str], list[str], list[str]]:
    identify = _as_command(config.identify_path)
    convert = _as_command(config.convert_path)
    pngquant = _as_command(config.pngquant_path) or [DEFAULT_PNGQUANT]

    # ImageMagick 7 may ship only `magick`.
    if convert is None and identify is None and not shutil.which(DEFAULT_CONVERT):
        magick = shutil.which("magick")
        if magick:
            return [magick, "identify"], [magick], pngquant

    return identify or [DEFAULT_IDENTIFY], convert or [DEFAULT_CONVERT], pngquant


def probe(tool: str, command: Sequence[str], runner: ProcessRunner) -> None:
    argv = [*command, "--version"]
    result = runner.run(argv)
    if result.launch_error is not None:
        raise CollaboratorUnavailable(tool, list(command), str(result.launch_error)) from result.launch_error
    if result.exit_code != 0:
        detail = result.text().strip() or f"exit code {result.exit_code}"
        raise CollaboratorUnavailable(tool, list(command), detail)


def initialize(config: Config | None = None, runner: ProcessRunner | None = None) -> Toolchain:
    """Resolve the collaborator commands and make sure each one answers.

    Returns the immutable toolchain every other call takes. Raises
    CollaboratorUnavailable on the first collaborator that cannot be run.
    """
    config = config or Config()
    runner = runner or SubprocessRunner()

    identify, convert, pngquant = resolve_commands(config)
    for tool, command in (("identify", identify), ("convert", convert), ("pngquant", pngquant)):
        probe(tool, command, runner)

    toolchain = Toolchain(
        identify=tuple(identify),
        convert=tuple(convert),
        pngquant=tuple(pngquant),
        debug=config.debug,
        show_errors=config.show_errors,
    )
    configure_logging(debug=toolchain.debug, show_errors=toolchain.show_errors)
    if toolchain.debug:
        for tool, command in toolchain.commands().items():
            logger.debug("%s set to: %s", tool, command_str(command))
        logger.debug("show_errors set to: %s", toolchain.show_errors)
    return toolchain
