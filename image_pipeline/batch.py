from __future__ import annotations

import concurrent.futures as cf
import dataclasses
import os
from pathlib import Path
from typing import Any, Iterable, Literal

from .errors import ImagePipelineError
from .log import get_logger
from .probe import PathLike
from .runner import ProcessRunner, SubprocessRunner
from .toolchain import Toolchain
from .transform import ConvertResult, Option, convert, resolve_path

logger = get_logger(__name__)

DEFAULT_WORKERS = 4


@dataclasses.dataclass(frozen=True)
class ConvertJob:
    input_path: PathLike
    output_path: PathLike
    option: Option = dataclasses.field(default_factory=Option)


@dataclasses.dataclass(frozen=True)
class BatchOutcome:
    input_path: str
    output_path: str
    status: Literal["ok", "error"]
    result: ConvertResult | None = None
    error: ImagePipelineError | None = None

    def as_json(self) -> dict[str, Any]:
        return {
            "input_path": self.input_path,
            "output_path": self.output_path,
            "status": self.status,
            "stages": list(self.result.stages) if self.result else [],
            "error": str(self.error) if self.error else None,
        }


def check_collisions(jobs: list[ConvertJob]) -> None:
    """Every output must be unique and must not be another job's input."""
    inputs: dict[Path, str] = {resolve_path(job.input_path): os.fspath(job.input_path) for job in jobs}
    seen: dict[Path, str] = {}
    collisions: list[str] = []
    for job in jobs:
        out = resolve_path(job.output_path)
        src = os.fspath(job.input_path)
        if out in seen:
            collisions.append(f"{seen[out]} and {src} -> {out}")
        else:
            seen[out] = src
        other = inputs.get(out)
        if other is not None and resolve_path(src) != out:
            collisions.append(f"{src} -> {out} overwrites the input of another job ({other})")
    if collisions:
        raise ValueError("output collisions detected: " + "; ".join(collisions))


def _run_job(toolchain: Toolchain, job: ConvertJob, runner: ProcessRunner) -> BatchOutcome:
    src = os.fspath(job.input_path)
    dst = os.fspath(job.output_path)
    try:
        result = convert(toolchain, src, dst, job.option, runner=runner)
    except ImagePipelineError as exc:
        return BatchOutcome(input_path=src, output_path=dst, status="error", error=exc)
    return BatchOutcome(input_path=src, output_path=dst, status="ok", result=result)


def convert_many(
    toolchain: Toolchain,
    jobs: Iterable[ConvertJob],
    *,
    max_workers: int = DEFAULT_WORKERS,
    runner: ProcessRunner | None = None,
) -> list[BatchOutcome]:
    """Run independent conversions on a thread pool.

    Outcomes come back in job order. A failed job is reported, not raised,
    so the remaining jobs still run.
    """
    if max_workers < 1:
        raise ValueError("max_workers must be >= 1")
    job_list = list(jobs)
    if not job_list:
        return []
    check_collisions(job_list)
    runner = runner or SubprocessRunner()

    with cf.ThreadPoolExecutor(max_workers=max_workers) as ex:
        futures = [ex.submit(_run_job, toolchain, job, runner) for job in job_list]
        outcomes = [fut.result() for fut in futures]

    failed = sum(1 for o in outcomes if o.status == "error")
    if failed and toolchain.show_errors:
        for o in outcomes:
            if o.error is not None:
                logger.error("%s -> %s: %s", o.input_path, o.output_path, o.error)
    if toolchain.debug:
        logger.debug("batch finished: %d ok, %d failed", len(outcomes) - failed, failed)
    return outcomes
