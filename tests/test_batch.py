from __future__ import annotations

from pathlib import Path

import pytest

from image_pipeline import ConvertJob, FileAccessError, Option, Toolchain, UnknownImageFormat, convert_many
from image_pipeline.probe import IDENTIFY_FORMAT

from .conftest import FakeRunner, fail, identify_report


def _identify_by_name(argv: list[str]):
    if argv[-1].endswith("broken.jpg"):
        return fail(1, "identify: improper image header")
    return identify_report(400, 200, "JPEG")


def test_convert_many_reports_each_job_in_order(toolchain: Toolchain, image_file, tmp_path: Path) -> None:
    a = image_file("a.jpg")
    broken = image_file("broken.jpg")
    c = image_file("c.jpg")
    runner = FakeRunner({"identify": _identify_by_name})
    jobs = [
        ConvertJob(a, tmp_path / "a-out.jpg", Option(width=200)),
        ConvertJob(broken, tmp_path / "broken-out.jpg", Option(width=200)),
        ConvertJob(c, tmp_path / "c-out.png", Option(quality=70)),
    ]

    outcomes = convert_many(toolchain, jobs, max_workers=3, runner=runner)

    assert [o.status for o in outcomes] == ["ok", "error", "ok"]
    assert [o.input_path for o in outcomes] == [str(a), str(broken), str(c)]
    assert isinstance(outcomes[1].error, UnknownImageFormat)
    assert outcomes[0].result is not None and outcomes[0].result.stages == ("convert",)
    assert outcomes[2].result is not None and outcomes[2].result.stages == ("convert", "pngquant")

    converts = sorted(c[1:] for c in runner.calls_for("convert"))
    assert ["-resize", "200x100!", str(a), str(tmp_path / "a-out.jpg")] in converts


def test_convert_many_as_json(toolchain: Toolchain, image_file, tmp_path: Path) -> None:
    src = image_file("broken.jpg")
    runner = FakeRunner({"identify": _identify_by_name})

    (outcome,) = convert_many(toolchain, [ConvertJob(src, tmp_path / "x.jpg")], runner=runner)

    payload = outcome.as_json()
    assert payload["status"] == "error"
    assert payload["stages"] == []
    assert "unknown image format" in payload["error"]


def test_convert_many_rejects_output_collisions(toolchain: Toolchain, image_file, tmp_path: Path) -> None:
    a = image_file("a.jpg")
    b = image_file("b.jpg")
    (tmp_path / "sub").mkdir()
    runner = FakeRunner()
    jobs = [ConvertJob(a, tmp_path / "out.jpg"), ConvertJob(b, tmp_path / "sub" / ".." / "out.jpg")]

    with pytest.raises(ValueError, match="output collisions detected"):
        convert_many(toolchain, jobs, runner=runner)
    assert runner.calls == []


def test_convert_many_empty_and_invalid_workers(toolchain: Toolchain) -> None:
    assert convert_many(toolchain, [], runner=FakeRunner()) == []
    with pytest.raises(ValueError, match="max_workers"):
        convert_many(toolchain, [], max_workers=0)


def test_convert_many_bad_path_does_not_stop_other_jobs(toolchain: Toolchain, image_file, tmp_path: Path) -> None:
    good = image_file("good.jpg")
    runner = FakeRunner({"identify": _identify_by_name})
    jobs = [
        ConvertJob(str(tmp_path / "bad\x00name.jpg"), tmp_path / "bad-out.jpg", Option(width=200)),
        ConvertJob(good, tmp_path / "good-out.jpg", Option(width=200)),
    ]

    outcomes = convert_many(toolchain, jobs, max_workers=2, runner=runner)

    assert [o.status for o in outcomes] == ["error", "ok"]
    assert isinstance(outcomes[0].error, FileAccessError)
    assert runner.calls_for("identify") == [
        ["identify", "-ping", "-format", IDENTIFY_FORMAT, str(good)],
    ]


def test_convert_many_rejects_output_onto_another_input(toolchain: Toolchain, image_file, tmp_path: Path) -> None:
    a = image_file("a.jpg")
    b = image_file("b.jpg")
    runner = FakeRunner()
    jobs = [ConvertJob(a, tmp_path / "a-out.jpg"), ConvertJob(b, a)]

    with pytest.raises(ValueError, match="overwrites the input of another job"):
        convert_many(toolchain, jobs, runner=runner)
    assert runner.calls == []


def test_convert_many_allows_in_place_jobs(toolchain: Toolchain, image_file) -> None:
    a = image_file("a.jpg")
    b = image_file("b.jpg")
    runner = FakeRunner({"identify": _identify_by_name})

    outcomes = convert_many(toolchain, [ConvertJob(a, a, Option(quality=80)), ConvertJob(b, b)], runner=runner)

    assert [o.status for o in outcomes] == ["ok", "ok"]
