from __future__ import annotations


class ImagePipelineError(Exception):
    """Base class for every failure raised by image_pipeline."""


class FileAccessError(ImagePipelineError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"cannot access {path}: {reason}")
        self.path = path
        self.reason = reason


class ProcessLaunchError(ImagePipelineError):
    def __init__(self, argv: list[str], cause: OSError | ValueError):
        super().__init__(f"failed to launch {argv[0] if argv else '<empty>'}: {cause}")
        self.argv = argv
        self.cause = cause


class Aborted(ImagePipelineError):
    def __init__(self, argv: list[str], timeout: float):
        super().__init__(f"{argv[0] if argv else '<empty>'} did not finish within {timeout}s")
        self.argv = argv
        self.timeout = timeout


class CollaboratorUnavailable(ImagePipelineError):
    def __init__(self, tool: str, command: list[str], detail: str):
        super().__init__(f"{tool} unavailable ({' '.join(command)}): {detail}")
        self.tool = tool
        self.command = command
        self.detail = detail


class UnknownImageFormat(ImagePipelineError):
    def __init__(self, path: str, detail: str = ""):
        msg = f"unknown image format: {path}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)
        self.path = path
        self.detail = detail


class MalformedMetadataError(ImagePipelineError):
    def __init__(self, raw: str, reason: str):
        super().__init__(f"malformed identify report ({reason}): {raw!r}")
        self.raw = raw
        self.reason = reason


class DegenerateSourceDimensions(ImagePipelineError):
    def __init__(self, width: int, height: int):
        super().__init__(f"cannot keep aspect ratio of a {width}x{height} source")
        self.width = width
        self.height = height


class StageFailed(ImagePipelineError):
    """A work stage collaborator exited non-zero."""

    def __init__(self, tool: str, exit_code: int, output: str):
        detail = output.strip() or "no output"
        super().__init__(f"{tool} exited with code {exit_code}: {detail}")
        self.tool = tool
        self.exit_code = exit_code
        self.output = output


class ConversionFailed(StageFailed):
    pass


class PngCompressionFailed(StageFailed):
    pass
