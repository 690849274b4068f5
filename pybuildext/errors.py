"""Error types surfaced by adapter dispatch, builds and installation."""

from collections.abc import Iterable, Sequence
from enum import StrEnum


class ErrorCode(StrEnum):
    NO_ADAPTER = "E_NO_ADAPTER"
    BUILD = "E_BUILD"
    LOCATE = "E_LOCATE"
    INSTALL = "E_INSTALL"
    CANCELLED = "E_CANCELLED"
    MISSING_TOOL = "E_MISSING_TOOL"
    COMMAND = "E_COMMAND"


class ExtensionBuildError(Exception):
    code: ErrorCode

    def __init__(self, message: str, *, code: ErrorCode) -> None:
        super().__init__(message)
        self.code = code


class NoAdapterFound(ExtensionBuildError):
    def __init__(self, filename: str) -> None:
        super().__init__(
            f"no adapter found for extension file: {filename}",
            code=ErrorCode.NO_ADAPTER,
        )
        self.filename = filename


class CommandFailed(ExtensionBuildError):
    """A command ran but exited with a non-zero status."""

    def __init__(self, cmd: Sequence[str], returncode: int, lines: Sequence[str]):
        super().__init__(
            f"'{' '.join(cmd)}' exited with status {returncode}",
            code=ErrorCode.COMMAND,
        )
        self.cmd = tuple(cmd)
        self.returncode = returncode
        self.lines = tuple(lines)


def format_build_error(
    adapter: str, output: Sequence[str], cause: BaseException | str | None
) -> str:
    prefix = (
        f"{adapter} build failed: {cause}"
        if cause is not None
        else f"{adapter} build failed"
    )
    if text := "\n".join(output):
        return f"{prefix}\n\nBuild output:\n{text}"
    return prefix


class BuildFailed(ExtensionBuildError):
    """A configure or compile phase failed.

    The message always starts with ``"<adapter> build failed"`` so callers
    can match on the adapter name.
    """

    def __init__(
        self,
        adapter: str,
        output: Sequence[str] = (),
        cause: BaseException | str | None = None,
    ) -> None:
        super().__init__(
            format_build_error(adapter, output, cause), code=ErrorCode.BUILD
        )
        self.adapter = adapter
        self.output = tuple(output)
        self.cause = cause


class LocateError(ExtensionBuildError):
    def __init__(self, directory: str, cause: BaseException):
        super().__init__(
            f"failed to locate build outputs in {directory}: {cause}",
            code=ErrorCode.LOCATE,
        )
        self.cause = cause


class InstallError(ExtensionBuildError):
    def __init__(self, source: str, destination: str, cause: BaseException):
        super().__init__(
            f"failed to install {source} to {destination}: {cause}",
            code=ErrorCode.INSTALL,
        )
        self.cause = cause


class BuildCancelled(ExtensionBuildError):
    def __init__(self, descriptor: str):
        super().__init__(
            f"build cancelled before '{descriptor}'", code=ErrorCode.CANCELLED
        )
        self.descriptor = descriptor


class MissingToolError(ExtensionBuildError):
    def __init__(self, missing: Iterable[str], message: str | None = None):
        self.missing = tuple(missing)
        if message is None and len(self.missing) == 1:
            message = f"{self.missing[0]} not found in PATH"
        elif message is None:
            message = f"missing required tools: {', '.join(self.missing)}"
        super().__init__(message, code=ErrorCode.MISSING_TOOL)
