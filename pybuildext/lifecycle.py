"""The configure -> compile -> locate contract every adapter follows.

Each phase receives the accumulator produced by the previous one and returns
`IOResult[BuildResult, BuildResult]`. Phases are chained with `bind`, so the
first failing phase short-circuits the rest and its partial result, log
included, is what the caller gets back.
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePath

from returns.io import IOFailure, IOResultE, IOSuccess, impure_safe
from returns.pipeline import flow
from returns.pointfree import bind
from returns.unsafe import unsafe_perform_io

from pybuildext.commands import CommandOutput, Runner, environment
from pybuildext.config import BuildConfig
from pybuildext.errors import BuildFailed, CommandFailed, LocateError
from pybuildext.result import BuildResult, PhaseResult
from pybuildext.types import Env

NATIVE_PATTERNS = ("*.so", "*.bundle", "*.dll")

Phase = Callable[[BuildConfig, Path, BuildResult], PhaseResult]
Locate = Callable[[Path], IOResultE[tuple[str, ...]]]


@dataclass(frozen=True)
class BuildSteps:
    configure: Phase
    compile: Phase
    locate: Locate


def extension_dir(config: BuildConfig, descriptor: str | PurePath) -> Path:
    return Path(config.package_dir, descriptor).parent


def no_configure(message: str) -> Phase:
    def _configure(config: BuildConfig, _: Path, result: BuildResult) -> PhaseResult:
        return (result.log(message) if config.verbose else result).proceed()

    return _configure


def _trace(config: BuildConfig, cmd: Sequence[str], cwd: Path) -> tuple[str, ...]:
    if not config.verbose:
        return ()
    return (f"Running: {' '.join(cmd)}", f"Working directory: {cwd}")


def run_step(
    adapter: str,
    runner: Runner,
    config: BuildConfig,
    cmd: Sequence[str],
    cwd: Path,
    result: BuildResult,
    env: Env | None = None,
) -> PhaseResult:
    """Runs one external command and records its output.

    `config.env` is applied over the process environment and `env` over that.
    A failing command halts the build with a `BuildFailed` naming `adapter`.
    """

    def _on_success(out: CommandOutput) -> BuildResult:
        return result.log(*out.lines, *_trace(config, cmd, cwd))

    def _on_failure(error: Exception) -> PhaseResult:
        lines = error.lines if isinstance(error, CommandFailed) else ()
        logged = result.log(*lines, *_trace(config, cmd, cwd))
        return logged.halt(BuildFailed(adapter, logged.output, error))

    return (
        runner(tuple(cmd), cwd, environment(config.env, env))
        .map(_on_success)
        .lash(_on_failure)
    )


def run_best_effort(
    runner: Runner,
    config: BuildConfig,
    cmd: Sequence[str],
    cwd: Path,
    result: BuildResult,
) -> BuildResult:
    """Runs a cleanup command, keeping its output whatever the exit status."""

    def _lines(error: Exception) -> IOResultE[tuple[str, ...]]:
        return IOSuccess(error.lines if isinstance(error, CommandFailed) else ())

    outcome = (
        runner(tuple(cmd), cwd, environment(config.env))
        .map(lambda out: out.lines)
        .lash(_lines)
    )
    return result.log(*unsafe_perform_io(outcome.unwrap()))


@impure_safe
def _glob(directory: Path, pattern: str) -> tuple[Path, ...]:
    return tuple(sorted(directory.glob(pattern)))


def find_artifacts(
    directory: Path,
    patterns: Iterable[str] = NATIVE_PATTERNS,
    search_dirs: Iterable[str] = (".",),
) -> IOResultE[tuple[str, ...]]:
    """Globs `patterns` under each existing search dir.

    Returns the matches relative to `directory`, as posix strings.
    """
    patterns = tuple(patterns)
    found: IOResultE[tuple[str, ...]] = IOSuccess(())
    for sub in search_dirs:
        base = Path(directory, sub)
        if not base.is_dir():
            continue
        for pattern in patterns:
            found = found.bind(
                lambda acc, base=base, pattern=pattern: _glob(base, pattern).map(
                    lambda matches: (
                        *acc,
                        *(m.relative_to(directory).as_posix() for m in matches),
                    )
                )
            )
    return found.alt(lambda e: LocateError(str(directory), e))


def locate_in(
    patterns: Iterable[str] = NATIVE_PATTERNS, search_dirs: Iterable[str] = (".",)
) -> Locate:
    patterns, search_dirs = tuple(patterns), tuple(search_dirs)
    return lambda directory: find_artifacts(directory, patterns, search_dirs)


def _located(locate: Locate, ext_dir: Path, result: BuildResult) -> PhaseResult:
    return locate(ext_dir).map(result.succeeded).lash(
        lambda error: IOFailure(result.failed(error))
    )


def run_build(
    config: BuildConfig, descriptor: str | PurePath, steps: BuildSteps
) -> BuildResult:
    """Drives `steps` against the descriptor's directory.

    Returns the final result: successful with its artifacts, or the partial
    result of the first failing phase with `error` set.
    """
    ext_dir = extension_dir(config, descriptor)
    outcome: PhaseResult = flow(
        BuildResult().proceed(),
        bind(lambda result: steps.configure(config, ext_dir, result)),
        bind(lambda result: steps.compile(config, ext_dir, result)),
        bind(lambda result: _located(steps.locate, ext_dir, result)),
    )
    return unsafe_perform_io(outcome.lash(IOSuccess).unwrap())
