from dataclasses import dataclass, replace

from returns.io import IOFailure, IOResult, IOSuccess


@dataclass(frozen=True)
class BuildResult:
    """Accumulated state of one target's build.

    Phases never mutate a result: every helper returns a new one, so a
    result handed to a caller is never changed afterwards.
    """

    success: bool = False
    output: tuple[str, ...] = ()
    artifacts: tuple[str, ...] = ()
    missing_dependencies: tuple[str, ...] = ()
    error: Exception | None = None

    def log(self, *lines: str) -> "BuildResult":
        return replace(self, output=(*self.output, *lines))

    def missing(self, *names: str) -> "BuildResult":
        return replace(
            self, missing_dependencies=(*self.missing_dependencies, *names)
        )

    def failed(self, error: Exception) -> "BuildResult":
        # first failure wins
        if self.error is not None:
            return replace(self, success=False)
        return replace(self, success=False, error=error)

    def succeeded(self, artifacts: tuple[str, ...]) -> "BuildResult":
        return replace(self, success=True, artifacts=artifacts, error=None)

    def halt(self, error: Exception) -> "PhaseResult":
        return IOFailure(self.failed(error))

    def proceed(self) -> "PhaseResult":
        return IOSuccess(self)

    @classmethod
    def from_error(cls, error: Exception) -> "BuildResult":
        return cls(error=error)


# Success carries the updated accumulator, failure carries it with `error` set.
PhaseResult = IOResult[BuildResult, BuildResult]
