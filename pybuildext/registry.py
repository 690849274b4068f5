"""Maps extension descriptors to adapters and runs batches of builds."""

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Protocol

from returns.io import IOResult, IOSuccess
from returns.result import Failure, Result, Success

from pybuildext.adapters import (
    Adapter,
    CargoAdapter,
    CMakeAdapter,
    ConfigureAdapter,
    ExtConfAdapter,
    GoAdapter,
    JavaAdapter,
    MakefileAdapter,
    PhasedAdapter,
    RakeAdapter,
    crystal,
    swift,
    zig,
)
from pybuildext.config import BuildConfig
from pybuildext.errors import BuildCancelled, ExtensionBuildError, NoAdapterFound
from pybuildext.result import BuildResult
from pybuildext.toolcheck import ToolRequirement


class CancelSignal(Protocol):
    def is_set(self) -> bool:
        ...


@dataclass(frozen=True)
class BatchReport:
    """Per-target results in input order, plus the first error seen."""

    results: tuple[BuildResult, ...] = ()
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and all(result.success for result in self.results)


class AdapterRegistry:
    """Adapters in registration order; the first one claiming a file wins.

    Register everything before the first lookup. After that the registry is
    only read, so it can be shared between callers.
    """

    def __init__(self, adapters: Iterable[Adapter] = ()) -> None:
        self._adapters: list[Adapter] = list(adapters)

    def register(self, adapter: Adapter) -> None:
        self._adapters.append(adapter)

    def adapters(self) -> tuple[Adapter, ...]:
        return tuple(self._adapters)

    def resolve(self, descriptor: str | PurePath) -> Result[Adapter, NoAdapterFound]:
        filename = PurePath(descriptor).name
        for adapter in self._adapters:
            if adapter.matches(filename):
                return Success(adapter)
        return Failure(NoAdapterFound(filename))

    def check_tools(
        self, descriptor: str | PurePath
    ) -> IOResult[tuple[ToolRequirement, ...], ExtensionBuildError]:
        """Checks the tools of whichever adapter claims `descriptor`."""

        def _check(adapter: Adapter):
            if isinstance(adapter, PhasedAdapter):
                return adapter.check_tools()
            return IOSuccess(())

        return IOResult.from_result(self.resolve(descriptor)).bind(_check)

    def run_batch(
        self,
        descriptors: Iterable[str | PurePath],
        config: BuildConfig,
        cancel: CancelSignal | None = None,
    ) -> BatchReport:
        """Builds each descriptor in order.

        `cancel` is only checked before starting a target; a build already
        running is never interrupted. A failing target stops the batch when
        `config.stop_on_failure` is set, otherwise the batch moves on.
        """
        results: list[BuildResult] = []
        first_error: Exception | None = None

        for descriptor in descriptors:
            if cancel is not None and cancel.is_set():
                cancelled = BuildCancelled(str(descriptor))
                results.append(BuildResult.from_error(cancelled))
                first_error = first_error or cancelled
                break

            match self.resolve(descriptor):
                case Success(adapter):
                    if config.verbose:
                        print(f"[pybuildext] building '{descriptor}' ({adapter.name})")
                    result = adapter.build(config, descriptor)
                case Failure(error):
                    result = BuildResult.from_error(error)

            results.append(result)
            if result.success:
                continue

            first_error = first_error or result.error
            if config.verbose:
                print(f"[pybuildext] Error: {result.error}")
            if config.stop_on_failure:
                break

        return BatchReport(tuple(results), first_error)


def default_registry(*extra: Adapter, **kwargs: Any) -> AdapterRegistry:
    """The built-in adapters in precedence order, followed by `extra`.

    `kwargs` (`runner`, `which`) are passed to every built-in adapter.
    """
    return AdapterRegistry(
        (
            ExtConfAdapter(**kwargs),
            ConfigureAdapter(**kwargs),
            RakeAdapter(**kwargs),
            CMakeAdapter(**kwargs),
            CargoAdapter(**kwargs),
            MakefileAdapter(**kwargs),
            GoAdapter(**kwargs),
            JavaAdapter(**kwargs),
            crystal(**kwargs),
            zig(**kwargs),
            swift(**kwargs),
            *extra,
        )
    )
