from abc import abstractmethod
from dataclasses import dataclass, field
from pathlib import Path, PurePath
import re
import shutil
from typing import ClassVar, Protocol

from returns.io import IOResult, IOResultE, IOSuccess

from pybuildext import commands
from pybuildext.commands import Runner
from pybuildext.config import BuildConfig
from pybuildext.errors import MissingToolError
from pybuildext.lifecycle import BuildSteps, extension_dir, run_build
from pybuildext.result import BuildResult
from pybuildext.toolcheck import ToolRequirement, check_tools
from pybuildext.types import Which


def matches_pattern(filename: str, *patterns: str) -> bool:
    """True if any regex in `patterns` matches somewhere in `filename`.

    Invalid patterns never match.
    """
    for pattern in patterns:
        try:
            if re.search(pattern, filename):
                return True
        except re.error:
            continue
    return False


class Adapter(Protocol):
    name: str

    def matches(self, filename: str) -> bool:
        ...

    def build(self, config: BuildConfig, descriptor: str | PurePath) -> BuildResult:
        ...

    def clean(
        self, config: BuildConfig, descriptor: str | PurePath
    ) -> IOResultE[None]:
        ...


@dataclass
class PhasedAdapter(Adapter):
    """An adapter whose build runs through the shared three-phase driver."""

    name: ClassVar[str] = ""
    requirements: ClassVar[tuple[ToolRequirement, ...]] = ()

    runner: Runner = field(default=commands.run, kw_only=True)
    which: Which = field(default=shutil.which, kw_only=True)

    @abstractmethod
    def steps(self, descriptor: PurePath) -> BuildSteps:
        """The three phases that build `descriptor`."""

    def build(self, config: BuildConfig, descriptor: str | PurePath) -> BuildResult:
        return run_build(config, descriptor, self.steps(PurePath(descriptor)))

    def clean(
        self, config: BuildConfig, descriptor: str | PurePath
    ) -> IOResultE[None]:
        return IOSuccess(None)

    def required_tools(self) -> tuple[ToolRequirement, ...]:
        return self.requirements

    def check_tools(self) -> IOResult[tuple[ToolRequirement, ...], MissingToolError]:
        return check_tools(self.required_tools(), self.which)

    def directory(self, config: BuildConfig, descriptor: str | PurePath) -> Path:
        return extension_dir(config, descriptor)
