"""Checks that the external programs a build needs are reachable."""

from collections.abc import Iterable
from dataclasses import dataclass
import shutil

from returns.io import IOFailure, IOResult, IOSuccess

from pybuildext.errors import MissingToolError
from pybuildext.types import Which


@dataclass(frozen=True)
class ToolRequirement:
    name: str
    alternatives: tuple[str, ...] = ()
    optional: bool = False
    purpose: str = ""

    @property
    def candidates(self) -> tuple[str, ...]:
        return (self.name, *self.alternatives)

    def describe(self) -> str:
        return f"{self.name} ({self.purpose})" if self.purpose else self.name


def tool_available(tool: str, which: Which = shutil.which) -> bool:
    return which(tool) is not None


def find_tool(requirement: ToolRequirement, which: Which = shutil.which) -> str | None:
    """The first candidate found on PATH, primary name first."""
    return next(
        (tool for tool in requirement.candidates if tool_available(tool, which)),
        None,
    )


def check_tools(
    requirements: Iterable[ToolRequirement], which: Which = shutil.which
) -> IOResult[tuple[ToolRequirement, ...], MissingToolError]:
    """Verifies every required tool is available.

    Succeeds with the optional requirements that were not met, so callers can
    still mention them. Fails with a single `MissingToolError` naming every
    missing required tool.
    """
    unmet = tuple(req for req in requirements if find_tool(req, which) is None)
    missing = tuple(req.describe() for req in unmet if not req.optional)
    if missing:
        return IOFailure(MissingToolError(missing))
    return IOSuccess(unmet)
