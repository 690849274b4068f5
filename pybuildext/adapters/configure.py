"""Autotools-style `configure` scripts followed by make."""

from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import ClassVar

from pybuildext.adapters.base import PhasedAdapter, matches_pattern
from pybuildext.adapters.make import C_COMPILER, MAKE, run_make
from pybuildext.config import BuildConfig
from pybuildext.lifecycle import NATIVE_PATTERNS, BuildSteps, locate_in, run_step
from pybuildext.result import BuildResult, PhaseResult
from pybuildext.toolcheck import ToolRequirement


@dataclass
class ConfigureAdapter(PhasedAdapter):
    name: ClassVar[str] = "Configure"
    requirements: ClassVar[tuple[ToolRequirement, ...]] = (
        ToolRequirement("sh", alternatives=("bash",), purpose="Runs configure"),
        MAKE,
        C_COMPILER,
    )

    def matches(self, filename: str) -> bool:
        return matches_pattern(filename, r"^configure$", r"^configure\.sh$")

    def steps(self, descriptor: PurePath) -> BuildSteps:
        script = descriptor.name

        def configure(
            config: BuildConfig, ext_dir: Path, result: BuildResult
        ) -> PhaseResult:
            prefix = (f"--prefix={config.dest_path}",) if config.dest_path else ()
            cmd = ("sh", f"./{script}", *prefix, *config.build_args)
            return run_step(self.name, self.runner, config, cmd, ext_dir, result)

        return BuildSteps(
            configure=configure,
            compile=lambda config, ext_dir, result: run_make(
                self.name, self.runner, config, ext_dir, result
            ),
            locate=locate_in((*NATIVE_PATTERNS, "*.dylib")),
        )
