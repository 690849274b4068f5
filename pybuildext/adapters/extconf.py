"""extconf.rb: a runtime script that generates a Makefile, then make."""

from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import ClassVar

from returns.io import IOResultE, IOSuccess

from pybuildext.adapters.base import PhasedAdapter, matches_pattern
from pybuildext.adapters.make import C_COMPILER, MAKE, make_program, run_make
from pybuildext.config import BuildConfig
from pybuildext.errors import BuildFailed
from pybuildext.lifecycle import BuildSteps, locate_in, run_step
from pybuildext.result import BuildResult, PhaseResult
from pybuildext.toolcheck import ToolRequirement


@dataclass
class ExtConfAdapter(PhasedAdapter):
    name: ClassVar[str] = "ExtConf"
    requirements: ClassVar[tuple[ToolRequirement, ...]] = (
        ToolRequirement("ruby", purpose="Runs extconf.rb"),
        MAKE,
        C_COMPILER,
    )

    def matches(self, filename: str) -> bool:
        return matches_pattern(filename, r"extconf\.rb$")

    def steps(self, descriptor: PurePath) -> BuildSteps:
        return BuildSteps(
            configure=self._generate_makefile,
            compile=lambda config, ext_dir, result: run_make(
                self.name, self.runner, config, ext_dir, result
            ),
            locate=locate_in(),
        )

    def clean(
        self, config: BuildConfig, descriptor: str | PurePath
    ) -> IOResultE[None]:
        ext_dir = self.directory(config, descriptor)
        if not (ext_dir / "Makefile").exists():
            return IOSuccess(None)
        return self.runner((make_program(), "clean"), ext_dir, None).map(
            lambda _: None
        )

    def _generate_makefile(
        self, config: BuildConfig, ext_dir: Path, result: BuildResult
    ) -> PhaseResult:
        cmd = (config.runtime, "extconf.rb", *config.build_args)
        return run_step(self.name, self.runner, config, cmd, ext_dir, result).bind(
            lambda result: result.proceed()
            if (ext_dir / "Makefile").exists()
            else result.halt(
                BuildFailed(self.name, result.output, "Makefile not generated")
            )
        )
