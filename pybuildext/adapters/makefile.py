"""Hand-written Makefiles, built as they are."""

from dataclasses import dataclass
from pathlib import PurePath
from typing import ClassVar

from returns.io import IOResultE, IOSuccess

from pybuildext.adapters.base import PhasedAdapter
from pybuildext.adapters.make import C_COMPILER, MAKE, make_program, run_make
from pybuildext.config import BuildConfig
from pybuildext.lifecycle import BuildSteps, locate_in, no_configure
from pybuildext.toolcheck import ToolRequirement


@dataclass
class MakefileAdapter(PhasedAdapter):
    name: ClassVar[str] = "Makefile"
    requirements: ClassVar[tuple[ToolRequirement, ...]] = (MAKE, C_COMPILER)

    def matches(self, filename: str) -> bool:
        return PurePath(filename).name.lower() in ("makefile", "gnumakefile")

    def steps(self, descriptor: PurePath) -> BuildSteps:
        return BuildSteps(
            configure=no_configure("Using existing Makefile, no configuration needed"),
            compile=lambda config, ext_dir, result: run_make(
                self.name, self.runner, config, ext_dir, result
            ),
            locate=locate_in(),
        )

    def clean(
        self, config: BuildConfig, descriptor: str | PurePath
    ) -> IOResultE[None]:
        # the clean target is optional
        self.runner((make_program(), "clean"), self.directory(config, descriptor), None)
        return IOSuccess(None)
