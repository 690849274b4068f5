"""Go packages built with cgo into a shared library."""

from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import ClassVar

from returns.io import IOResultE, IOSuccess

from pybuildext.adapters.base import PhasedAdapter
from pybuildext.config import BuildConfig
from pybuildext.lifecycle import BuildSteps, locate_in, no_configure, run_step
from pybuildext.result import BuildResult, PhaseResult
from pybuildext.toolcheck import ToolRequirement

OUTPUT = "extension.so"


@dataclass
class GoAdapter(PhasedAdapter):
    name: ClassVar[str] = "Go"
    requirements: ClassVar[tuple[ToolRequirement, ...]] = (
        ToolRequirement("go", purpose="Go compiler and toolchain"),
        ToolRequirement(
            "gcc", alternatives=("clang", "cc"), purpose="C compiler (required for CGO)"
        ),
    )

    def matches(self, filename: str) -> bool:
        path = PurePath(filename.lower())
        return path.suffix == ".go" or path.name == "go.mod"

    def steps(self, descriptor: PurePath) -> BuildSteps:
        return BuildSteps(
            configure=no_configure("Go modules, no configuration needed"),
            compile=self._compile,
            locate=locate_in(("*.so", "*.dylib", "*.dll")),
        )

    def clean(
        self, config: BuildConfig, descriptor: str | PurePath
    ) -> IOResultE[None]:
        self.runner(("go", "clean"), self.directory(config, descriptor), None)
        return IOSuccess(None)

    def _compile(
        self, config: BuildConfig, ext_dir: Path, result: BuildResult
    ) -> PhaseResult:
        output = str(Path(config.dest_path, OUTPUT)) if config.dest_path else OUTPUT
        cmd = ("go", "build", "-buildmode=c-shared", "-o", output, *config.build_args)
        return run_step(
            self.name, self.runner, config, cmd, ext_dir, result, {"CGO_ENABLED": "1"}
        )
