from dataclasses import dataclass
import os
from pathlib import Path, PurePath
from typing import ClassVar

from returns.io import IOResultE, IOSuccess

from pybuildext import commands
from pybuildext.adapters.base import PhasedAdapter, matches_pattern
from pybuildext.adapters.make import make_program
from pybuildext.config import BuildConfig
from pybuildext.lifecycle import (
    NATIVE_PATTERNS,
    BuildSteps,
    locate_in,
    run_best_effort,
    run_step,
)
from pybuildext.result import BuildResult, PhaseResult
from pybuildext.toolcheck import ToolRequirement

UNIX_MAKEFILES = "Unix Makefiles"

SEARCH_DIRS = (".", "Release", "Debug", "lib", "bin", "build", "_builds")


def generator() -> str:
    if gen := os.environ.get("CMAKE_GENERATOR"):
        return gen
    if commands.system() == "windows":
        return "Visual Studio 16 2019"
    return UNIX_MAKEFILES


@dataclass
class CMakeAdapter(PhasedAdapter):
    name: ClassVar[str] = "CMake"
    requirements: ClassVar[tuple[ToolRequirement, ...]] = (
        ToolRequirement("cmake", purpose="CMake build system"),
        ToolRequirement("ninja", optional=True, purpose="Faster builds than make"),
    )

    def matches(self, filename: str) -> bool:
        return matches_pattern(filename, r"CMakeLists\.txt$")

    def steps(self, descriptor: PurePath) -> BuildSteps:
        return BuildSteps(
            configure=self._configure,
            compile=self._compile,
            locate=locate_in((*NATIVE_PATTERNS, "*.dylib"), SEARCH_DIRS),
        )

    def clean(
        self, config: BuildConfig, descriptor: str | PurePath
    ) -> IOResultE[None]:
        ext_dir = self.directory(config, descriptor)

        def _fallback(error: Exception) -> IOResultE[None]:
            if not (ext_dir / "Makefile").exists():
                return IOSuccess(None)
            return self.runner((make_program(), "clean"), ext_dir, None).map(
                lambda _: None
            )

        return (
            self.runner(("cmake", "--build", ".", "--target", "clean"), ext_dir, None)
            .map(lambda _: None)
            .lash(_fallback)
        )

    def _configure(
        self, config: BuildConfig, ext_dir: Path, result: BuildResult
    ) -> PhaseResult:
        cmd = (
            "cmake",
            ".",
            *((f"-DCMAKE_INSTALL_PREFIX={config.dest_path}",) if config.dest_path else ()),
            "-DCMAKE_BUILD_TYPE=Release",
            "-G",
            generator(),
            *config.build_args,
        )
        env = {"Ruby_EXECUTABLE": config.runtime_path} if config.runtime_path else None
        return run_step(self.name, self.runner, config, cmd, ext_dir, result, env)

    def _compile(
        self, config: BuildConfig, ext_dir: Path, result: BuildResult
    ) -> PhaseResult:
        if config.clean_first:
            result = run_best_effort(
                self.runner,
                config,
                ("cmake", "--build", ".", "--target", "clean"),
                ext_dir,
                result,
            )

        cmd = (
            "cmake",
            "--build",
            ".",
            *(("--parallel", str(config.parallel)) if config.parallel > 0 else ()),
            "--config",
            "Release",
        )
        built = run_step(self.name, self.runner, config, cmd, ext_dir, result)
        if config.dest_path is None:
            return built
        return built.bind(
            lambda result: run_step(
                self.name, self.runner, config, ("cmake", "--install", "."), ext_dir, result
            )
        )
