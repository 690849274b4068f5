"""Rakefile / mkrf_conf driven builds.

Prefers a `rake` executable on PATH. When there is none, rake is loaded
through the runtime itself, as long as it is installed as a library.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import ClassVar

from returns.pipeline import is_successful

from pybuildext.adapters.base import PhasedAdapter, matches_pattern
from pybuildext.config import BuildConfig
from pybuildext.errors import MissingToolError
from pybuildext.lifecycle import BuildSteps, locate_in, run_step
from pybuildext.result import BuildResult, PhaseResult
from pybuildext.toolcheck import ToolRequirement

RAKE = "rake"
LOAD_RAKE = 'load Gem.bin_path("rake", "rake")'
PROBE_RAKE = "Gem.bin_path('rake', 'rake')"


@dataclass
class RakeAdapter(PhasedAdapter):
    name: ClassVar[str] = "Rake"
    requirements: ClassVar[tuple[ToolRequirement, ...]] = (
        ToolRequirement(RAKE, alternatives=("ruby",), purpose="Rake task runner"),
    )

    def matches(self, filename: str) -> bool:
        return matches_pattern(
            filename, r"^[Rr]akefile(\.rb)?$", r"^mkrf_conf(\.rb)?$"
        )

    def steps(self, descriptor: PurePath) -> BuildSteps:
        def configure(
            config: BuildConfig, ext_dir: Path, result: BuildResult
        ) -> PhaseResult:
            missing = self.missing_dependencies(config, ext_dir)
            if missing:
                return result.missing(*missing).halt(
                    MissingToolError(missing, f"{RAKE} not found")
                )
            if not descriptor.name.startswith("mkrf_conf"):
                return result.proceed()
            cmd = (config.runtime, descriptor.name, *config.build_args)
            return run_step(self.name, self.runner, config, cmd, ext_dir, result)

        return BuildSteps(
            configure=configure,
            compile=self._compile,
            locate=locate_in(search_dirs=(".", "lib")),
        )

    def rake_command(
        self, config: BuildConfig, args: Sequence[str]
    ) -> tuple[str, tuple[str, ...]]:
        """The program and arguments that run rake with `args`."""
        if rake := self.which(RAKE):
            return rake, tuple(args)
        return config.runtime, ("-rrubygems", "-e", LOAD_RAKE, "--", *args)

    def missing_dependencies(
        self, config: BuildConfig, ext_dir: Path
    ) -> tuple[str, ...]:
        if self.which(RAKE):
            return ()
        runtime = config.runtime_path or self.which("ruby")
        if not runtime:
            return (RAKE,)
        probe = self.runner((runtime, "-rrubygems", "-e", PROBE_RAKE), ext_dir, None)
        return () if is_successful(probe) else (RAKE,)

    def _compile(
        self, config: BuildConfig, ext_dir: Path, result: BuildResult
    ) -> PhaseResult:
        args = (
            *((f"-j{config.parallel}",) if config.parallel > 0 else ()),
            *config.build_args,
            *(
                (f"RUBYARCHDIR={config.dest_path}", f"RUBYLIBDIR={config.dest_path}")
                if config.dest_path
                else ()
            ),
        )
        program, resolved = self.rake_command(config, args)
        return run_step(
            self.name, self.runner, config, (program, *resolved), ext_dir, result
        )
