"""JVM extensions: Maven projects or loose Java sources packed into a jar."""

from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import ClassVar

from returns.io import IOResultE, IOSuccess

from pybuildext.adapters.base import PhasedAdapter
from pybuildext.config import BuildConfig
from pybuildext.errors import BuildFailed
from pybuildext.lifecycle import BuildSteps, locate_in, no_configure, run_step
from pybuildext.result import BuildResult, PhaseResult
from pybuildext.toolcheck import ToolRequirement

POM = "pom.xml"
JAR = "extension.jar"


def is_maven(descriptor: str | PurePath) -> bool:
    return PurePath(descriptor).name.lower() == POM


@dataclass
class JavaAdapter(PhasedAdapter):
    name: ClassVar[str] = "Java"
    requirements: ClassVar[tuple[ToolRequirement, ...]] = (
        ToolRequirement("javac", purpose="Java compiler"),
        ToolRequirement(
            "mvn", optional=True, purpose="Maven build tool (for pom.xml projects)"
        ),
    )

    def matches(self, filename: str) -> bool:
        return PurePath(filename.lower()).suffix == ".java" or is_maven(filename)

    def steps(self, descriptor: PurePath) -> BuildSteps:
        return BuildSteps(
            configure=no_configure("Java project, no configuration needed"),
            compile=self._maven if is_maven(descriptor) else self._javac,
            locate=locate_in(("*.jar", "target/*.jar")),
        )

    def clean(
        self, config: BuildConfig, descriptor: str | PurePath
    ) -> IOResultE[None]:
        ext_dir = self.directory(config, descriptor)
        if is_maven(descriptor):
            self.runner(("mvn", "clean"), ext_dir, None)
            return IOSuccess(None)
        for pattern in ("*.class", "*.jar"):
            for match in ext_dir.glob(pattern):
                match.unlink(missing_ok=True)
        return IOSuccess(None)

    def _maven(
        self, config: BuildConfig, ext_dir: Path, result: BuildResult
    ) -> PhaseResult:
        return run_step(
            "Maven", self.runner, config, ("mvn", "package", *config.build_args), ext_dir, result
        )

    def _javac(
        self, config: BuildConfig, ext_dir: Path, result: BuildResult
    ) -> PhaseResult:
        sources = sorted(ext_dir.glob("*.java"))
        if not sources:
            return result.halt(
                BuildFailed(self.name, result.output, f"no Java source files found in {ext_dir}")
            )

        jar = str(Path(config.dest_path, JAR)) if config.dest_path else JAR
        compile_cmd = (
            "javac",
            "-d",
            str(ext_dir),
            *config.build_args,
            *(source.name for source in sources),
        )
        return run_step(self.name, self.runner, config, compile_cmd, ext_dir, result).bind(
            lambda result: run_step(
                self.name,
                self.runner,
                config,
                ("jar", "cf", jar, "-C", str(ext_dir), "."),
                ext_dir,
                result,
            )
        )
