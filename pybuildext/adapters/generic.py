"""Adapters driven purely by configuration.

A generic adapter claims files by glob pattern and builds them with a single
templated command. Supported placeholders:

- ``{{input}}``: the name of the extension directory
- ``{{output}}``: ``extension.so``, placed under ``dest_path`` when set
- ``{{dir}}``: the extension directory itself
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path, PurePath
from typing import Any

from returns.io import IOResultE, IOSuccess, impure_safe

from pybuildext.adapters.base import PhasedAdapter
from pybuildext.config import BuildConfig, load_config_file, string_list
from pybuildext.errors import BuildFailed
from pybuildext.lifecycle import BuildSteps, locate_in, no_configure, run_step
from pybuildext.result import BuildResult, PhaseResult
from pybuildext.toolcheck import ToolRequirement

OUTPUT = "extension.so"
DEFAULT_OUTPUTS = ("*.so", "*.dylib", "*.dll")
ENTRY_KEYS = {"name", "patterns", "build", "clean", "outputs", "tools"}
TOOL_KEYS = {"name", "alternatives", "optional", "purpose"}


def expand(template: Sequence[str], **values: str) -> tuple[str, ...]:
    def _expand(arg: str) -> str:
        for key, value in values.items():
            arg = arg.replace(f"{{{{{key}}}}}", value)
        return arg

    return tuple(map(_expand, template))


def _tool(entry: str | Mapping[str, Any]) -> ToolRequirement:
    if isinstance(entry, str):
        return ToolRequirement(entry)
    if unknown := set(entry) - TOOL_KEYS:
        raise ValueError(f"[[adapters.tools]] contains unknown keys: {', '.join(sorted(unknown))}")
    return ToolRequirement(
        name=str(entry["name"]),
        alternatives=string_list("adapters.tools", "alternatives", entry.get("alternatives", [])),
        optional=bool(entry.get("optional", False)),
        purpose=str(entry.get("purpose", "")),
    )


@dataclass(kw_only=True)
class GenericAdapter(PhasedAdapter):
    name: str  # type: ignore[misc]
    patterns: tuple[str, ...] = ()
    build_command: tuple[str, ...] = ()
    tools: tuple[ToolRequirement, ...] = ()
    clean_command: tuple[str, ...] = ()
    output_patterns: tuple[str, ...] = DEFAULT_OUTPUTS

    @classmethod
    def from_mapping(cls, entry: Mapping[str, Any], **kwargs: Any) -> "GenericAdapter":
        """Builds an adapter from one ``[[adapters]]`` table."""
        if unknown := set(entry) - ENTRY_KEYS:
            raise ValueError(f"[[adapters]] contains unknown keys: {', '.join(sorted(unknown))}")
        for key in ("name", "patterns", "build"):
            if key not in entry:
                raise ValueError(f"[[adapters]] entry is missing '{key}'")
        if not isinstance(tools := entry.get("tools", []), list):
            raise ValueError("[adapters] 'tools' must be a list")
        return cls(
            name=str(entry["name"]),
            patterns=string_list("adapters", "patterns", entry["patterns"]),
            build_command=string_list("adapters", "build", entry["build"]),
            tools=tuple(map(_tool, tools)),
            clean_command=string_list("adapters", "clean", entry.get("clean", [])),
            output_patterns=string_list("adapters", "outputs", entry.get("outputs", DEFAULT_OUTPUTS)),
            **kwargs,
        )

    def matches(self, filename: str) -> bool:
        name = PurePath(filename).name.lower()
        return any(fnmatchcase(name, pattern.lower()) for pattern in self.patterns)

    def required_tools(self) -> tuple[ToolRequirement, ...]:
        return self.tools

    def steps(self, descriptor: PurePath) -> BuildSteps:
        return BuildSteps(
            configure=no_configure(f"{self.name} builder, no configuration needed"),
            compile=self._compile,
            locate=locate_in(self.output_patterns),
        )

    def clean(
        self, config: BuildConfig, descriptor: str | PurePath
    ) -> IOResultE[None]:
        if self.clean_command:
            self.runner(self.clean_command, self.directory(config, descriptor), None)
        return IOSuccess(None)

    def _compile(
        self, config: BuildConfig, ext_dir: Path, result: BuildResult
    ) -> PhaseResult:
        if not self.build_command:
            return result.halt(
                BuildFailed(
                    self.name,
                    result.output,
                    f"no build command configured for {self.name} builder",
                )
            )
        output = str(Path(config.dest_path, OUTPUT)) if config.dest_path else OUTPUT
        cmd = expand(
            self.build_command, input=ext_dir.name, output=output, dir=str(ext_dir)
        )
        return run_step(
            self.name, self.runner, config, (*cmd, *config.build_args), ext_dir, result
        )


def crystal(**kwargs: Any) -> GenericAdapter:
    return GenericAdapter(
        name="Crystal",
        patterns=("*.cr", "shard.yml"),
        tools=(ToolRequirement("crystal", purpose="Crystal compiler"),),
        build_command=(
            "crystal",
            "build",
            "--single-module",
            "--link-flags=-shared",
            "-o",
            "{{output}}",
            "{{input}}",
        ),
        **kwargs,
    )


def zig(**kwargs: Any) -> GenericAdapter:
    return GenericAdapter(
        name="Zig",
        patterns=("build.zig", "*.zig"),
        tools=(ToolRequirement("zig", purpose="Zig compiler and build system"),),
        build_command=("zig", "build-lib", "-dynamic", "-O", "ReleaseFast", "{{input}}"),
        output_patterns=(*DEFAULT_OUTPUTS, "zig-out/lib/*.so"),
        **kwargs,
    )


def swift(**kwargs: Any) -> GenericAdapter:
    return GenericAdapter(
        name="Swift",
        patterns=("*.swift", "Package.swift"),
        tools=(ToolRequirement("swiftc", purpose="Swift compiler"),),
        build_command=("swiftc", "-emit-library", "-o", "{{output}}", "{{input}}"),
        **kwargs,
    )


def adapters_load(config_path: Path) -> IOResultE[tuple[GenericAdapter, ...]]:
    """Reads the ``[[adapters]]`` tables of a config file."""
    return load_config_file(config_path).bind(
        impure_safe(
            lambda config: tuple(
                GenericAdapter.from_mapping(entry) for entry in config.get("adapters", ())
            )
        )
    )
