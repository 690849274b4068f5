"""Rust extensions built as cdylibs through cargo."""

from dataclasses import dataclass
import os
from pathlib import Path, PurePath
import shutil
from typing import ClassVar

from returns.io import IOResultE, impure_safe

from pybuildext import commands
from pybuildext.adapters.base import PhasedAdapter, matches_pattern
from pybuildext.config import BuildConfig
from pybuildext.errors import BuildFailed, LocateError
from pybuildext.lifecycle import BuildSteps, no_configure, run_best_effort, run_step
from pybuildext.result import BuildResult, PhaseResult
from pybuildext.toolcheck import ToolRequirement

RUNTIME_RUSTFLAGS = "--cfg=rb_sys_gem --cfg=rubygems"


def cargo_program() -> str:
    return os.environ.get("CARGO") or "cargo"


def library_patterns() -> tuple[str, ...]:
    match commands.system():
        case "windows":
            return ("*.dll",)
        case "darwin":
            return ("*.dylib",)
        case _:
            return ("*.so",)


def extension_suffix() -> str:
    match commands.system():
        case "windows":
            return ".dll"
        case "darwin":
            return ".bundle"
        case _:
            return ".so"


def extension_name(library: Path) -> str:
    """`libfoo.so` -> `foo.so`, with the suffix the runtime loads."""
    stem = library.stem.removeprefix("lib")
    return f"{stem}{extension_suffix()}"


def link_args() -> tuple[str, ...]:
    match commands.system():
        case "darwin":
            return ("-C", "link-arg=-Wl,-undefined,dynamic_lookup")
        case "windows":
            return (
                "-C",
                "link-arg=-Wl,--dynamicbase",
                "-C",
                "link-arg=-Wl,--disable-auto-image-base",
                "-C",
                "link-arg=-static-libgcc",
            )
        case _:
            return ()


def runtime_env(config: BuildConfig) -> dict[str, str]:
    rustflags = os.environ.get("RUSTFLAGS")
    env = {
        "RUSTFLAGS": f"{rustflags} {RUNTIME_RUSTFLAGS}" if rustflags else RUNTIME_RUSTFLAGS
    }
    if config.runtime_path:
        env["RUBY"] = config.runtime_path
    if config.runtime_version:
        env["RUBY_VERSION"] = config.runtime_version
    if config.runtime_engine:
        env["RUBY_ENGINE"] = config.runtime_engine
    return env


def release_dir(ext_dir: Path) -> Path:
    target = os.environ.get("CARGO_BUILD_TARGET")
    return Path(ext_dir, "target", *((target,) if target else ()), "release")


def built_libraries(ext_dir: Path) -> tuple[Path, ...]:
    return tuple(
        sorted(
            lib
            for pattern in library_patterns()
            for lib in release_dir(ext_dir).glob(pattern)
        )
    )


@impure_safe
def stage_libraries(ext_dir: Path) -> tuple[str, ...]:
    """Copies cargo's libraries next to the descriptor under their extension names."""
    libraries = built_libraries(ext_dir)
    if not libraries:
        raise FileNotFoundError(f"no dynamic libraries found in {release_dir(ext_dir)}")

    staged = []
    for library in libraries:
        destination = ext_dir / extension_name(library)
        shutil.copyfile(library, destination)
        staged.append(destination.name)
    return tuple(staged)


def locate_staged(ext_dir: Path) -> IOResultE[tuple[str, ...]]:
    """The staged copies of cargo's libraries, and nothing else in `ext_dir`."""
    return (
        impure_safe(built_libraries)(ext_dir)
        .map(
            lambda libraries: tuple(
                name
                for name in map(extension_name, libraries)
                if Path(ext_dir, name).is_file()
            )
        )
        .alt(lambda e: LocateError(str(ext_dir), e))
    )


@dataclass
class CargoAdapter(PhasedAdapter):
    name: ClassVar[str] = "Cargo"
    requirements: ClassVar[tuple[ToolRequirement, ...]] = (
        ToolRequirement("cargo", purpose="Rust compiler and package manager"),
    )

    def matches(self, filename: str) -> bool:
        return matches_pattern(filename, r"Cargo\.toml$")

    def steps(self, descriptor: PurePath) -> BuildSteps:
        return BuildSteps(
            configure=no_configure("Cargo project, no configuration needed"),
            compile=self._compile,
            locate=locate_staged,
        )

    def clean(
        self, config: BuildConfig, descriptor: str | PurePath
    ) -> IOResultE[None]:
        return self.runner(
            (cargo_program(), "clean"), self.directory(config, descriptor), None
        ).map(lambda _: None)

    def _compile(
        self, config: BuildConfig, ext_dir: Path, result: BuildResult
    ) -> PhaseResult:
        cargo = cargo_program()
        target = os.environ.get("CARGO_BUILD_TARGET")
        cmd = (
            cargo,
            "rustc",
            "--release",
            "--crate-type",
            "cdylib",
            *(("--target", target) if target else ()),
            *(("--locked",) if (ext_dir / "Cargo.lock").exists() else ()),
            *(("--jobs", str(config.parallel)) if config.parallel > 0 else ()),
            *config.build_args,
            "--",
            *link_args(),
        )

        if config.clean_first:
            result = run_best_effort(self.runner, config, (cargo, "clean"), ext_dir, result)

        return run_step(
            self.name, self.runner, config, cmd, ext_dir, result, runtime_env(config)
        ).bind(lambda result: self._stage(config, ext_dir, result))

    def _stage(
        self, config: BuildConfig, ext_dir: Path, result: BuildResult
    ) -> PhaseResult:
        def _staged(names: tuple[str, ...]) -> BuildResult:
            if not config.verbose:
                return result
            return result.log(*(f"Staged {name} in {ext_dir}" for name in names))

        return (
            stage_libraries(ext_dir)
            .map(_staged)
            .lash(lambda error: result.halt(BuildFailed(self.name, result.output, error)))
        )
