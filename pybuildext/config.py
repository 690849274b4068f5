from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, TypedDict

import toml
from returns.io import IOResultE, impure_safe

CONFIG_FILE = "pybuildext.toml"


class BuildTable(TypedDict, total=False):
    package_dir: str
    dest_path: str
    lib_dir: str
    build_args: list[str]
    env: dict[str, str]
    verbose: bool
    clean_first: bool
    parallel: int
    stop_on_failure: bool


class RuntimeTable(TypedDict, total=False):
    engine: str
    version: str
    path: str


class ConfigFile(TypedDict, total=False):
    build: BuildTable
    runtime: RuntimeTable
    adapters: list[dict[str, Any]]


@dataclass(frozen=True)
class BuildConfig:
    package_dir: Path
    dest_path: Path | None = None
    lib_dir: Path | None = None

    build_args: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)

    runtime_engine: str = ""
    runtime_version: str = ""
    runtime_path: str = ""

    verbose: bool = False
    clean_first: bool = False
    parallel: int = 0

    stop_on_failure: bool = True

    def replace(self, **changes: Any) -> "BuildConfig":
        return replace(self, **changes)

    @property
    def runtime(self) -> str:
        return self.runtime_path or "ruby"


def _check_keys(table: str, data: Mapping[str, Any], allowed: set[str]):
    unknown = {str(key) for key in data if str(key) not in allowed}
    if unknown:
        raise ValueError(f"[{table}] contains unknown keys: {', '.join(sorted(unknown))}")


def string_list(table: str, key: str, value: Any) -> tuple[str, ...]:
    """`value` as a tuple of strings; a bare string or other scalar is rejected."""
    if not isinstance(value, (list, tuple)) or not all(
        isinstance(item, str) for item in value
    ):
        raise ValueError(f"[{table}] '{key}' must be a list of strings")
    return tuple(value)


def _optional_path(base: Path, value: str | None) -> Path | None:
    return Path(base, value) if value else None


@impure_safe
def load_config_file(config_path: Path) -> ConfigFile:
    return ConfigFile(**toml.loads(config_path.read_text()))  # type: ignore


def parse_config(project_dir: Path, config: ConfigFile) -> BuildConfig:
    build = config.get("build", BuildTable())
    runtime = config.get("runtime", RuntimeTable())
    _check_keys("build", build, set(BuildTable.__annotations__))
    _check_keys("runtime", runtime, set(RuntimeTable.__annotations__))

    package_dir = Path(project_dir, build.get("package_dir", "."))
    return BuildConfig(
        package_dir=package_dir,
        dest_path=_optional_path(package_dir, build.get("dest_path")),
        lib_dir=_optional_path(package_dir, build.get("lib_dir")),
        build_args=string_list("build", "build_args", build.get("build_args", [])),
        env={str(k): str(v) for k, v in build.get("env", {}).items()},
        runtime_engine=runtime.get("engine", ""),
        runtime_version=str(runtime.get("version", "")),
        runtime_path=runtime.get("path", ""),
        verbose=bool(build.get("verbose", False)),
        clean_first=bool(build.get("clean_first", False)),
        parallel=int(build.get("parallel", 0)),
        stop_on_failure=bool(build.get("stop_on_failure", True)),
    )


def config_load(config_path: Path) -> IOResultE[BuildConfig]:
    """Loads a `BuildConfig` from a `pybuildext.toml` file.

    Relative paths in the file are resolved against the file's directory.
    """
    return load_config_file(config_path).bind(
        impure_safe(lambda config: parse_config(config_path.parent, config))
    )
