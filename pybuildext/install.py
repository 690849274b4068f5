"""Copies built native libraries into the package's library directory.

Build outputs arrive relative to the directory they were built in. Native
libraries are copied under the library directory at their require path, for
example ``ext/json/extconf.rb`` declaring ``create_makefile 'json/ext/parser'``
installs ``parser.bundle`` as ``lib/json/ext/parser.bundle``. Anything else is
reported where it already is.
"""

from collections.abc import Sequence
from functools import reduce
from pathlib import Path, PurePath, PurePosixPath
import posixpath
import re
import shutil

from returns.io import IOResultE, IOSuccess, impure_safe
from returns.maybe import Maybe, Nothing, Some
from returns.unsafe import unsafe_perform_io

from pybuildext.config import BuildConfig
from pybuildext.errors import InstallError
from pybuildext.lifecycle import extension_dir
from pybuildext.result import BuildResult

NATIVE_SUFFIXES = frozenset((".so", ".bundle", ".dll", ".dylib"))

# Runtimes from 3.4 on look in a version directory first.
VERSIONED_FROM = (3, 4)

CREATE_MAKEFILE = (
    re.compile(r"""create_makefile\s*\(\s*['"]([^'"]+)['"]"""),
    re.compile(r"""create_makefile\s+['"]([^'"]+)['"]"""),
)


def is_native_library(path: str | PurePath) -> bool:
    return PurePath(path).suffix.lower() in NATIVE_SUFFIXES


def package_relative(
    descriptor: str | PurePath, artifacts: Sequence[str]
) -> tuple[str, ...]:
    """Build outputs as paths from the package root."""
    base = PurePosixPath(PurePath(descriptor).as_posix()).parent
    return tuple(posixpath.normpath((base / artifact).as_posix()) for artifact in artifacts)


def gather_base_directories(config: BuildConfig) -> tuple[Path, ...]:
    """`dest_path`, then `lib_dir`, or `<package>/lib` when neither is set."""
    dirs = [
        Path(config.package_dir, directory)
        for directory in (config.dest_path, config.lib_dir)
        if directory
    ] or [Path(config.package_dir, "lib")]
    return tuple(dict.fromkeys(dirs))


def parse_version(version: str) -> Maybe[tuple[int, int]]:
    major, _, rest = version.partition(".")
    minor = rest.partition(".")[0]
    if not (major.isdigit() and minor.isdigit()):
        return Nothing
    return Some((int(major), int(minor)))


def version_directory(version: str) -> Maybe[str]:
    """``"3.4"`` for a 3.4.x runtime, nothing for older or unparsable ones."""
    return parse_version(version).bind_optional(
        lambda v: f"{v[0]}.{v[1]}" if v >= VERSIONED_FROM else None
    )


def install_targets(config: BuildConfig) -> tuple[Path | None, tuple[Path, ...]]:
    """The primary destination and the extra ones that get the same files.

    With a version directory, each base directory gets its versioned
    sibling and the base directory itself is kept for older lookups.
    """
    bases = gather_base_directories(config)
    if not bases:
        return None, ()

    versioned = version_directory(config.runtime_version).value_or(None)
    targets = [Path(base, versioned) if versioned else base for base in bases]
    extra = [*targets[1:], *(bases if versioned else ())]
    return targets[0], tuple(dict.fromkeys(extra))


def declared_module(package_dir: Path, descriptor: str | PurePath) -> Maybe[str]:
    """The module name an extconf.rb passes to ``create_makefile``, if any."""
    if not PurePath(descriptor).name.endswith("extconf.rb"):
        return Nothing
    try:
        content = Path(package_dir, descriptor).read_text(errors="replace")
    except OSError:
        return Nothing

    for pattern in CREATE_MAKEFILE:
        if match := pattern.search(content):
            return Some(match.group(1))
    return Nothing


def safe_relative_path(path: str, fallback: str) -> str:
    """`path` normalized, or `fallback` when it would leave the install root."""
    clean = posixpath.normpath(path.replace("\\", "/"))
    if clean in (".", "..") or clean.startswith(("../", "/")):
        return fallback
    return clean


def _with_suffix(path: str, suffix: str) -> str:
    return path if not suffix or path.endswith(suffix) else path + suffix


def derive_install_path(
    package_dir: Path, descriptor: str | PurePath, artifact: str
) -> str:
    """Where `artifact` goes, relative to an install directory."""
    built = PurePosixPath(artifact)
    suffix, base_name = built.suffix, built.stem

    match declared_module(package_dir, descriptor):
        case Some(module):
            return safe_relative_path(_with_suffix(module, suffix), built.name)

    parts = PurePosixPath(PurePath(descriptor).as_posix()).parent.parts
    if parts[:1] == ("ext",):
        parts = parts[1:]
    if not parts:
        relative = base_name
    elif parts[-1] == base_name:
        relative = "/".join(parts)
    else:
        relative = "/".join((*parts, base_name))
    return safe_relative_path(_with_suffix(relative, suffix), built.name)


@impure_safe
def copy_artifact(source: Path, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy(source, destination)
    return destination


def _copy_everywhere(
    source: Path, directories: Sequence[Path], relative: str
) -> IOResultE[Path]:
    def _copy(directory: Path) -> IOResultE[Path]:
        destination = Path(directory, relative)
        return copy_artifact(source, destination).alt(
            lambda e: InstallError(str(source), str(destination), e)
        )

    first, *rest = directories
    return reduce(
        lambda copied, directory: copied.bind(lambda _: _copy(directory)).map(
            lambda _: Path(first, relative)
        ),
        rest,
        _copy(first),
    )


def _package_path(package_dir: Path, path: Path) -> str:
    try:
        return path.relative_to(package_dir).as_posix()
    except ValueError:
        return path.as_posix()


def install(
    config: BuildConfig,
    descriptor: str | PurePath,
    build_dir: Path,
    artifacts: Sequence[str],
) -> IOResultE[tuple[str, ...]]:
    """Installs the native libraries among `artifacts`.

    Returns the installed paths relative to the package root. Without native
    libraries the artifacts are returned as package paths and nothing is
    copied. The first failing copy aborts the installation; files already
    copied stay where they are.
    """
    if not artifacts:
        return IOSuccess(())

    primary, additional = install_targets(config)
    if primary is None or not any(map(is_native_library, artifacts)):
        return IOSuccess(package_relative(descriptor, artifacts))

    installed: IOResultE[tuple[str, ...]] = IOSuccess(())
    for artifact in filter(is_native_library, artifacts):
        source = Path(build_dir, artifact)
        if not source.is_file():
            continue
        relative = derive_install_path(config.package_dir, descriptor, artifact)
        installed = installed.bind(
            lambda done, source=source, relative=relative: _copy_everywhere(
                source, (primary, *additional), relative
            ).map(lambda target: (*done, _package_path(config.package_dir, target)))
        )

    if config.verbose:
        for path in unsafe_perform_io(installed.value_or(())):
            print(f"[pybuildext] installed '{path}'")
    return installed


def install_result(
    config: BuildConfig, descriptor: str | PurePath, result: BuildResult
) -> BuildResult:
    """Replaces a successful result's artifacts with their installed paths."""
    if not result.success:
        return result
    outcome = install(
        config, descriptor, extension_dir(config, descriptor), result.artifacts
    )
    return unsafe_perform_io(
        outcome.map(result.succeeded).alt(result.failed).lash(IOSuccess).unwrap()
    )
