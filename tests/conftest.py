from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePath

import pytest
from returns.io import IOFailure, IOResultE, IOSuccess

from pybuildext import commands
from pybuildext.commands import CommandOutput
from pybuildext.config import BuildConfig
from pybuildext.errors import CommandFailed
from pybuildext.result import BuildResult


@dataclass(frozen=True)
class Call:
    cmd: tuple[str, ...]
    cwd: Path
    env: dict[str, str] | None


@dataclass(frozen=True)
class Rule:
    prefix: tuple[str, ...]
    lines: tuple[str, ...] = ()
    returncode: int = 0
    creates: tuple[str, ...] = ()


@dataclass
class FakeRunner:
    """Stands in for `commands.run`.

    Commands are matched by prefix against the registered rules. A matching
    rule can print lines, fail, and create files in the working directory.
    Unmatched commands succeed silently.
    """

    rules: list[Rule] = field(default_factory=list)
    calls: list[Call] = field(default_factory=list)

    def on(self, *prefix: str, lines=(), returncode=0, creates=()) -> "FakeRunner":
        self.rules.append(Rule(prefix, tuple(lines), returncode, tuple(creates)))
        return self

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [call.cmd for call in self.calls]

    def __call__(
        self, cmd: Sequence[str], cwd: Path, env=None
    ) -> IOResultE[CommandOutput]:
        cmd = tuple(cmd)
        self.calls.append(Call(cmd, cwd, dict(env) if env is not None else None))
        rule = next(
            (rule for rule in self.rules if cmd[: len(rule.prefix)] == rule.prefix),
            Rule(()),
        )
        for name in rule.creates:
            path = Path(cwd, name)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("built")
        if rule.returncode != 0:
            return IOFailure(CommandFailed(cmd, rule.returncode, rule.lines))
        return IOSuccess(CommandOutput(cmd, rule.lines))


@dataclass
class StubAdapter:
    name: str
    suffix: str
    result: BuildResult = field(default_factory=lambda: BuildResult(success=True))
    on_build: object = None
    built: list[str] = field(default_factory=list)

    def matches(self, filename: str) -> bool:
        return filename.endswith(self.suffix)

    def build(self, config: BuildConfig, descriptor: str | PurePath) -> BuildResult:
        self.built.append(str(descriptor))
        if callable(self.on_build):
            self.on_build()
        return self.result

    def clean(self, config, descriptor):
        return IOSuccess(None)


def tools(*available: str):
    """A `which` that only knows `available`."""
    return lambda name: f"/usr/bin/{name}" if name in available else None


@pytest.fixture(autouse=True)
def linux(monkeypatch):
    monkeypatch.setattr(commands, "system", lambda: "linux")
    for var in ("MAKE", "CMAKE_GENERATOR", "CARGO", "CARGO_BUILD_TARGET", "RUSTFLAGS"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def package(tmp_path) -> Path:
    return tmp_path / "mygem"


@pytest.fixture
def config(package) -> BuildConfig:
    return BuildConfig(package_dir=package)


@pytest.fixture
def ext(package):
    """Creates an extension directory holding `files`, returns the descriptor."""

    def _ext(descriptor: str, *files: str, content: str = "") -> str:
        path = Path(package, descriptor)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        for name in files:
            Path(path.parent, name).write_text("")
        return descriptor

    return _ext
