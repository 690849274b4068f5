"""External process execution used by every adapter."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
import os
from pathlib import Path
import platform
import subprocess

from returns.io import IOFailure, IOResultE, IOSuccess

from pybuildext.errors import CommandFailed
from pybuildext.types import Cmd, Env


@dataclass(frozen=True)
class CommandOutput:
    cmd: Cmd
    lines: tuple[str, ...]


Runner = Callable[[Sequence[str], Path, Env | None], IOResultE[CommandOutput]]


def system() -> str:
    return platform.system().lower()


def environment(*overrides: Env | None) -> dict[str, str]:
    """The process environment with each override applied in order."""
    env = dict(os.environ)
    for override in overrides:
        if override:
            env.update(override)
    return env


def run(
    cmd: Sequence[str], cwd: Path, env: Env | None = None
) -> IOResultE[CommandOutput]:
    """Runs `cmd` in `cwd` and captures stdout and stderr as one stream."""
    try:
        proc = subprocess.run(
            tuple(cmd),
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        )
    except OSError as e:
        e.add_note(f"Command '{cmd[0]}' could not be started!")
        return IOFailure(e)

    lines = tuple(proc.stdout.split("\n")) if proc.stdout else ()
    if proc.returncode != 0:
        return IOFailure(CommandFailed(cmd, proc.returncode, lines))
    return IOSuccess(CommandOutput(cmd=tuple(cmd), lines=lines))
