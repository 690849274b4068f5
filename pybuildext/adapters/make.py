"""The make sub-step shared by every makefile-driven adapter."""

import os
from pathlib import Path

from pybuildext import commands
from pybuildext.commands import Runner
from pybuildext.config import BuildConfig
from pybuildext.lifecycle import run_best_effort, run_step
from pybuildext.result import BuildResult, PhaseResult
from pybuildext.toolcheck import ToolRequirement

MAKE = ToolRequirement(
    "make", alternatives=("gmake", "nmake"), purpose="Build automation tool"
)
C_COMPILER = ToolRequirement(
    "gcc", alternatives=("clang", "cc", "cl"), purpose="C/C++ compiler"
)


def make_program() -> str:
    if program := os.environ.get("MAKE"):
        return program
    return "nmake" if commands.system() == "windows" else "make"


def run_make(
    adapter: str,
    runner: Runner,
    config: BuildConfig,
    ext_dir: Path,
    result: BuildResult,
) -> PhaseResult:
    program = make_program()
    jobs = (f"-j{config.parallel}",) if config.parallel > 0 else ()

    if config.clean_first:
        result = run_best_effort(runner, config, (program, "clean"), ext_dir, result)

    env = {"DESTDIR": str(config.dest_path)} if config.dest_path else None
    built = run_step(adapter, runner, config, (program, *jobs), ext_dir, result, env)
    if config.dest_path is None:
        return built

    return built.bind(
        lambda result: run_step(
            adapter, runner, config, (program, "install"), ext_dir, result, env
        )
    )
