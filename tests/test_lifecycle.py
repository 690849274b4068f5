from pathlib import Path

from returns.io import IOFailure, IOSuccess
from returns.unsafe import unsafe_perform_io

from pybuildext.errors import BuildFailed, CommandFailed, format_build_error
from pybuildext.lifecycle import (
    BuildSteps,
    extension_dir,
    find_artifacts,
    no_configure,
    run_best_effort,
    run_build,
    run_step,
)
from pybuildext.result import BuildResult

from conftest import FakeRunner


def test_extension_dir(config):
    assert extension_dir(config, "ext/foo/extconf.rb") == Path(config.package_dir, "ext/foo")


def test_phases_run_in_order(config, package):
    seen = []

    def phase(name):
        def _phase(config, ext_dir, result):
            seen.append((name, ext_dir))
            return result.log(name).proceed()

        return _phase

    steps = BuildSteps(
        configure=phase("configure"),
        compile=phase("compile"),
        locate=lambda ext_dir: IOSuccess(("foo.so",)),
    )
    result = run_build(config, "ext/foo/extconf.rb", steps)

    assert result.success
    assert result.error is None
    assert result.output == ("configure", "compile")
    assert result.artifacts == ("foo.so",)
    assert seen == [("configure", package / "ext/foo"), ("compile", package / "ext/foo")]


def test_failing_phase_skips_the_rest(config):
    compiled = []
    error = RuntimeError("boom")
    steps = BuildSteps(
        configure=lambda config, ext_dir, result: result.log("partial").halt(error),
        compile=lambda config, ext_dir, result: compiled.append(1) or result.proceed(),
        locate=lambda ext_dir: IOSuccess(("foo.so",)),
    )
    result = run_build(config, "ext/foo/extconf.rb", steps)

    assert not result.success
    assert result.error is error
    assert result.output == ("partial",)
    assert result.artifacts == ()
    assert compiled == []


def test_locate_failure_sets_error(config):
    error = OSError("unreadable")
    steps = BuildSteps(
        configure=no_configure("nothing to do"),
        compile=lambda config, ext_dir, result: result.proceed(),
        locate=lambda ext_dir: IOFailure(error),
    )
    result = run_build(config, "ext/foo/extconf.rb", steps)
    assert not result.success
    assert result.error is error


def test_no_configure_logs_only_when_verbose(config):
    quiet = no_configure("skip")(config, Path("."), BuildResult())
    loud = no_configure("skip")(config.replace(verbose=True), Path("."), BuildResult())
    assert unsafe_perform_io(quiet.unwrap()).output == ()
    assert unsafe_perform_io(loud.unwrap()).output == ("skip",)


def test_first_error_wins():
    first, second = ValueError("first"), ValueError("second")
    result = BuildResult().failed(first).failed(second)
    assert result.error is first
    assert not result.success


def test_run_step_success_with_trace(config, tmp_path):
    runner = FakeRunner().on("make", lines=["cc -c foo.c"])
    outcome = run_step("Makefile", runner, config.replace(verbose=True), ("make",), tmp_path, BuildResult())
    result = unsafe_perform_io(outcome.unwrap())
    assert result.output == (
        "cc -c foo.c",
        "Running: make",
        f"Working directory: {tmp_path}",
    )


def test_run_step_failure_wraps_output(config, tmp_path):
    runner = FakeRunner().on("make", lines=["foo.c:1: error"], returncode=2)
    outcome = run_step("Makefile", runner, config, ("make",), tmp_path, BuildResult().log("configured"))
    result = unsafe_perform_io(outcome.failure())

    assert isinstance(result.error, BuildFailed)
    assert result.error.adapter == "Makefile"
    assert isinstance(result.error.cause, CommandFailed)
    assert result.output == ("configured", "foo.c:1: error")
    assert str(result.error) == (
        "Makefile build failed: 'make' exited with status 2"
        "\n\nBuild output:\nconfigured\nfoo.c:1: error"
    )


def test_run_step_merges_environment(config, tmp_path):
    runner = FakeRunner()
    run_step("Go", runner, config.replace(env={"A": "1", "B": "1"}), ("go",), tmp_path, BuildResult(), {"B": "2"})
    env = runner.calls[0].env
    assert env["A"] == "1"
    assert env["B"] == "2"


def test_best_effort_keeps_going(config, tmp_path):
    runner = FakeRunner().on("make", "clean", lines=["no rule"], returncode=2)
    result = run_best_effort(runner, config, ("make", "clean"), tmp_path, BuildResult())
    assert result.output == ("no rule",)
    assert result.error is None


def test_format_build_error():
    assert format_build_error("CMake", (), None) == "CMake build failed"
    assert format_build_error("CMake", (), "oops") == "CMake build failed: oops"
    assert format_build_error("CMake", ("a", "b"), "oops") == (
        "CMake build failed: oops\n\nBuild output:\na\nb"
    )


def test_find_artifacts(tmp_path):
    for name in ("foo.so", "bar.bundle", "notes.txt", "build/baz.so"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("")

    found = find_artifacts(tmp_path, ("*.so", "*.bundle"), (".", "build", "missing"))
    assert unsafe_perform_io(found.unwrap()) == ("foo.so", "bar.bundle", "build/baz.so")
