from pathlib import Path

import pytest
from returns.pipeline import is_successful
from returns.unsafe import unsafe_perform_io

from pybuildext.adapters.generic import adapters_load
from pybuildext.config import CONFIG_FILE, BuildConfig, config_load, parse_config

CONFIG = """
[build]
package_dir = "mygem"
dest_path = "out"
build_args = ["--with-foo", "--enable-debug"]
parallel = 4
verbose = true
stop_on_failure = false

[build.env]
CFLAGS = "-O2"

[runtime]
engine = "ruby"
version = "3.4.1"
path = "/opt/ruby/bin/ruby"

[[adapters]]
name = "Nim"
patterns = ["*.nim"]
build = ["nim", "c", "--app:lib", "-o:{{output}}", "{{input}}.nim"]
tools = [{ name = "nim", purpose = "Nim compiler" }]
"""


@pytest.fixture
def config_file(tmp_path) -> Path:
    path = tmp_path / CONFIG_FILE
    path.write_text(CONFIG)
    return path


def test_config_load(config_file, tmp_path):
    config = unsafe_perform_io(config_load(config_file).unwrap())

    assert config.package_dir == tmp_path / "mygem"
    assert config.dest_path == tmp_path / "mygem/out"
    assert config.lib_dir is None
    assert config.build_args == ("--with-foo", "--enable-debug")
    assert config.env == {"CFLAGS": "-O2"}
    assert config.parallel == 4
    assert config.verbose
    assert not config.clean_first
    assert not config.stop_on_failure
    assert config.runtime_version == "3.4.1"
    assert config.runtime == "/opt/ruby/bin/ruby"


def test_defaults(tmp_path):
    config = parse_config(tmp_path, {})
    assert config == BuildConfig(package_dir=tmp_path)
    assert config.stop_on_failure
    assert config.runtime == "ruby"


def test_unknown_keys(tmp_path):
    path = tmp_path / CONFIG_FILE
    path.write_text('[build]\njobs = 4\n')
    outcome = config_load(path)
    assert not is_successful(outcome)
    error = unsafe_perform_io(outcome.failure())
    assert isinstance(error, ValueError)
    assert "jobs" in str(error)


def test_missing_file(tmp_path):
    assert not is_successful(config_load(tmp_path / CONFIG_FILE))


def test_replace_returns_a_copy(tmp_path):
    config = BuildConfig(package_dir=tmp_path)
    changed = config.replace(parallel=8)
    assert changed.parallel == 8
    assert config.parallel == 0


def test_adapters_load(config_file):
    (nim,) = unsafe_perform_io(adapters_load(config_file).unwrap())
    assert nim.name == "Nim"
    assert nim.matches("ext/foo/foo.nim")
    assert nim.required_tools()[0].purpose == "Nim compiler"


def test_build_args_must_be_a_list(tmp_path):
    path = tmp_path / CONFIG_FILE
    path.write_text('[build]\nbuild_args = "--with-foo"\n')
    error = unsafe_perform_io(config_load(path).failure())
    assert isinstance(error, ValueError)
    assert "build_args" in str(error)


def test_adapters_load_rejects_string_patterns(tmp_path):
    path = tmp_path / CONFIG_FILE
    path.write_text('[[adapters]]\nname = "Nim"\npatterns = "*.nim"\nbuild = ["nim"]\n')
    assert not is_successful(adapters_load(path))
