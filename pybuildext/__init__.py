from pybuildext.config import BuildConfig, config_load
from pybuildext.errors import (
    BuildCancelled,
    BuildFailed,
    ErrorCode,
    ExtensionBuildError,
    InstallError,
    LocateError,
    MissingToolError,
    NoAdapterFound,
)
from pybuildext.install import install, install_result
from pybuildext.registry import AdapterRegistry, BatchReport, default_registry
from pybuildext.result import BuildResult
from pybuildext.toolcheck import ToolRequirement, check_tools, tool_available

__all__ = [
    "BuildConfig",
    "config_load",
    "BuildCancelled",
    "BuildFailed",
    "ErrorCode",
    "ExtensionBuildError",
    "InstallError",
    "LocateError",
    "MissingToolError",
    "NoAdapterFound",
    "install",
    "install_result",
    "AdapterRegistry",
    "BatchReport",
    "default_registry",
    "BuildResult",
    "ToolRequirement",
    "check_tools",
    "tool_available",
]
