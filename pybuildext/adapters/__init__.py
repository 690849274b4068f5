from pybuildext.adapters.base import Adapter, PhasedAdapter, matches_pattern
from pybuildext.adapters.cargo import CargoAdapter
from pybuildext.adapters.cmake import CMakeAdapter
from pybuildext.adapters.configure import ConfigureAdapter
from pybuildext.adapters.extconf import ExtConfAdapter
from pybuildext.adapters.generic import GenericAdapter, adapters_load, crystal, swift, zig
from pybuildext.adapters.go import GoAdapter
from pybuildext.adapters.java import JavaAdapter
from pybuildext.adapters.makefile import MakefileAdapter
from pybuildext.adapters.rake import RakeAdapter

__all__ = [
    "Adapter",
    "PhasedAdapter",
    "matches_pattern",
    "CargoAdapter",
    "CMakeAdapter",
    "ConfigureAdapter",
    "ExtConfAdapter",
    "GenericAdapter",
    "adapters_load",
    "crystal",
    "swift",
    "zig",
    "GoAdapter",
    "JavaAdapter",
    "MakefileAdapter",
    "RakeAdapter",
]
