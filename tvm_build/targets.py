"""Resolve the host/target description CMake needs for the running machine."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple
import platform

from .errors import UnsupportedPlatformError


@dataclass(frozen=True, slots=True)
class Target:
    """Target specific information needed for locating tool chains and running CMake."""

    host: str
    target_str: str
    cmake_defines: Tuple[Tuple[str, str], ...] = ()


# system name (lower-case) -> (host identifier, triple template)
_SYSTEMS: Dict[str, Tuple[str, str]] = {
    "darwin": ("Darwin", "{arch}-apple-darwin"),
    "linux": ("Linux", "{arch}-unknown-linux-gnu"),
    "windows": ("Windows", "{arch}-pc-windows-msvc"),
}

_ARCH_ALIASES: Dict[str, str] = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "aarch64": "aarch64",
}


def _normalize_arch(machine: str) -> str:
    machine = machine.strip().lower()
    return _ARCH_ALIASES.get(machine, machine)


def _platform_defines(host: str, arch: str) -> Tuple[Tuple[str, str], ...]:
    if host != "Darwin":
        return ()
    if arch == "aarch64":
        return (("CMAKE_OSX_ARCHITECTURES", "arm64"),)
    if arch == "x86_64":
        return (("CMAKE_OSX_ARCHITECTURES", "x86_64"),)
    return ()


def resolve_target(system: str | None = None, machine: str | None = None) -> Target:
    """Map the operating system and CPU architecture to a :class:`Target`.

    ``system`` and ``machine`` default to :func:`platform.system` and
    :func:`platform.machine`. An unknown operating system is fatal.
    """
    system = platform.system() if system is None else system
    machine = platform.machine() if machine is None else machine

    entry = _SYSTEMS.get(system.strip().lower())
    if entry is None:
        raise UnsupportedPlatformError(system)
    host, template = entry

    arch = _normalize_arch(machine)
    # Apple spells 64-bit ARM as arm64 in its triples.
    triple_arch = "arm64" if host == "Darwin" and arch == "aarch64" else arch
    return Target(
        host=host,
        target_str=template.format(arch=triple_arch),
        cmake_defines=_platform_defines(host, arch),
    )
