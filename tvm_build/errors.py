"""Exceptions raised while managing TVM revisions."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence


class TvmBuildError(RuntimeError):
    """Base class for failures reported by tvm-build."""


class RevisionNotFound(TvmBuildError):
    """Raised when a ref/repository combination cannot be cloned."""

    def __init__(self, ref_name: str, repository_url: str) -> None:
        super().__init__(
            f"the requested revision ({ref_name}) and repository ({repository_url}) combination does not exist."
        )
        self.ref_name = ref_name
        self.repository_url = repository_url


class TransportError(TvmBuildError):
    """Wraps a network, git or filesystem failure with context."""


class DirectoryNotFound(TvmBuildError):
    def __init__(self, path: Path | str) -> None:
        super().__init__(f"the directory does not exist: {path}")
        self.path = Path(path)


class DirectoryNotEmpty(TvmBuildError):
    def __init__(self, path: Path | str) -> None:
        super().__init__(f"the directory is not empty: {path}")
        self.path = Path(path)


class InvalidOptionValue(TvmBuildError, ValueError):
    """Raised when a build option value does not match its kind."""

    def __init__(self, key: str, given: object, expected_forms: Sequence[str]) -> None:
        forms = ", ".join(expected_forms)
        super().__init__(f"invalid value {given!r} for {key}; expected one of: {forms}")
        self.key = key
        self.given = given
        self.expected_forms = tuple(expected_forms)


class UnknownBuildOption(TvmBuildError, ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(f"unknown build option: {name}")
        self.name = name


class UnsupportedPlatformError(TvmBuildError):
    def __init__(self, system: str) -> None:
        super().__init__(f"Platform {system} unsupported, please check the issue tracker.")
        self.system = system


class UnsupportedOutputPath(TvmBuildError):
    def __init__(self, path: str) -> None:
        super().__init__(f"custom output paths are not yet supported: {path}")
        self.path = path


class InvalidRevisionName(TvmBuildError, ValueError):
    """Raised when a ref name cannot name a directory under the installation root."""

    def __init__(self, ref_name: str) -> None:
        super().__init__(f"invalid revision name: {ref_name!r}")
        self.ref_name = ref_name
