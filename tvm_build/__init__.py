"""Manage local source builds of Apache TVM."""
from __future__ import annotations

from .build import BuildConfig, BuildEngine, BuildResult, VersionConfig, build, uninstall, version_config
from .errors import (
    DirectoryNotEmpty,
    DirectoryNotFound,
    InvalidOptionValue,
    InvalidRevisionName,
    RevisionNotFound,
    TransportError,
    TvmBuildError,
    UnknownBuildOption,
    UnsupportedOutputPath,
    UnsupportedPlatformError,
)
from .options import BuildOption, Switch, UserSettings
from .revision import Revision
from .targets import Target, resolve_target

__all__ = [
    "BuildConfig",
    "BuildEngine",
    "BuildOption",
    "BuildResult",
    "DirectoryNotEmpty",
    "DirectoryNotFound",
    "InvalidOptionValue",
    "InvalidRevisionName",
    "Revision",
    "RevisionNotFound",
    "Switch",
    "Target",
    "TransportError",
    "TvmBuildError",
    "UnknownBuildOption",
    "UnsupportedOutputPath",
    "UnsupportedPlatformError",
    "UserSettings",
    "VersionConfig",
    "build",
    "resolve_target",
    "uninstall",
    "version_config",
]
