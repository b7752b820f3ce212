"""Revisions and the on-disk locations derived from them."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping
import os

import pygit2

from .errors import InvalidRevisionName

TVM_REPO = "https://github.com/apache/tvm"
DEFAULT_BRANCH = "main"
INSTALL_ROOT_ENV = "TVM_BUILD_HOME"


def default_installation_root(env: Mapping[str, str] | None = None) -> Path:
    """Directory under which every non-pinned revision lives.

    ``$TVM_BUILD_HOME`` wins over ``~/.tvm_build``. Nothing is created here;
    the lifecycle manager creates directories as revisions are installed.
    """
    env = os.environ if env is None else env
    override = env.get(INSTALL_ROOT_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".tvm_build"


@dataclass(frozen=True, slots=True)
class Revision:
    """One buildable checkout of TVM.

    ``repository_path`` pins the revision to a directory the caller owns; such
    a revision is never cleaned or removed by tvm-build.
    """

    ref_name: str
    install_root: Path
    repository_url: str = TVM_REPO
    repository_path: Path | None = None

    def __post_init__(self) -> None:
        check_ref_name(self.ref_name)

    @property
    def is_pinned(self) -> bool:
        return self.repository_path is not None

    @property
    def path(self) -> Path:
        if self.repository_path is not None:
            return Path(self.repository_path)
        return Path(self.install_root) / self.ref_name

    @property
    def source_path(self) -> Path:
        return self.path / "source"

    @property
    def build_path(self) -> Path:
        return self.path / "build"


def check_ref_name(ref_name: str) -> str:
    """Reject ref names that would resolve outside their own directory.

    Empty names, absolute paths, backslashes and ``.``/``..`` components are refused
    before git's own branch name rules are applied.
    """
    if not ref_name or ref_name.startswith("/") or "\\" in ref_name:
        raise InvalidRevisionName(ref_name)
    if any(part in ("", ".", "..") for part in ref_name.split("/")):
        raise InvalidRevisionName(ref_name)
    if not pygit2.reference_is_valid_name(f"refs/heads/{ref_name}"):
        raise InvalidRevisionName(ref_name)
    return ref_name


def list_installed(install_root: Path) -> List[str]:
    """Names of the revisions currently present under ``install_root``."""
    if not install_root.is_dir():
        return []
    return sorted(entry.name for entry in install_root.iterdir() if entry.is_dir())
