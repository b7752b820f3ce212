"""Version-control operations used to acquire TVM sources.

Clones and reads go through pygit2. Submodule updates use the git CLI so the
user's credentials, URL rewrites and hooks are respected.
"""
from __future__ import annotations

from pathlib import Path
from typing import List
import logging

import pygit2

from .command_runner import CommandError, CommandRunner, SubprocessCommandRunner
from .errors import RevisionNotFound, TransportError

logger = logging.getLogger(__name__)

_NOT_FOUND_MARKERS = ("not found", "404", "does not exist")


def _is_not_found(error: pygit2.GitError) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in _NOT_FOUND_MARKERS)


class GitManager:
    def __init__(self, runner: CommandRunner | None = None) -> None:
        self._runner = runner or SubprocessCommandRunner()

    def clone(self, url: str, ref_name: str, destination: Path) -> pygit2.Repository:
        """Clone ``url`` with ``ref_name`` checked out into ``destination``."""
        logger.info("cloning %s (%s) into %s", url, ref_name, destination)
        try:
            return pygit2.clone_repository(url, str(destination), checkout_branch=ref_name)
        except KeyError as exc:
            # libgit2 reports GIT_ENOTFOUND as KeyError
            raise RevisionNotFound(ref_name, url) from exc
        except pygit2.GitError as exc:
            if _is_not_found(exc):
                raise RevisionNotFound(ref_name, url) from exc
            raise TransportError(f"failed to clone {url} ({ref_name}): {exc}") from exc
        except OSError as exc:
            raise TransportError(f"failed to clone {url} into {destination}: {exc}") from exc

    def list_submodules(self, repo_path: Path) -> List[str]:
        try:
            repo = pygit2.Repository(str(repo_path))
            return list(repo.listall_submodules())
        except pygit2.GitError as exc:
            raise TransportError(f"failed to read submodules of {repo_path}: {exc}") from exc

    def update_submodule(self, repo_path: Path, submodule_path: str, *, recursive: bool = True) -> None:
        command = ["git", "submodule", "update", "--init"]
        if recursive:
            command.append("--recursive")
        command.extend(["--", submodule_path])
        try:
            self._runner.run(command, cwd=repo_path, stream=True, note=f"Update submodule {submodule_path}")
        except CommandError as exc:
            raise TransportError(f"failed to update submodule '{submodule_path}' in {repo_path}") from exc

    def current_ref(self, repo_path: Path) -> str | None:
        """Branch checked out in ``repo_path``; ``None`` when detached or unreadable."""
        try:
            repo = pygit2.Repository(str(repo_path))
            if repo.head_is_detached or repo.head_is_unborn:
                return None
            return repo.head.shorthand
        except pygit2.GitError:
            return None
