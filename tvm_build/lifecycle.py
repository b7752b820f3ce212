"""Acquisition, cleanup and removal of revision directories.

A revision root moves through three states: absent, source present (a clone
with every submodule materialised) and build present (a ``build`` directory
next to the source). Only this module creates or deletes revision trees.
"""
from __future__ import annotations

from pathlib import Path
import errno
import logging
import shutil

from .errors import DirectoryNotEmpty, DirectoryNotFound, RevisionNotFound, TransportError
from .git_manager import GitManager
from .revision import Revision

logger = logging.getLogger(__name__)


class RevisionManager:
    def __init__(self, git: GitManager) -> None:
        self._git = git

    def prepare(self, revision: Revision, *, clean: bool = False) -> Revision:
        """Make sure the revision's sources exist, cleaning first when asked.

        ``clean`` is ignored for pinned revisions: a directory passed in by the
        user is never deleted.
        """
        if clean:
            if revision.is_pinned:
                logger.warning("not cleaning user-owned directory %s", revision.path)
            else:
                self.reset(revision)
        self.ensure_source(revision)
        return revision

    def reset(self, revision: Revision) -> None:
        if revision.is_pinned:
            return
        root = revision.path
        if not root.exists():
            return
        logger.info("removing %s", root)
        try:
            shutil.rmtree(root)
        except OSError as exc:
            raise TransportError(f"failed to remove {root}: {exc}") from exc

    def ensure_source(self, revision: Revision) -> bool:
        """Clone the revision if needed; returns whether a clone happened."""
        source = revision.source_path
        if source.exists():
            checked_out = self._git.current_ref(source)
            if checked_out is not None and checked_out != revision.ref_name:
                logger.warning(
                    "%s has '%s' checked out, not '%s'; reusing it as is (use --clean to re-clone)",
                    source,
                    checked_out,
                    revision.ref_name,
                )
            else:
                logger.debug("reusing existing sources in %s", source)
            return False

        root_existed = revision.path.exists()
        try:
            self._git.clone(revision.repository_url, revision.ref_name, source)
        except (RevisionNotFound, TransportError):
            if not revision.is_pinned and not root_existed:
                self._discard_empty_root(revision)
            raise
        for submodule in self._git.list_submodules(source):
            self._git.update_submodule(source, submodule, recursive=True)
        return True

    def _discard_empty_root(self, revision: Revision) -> None:
        """Remove the directories a failed clone left behind, up to the installation root."""
        install_root = Path(revision.install_root)
        current = revision.path
        while current != install_root and install_root in current.parents:
            if not current.is_dir() or any(current.iterdir()):
                return
            logger.debug("removing empty %s left by a failed clone", current)
            try:
                current.rmdir()
            except OSError as exc:
                logger.warning("could not remove %s: %s", current, exc)
                return
            current = current.parent

    def ensure_build_dir(self, revision: Revision) -> Path:
        build_path = revision.build_path
        try:
            build_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise TransportError(f"failed to create build directory {build_path}: {exc}") from exc
        return build_path

    def remove(self, revision: Revision, *, recursive: bool = False) -> None:
        """Delete the revision root.

        Without ``recursive`` only an empty root can be removed.
        """
        root = revision.path
        if not root.is_dir():
            raise DirectoryNotFound(root)
        if recursive:
            logger.info("removing %s", root)
            try:
                shutil.rmtree(root)
            except OSError as exc:
                raise TransportError(f"failed to remove {root}: {exc}") from exc
            return
        try:
            root.rmdir()
        except OSError as exc:
            if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
                raise DirectoryNotEmpty(root) from exc
            raise TransportError(f"failed to remove {root}: {exc}") from exc
