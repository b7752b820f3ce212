from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from tvm_build.errors import DirectoryNotEmpty, DirectoryNotFound, RevisionNotFound
from tvm_build.git_manager import GitManager
from tvm_build.lifecycle import RevisionManager
from tvm_build.revision import TVM_REPO, Revision, list_installed


class FakeGit(GitManager):
    def __init__(self, *, submodules: list[str] | None = None, missing_refs: set[str] | None = None) -> None:
        self.clones: list[tuple[str, str, Path]] = []
        self.updates: list[tuple[Path, str, bool]] = []
        self.submodules = submodules or []
        self.missing_refs = missing_refs or set()
        self.checked_out: dict[Path, str] = {}

    def clone(self, url, ref_name, destination):  # type: ignore[override]
        if ref_name in self.missing_refs:
            # libgit2 removes the checkout directory but not the parents it created
            destination.parent.mkdir(parents=True, exist_ok=True)
            raise RevisionNotFound(ref_name, url)
        self.clones.append((url, ref_name, destination))
        destination.mkdir(parents=True)
        (destination / "CMakeLists.txt").write_text("project(tvm)\n")
        self.checked_out[destination] = ref_name
        return None

    def list_submodules(self, repo_path):  # type: ignore[override]
        return list(self.submodules)

    def update_submodule(self, repo_path, submodule_path, *, recursive=True):  # type: ignore[override]
        self.updates.append((repo_path, submodule_path, recursive))

    def current_ref(self, repo_path):  # type: ignore[override]
        return self.checked_out.get(repo_path)


class RevisionManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.git = FakeGit(submodules=["3rdparty/dlpack", "3rdparty/dmlc-core"])
        self.manager = RevisionManager(self.git)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _revision(self, ref_name: str = "main", **kwargs) -> Revision:
        return Revision(ref_name=ref_name, install_root=self.root, **kwargs)

    def test_ensure_source_clones_and_updates_every_submodule(self) -> None:
        revision = self._revision()
        self.assertTrue(self.manager.ensure_source(revision))
        self.assertEqual(self.git.clones, [(TVM_REPO, "main", revision.source_path)])
        self.assertEqual(
            self.git.updates,
            [
                (revision.source_path, "3rdparty/dlpack", True),
                (revision.source_path, "3rdparty/dmlc-core", True),
            ],
        )

    def test_ensure_source_is_idempotent(self) -> None:
        revision = self._revision()
        self.manager.ensure_source(revision)
        before = sorted(p.relative_to(self.root) for p in self.root.rglob("*"))
        self.assertFalse(self.manager.ensure_source(revision))
        after = sorted(p.relative_to(self.root) for p in self.root.rglob("*"))
        self.assertEqual(len(self.git.clones), 1)
        self.assertEqual(len(self.git.updates), 2)
        self.assertEqual(before, after)

    def test_stale_checkout_is_reused_with_a_warning(self) -> None:
        main = self._revision()
        self.manager.ensure_source(main)
        self.git.checked_out[main.source_path] = "v0.8"
        with self.assertLogs("tvm_build.lifecycle", level="WARNING") as logs:
            self.assertFalse(self.manager.ensure_source(main))
        self.assertIn("v0.8", logs.output[0])
        self.assertEqual(len(self.git.clones), 1)

    def test_missing_revision_propagates(self) -> None:
        git = FakeGit(missing_refs={"does-not-exist-xyz"})
        manager = RevisionManager(git)
        with self.assertRaises(RevisionNotFound) as ctx:
            manager.ensure_source(self._revision("does-not-exist-xyz"))
        self.assertEqual(ctx.exception.ref_name, "does-not-exist-xyz")
        self.assertEqual(ctx.exception.repository_url, TVM_REPO)

    def test_failed_clone_leaves_no_installed_revision(self) -> None:
        git = FakeGit(missing_refs={"does-not-exist-xyz", "feature/gone"})
        manager = RevisionManager(git)
        with self.assertRaises(RevisionNotFound):
            manager.ensure_source(self._revision("does-not-exist-xyz"))
        with self.assertRaises(RevisionNotFound):
            manager.ensure_source(self._revision("feature/gone"))
        self.assertEqual(list_installed(self.root), [])
        self.assertTrue(self.root.is_dir())

    def test_failed_clone_keeps_an_existing_root(self) -> None:
        revision = self._revision("does-not-exist-xyz")
        revision.path.mkdir()
        (revision.path / "notes.txt").write_text("keep me")
        manager = RevisionManager(FakeGit(missing_refs={"does-not-exist-xyz"}))
        with self.assertRaises(RevisionNotFound):
            manager.ensure_source(revision)
        self.assertTrue((revision.path / "notes.txt").exists())

    def test_failed_clone_into_a_pinned_directory_keeps_it(self) -> None:
        owned = self.root / "mine"
        manager = RevisionManager(FakeGit(missing_refs={"does-not-exist-xyz"}))
        with self.assertRaises(RevisionNotFound):
            manager.ensure_source(self._revision("does-not-exist-xyz", repository_path=owned))
        self.assertTrue(owned.is_dir())

    def test_clean_removes_and_reclones(self) -> None:
        revision = self._revision()
        self.manager.ensure_source(revision)
        marker = revision.build_path / "stale.o"
        marker.parent.mkdir(parents=True)
        marker.write_text("")
        self.manager.prepare(revision, clean=True)
        self.assertFalse(marker.exists())
        self.assertEqual(len(self.git.clones), 2)

    def test_clean_never_touches_a_pinned_directory(self) -> None:
        owned = self.root / "mine"
        (owned / "source").mkdir(parents=True)
        precious = owned / "notes.txt"
        precious.write_text("keep me")
        revision = self._revision(repository_path=owned)
        with self.assertLogs("tvm_build.lifecycle", level="WARNING"):
            self.manager.prepare(revision, clean=True)
        self.assertTrue(precious.exists())
        self.assertEqual(self.git.clones, [])

    def test_reset_ignores_pinned_and_missing_roots(self) -> None:
        owned = self.root / "mine"
        owned.mkdir()
        self.manager.reset(self._revision(repository_path=owned))
        self.assertTrue(owned.exists())
        self.manager.reset(self._revision("never-installed"))

    def test_ensure_build_dir(self) -> None:
        revision = self._revision("feature/nested")
        path = self.manager.ensure_build_dir(revision)
        self.assertTrue(path.is_dir())
        self.assertEqual(path, self.root / "feature" / "nested" / "build")
        self.assertEqual(self.manager.ensure_build_dir(revision), path)

    def test_remove_missing_directory(self) -> None:
        with self.assertRaises(DirectoryNotFound) as ctx:
            self.manager.remove(self._revision("r"))
        self.assertEqual(ctx.exception.path, self.root / "r")

    def test_remove_is_non_recursive_by_default(self) -> None:
        revision = self._revision()
        self.manager.ensure_source(revision)
        with self.assertRaises(DirectoryNotEmpty):
            self.manager.remove(revision)
        self.assertTrue(revision.path.exists())
        self.manager.remove(revision, recursive=True)
        self.assertFalse(revision.path.exists())

    def test_remove_empty_root(self) -> None:
        revision = self._revision("empty")
        revision.path.mkdir()
        self.manager.remove(revision)
        self.assertFalse(revision.path.exists())


if __name__ == "__main__":
    unittest.main()
