"""Build orchestration: acquire a revision, configure it with CMake and build it."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Sequence
import json
import logging

from .command_runner import CommandResult, CommandRunner, SubprocessCommandRunner
from .errors import UnsupportedOutputPath
from .git_manager import GitManager
from .lifecycle import RevisionManager
from .options import UserSettings
from .revision import DEFAULT_BRANCH, TVM_REPO, Revision, default_installation_root
from .targets import Target, resolve_target

logger = logging.getLogger(__name__)

GENERATOR = "Unix Makefiles"
PROFILE = "Debug"


@dataclass(frozen=True)
class BuildConfig:
    repository: str | None = None
    repository_path: str | None = None
    output_path: str | None = None
    branch: str | None = None
    verbose: bool = False
    clean: bool = False
    settings: UserSettings = field(default_factory=UserSettings)
    install_root: Path | None = None

    @property
    def revision_name(self) -> str:
        return self.branch or DEFAULT_BRANCH

    @property
    def repository_url(self) -> str:
        return self.repository or TVM_REPO


@dataclass(slots=True)
class BuildStep:
    description: str
    command: Sequence[str]
    cwd: Path
    env: Dict[str, str]


@dataclass(slots=True)
class BuildPlan:
    revision: Revision
    target: Target
    defines: List[tuple[str, str]]
    steps: List[BuildStep]

    def to_json(self) -> str:
        data = {
            "revision": self.revision.ref_name,
            "source_dir": str(self.revision.source_path),
            "build_dir": str(self.revision.build_path),
            "host": self.target.host,
            "target": self.target.target_str,
            "defines": [list(pair) for pair in self.defines],
            "steps": [
                {"description": step.description, "command": list(step.command), "cwd": str(step.cwd)}
                for step in self.steps
            ],
        }
        return json.dumps(data, indent=2)


@dataclass(slots=True)
class BuildResult:
    revision: Revision
    plan: BuildPlan | None = None
    results: List[CommandResult] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class VersionConfig:
    tvm_python_path: Path

    def to_mapping(self) -> Dict[str, str]:
        return {"tvm_python_path": str(self.tvm_python_path)}


class BuildEngine:
    def __init__(
        self,
        *,
        command_runner: CommandRunner,
        git_manager: GitManager | None = None,
        install_root: Path | None = None,
        target_resolver: Callable[[], Target] | None = None,
    ) -> None:
        self._runner = command_runner
        self._git = git_manager or GitManager(SubprocessCommandRunner())
        self._install_root = install_root
        self._resolve_target = target_resolver or resolve_target
        self.revisions = RevisionManager(self._git)

    @property
    def install_root(self) -> Path:
        if self._install_root is None:
            self._install_root = default_installation_root()
        return self._install_root

    def revision_for(self, config: BuildConfig) -> Revision:
        return Revision(
            ref_name=config.revision_name,
            install_root=config.install_root or self.install_root,
            repository_url=config.repository_url,
            repository_path=Path(config.repository_path).expanduser() if config.repository_path else None,
        )

    def named_revision(self, ref_name: str) -> Revision:
        return Revision(ref_name=ref_name, install_root=self.install_root)

    def build(self, config: BuildConfig) -> BuildResult:
        """Install ``config``'s revision: acquire, configure and build.

        Sources are always acquired before the target is resolved; when the
        build fails the clone is left in place for the next attempt.
        """
        if config.output_path is not None:
            raise UnsupportedOutputPath(config.output_path)

        revision = self.revision_for(config)
        self.revisions.prepare(revision, clean=config.clean)
        target = self._resolve_target()
        logger.info("building %s for %s (host %s)", revision.ref_name, target.target_str, target.host)
        self.revisions.ensure_build_dir(revision)

        plan = self.plan(revision, target, config)
        results = self.execute(plan)
        return BuildResult(revision=revision, plan=plan, results=results)

    def plan(self, revision: Revision, target: Target, config: BuildConfig) -> BuildPlan:
        source_dir = revision.source_path
        build_dir = revision.build_path

        defines: List[tuple[str, str]] = [
            ("CMAKE_BUILD_TYPE", PROFILE),
            ("CMAKE_INSTALL_PREFIX", str(build_dir)),
        ]
        defines.extend(target.cmake_defines)
        for key, value in config.settings.cmake_defines():
            logger.info("cmake define %s=%s", key, value)
            defines.append((key, value))
        if config.verbose:
            defines.append(("CMAKE_VERBOSE_MAKEFILE", "ON"))

        env = {"TARGET": target.target_str, "HOST": target.host}

        configure_cmd = ["cmake", "-S", str(source_dir), "-B", str(build_dir), "-G", GENERATOR]
        configure_cmd.extend(f"-D{key}={value}" for key, value in defines)

        build_cmd = ["cmake", "--build", str(build_dir), "--config", PROFILE, "--target", "install"]
        if config.verbose:
            build_cmd.append("--verbose")

        steps = [
            BuildStep(description="Configure TVM", command=configure_cmd, cwd=build_dir, env=dict(env)),
            BuildStep(description="Build TVM", command=build_cmd, cwd=build_dir, env=dict(env)),
        ]
        return BuildPlan(revision=revision, target=target, defines=defines, steps=steps)

    def execute(self, plan: BuildPlan) -> List[CommandResult]:
        results: List[CommandResult] = []
        for step in plan.steps:
            results.append(
                self._runner.run(step.command, cwd=step.cwd, env=step.env, note=step.description, stream=True)
            )
        return results

    def uninstall(self, ref_name: str, output_path: str | None = None, *, recursive: bool = False) -> None:
        if output_path is not None:
            raise UnsupportedOutputPath(output_path)
        self.revisions.remove(self.named_revision(ref_name), recursive=recursive)

    def version_config(self, ref_name: str) -> VersionConfig:
        """Predict where the revision's Python package lives; nothing is checked."""
        revision = self.named_revision(ref_name)
        return VersionConfig(tvm_python_path=revision.source_path / "python" / "tvm")


def build(config: BuildConfig) -> BuildResult:
    """Build TVM given a build configuration."""
    return BuildEngine(command_runner=SubprocessCommandRunner(), install_root=config.install_root).build(config)


def uninstall(
    ref_name: str,
    output_path: str | None = None,
    *,
    recursive: bool = False,
    install_root: Path | None = None,
) -> None:
    BuildEngine(command_runner=SubprocessCommandRunner(), install_root=install_root).uninstall(
        ref_name, output_path, recursive=recursive
    )


def version_config(ref_name: str, *, install_root: Path | None = None) -> VersionConfig:
    return BuildEngine(command_runner=SubprocessCommandRunner(), install_root=install_root).version_config(ref_name)
