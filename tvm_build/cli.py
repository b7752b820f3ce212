"""Command line interface for maintaining TVM installations."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Callable, Iterable, TextIO
import json
import logging
import sys

from .build import BuildConfig, BuildEngine
from .command_runner import CommandError, RecordingCommandRunner, SubprocessCommandRunner
from .config_loader import GlobalConfig, load_global_config
from .errors import TvmBuildError
from .options import BuildOption, OptionKind, UserSettings
from .revision import list_installed

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("debug", "info", "warning", "error")
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="tvm-build", description="A CLI for maintaining TVM installations.")
    parser.add_argument("--config", help="Settings file (default: $TVM_BUILD_CONFIG or <root>/config.toml)")
    parser.add_argument("--log-level", choices=_LOG_LEVELS, help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    install_parser = subparsers.add_parser("install", help="Install a revision of TVM locally")
    install_parser.add_argument("revision", help="Branch of TVM to install")
    install_parser.add_argument("repository", nargs="?", help="Repository to clone instead of upstream TVM")
    install_parser.add_argument("--repository-path", help="Use this directory (which you own) as the revision root")
    install_parser.add_argument("--output-path", help="Alternative output location (not yet supported)")
    install_parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    install_parser.add_argument("-c", "--clean", action="store_true", help="Delete the revision and clone it again")
    install_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose CMake output")
    install_parser.add_argument("--dry-run", action="store_true", help="Print the CMake commands instead of running them")
    options_group = install_parser.add_argument_group("build options")
    for option in BuildOption:
        metavar = "ON|OFF" if option.kind is OptionKind.BOOL else "VALUE"
        options_group.add_argument(option.flag, dest=option.dest, metavar=metavar, help=option.description)

    uninstall_parser = subparsers.add_parser("uninstall", help="Remove an installed revision")
    uninstall_parser.add_argument("revision", help="Revision to remove")
    uninstall_parser.add_argument("--output-path", help="Alternative output location (not yet supported)")
    uninstall_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    version_parser = subparsers.add_parser("version-config", help="Print where a revision's Python package lives")
    version_parser.add_argument("revision", help="Revision to describe")

    subparsers.add_parser("list", help="List installed revisions")

    return parser.parse_args(list(argv))


def _configure_logging(config: GlobalConfig, level_name: str | None) -> None:
    level = getattr(logging, (level_name or config.log_level).upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        handlers.append(logging.FileHandler(Path(config.log_file).expanduser(), encoding="utf-8"))
    logging.basicConfig(level=level, format=_LOG_FORMAT, handlers=handlers, force=True)


def _collect_settings(args: Namespace) -> UserSettings:
    values = {}
    for option in BuildOption:
        value = getattr(args, option.dest, None)
        if value is not None:
            values[option] = value
    return UserSettings.from_mapping(values)


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    try:
        config = load_global_config(args.config)
        level_name = args.log_level
        if getattr(args, "debug", False):
            level_name = "debug"
        _configure_logging(config, level_name)
        logger.debug("installation root: %s", config.install_root)

        if args.command == "install":
            return _handle_install(args, config)
        if args.command == "uninstall":
            return _handle_uninstall(args, config)
        if args.command == "version-config":
            return _handle_version_config(args, config)
        if args.command == "list":
            return _handle_list(args, config)
    except (TvmBuildError, CommandError, OSError, ValueError, TypeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    raise ValueError(f"Unknown command: {args.command}")


def _handle_install(args: Namespace, config: GlobalConfig) -> int:
    settings = config.options.merged(_collect_settings(args))
    build_config = BuildConfig(
        repository=args.repository or config.repository,
        repository_path=args.repository_path,
        output_path=args.output_path,
        branch=args.revision or config.branch,
        verbose=args.verbose,
        clean=args.clean,
        settings=settings,
        install_root=config.install_root,
    )

    runner: SubprocessCommandRunner | RecordingCommandRunner
    if args.dry_run:
        runner = RecordingCommandRunner()
    else:
        runner = SubprocessCommandRunner()

    engine = BuildEngine(command_runner=runner, install_root=config.install_root)
    result = engine.build(build_config)

    if isinstance(runner, RecordingCommandRunner):
        for line in runner.iter_formatted():
            print(line)
    else:
        print(f"Installed {result.revision.ref_name} into {result.revision.build_path}")
    return 0


def _handle_uninstall(
    args: Namespace,
    config: GlobalConfig,
    *,
    prompt: Callable[[str], str] = input,
    stream: TextIO | None = None,
) -> int:
    out = stream or sys.stdout
    engine = BuildEngine(command_runner=SubprocessCommandRunner(), install_root=config.install_root)
    target = engine.named_revision(args.revision).path
    if not args.yes and target.is_dir():
        answer = prompt(f"Remove {target} and everything in it? [y/N] ")
        if answer.strip().lower() not in {"y", "yes"}:
            print("Aborted", file=out)
            return 1
    engine.uninstall(args.revision, args.output_path, recursive=True)
    print(f"Removed {target}", file=out)
    return 0


def _handle_version_config(args: Namespace, config: GlobalConfig, *, stream: TextIO | None = None) -> int:
    engine = BuildEngine(command_runner=SubprocessCommandRunner(), install_root=config.install_root)
    version = engine.version_config(args.revision)
    print(json.dumps(version.to_mapping(), indent=2), file=stream or sys.stdout)
    return 0


def _handle_list(args: Namespace, config: GlobalConfig, *, stream: TextIO | None = None) -> int:
    out = stream or sys.stdout
    for name in list_installed(config.install_root):
        print(name, file=out)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
