"""Loading of the optional tvm-build settings file."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping
import json
import os
import tomllib

from .options import UserSettings
from .revision import DEFAULT_BRANCH, INSTALL_ROOT_ENV, TVM_REPO, default_installation_root

CONFIG_ENV = "TVM_BUILD_CONFIG"
DEFAULT_CONFIG_NAME = "config.toml"

ConfigLoader = Callable[[Any], Mapping[str, Any]]

_FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": lambda stream: tomllib.load(stream),
    ".json": lambda stream: json.load(stream),
}


def load_config_file(path: Path) -> Mapping[str, Any]:
    suffix = path.suffix.lower()
    loader = _FILE_LOADERS.get(suffix)
    if loader is None:
        raise ValueError(f"Unsupported configuration file extension: {suffix}")
    mode = "rb" if suffix == ".toml" else "r"
    kwargs: Dict[str, Any] = {}
    if mode == "r":
        kwargs["encoding"] = "utf-8"
    with path.open(mode, **kwargs) as handle:
        data = loader(handle)
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")
    return data


@dataclass(slots=True)
class GlobalConfig:
    install_root: Path
    repository: str = TVM_REPO
    branch: str = DEFAULT_BRANCH
    log_level: str = "info"
    log_file: str | None = None
    options: UserSettings = field(default_factory=UserSettings)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, env: Mapping[str, str] | None = None) -> "GlobalConfig":
        global_section = data.get("global", {})
        if not isinstance(global_section, Mapping):
            raise TypeError("[global] must be a table")
        options_section = data.get("options", {})
        if not isinstance(options_section, Mapping):
            raise TypeError("[options] must be a table")

        install_root = default_installation_root(env)
        env = os.environ if env is None else env
        if global_section.get("install_root") and not env.get(INSTALL_ROOT_ENV):
            install_root = Path(str(global_section["install_root"])).expanduser()

        return cls(
            install_root=install_root,
            repository=str(global_section.get("repository", TVM_REPO)),
            branch=str(global_section.get("branch", DEFAULT_BRANCH)),
            log_level=str(global_section.get("log_level", "info")),
            log_file=str(global_section["log_file"]) if global_section.get("log_file") else None,
            options=UserSettings.from_mapping(options_section),
        )


def resolve_config_path(explicit: str | Path | None, *, env: Mapping[str, str] | None = None) -> tuple[Path, bool]:
    """Pick the settings file: CLI > ``$TVM_BUILD_CONFIG`` > ``<root>/config.toml``.

    The flag tells whether the file was asked for explicitly, in which case a
    missing file is an error.
    """
    env = os.environ if env is None else env
    if explicit:
        return Path(explicit).expanduser(), True
    from_env = env.get(CONFIG_ENV)
    if from_env:
        return Path(from_env).expanduser(), True
    return default_installation_root(env) / DEFAULT_CONFIG_NAME, False


def load_global_config(explicit: str | Path | None = None, *, env: Mapping[str, str] | None = None) -> GlobalConfig:
    path, required = resolve_config_path(explicit, env=env)
    if not path.is_file():
        if required:
            raise FileNotFoundError(f"Configuration file not found: {path}")
        return GlobalConfig.from_mapping({}, env=env)
    return GlobalConfig.from_mapping(load_config_file(path), env=env)
