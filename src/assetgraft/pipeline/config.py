"""Editor configuration loading.

Configuration comes from ``assetgraft.yaml`` in the working directory, or
from an explicit ``--config`` path. Environment variables override file
values:

- ``ASSETGRAFT_ENGINE_VERSION``
- ``ASSETGRAFT_LEVEL_ROOT``
- ``ASSETGRAFT_PAYLOAD_EXTENSION``
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

from assetgraft.codec.base import DEFAULT_PAYLOAD_EXTENSION
from assetgraft.graph.asset import DEFAULT_LEVEL_ROOT_NAME
from assetgraft.graph.errors import AssetEditError
from assetgraft.observability.logging import get_logger

log = get_logger(__name__)

CONFIG_FILE_NAME = "assetgraft.yaml"
DEFAULT_ENGINE_VERSION = "VER_UE5_1"

_ENV_OVERRIDES = {
    "ASSETGRAFT_ENGINE_VERSION": "engine_version",
    "ASSETGRAFT_LEVEL_ROOT": "level_root_name",
    "ASSETGRAFT_PAYLOAD_EXTENSION": "payload_extension",
}


@dataclass(frozen=True)
class EditorConfig:
    """Settings shared by every command.

    Attributes:
        engine_version: Engine version tag handed to the codec.
        level_root_name: Object name of the level root export.
        payload_extension: Extension of the payload file beside a container.
        rename_self_references: Rewrite names containing the input file stem
            when writing under a different stem.
    """

    engine_version: str = DEFAULT_ENGINE_VERSION
    level_root_name: str = DEFAULT_LEVEL_ROOT_NAME
    payload_extension: str = DEFAULT_PAYLOAD_EXTENSION
    rename_self_references: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditorConfig:
        """Create config from a dictionary.

        Args:
            data: Mapping with any subset of the config fields.

        Returns:
            EditorConfig instance.

        Raises:
            ValueError: If a key is unknown or a value has the wrong type.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config key(s): {', '.join(unknown)}")

        config = cls()
        for key in ("engine_version", "level_root_name", "payload_extension"):
            if key in data:
                value = data[key]
                if not isinstance(value, str) or not value:
                    raise ValueError(f"{key} must be a non-empty string")
                config = replace(config, **{key: value})
        if "rename_self_references" in data:
            value = data["rename_self_references"]
            if not isinstance(value, bool):
                raise ValueError("rename_self_references must be true or false")
            config = replace(config, rename_self_references=value)
        return config

    def with_env_overrides(self, environ: dict[str, str] | None = None) -> EditorConfig:
        """Return a copy with environment variable overrides applied."""
        environ = dict(os.environ) if environ is None else environ
        overrides = {
            attr: environ[var] for var, attr in _ENV_OVERRIDES.items() if environ.get(var)
        }
        return replace(self, **overrides) if overrides else self


class ConfigError(AssetEditError):
    """Raised when configuration cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load config at {path}: {reason}")


def load_editor_config(
    path: Path | None = None,
    *,
    search_dir: Path | None = None,
    environ: dict[str, str] | None = None,
) -> EditorConfig:
    """Load editor configuration.

    Args:
        path: Explicit config file. Must exist when given.
        search_dir: Directory searched for ``assetgraft.yaml`` when ``path``
            is not given. Defaults to the working directory.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        EditorConfig with file values and environment overrides applied.
        Defaults are used when no file is found.

    Raises:
        ConfigError: If the file is missing (explicit path only), unreadable,
            or invalid.
    """
    if path is None:
        candidate = (search_dir or Path.cwd()) / CONFIG_FILE_NAME
        if not candidate.exists():
            log.debug("config_defaults", searched=str(candidate))
            return EditorConfig().with_env_overrides(environ)
        path = candidate
    elif not path.exists():
        raise ConfigError(path, "File not found")

    yaml = YAML(typ="safe")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(path, "Top level must be a mapping")
        config = EditorConfig.from_dict(dict(data))
    except ConfigError:
        raise
    except Exception as e:
        raise ConfigError(path, str(e)) from e

    log.debug("config_loaded", path=str(path))
    return config.with_env_overrides(environ)
