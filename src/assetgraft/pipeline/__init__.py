"""Pipeline package - configuration and edit run orchestration."""

from assetgraft.pipeline.config import (
    CONFIG_FILE_NAME,
    ConfigError,
    EditorConfig,
    load_editor_config,
)
from assetgraft.pipeline.orchestrator import EditReport, EditRequest, apply_edits, run_edit

__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "EditReport",
    "EditRequest",
    "EditorConfig",
    "apply_edits",
    "load_editor_config",
    "run_edit",
]
