"""Project configuration loaded from .repl-test-bridge.yaml."""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from repl_test_bridge.paths import PathMapper, ProjectLayout

log = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".repl-test-bridge.yaml"


class ProjectConfig(BaseModel):
    """Per-project settings of the bridge.

    Unknown keys are rejected so typos in the YAML file surface immediately.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    filter: str | None = Field(
        default=None, description="Regex restricting the namespaces that run"
    )
    segment_position: int = Field(
        default=-1, description="Position of the marker segment in test namespaces"
    )
    marker: str = Field(default="test", description="Marker segment of test namespaces")
    extension: str = Field(default=".clj", description="Source file extension")
    source_root: str = Field(default="src", description="Implementation tree")
    test_root: str = Field(default="test", description="Test tree")

    def path_mapper(self) -> PathMapper:
        return PathMapper(
            segment_position=self.segment_position,
            marker=self.marker,
            extension=self.extension,
        )

    def layout(self, project_root: Path) -> ProjectLayout:
        return ProjectLayout(
            root=project_root,
            source_root=self.source_root,
            test_root=self.test_root,
        )


def load_project_config(project_root: Path) -> ProjectConfig:
    """Load the project configuration from ``project_root``.

    Raises:
        FileNotFoundError: If the configuration file does not exist
        ValueError: If the file is not valid YAML or fails validation

    """
    config_file = project_root / CONFIG_FILE_NAME
    if not config_file.is_file():
        raise FileNotFoundError(f"Config file not found: {config_file}")

    try:
        data = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {config_file}: {exc}") from exc

    try:
        return ProjectConfig.model_validate(data or {})
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration in {config_file}: {exc}") from exc


def load_project_config_or_default(project_root: Path) -> ProjectConfig:
    """Like ``load_project_config`` but falls back to defaults when absent."""
    try:
        return load_project_config(project_root)
    except FileNotFoundError:
        log.info("No %s in %s, using defaults", CONFIG_FILE_NAME, project_root)
        return ProjectConfig()
