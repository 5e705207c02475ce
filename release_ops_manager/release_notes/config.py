"""Pydantic schema and loader for the release notes configuration file."""

import re
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator
from ruamel.yaml.error import YAMLError

from release_ops_manager.configuration.exceptions import ConfigError
from release_ops_manager.utils.constants import DEFAULT_RELEASE_NOTES_TEMPLATE, SORT_FIELD_PATTERN
from release_ops_manager.utils.yaml import load_yaml_file

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class CategoryConfig(BaseModel):
    """Pydantic model for a release notes category.

    A pull request belongs to the category when it carries any of `labels` or
    its source branch matches `branch`. Commits are matched against
    `commit_message`.
    """

    title: str
    labels: list[str] = Field(default_factory=list)
    branch: re.Pattern[str] | None = None
    commit_message: re.Pattern[str] | None = None


class NotesConfig(BaseModel):
    """Pydantic model for the release notes configuration file."""

    categories: list[CategoryConfig] = Field(min_length=1)
    ignore_labels: list[str] = Field(default_factory=list)
    ignore_branch: re.Pattern[str] | None = None
    sort_field: str = ""
    template: str = DEFAULT_RELEASE_NOTES_TEMPLATE
    unused_title: str = ""
    extras: dict[str, str] = Field(default_factory=dict)

    @field_validator("sort_field")
    @classmethod
    def _check_sort_field(cls, value: str) -> str:
        if value and not re.match(SORT_FIELD_PATTERN, value):
            raise ValueError(f"sort_field {value!r} must match {SORT_FIELD_PATTERN}")
        return value

    @field_validator("template")
    @classmethod
    def _check_template(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("template is empty")
        return value


def load_notes_config(path: Path) -> NotesConfig:
    """Load and validate the release notes configuration from a YAML file.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated.
    """
    try:
        content = load_yaml_file(path)
    except (OSError, YAMLError) as exc:
        raise ConfigError(str(path), str(exc)) from exc

    if not isinstance(content, dict):
        raise ConfigError(str(path), "expected a mapping at the top level")

    try:
        config = NotesConfig.model_validate(content)
    except ValidationError as exc:
        raise ConfigError(str(path), str(exc)) from exc

    logger.debug(
        "Loaded release notes config",
        path=str(path),
        categories=[category.title for category in config.categories],
        sort_field=config.sort_field or None,
    )
    return config
