"""Configuration loading for iamrepl.

The two project ids default to placeholders meant to be edited in place, as
in the original script. They can also be set in ~/.iamrepl/config.toml:

    source_project = "my-prod-project"
    target_project = "my-hml-project"
    suffix = "-hml"
    skip_roles = ["roles/owner"]

Command-line flags override file values.
"""

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from iamrepl.models import OWNER_ROLE

# Edit these two
SOURCE_PROJECT = "PROJECT_ID_1"
TARGET_PROJECT = "PROJECT_ID_2"


class ConfigError(ValueError):
    """Raised when the configuration file is unreadable or invalid."""

    pass


class ReplicatorConfig(BaseModel):  # type: ignore[misc]
    """Replication settings.

    Attributes:
        source_project: Project the service accounts and bindings are read from.
        target_project: Homologation project the clones are created in.
        suffix: Appended to each cloned account id.
        skip_roles: Roles never replicated. roles/owner is always included.
    """

    source_project: str = SOURCE_PROJECT
    target_project: str = TARGET_PROJECT
    suffix: str = "-hml"
    skip_roles: list[str] = [OWNER_ROLE]

    @field_validator("source_project", "target_project")  # type: ignore[untyped-decorator]
    @classmethod
    def validate_project(cls, v: str) -> str:
        """Project ids must be non-empty."""
        v = v.strip()
        if not v:
            msg = "Project id must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("suffix")  # type: ignore[untyped-decorator]
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        if not v:
            msg = "Suffix must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("skip_roles")  # type: ignore[untyped-decorator]
    @classmethod
    def validate_skip_roles(cls, v: list[str]) -> list[str]:
        """Owner is never replicated, whatever the file says."""
        if OWNER_ROLE not in v:
            v = [OWNER_ROLE, *v]
        return v

    @model_validator(mode="after")  # type: ignore[untyped-decorator]
    def validate_distinct(self) -> "ReplicatorConfig":
        if self.source_project == self.target_project:
            msg = "source_project and target_project must differ"
            raise ValueError(msg)
        return self


def get_config_dir() -> Path:
    """Get the config directory (not created)."""
    return Path.home() / ".iamrepl"


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def load_config(path: Path | None = None, **overrides: Any) -> ReplicatorConfig:
    """Load configuration from a TOML file, then apply overrides.

    Args:
        path: Explicit config file. It must exist. If None, ~/.iamrepl/config.toml
            is used when present and the built-in defaults otherwise.
        **overrides: Values that replace file values. None values are ignored.

    Raises:
        ConfigError: If the file is missing (explicit path), unparsable or invalid.
    """
    data: dict[str, Any] = {}
    if path is not None and not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    config_path = path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        config: ReplicatorConfig = ReplicatorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
    return config
