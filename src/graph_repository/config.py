import os
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

SETTINGS_FILE_ENV = "GRAPH_REPOSITORY_SETTINGS"
DEFAULT_SETTINGS_PATH = Path("config") / "settings.yaml"


class Neo4jSettingsModel(BaseSettings):
    """Connection details for Neo4j database."""

    uri: str = "neo4j://localhost:7687"
    user: str = "neo4j"
    password: str = "password"
    database: str = "neo4j"
    max_connection_pool_size: int = Field(default=50, ge=1)
    max_connection_lifetime: int = Field(default=3600, ge=1)
    connection_acquisition_timeout: float = Field(default=60.0, gt=0)
    query_timeout: float = Field(
        default=30.0, gt=0, description="Transaction timeout in seconds"
    )

    model_config = SettingsConfigDict(env_prefix="NEO4J_", env_file=".env", extra="ignore")


class RepositorySettingsModel(BaseSettings):
    """Repository discovery and CRUD options."""

    scan_packages: list[str] = Field(
        default_factory=list,
        description="Packages searched for repository interfaces",
    )
    fail_fast: bool = Field(
        default=False,
        description="Abort initialization on the first malformed repository",
    )
    id_property: str = Field(
        default="id", description="Node property holding the entity identifier"
    )
    tx_type: Literal["read", "write"] = "write"

    model_config = SettingsConfigDict(
        env_prefix="REPOSITORY_", env_file=".env", extra="ignore"
    )


class LoggingSettingsModel(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    file_path: Optional[str] = None
    rotation: str = "500 MB"


class Neo4jFileModel(BaseModel):
    uri: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    max_connection_pool_size: Optional[int] = None
    max_connection_lifetime: Optional[int] = None
    connection_acquisition_timeout: Optional[float] = None
    query_timeout: Optional[float] = None

    model_config = SettingsConfigDict(extra="forbid")


class RepositoryFileModel(BaseModel):
    scan_packages: Optional[list[str]] = None
    fail_fast: Optional[bool] = None
    id_property: Optional[str] = None
    tx_type: Optional[Literal["read", "write"]] = None

    model_config = SettingsConfigDict(extra="forbid")


class SettingsFileModel(BaseModel):
    """Schema for validating `settings.yaml`."""

    neo4j: Neo4jFileModel = Field(default_factory=Neo4jFileModel)
    repositories: RepositoryFileModel = Field(default_factory=RepositoryFileModel)
    logging: LoggingSettingsModel = Field(default_factory=LoggingSettingsModel)

    model_config = SettingsConfigDict(extra="forbid")


class RuntimeSettings(BaseSettings):
    """Central runtime settings loaded from YAML and environment."""

    neo4j: Neo4jSettingsModel = Field(
        default_factory=Neo4jSettingsModel,
        description="Neo4j connection options",
    )
    repositories: RepositorySettingsModel = Field(
        default_factory=RepositorySettingsModel,
        description="Repository discovery options",
    )
    logging: LoggingSettingsModel = Field(
        default_factory=LoggingSettingsModel,
        description="Log sinks",
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_nested_delimiter="__", extra="ignore"
    )


def validate_config_schema(config_data: dict) -> bool:
    """Validate settings data against the Pydantic schema."""

    try:
        SettingsFileModel.model_validate(config_data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc
    return True


def _file_section(data: dict[str, Any], key: str) -> dict[str, Any]:
    return {k: v for k, v in (data.get(key) or {}).items() if v is not None}


def _explicit_values(model: BaseSettings) -> dict[str, Any]:
    """Fields that a settings source (environment or ``.env``) actually provided."""
    return {name: getattr(model, name) for name in model.model_fields_set}


def load_runtime_settings(path: Optional[Union[str, Path]] = None) -> RuntimeSettings:
    """
    Load runtime settings from a YAML file and environment variables.

    The file is ``path`` if given, else the file named by
    ``GRAPH_REPOSITORY_SETTINGS``, else ``config/settings.yaml`` when it exists.
    YAML values act as defaults; ``NEO4J_*`` and ``REPOSITORY_*`` environment
    variables take precedence over them.

    Raises:
        FileNotFoundError: If an explicitly requested file does not exist.
        ValueError: If the YAML content does not match ``SettingsFileModel``.
    """
    explicit = path or os.getenv(SETTINGS_FILE_ENV)
    yaml_path = Path(explicit) if explicit else DEFAULT_SETTINGS_PATH
    data: dict[str, Any] = {}
    if yaml_path.exists():
        with open(yaml_path) as fh:
            data = yaml.safe_load(fh) or {}
        validate_config_schema(data)
    elif explicit:
        raise FileNotFoundError(f"Settings file not found: {yaml_path}")

    neo4j_defaults = _file_section(data, "neo4j")
    repository_defaults = _file_section(data, "repositories")
    # Environment variables win over file values, even when they equal a default.
    neo4j_env = _explicit_values(Neo4jSettingsModel())
    repository_env = _explicit_values(RepositorySettingsModel())

    return RuntimeSettings(
        neo4j=Neo4jSettingsModel(**{**neo4j_defaults, **neo4j_env}),
        repositories=RepositorySettingsModel(**{**repository_defaults, **repository_env}),
        logging=LoggingSettingsModel(**(data.get("logging") or {})),
    )


runtime_settings = load_runtime_settings()

# Re-export runtime settings for application modules
settings = runtime_settings
