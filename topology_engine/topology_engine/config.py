"""Engine configuration loaded from environment variables."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from topology_engine.errors import ConfigurationError

logger = logging.getLogger(__name__)

STATE_FILE_NAME = ".cluster-state"


class BackendType(str, Enum):
    FILE = "file"
    S3 = "s3"
    REDIS = "redis"
    KAFKA = "kafka"
    SQL = "sql"


class AppenderType(str, Enum):
    STDOUT = "stdout"
    FILE = "file"
    KAFKA = "kafka"


class Settings(BaseSettings):
    """Application settings loaded from environment variables with TOPOLOGY_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="TOPOLOGY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    debug: bool = False
    structured_logging: bool = False
    log_level: str = "INFO"

    # Identity of this reconciler deployment; keys the persisted state.
    instance_id: str = "topology-engine"

    # State store
    state_backend: str = BackendType.FILE.value
    state_dir: Path = Path(".")
    state_file_name: str = STATE_FILE_NAME

    s3_bucket: str | None = None
    s3_prefix: str = ""
    s3_region: str | None = None
    s3_endpoint_url: str | None = None

    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_bucket: str = "topology-engine.state"

    kafka_bootstrap_servers: str = "localhost:9092"
    kafka_state_topic: str = "_topology_engine_state"
    kafka_state_load_timeout: float = 60.0
    kafka_audit_topic: str = "_topology_engine_audit"

    sql_url: str = "sqlite:///.topology-engine/state.db"

    # Reconciliation
    fetch_state_from_cluster: bool = False
    verify_remote_state: bool = True

    allow_delete_topics: bool = False
    allow_delete_bindings: bool = False
    allow_delete_principals: bool = False
    allow_delete_connect_artefacts: bool = False
    allow_delete_ksql_artefacts: bool = False

    topic_managed_prefixes: list[str] = []
    group_managed_prefixes: list[str] = []
    subject_managed_prefixes: list[str] = []
    service_account_managed_prefixes: list[str] = []
    artefact_managed_prefixes: list[str] = []

    # Principal the reconciler itself authenticates as; its bindings are never touched.
    internal_principal: str | None = None

    enable_principal_management: bool = False

    # Audit
    audit_enabled: bool = False
    audit_appender: str = AppenderType.STDOUT.value
    audit_file: Path = Path(".topology-engine/audit.jsonl")

    access_control_provider: str = "acls"

    # Retries against overloaded collaborators
    max_retries: int = 3
    retry_backoff_base: float = 2.0
    retry_max_delay: float = 60.0

    @field_validator(
        "topic_managed_prefixes",
        "group_managed_prefixes",
        "subject_managed_prefixes",
        "service_account_managed_prefixes",
        "artefact_managed_prefixes",
    )
    @classmethod
    def reject_blank_prefixes(cls, v: list[str]) -> list[str]:
        for prefix in v:
            if not prefix.strip():
                raise ValueError("managed prefix entries must be non-blank strings")
        return v

    @field_validator("max_retries")
    @classmethod
    def non_negative_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries must be >= 0")
        return v


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing.

    Raises
    ------
    ConfigurationError
        If any setting fails validation.
    """
    try:
        settings = Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    if settings.debug:
        logger.info("Loaded settings for instance: %s", settings.instance_id)

    return settings
