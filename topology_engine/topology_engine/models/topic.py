"""Topic and schema-subject models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConfigSource(str, Enum):
    """Where a live topic config value comes from."""

    DYNAMIC_TOPIC_CONFIG = "DYNAMIC_TOPIC_CONFIG"
    STATIC_CONFIG = "STATIC_CONFIG"
    DEFAULT_CONFIG = "DEFAULT_CONFIG"


class ConfigEntry(BaseModel):
    """A single live topic config value as reported by the cluster."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str | None = None
    source: ConfigSource = ConfigSource.DEFAULT_CONFIG

    @property
    def is_dynamic(self) -> bool:
        """Settable on the topic without a broker restart."""
        return self.source == ConfigSource.DYNAMIC_TOPIC_CONFIG

    @property
    def is_explicit(self) -> bool:
        """Set on the topic rather than inherited from defaults."""
        return self.source != ConfigSource.DEFAULT_CONFIG


class SubjectKind(str, Enum):
    KEY = "key"
    VALUE = "value"


class SubjectNameStrategy(str, Enum):
    TOPIC_NAME = "TOPIC_NAME"
    RECORD_NAME = "RECORD_NAME"
    TOPIC_RECORD_NAME = "TOPIC_RECORD_NAME"


class Subject(BaseModel):
    """A key or value schema subject declared on a topic."""

    kind: SubjectKind = SubjectKind.VALUE
    schema_file: str | None = None
    record_type: str | None = None
    format: str = "AVRO"
    compatibility: str | None = None

    @field_validator("schema_file", "record_type", "compatibility", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("compatibility")
    @classmethod
    def upper_compatibility(cls, v: str | None) -> str | None:
        return v.upper() if v else v

    def subject_name(self, topic_name: str, strategy: SubjectNameStrategy) -> str:
        if strategy == SubjectNameStrategy.TOPIC_NAME:
            return f"{topic_name}-{self.kind.value}"
        if self.record_type is None:
            raise ValueError(f"Missing record type for subject of schema {self.schema_file!r}")
        if strategy == SubjectNameStrategy.RECORD_NAME:
            return self.record_type
        return f"{topic_name}-{self.record_type}"


class TopicSpec(BaseModel):
    """Desired shape of a topic."""

    name: str = Field(..., min_length=1, description="Fully-qualified topic name.")
    config: dict[str, str] = Field(default_factory=dict)
    partitions: int | None = Field(default=None, ge=1)
    replication_factor: int | None = Field(default=None, ge=1)
    subjects: list[Subject] = Field(default_factory=list)
    subject_name_strategy: SubjectNameStrategy = SubjectNameStrategy.TOPIC_NAME
    renamed_from: str | None = Field(
        default=None,
        description="Previous fully-qualified name when the topic is being renamed.",
    )

    @field_validator("config", mode="before")
    @classmethod
    def stringify_config(cls, v: object) -> object:
        if isinstance(v, dict):
            return {str(key): str(value) for key, value in v.items()}
        return v
