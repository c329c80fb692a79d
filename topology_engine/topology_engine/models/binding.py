"""Access-control binding model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Binding(BaseModel):
    """A single access-control entry.

    Bindings are immutable and value-equal: two bindings are the same
    resource exactly when every field matches.
    """

    model_config = ConfigDict(frozen=True)

    resource_type: str = Field(..., min_length=1, description="e.g. TOPIC, GROUP, SUBJECT, CLUSTER.")
    resource_name: str = Field(..., min_length=1, description="Resource name, or '*' for all.")
    pattern: str = Field(default="LITERAL", description="LITERAL or PREFIXED.")
    principal: str = Field(..., min_length=1, description="e.g. 'User:app-1'.")
    operation: str = Field(..., min_length=1, description="e.g. READ, WRITE, DESCRIBE.")
    host: str = Field(default="*", description="Host the entry applies to.")

    def __str__(self) -> str:
        return (
            f"'{self.resource_type}', '{self.resource_name}', '{self.host}', "
            f"'{self.operation}', '{self.principal}', '{self.pattern}'"
        )
