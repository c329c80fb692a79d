"""Service-account principal model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

PENDING_ID = "-1"
MANAGED_BY = "Managed by topology-engine"


class ServiceAccount(BaseModel):
    """A principal managed by the reconciler.

    Desired accounts are matched by ``name``.  Until the provider creates
    the account its ``id`` is :data:`PENDING_ID`; :meth:`materialize`
    returns the created value rather than mutating the placeholder.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default=PENDING_ID, description="Cluster-assigned identifier.")
    name: str = Field(..., min_length=1, description="Principal name, e.g. 'User:app-1'.")
    description: str = Field(default=MANAGED_BY)
    resource_name: str | None = Field(
        default=None,
        description="External resource name assigned by a cloud management API.",
    )

    @classmethod
    def pending(cls, name: str, description: str = MANAGED_BY) -> ServiceAccount:
        return cls(name=name, description=description)

    @property
    def is_materialized(self) -> bool:
        return self.id != PENDING_ID

    def materialize(self, account_id: str, resource_name: str | None = None) -> ServiceAccount:
        """Return a copy of this account carrying its cluster-assigned identity."""
        return self.model_copy(update={"id": account_id, "resource_name": resource_name})

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"
