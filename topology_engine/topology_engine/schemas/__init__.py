"""Schema-subject lifecycle."""

from topology_engine.schemas.change import SchemaChange

__all__ = ["SchemaChange"]
