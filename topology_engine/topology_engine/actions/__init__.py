"""Units of work executed by an execution plan."""

from topology_engine.actions.access import ClearBindings, CreateBindings
from topology_engine.actions.accounts import ClearAccounts, CreateAccounts
from topology_engine.actions.artefacts import (
    CreateArtefact,
    DeleteArtefact,
    SyncArtefact,
    read_artefact_content,
)
from topology_engine.actions.base import Action, BaseAction
from topology_engine.actions.schemas import RegisterSchema
from topology_engine.actions.topics import CreateTopic, DeleteTopics, RenameTopic, UpdateTopicConfig

__all__ = [
    "Action",
    "BaseAction",
    "ClearAccounts",
    "ClearBindings",
    "CreateAccounts",
    "CreateArtefact",
    "CreateBindings",
    "CreateTopic",
    "DeleteArtefact",
    "DeleteTopics",
    "RegisterSchema",
    "RenameTopic",
    "SyncArtefact",
    "UpdateTopicConfig",
    "read_artefact_content",
]
