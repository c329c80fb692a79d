"""Audit trail of executed actions."""

from __future__ import annotations

from topology_engine.audit.appenders import FileAppender, KafkaAppender, StdoutAppender
from topology_engine.audit.auditor import Auditor, VoidAuditor
from topology_engine.config import AppenderType, Settings
from topology_engine.interfaces import Appender
from topology_engine.registry import Factory, Registry

APPENDERS: Registry[Appender] = Registry("audit appender")

APPENDERS.register(AppenderType.STDOUT, lambda settings: StdoutAppender())
APPENDERS.register(AppenderType.FILE, lambda settings: FileAppender(settings.audit_file))
APPENDERS.register(
    AppenderType.KAFKA,
    lambda settings: KafkaAppender(settings.kafka_bootstrap_servers, settings.kafka_audit_topic),
)


def register_appender(kind: str, factory: Factory[Appender]) -> None:
    """Make *kind* selectable through ``TOPOLOGY_AUDIT_APPENDER``."""
    APPENDERS.register(kind, factory)


def build_auditor(settings: Settings) -> Auditor:
    """Return the configured auditor, or a :class:`VoidAuditor` when auditing is off."""
    if not settings.audit_enabled:
        return VoidAuditor()
    return Auditor(APPENDERS.create(settings.audit_appender, settings))


__all__ = [
    "APPENDERS",
    "Auditor",
    "FileAppender",
    "KafkaAppender",
    "StdoutAppender",
    "VoidAuditor",
    "build_auditor",
    "register_appender",
]
