"""Declarative reconciler for a messaging cluster's topics, bindings, principals and artefacts."""

__version__ = "0.1.0"
