"""Per-resource-kind reconcilers built on one shared diff algorithm."""

from topology_engine.reconcile.accounts import AccountsReconciler
from topology_engine.reconcile.artefacts import ArtefactReconciler, deletion_order
from topology_engine.reconcile.base import Reconciler
from topology_engine.reconcile.bindings import BindingsReconciler
from topology_engine.reconcile.diff import ReconcileSpec, ResourceDiff, compute_diff, detect_divergence, reconcile
from topology_engine.reconcile.topics import TopicReconciler

__all__ = [
    "AccountsReconciler",
    "ArtefactReconciler",
    "BindingsReconciler",
    "ReconcileSpec",
    "Reconciler",
    "ResourceDiff",
    "TopicReconciler",
    "compute_diff",
    "deletion_order",
    "detect_divergence",
    "reconcile",
]
