"""Reconciliation of VaultSecret resources into Kubernetes Secrets."""

from controller.detector import ChangeDetector, RefreshCheck, fingerprint
from controller.exceptions import InvalidSourceError
from controller.handler import EventHandler
from controller.locks import KeyedLock
from controller.models import MaterializedSecret, SecretSource, annotation_keys
from controller.scheduler import RefreshScheduler
from controller.store import KubernetesSecretStore, SecretStore
from controller.sources import KubernetesSourceLister, SourceLister
from controller.watcher import SourceWatcher

__all__ = [
    "ChangeDetector",
    "RefreshCheck",
    "fingerprint",
    "EventHandler",
    "KeyedLock",
    "MaterializedSecret",
    "SecretSource",
    "annotation_keys",
    "InvalidSourceError",
    "RefreshScheduler",
    "SecretStore",
    "KubernetesSecretStore",
    "SourceLister",
    "KubernetesSourceLister",
    "SourceWatcher",
]
