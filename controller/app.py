"""Wires backend, store and Kubernetes clients into a running controller."""

from typing import Optional

from kubernetes import client, config

from controller.detector import ChangeDetector
from controller.handler import EventHandler
from controller.locks import KeyedLock
from controller.scheduler import RefreshScheduler
from controller.sources import KubernetesSourceLister
from controller.store import KubernetesSecretStore
from controller.watcher import SourceWatcher
from core.config.settings import ControllerSettings
from core.utils.logging import get_logger
from core.vault import SecretBackend, VaultClient
from monitoring import start_metrics_server

logger = get_logger(__name__)


def load_kube_config(in_cluster: bool) -> None:
    """Load service-account config in a pod, kubeconfig elsewhere."""
    if in_cluster:
        config.load_incluster_config()
    else:
        config.load_kube_config()


class Controller:
    """
    The assembled controller.

    Usage:
        controller = Controller(settings)
        controller.run_forever()
    """

    def __init__(
        self,
        settings: ControllerSettings,
        backend: Optional[SecretBackend] = None,
        core_api: Optional[client.CoreV1Api] = None,
        custom_api: Optional[client.CustomObjectsApi] = None,
    ):
        self.settings = settings

        if core_api is None or custom_api is None:
            load_kube_config(settings.in_cluster)
        self.core_api = core_api or client.CoreV1Api()
        self.custom_api = custom_api or client.CustomObjectsApi()

        self.backend = backend or VaultClient(settings.vault)
        self.locks = KeyedLock()
        self.store = KubernetesSecretStore(self.core_api, settings.annotation_prefix)
        self.lister = KubernetesSourceLister(
            self.custom_api, settings.custom_resource, settings.namespace
        )
        self.detector = ChangeDetector(self.backend, self.store)
        self.handler = EventHandler(self.detector, self.store, self.locks)
        self.scheduler = RefreshScheduler(
            self.lister,
            self.detector,
            self.handler,
            self.locks,
            interval=settings.refresh_interval,
            initial_delay=settings.initial_delay,
            workers=settings.refresh_workers,
        )
        self.watcher = SourceWatcher(
            self.lister,
            self.handler,
            timeout=settings.watch_timeout,
            retry_attempts=settings.retry_attempts,
            retry_delay=settings.retry_delay,
            retry_backoff=settings.retry_backoff,
            workers=settings.dispatch_workers,
        )

    def start(self) -> None:
        """Start metrics and the refresh scheduler."""
        if self.settings.metrics_enabled:
            start_metrics_server(self.settings.metrics_port)
        if not self.backend.health_check():
            logger.warning("Secret backend is not healthy; reconciliations will retry")
        self.scheduler.start()

    def run_forever(self) -> None:
        """Start and block on the watch loop until stopped."""
        self.start()
        try:
            self.watcher.run()
        finally:
            self.stop()

    def stop(self) -> None:
        """Stop watching and sweeping; in-flight writes complete first."""
        self.watcher.stop()
        self.scheduler.stop()
        self.backend.close()
