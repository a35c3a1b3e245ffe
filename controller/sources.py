"""Lists VaultSecret custom resources."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from kubernetes import client

from controller.exceptions import InvalidSourceError
from controller.models import SecretSource
from core.config.settings import CustomResourceSettings
from core.shaping.exceptions import UnsupportedTypeError
from core.utils.logging import get_logger

logger = get_logger(__name__)


class SourceLister(ABC):
    """Provides every known SecretSource to the refresh scheduler."""

    @abstractmethod
    def list_sources(self) -> list[SecretSource]:
        pass


class KubernetesSourceLister(SourceLister):
    """
    Lists VaultSecret objects cluster-wide, or in one namespace if configured.

    Usage:
        lister = KubernetesSourceLister(client.CustomObjectsApi(), CustomResourceSettings())
        for source in lister.list_sources():
            ...
    """

    def __init__(
        self,
        custom_api: client.CustomObjectsApi,
        resource: CustomResourceSettings,
        namespace: Optional[str] = None,
    ):
        self.custom_api = custom_api
        self.resource = resource
        self.namespace = namespace

    def list_call(self) -> tuple[Callable, dict]:
        """The list function and its arguments, shared with the watcher."""
        kwargs = {
            "group": self.resource.group,
            "version": self.resource.version,
            "plural": self.resource.plural,
        }
        if self.namespace:
            kwargs["namespace"] = self.namespace
            return self.custom_api.list_namespaced_custom_object, kwargs
        return self.custom_api.list_cluster_custom_object, kwargs

    def list_sources(self) -> list[SecretSource]:
        func, kwargs = self.list_call()
        response = func(**kwargs)

        sources = []
        for item in response.get("items", []):
            try:
                sources.append(SecretSource.from_object(item))
            except (InvalidSourceError, UnsupportedTypeError) as e:
                logger.warning(f"Skipping invalid {self.resource.plural} object: {e}")

        logger.debug(f"Listed {len(sources)} {self.resource.plural}")
        return sources

    def get_source(self, namespace: str, name: str) -> SecretSource:
        """Read one source by identity."""
        obj = self.custom_api.get_namespaced_custom_object(
            group=self.resource.group,
            version=self.resource.version,
            namespace=namespace,
            plural=self.resource.plural,
            name=name,
        )
        return SecretSource.from_object(obj)
