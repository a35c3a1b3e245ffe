"""Reads and writes materialized secrets through the Kubernetes API."""

import base64
from abc import ABC, abstractmethod
from typing import Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

from controller.models import MaterializedSecret, annotation_keys
from core.utils.logging import get_logger

logger = get_logger(__name__)


class SecretStore(ABC):
    """Destination of materialized secrets."""

    @abstractmethod
    def get(self, namespace: str, name: str) -> Optional[MaterializedSecret]:
        """Return the stored secret, or None if it does not exist."""
        pass

    @abstractmethod
    def upsert(
        self, secret: MaterializedSecret, existing: Optional[MaterializedSecret] = None
    ) -> str:
        """
        Write data, compare and last-update annotations in one call.

        Args:
            secret: Desired state, replacing the whole object
            existing: The object as last read, None if absent

        Returns:
            The operation performed ("create", "replace" or "recreate")
        """
        pass


class KubernetesSecretStore(SecretStore):
    """
    SecretStore over ``CoreV1Api``.

    ``replace`` carries the resource version that was read, so a concurrent
    writer makes the call fail instead of being overwritten silently.

    Usage:
        store = KubernetesSecretStore(client.CoreV1Api(), "vaultsecret.secretsync.io")
        current = store.get("default", "certificate")
    """

    def __init__(self, core_api: client.CoreV1Api, annotation_prefix: str):
        self.core_api = core_api
        self.annotation_prefix = annotation_prefix
        self.compare_key, self.last_update_key = annotation_keys(annotation_prefix)

    def get(self, namespace: str, name: str) -> Optional[MaterializedSecret]:
        try:
            secret = self.core_api.read_namespaced_secret(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise
        return self._from_api(secret)

    def _from_api(self, secret: client.V1Secret) -> MaterializedSecret:
        metadata = secret.metadata
        annotations = dict(metadata.annotations or {})
        compare = annotations.pop(self.compare_key, None)
        last_update = annotations.pop(self.last_update_key, None)

        return MaterializedSecret(
            namespace=metadata.namespace,
            name=metadata.name,
            data={k: base64.b64decode(v) for k, v in (secret.data or {}).items()},
            secret_type=secret.type or "Opaque",
            compare=compare,
            last_update=last_update,
            annotations=annotations,
            labels=dict(metadata.labels or {}),
            owner_references=[
                {
                    "apiVersion": ref.api_version,
                    "kind": ref.kind,
                    "name": ref.name,
                    "uid": ref.uid,
                    "controller": ref.controller,
                }
                for ref in (metadata.owner_references or [])
            ],
            resource_version=metadata.resource_version,
        )

    def _to_api(self, secret: MaterializedSecret) -> client.V1Secret:
        annotations = dict(secret.annotations)
        if secret.compare is not None:
            annotations[self.compare_key] = secret.compare
        if secret.last_update is not None:
            annotations[self.last_update_key] = secret.last_update

        owner_references = [
            client.V1OwnerReference(
                api_version=ref["apiVersion"],
                kind=ref["kind"],
                name=ref["name"],
                uid=ref["uid"],
                controller=ref.get("controller"),
            )
            for ref in secret.owner_references
        ]

        return client.V1Secret(
            api_version="v1",
            kind="Secret",
            metadata=client.V1ObjectMeta(
                name=secret.name,
                namespace=secret.namespace,
                annotations=annotations,
                labels=secret.labels or None,
                owner_references=owner_references or None,
            ),
            type=secret.secret_type,
            data={
                k: base64.b64encode(v).decode("ascii") for k, v in secret.data.items()
            },
        )

    def _restore(self, existing: MaterializedSecret) -> None:
        body = self._to_api(existing)
        body.metadata.resource_version = None
        try:
            self.core_api.create_namespaced_secret(
                namespace=existing.namespace, body=body
            )
        except ApiException as e:
            logger.error(
                f"Could not restore secret {existing.namespace}/{existing.name}: "
                f"{e.status} {e.reason}"
            )

    def upsert(
        self, secret: MaterializedSecret, existing: Optional[MaterializedSecret] = None
    ) -> str:
        body = self._to_api(secret)
        namespace, name = secret.namespace, secret.name

        if existing is None:
            self.core_api.create_namespaced_secret(namespace=namespace, body=body)
            logger.info(f"Created secret {namespace}/{name}")
            return "create"

        if existing.secret_type != secret.secret_type:
            # Secret.type is immutable in Kubernetes
            self.core_api.delete_namespaced_secret(name=name, namespace=namespace)
            try:
                self.core_api.create_namespaced_secret(namespace=namespace, body=body)
            except ApiException as e:
                logger.error(
                    f"Create of {namespace}/{name} failed after delete "
                    f"({e.status} {e.reason}), restoring previous secret"
                )
                self._restore(existing)
                raise
            logger.info(
                f"Recreated secret {namespace}/{name} "
                f"({existing.secret_type} -> {secret.secret_type})"
            )
            return "recreate"

        body.metadata.resource_version = existing.resource_version
        self.core_api.replace_namespaced_secret(name=name, namespace=namespace, body=body)
        logger.info(f"Replaced secret {namespace}/{name}")
        return "replace"
