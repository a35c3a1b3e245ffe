"""Shared fixtures: in-memory store, scripted backend and source factory."""

import copy
import threading

import pytest

from controller.models import SecretSource
from controller.sources import SourceLister
from controller.store import SecretStore
from core.shaping.types import SecretType
from core.vault.base import SecretBackend
from core.vault.payload import BackendSecretPayload

CERT_FIELDS = {
    "certificate": "CERTIFICATE",
    "issuing_ca": "ISSUINGCA",
    "ca_chain": ["ISSUINGCA"],
    "private_key": "PRIVATEKEY",
}


def vault_response(fields: dict) -> dict:
    """Response envelope as returned by the backend for a path."""
    return {
        "request_id": "6cc090a8-3821-8244-73e4-5ab62b605587",
        "lease_id": "",
        "renewable": False,
        "lease_duration": 2764800,
        "data": {"data": fields},
        "wrap_info": None,
        "warnings": None,
        "auth": None,
    }


class InMemorySecretStore(SecretStore):
    """SecretStore keeping secrets in a dict and recording every write."""

    def __init__(self):
        self.secrets = {}
        self.writes = []
        self._version = 0
        self._lock = threading.Lock()

    def put(self, secret):
        """Seed a secret without recording a write."""
        self._version += 1
        stored = copy.deepcopy(secret)
        stored.resource_version = str(self._version)
        self.secrets[secret.key] = stored

    def get(self, namespace, name):
        with self._lock:
            secret = self.secrets.get((namespace, name))
            return copy.deepcopy(secret) if secret else None

    def upsert(self, secret, existing=None):
        with self._lock:
            if existing is None:
                operation = "create"
            elif existing.secret_type != secret.secret_type:
                operation = "recreate"
            else:
                operation = "replace"
            self.writes.append((operation, secret.key))
            self.put(secret)
            return operation


class StubBackend(SecretBackend):
    """Backend answering from scripted responses per path."""

    def __init__(self):
        self.responses = {}
        self.calls = []
        self._lock = threading.Lock()

    def respond(self, path, result):
        """Queue a dict of fields or an exception; the last one repeats."""
        self.responses.setdefault(path, []).append(result)

    def fetch(self, path):
        with self._lock:
            self.calls.append(path)
            queue = self.responses.get(path)
            if not queue:
                raise KeyError(f"No scripted response for {path}")
            result = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(result, Exception):
            raise result
        return BackendSecretPayload(fields=copy.deepcopy(result), path=path)

    def health_check(self):
        return True


class StaticLister(SourceLister):
    def __init__(self, sources=None):
        self.sources = list(sources or [])

    def list_sources(self):
        return list(self.sources)


def make_source(
    name="certificate",
    namespace="default",
    path="secret/certificate",
    secret_type=SecretType.CERT,
    uid=None,
    **params,
) -> SecretSource:
    return SecretSource(
        namespace=namespace,
        name=name,
        path=path,
        secret_type=secret_type,
        params=params,
        uid=uid,
    )


@pytest.fixture
def store():
    return InMemorySecretStore()


@pytest.fixture
def backend():
    return StubBackend()


@pytest.fixture
def lister():
    return StaticLister()


@pytest.fixture
def source_factory():
    """Build SecretSource objects with sensible defaults."""
    return make_source


@pytest.fixture
def cert_fields():
    return copy.deepcopy(CERT_FIELDS)


@pytest.fixture
def response_body():
    """Build a backend response envelope around a dict of fields."""
    return vault_response
