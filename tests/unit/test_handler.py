"""Tests for the event handler reconciliation path."""

from datetime import datetime, timezone

import httpx
import pytest

from controller.detector import ChangeDetector, fingerprint
from controller.handler import EventHandler
from controller.models import MaterializedSecret
from core.shaping import SecretType, ShapeMissingFieldError
from core.vault import BackendNotFoundError, VaultClient


def make_handler(backend, store, clock=None):
    detector = ChangeDetector(backend, store)
    if clock is None:
        return EventHandler(detector, store)
    return EventHandler(detector, store, clock=clock)


class TestCertificateReconciliation:
    """End-to-end reconciliation of a CERT source over HTTP."""

    def test_generates_tls_secret(self, store, source_factory, response_body, cert_fields):
        """Should materialize tls.crt/tls.key with both annotations."""
        # Arrange
        client = VaultClient(
            {"url": "http://localhost:8206/v1/", "token": "t"},
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json=response_body(cert_fields))
            ),
        )
        handler = make_handler(client, store)
        source = source_factory()

        # Act
        written = handler.add_handler(source)

        # Assert
        secret = store.get("default", "certificate")
        assert written is True
        assert secret.name == "certificate"
        assert secret.namespace == "default"
        assert secret.secret_type == "kubernetes.io/tls"
        assert secret.data["tls.crt"].decode() == "CERTIFICATE\nISSUINGCA"
        assert secret.data["tls.key"].decode() == "PRIVATEKEY"
        assert secret.last_update
        assert secret.compare == fingerprint(
            {"tls.crt": b"CERTIFICATE\nISSUINGCA", "tls.key": b"PRIVATEKEY"}
        )

    def test_refresh_needed_then_reconcile(
        self, backend, store, source_factory, cert_fields
    ):
        """A changed certificate should be detected and then written."""
        source = source_factory()
        backend.respond(source.path, cert_fields)
        backend.respond(source.path, {**cert_fields, "certificate": "CERTIFICATECHANGE"})
        handler = make_handler(backend, store)

        handler.add_handler(source)
        old_compare = store.get("default", "certificate").compare

        assert handler.detector.refresh_is_needed(source) is True
        assert handler.add_handler(source) is True

        secret = store.get("default", "certificate")
        assert secret.data["tls.crt"] == b"CERTIFICATECHANGE\nISSUINGCA"
        assert secret.compare != old_compare
        assert secret.compare == fingerprint(secret.data)


class TestIdempotence:
    """Tests for skipping unchanged values."""

    def test_second_call_is_noop(self, backend, store, source_factory, cert_fields):
        """Two reconciliations of an unchanged value should write once."""
        source = source_factory()
        backend.respond(source.path, cert_fields)
        ticks = iter(
            [
                datetime(2026, 1, 1, tzinfo=timezone.utc),
                datetime(2026, 1, 2, tzinfo=timezone.utc),
            ]
        )
        handler = make_handler(backend, store, clock=lambda: next(ticks))

        assert handler.add_handler(source) is True
        first = store.get("default", "certificate")
        assert handler.add_handler(source) is False
        second = store.get("default", "certificate")

        assert store.writes == [("create", ("default", "certificate"))]
        assert second.compare == first.compare
        assert second.last_update == first.last_update == "2026-01-01T00:00:00+00:00"

    def test_modify_handler_shares_path(self, backend, store, source_factory, cert_fields):
        """Update events should use the same idempotent path."""
        source = source_factory()
        backend.respond(source.path, cert_fields)
        handler = make_handler(backend, store)

        handler.add_handler(source)

        assert handler.modify_handler(source) is False
        assert len(store.writes) == 1


class TestFullReplace:
    """Tests for replacing data on change."""

    def test_type_change_drops_old_keys(self, backend, store, source_factory, cert_fields):
        """Switching KEYVALUE -> CERT should leave only TLS keys."""
        generic = source_factory(secret_type=SecretType.KEYVALUE)
        backend.respond(generic.path, {"username": "app", "password": "pw"})
        handler = make_handler(backend, store)
        handler.add_handler(generic)
        assert store.get("default", "certificate").secret_type == "Opaque"

        backend.responses[generic.path] = [cert_fields]
        handler.add_handler(source_factory(secret_type=SecretType.CERT))

        secret = store.get("default", "certificate")
        assert set(secret.data) == {"tls.crt", "tls.key"}
        assert secret.secret_type == "kubernetes.io/tls"
        assert store.writes[-1][0] == "recreate"

    def test_removed_field_is_dropped(self, backend, store, source_factory):
        """A field removed from the backend should disappear from the secret."""
        source = source_factory(path="secret/app", secret_type=SecretType.KEYVALUE)
        backend.respond(source.path, {"a": "1", "b": "2"})
        backend.respond(source.path, {"a": "1"})
        handler = make_handler(backend, store)

        handler.add_handler(source)
        handler.add_handler(source)

        assert store.get("default", "certificate").data == {"a": b"1"}
        assert store.writes[-1][0] == "replace"


class TestFailures:
    """Tests for failure propagation without writes."""

    def test_backend_failure_leaves_secret_untouched(
        self, backend, store, source_factory, cert_fields
    ):
        """An inaccessible path should raise and keep the prior secret."""
        source = source_factory()
        backend.respond(source.path, cert_fields)
        backend.respond(source.path, BackendNotFoundError("gone", path=source.path))
        handler = make_handler(backend, store)
        handler.add_handler(source)
        before = store.get("default", "certificate")

        with pytest.raises(BackendNotFoundError):
            handler.add_handler(source)

        assert store.get("default", "certificate") == before
        assert len(store.writes) == 1

    def test_missing_field_writes_nothing(self, backend, store, source_factory):
        """A payload missing private_key should not produce a secret."""
        source = source_factory()
        backend.respond(source.path, {"certificate": "CERTIFICATE"})

        with pytest.raises(ShapeMissingFieldError):
            make_handler(backend, store).add_handler(source)

        assert store.get("default", "certificate") is None
        assert store.writes == []


class TestMetadata:
    """Tests for owner references and foreign metadata."""

    def test_owner_reference_from_uid(self, backend, store, source_factory, cert_fields):
        """Should point the secret at its VaultSecret for garbage collection."""
        source = source_factory(uid="1234-abcd")
        backend.respond(source.path, cert_fields)

        make_handler(backend, store).add_handler(source)

        refs = store.get("default", "certificate").owner_references
        assert refs == [
            {
                "apiVersion": "secretsync.io/v1",
                "kind": "VaultSecret",
                "name": "certificate",
                "uid": "1234-abcd",
                "controller": True,
            }
        ]

    def test_preserves_foreign_annotations(
        self, backend, store, source_factory, cert_fields
    ):
        """Annotations and labels owned by others should survive a rewrite."""
        source = source_factory()
        store.put(
            MaterializedSecret(
                namespace="default",
                name="certificate",
                data={"tls.crt": b"OLD", "tls.key": b"OLD"},
                secret_type="kubernetes.io/tls",
                compare="stale",
                annotations={"team": "platform"},
                labels={"app": "web"},
            )
        )
        backend.respond(source.path, cert_fields)

        make_handler(backend, store).add_handler(source)

        secret = store.get("default", "certificate")
        assert secret.annotations == {"team": "platform"}
        assert secret.labels == {"app": "web"}
        assert secret.data["tls.crt"] == b"CERTIFICATE\nISSUINGCA"

    def test_apply_shaped_skips_fetch(self, backend, store, source_factory, cert_fields):
        """apply_shaped should write the given value without calling the backend."""
        source = source_factory()
        backend.respond(source.path, cert_fields)
        handler = make_handler(backend, store)
        shaped = handler.detector.fetch_shaped(source)
        backend.calls.clear()

        assert handler.apply_shaped(source, shaped) is True
        assert backend.calls == []
