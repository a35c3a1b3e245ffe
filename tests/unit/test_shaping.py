"""Tests for shaping backend payloads into secret layouts."""

import base64
import json

import pytest

from core.shaping import (
    SecretClass,
    SecretType,
    ShapeMissingFieldError,
    ShapingError,
    UnsupportedTypeError,
    shape,
)
from core.shaping.registry import missing_shapers
from core.vault.payload import BackendSecretPayload


def payload(**fields):
    return BackendSecretPayload(fields=fields)


class TestKeyValueShaping:
    """Tests for the KEYVALUE type."""

    def test_passes_fields_through(self):
        """Each backend field should become one key."""
        shaped = shape(payload(user="app", password="s3cret"), SecretType.KEYVALUE)

        assert shaped.data == {"user": b"app", "password": b"s3cret"}
        assert shaped.secret_class == SecretClass.OPAQUE

    def test_key_mapping_renames_fields(self):
        """keyMapping should alias fields; unmapped fields keep their name."""
        shaped = shape(
            payload(user="app", pass_="s3cret"),
            "KEYVALUE",
            {"keyMapping": {"pass_": "password"}},
        )

        assert shaped.data == {"user": b"app", "password": b"s3cret"}

    def test_key_mapping_collision(self):
        """Two fields mapped onto one key should fail."""
        with pytest.raises(ShapingError):
            shape(
                payload(a="1", b="2"),
                SecretType.KEYVALUE,
                {"keyMapping": {"a": "same", "b": "same"}},
            )

    def test_non_string_values_are_json(self):
        """Nested values should be serialized as sorted compact JSON."""
        shaped = shape(payload(port=5432, opts={"b": 1, "a": True}), SecretType.KEYVALUE)

        assert shaped.data["port"] == b"5432"
        assert shaped.data["opts"] == b'{"a":true,"b":1}'

    def test_empty_payload(self):
        """An empty payload should give empty data."""
        assert shape(payload(), SecretType.KEYVALUE).data == {}


class TestCertificateShaping:
    """Tests for the CERT type."""

    def test_assembles_chain(self, cert_fields):
        """tls.crt should be the leaf followed by the chain."""
        shaped = shape(BackendSecretPayload(fields=cert_fields), SecretType.CERT)

        assert shaped.data["tls.crt"] == b"CERTIFICATE\nISSUINGCA"
        assert shaped.data["tls.key"] == b"PRIVATEKEY"
        assert set(shaped.data) == {"tls.crt", "tls.key"}
        assert shaped.secret_class == SecretClass.TLS

    def test_chain_order_is_kept(self):
        """CA certificates should follow in backend order."""
        shaped = shape(
            payload(certificate="LEAF", private_key="KEY", ca_chain=["INTER", "ROOT"]),
            SecretType.CERT,
        )

        assert shaped.data["tls.crt"] == b"LEAF\nINTER\nROOT"

    @pytest.mark.parametrize("chain", [[], None])
    def test_empty_chain_gives_leaf_only(self, chain):
        """An empty or absent chain should leave the leaf alone."""
        fields = {"certificate": "LEAF", "private_key": "KEY"}
        if chain is not None:
            fields["ca_chain"] = chain

        shaped = shape(BackendSecretPayload(fields=fields), SecretType.CERT)

        assert shaped.data["tls.crt"] == b"LEAF"

    @pytest.mark.parametrize("missing", ["certificate", "private_key"])
    def test_missing_required_field(self, cert_fields, missing):
        """Should raise ShapeMissingFieldError naming the field."""
        del cert_fields[missing]

        with pytest.raises(ShapeMissingFieldError) as exc_info:
            shape(BackendSecretPayload(fields=cert_fields), SecretType.CERT)

        assert exc_info.value.field_name == missing

    @pytest.mark.parametrize(
        "overrides",
        [
            {"ca_chain": ["ISSUINGCA", None]},
            {"ca_chain": {"ca": "ISSUINGCA"}},
            {"certificate": 12345},
            {"private_key": ["PRIVATEKEY"]},
        ],
    )
    def test_malformed_fields_raise_shaping_error(self, cert_fields, overrides):
        """Non-string certificate material should fail as a shaping error."""
        cert_fields.update(overrides)

        with pytest.raises(ShapingError):
            shape(BackendSecretPayload(fields=cert_fields), SecretType.CERT)

    def test_issuing_ca_is_ignored(self, cert_fields):
        """issuing_ca should not be added to the chain twice."""
        cert_fields["issuing_ca"] = "OTHER"

        shaped = shape(BackendSecretPayload(fields=cert_fields), SecretType.CERT)

        assert shaped.data["tls.crt"] == b"CERTIFICATE\nISSUINGCA"


class TestDockerConfigShaping:
    """Tests for the DOCKERCFG type."""

    def test_builds_docker_config(self):
        """Should render .dockerconfigjson with an auth entry."""
        shaped = shape(
            payload(username="bot", password="pw", url="registry.example.com"),
            SecretType.DOCKERCFG,
        )

        config = json.loads(shaped.data[".dockerconfigjson"])
        entry = config["auths"]["registry.example.com"]
        assert entry["username"] == "bot"
        assert base64.b64decode(entry["auth"]) == b"bot:pw"
        assert "email" not in entry
        assert shaped.secret_class == SecretClass.DOCKERCONFIG

    def test_missing_url(self):
        """Should fail without url."""
        with pytest.raises(ShapeMissingFieldError):
            shape(payload(username="bot", password="pw"), SecretType.DOCKERCFG)


class TestShapeDispatch:
    """Tests for type resolution and determinism."""

    def test_unknown_type(self):
        """Should raise UnsupportedTypeError for unknown types."""
        with pytest.raises(UnsupportedTypeError):
            shape(payload(a="1"), "PROPERTIES")

    def test_type_is_case_insensitive(self):
        """Lowercase type names should resolve."""
        assert shape(payload(a="1"), "keyvalue").secret_class == SecretClass.OPAQUE

    def test_every_type_has_a_shaper(self):
        """The registry should cover the whole enum."""
        assert missing_shapers() == []

    def test_deterministic(self, cert_fields):
        """Equal payloads should give identical data."""
        first = shape(BackendSecretPayload(fields=cert_fields), SecretType.CERT)
        second = shape(BackendSecretPayload(fields=dict(cert_fields)), SecretType.CERT)

        assert first == second
