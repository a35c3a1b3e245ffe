"""PKI certificates: assemble ``tls.crt`` from the leaf and its CA chain."""

from core.shaping.exceptions import ShapeMissingFieldError, ShapingError
from core.shaping.registry import register_shaper
from core.shaping.types import SecretClass, SecretType, ShapedSecret
from core.vault.payload import BackendSecretPayload

TLS_CERT_KEY = "tls.crt"
TLS_KEY_KEY = "tls.key"


def build_chain(certificate: str, ca_chain: list) -> str:
    """
    Join leaf and CA certificates with single newlines, leaf first.

    An empty chain yields the leaf alone.
    """
    return "\n".join([certificate, *ca_chain])


@register_shaper(SecretType.CERT)
def shape_certificate(payload: BackendSecretPayload, params: dict) -> ShapedSecret:
    """
    Shape a PKI payload into a TLS keypair.

    Requires ``certificate`` and ``private_key``; ``ca_chain`` is optional and
    kept in the order the backend returned it.

    Raises:
        ShapeMissingFieldError: If certificate or private key is missing
        ShapingError: If a field is not a string, or ca_chain not a list of strings
    """
    certificate = payload.get("certificate")
    private_key = payload.get("private_key")

    if not certificate:
        raise ShapeMissingFieldError(SecretType.CERT.value, "certificate")
    if not private_key:
        raise ShapeMissingFieldError(SecretType.CERT.value, "private_key")
    if not isinstance(certificate, str) or not isinstance(private_key, str):
        raise ShapingError("CERT secret fields certificate and private_key must be strings")

    ca_chain = payload.get("ca_chain") or []
    if isinstance(ca_chain, str):
        ca_chain = [ca_chain]
    if not isinstance(ca_chain, list) or not all(isinstance(c, str) for c in ca_chain):
        raise ShapingError("CERT secret field ca_chain must be a list of strings")

    return ShapedSecret(
        data={
            TLS_CERT_KEY: build_chain(certificate, ca_chain).encode("utf-8"),
            TLS_KEY_KEY: private_key.encode("utf-8"),
        },
        secret_class=SecretClass.TLS,
    )
