"""Registry credentials rendered as a ``.dockerconfigjson`` secret."""

import base64
import json

from core.shaping.exceptions import ShapeMissingFieldError
from core.shaping.registry import register_shaper
from core.shaping.types import SecretClass, SecretType, ShapedSecret
from core.vault.payload import BackendSecretPayload

DOCKER_CONFIG_KEY = ".dockerconfigjson"
REQUIRED_FIELDS = ("username", "password", "url")


@register_shaper(SecretType.DOCKERCFG)
def shape_dockercfg(payload: BackendSecretPayload, params: dict) -> ShapedSecret:
    """
    Build an image pull secret from ``username``, ``password`` and ``url``.

    ``email`` is copied when present.
    """
    for name in REQUIRED_FIELDS:
        if not payload.get(name):
            raise ShapeMissingFieldError(SecretType.DOCKERCFG.value, name)

    username = payload.get("username")
    password = payload.get("password")
    auth = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")

    entry = {"username": username, "password": password, "auth": auth}
    if payload.get("email"):
        entry["email"] = payload.get("email")

    config = {"auths": {payload.get("url"): entry}}
    rendered = json.dumps(config, sort_keys=True, separators=(",", ":"))

    return ShapedSecret(
        data={DOCKER_CONFIG_KEY: rendered.encode("utf-8")},
        secret_class=SecretClass.DOCKERCONFIG,
    )
