"""Public key values.

A ``PublicKey`` field holds a JSON Web Key for a secp256k1 signing key::

    {"kty": "EC", "crv": "secp256k1", "alg": "ES256K", "use": "sig",
     "x": "<base64url>", "y": "<base64url>"}

Both coordinates decode to 32 bytes. Point verification uses the
``cryptography`` library and is enabled through configuration.
"""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Mapping
from typing import Any

from cryptography.hazmat.primitives.asymmetric import ec

JWK_KTY = "EC"
JWK_CRV = "secp256k1"
JWK_ALG = "ES256K"
JWK_USE = "sig"
COORDINATE_SIZE = 32

_FIXED_MEMBERS = {
    "kty": JWK_KTY,
    "crv": JWK_CRV,
    "alg": JWK_ALG,
    "use": JWK_USE,
}

_B64URL_RE = re.compile(r"^[A-Za-z0-9_-]+={0,2}$")


class PublicKeyError(ValueError):
    """Raised when a value is not a usable public key."""
    pass


def _decode_coordinate(text: Any, name: str) -> bytes:
    if not isinstance(text, str) or not _B64URL_RE.match(text):
        raise PublicKeyError(f"'{name}' must be base64url text")
    try:
        raw = base64.urlsafe_b64decode(text.rstrip("=") + "=" * (-len(text.rstrip("=")) % 4))
    except (binascii.Error, ValueError) as e:
        raise PublicKeyError(f"'{name}' is not valid base64url: {e}")
    if len(raw) != COORDINATE_SIZE:
        raise PublicKeyError(f"'{name}' must decode to {COORDINATE_SIZE} bytes, got {len(raw)}")
    return raw


def load_public_key(value: Any, verify_point: bool = True) -> ec.EllipticCurvePublicNumbers:
    """Parse a JWK mapping into curve numbers.

    Raises:
        PublicKeyError: If the value does not have the public-key shape, or
            (with ``verify_point``) the point is not on secp256k1
    """
    if not isinstance(value, Mapping):
        raise PublicKeyError(f"expected a JWK object, got {type(value).__name__}")

    for member, expected in _FIXED_MEMBERS.items():
        if value.get(member) != expected:
            raise PublicKeyError(f"'{member}' must be {expected!r}, got {value.get(member)!r}")

    x = int.from_bytes(_decode_coordinate(value.get("x"), "x"), "big")
    y = int.from_bytes(_decode_coordinate(value.get("y"), "y"), "big")
    numbers = ec.EllipticCurvePublicNumbers(x, y, ec.SECP256K1())

    if verify_point:
        try:
            numbers.public_key()
        except ValueError as e:
            raise PublicKeyError(f"point is not on {JWK_CRV}: {e}")

    return numbers


def public_key_problem(value: Any, verify_point: bool = True) -> str | None:
    """Describe why ``value`` is not a public key, or return None if it is."""
    try:
        load_public_key(value, verify_point=verify_point)
    except PublicKeyError as e:
        return str(e)
    return None


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii")


def public_key_to_jwk(key: ec.EllipticCurvePublicKey) -> dict[str, str]:
    """Encode a secp256k1 public key as the JWK shape accepted above."""
    if not isinstance(key.curve, ec.SECP256K1):
        raise PublicKeyError(f"expected a {JWK_CRV} key, got {key.curve.name}")
    numbers = key.public_numbers()
    return {
        **_FIXED_MEMBERS,
        "x": _b64url(numbers.x.to_bytes(COORDINATE_SIZE, "big")),
        "y": _b64url(numbers.y.to_bytes(COORDINATE_SIZE, "big")),
    }


def generate_jwk() -> dict[str, str]:
    """Generate a fresh secp256k1 key pair and return its public JWK."""
    private_key = ec.generate_private_key(ec.SECP256K1())
    return public_key_to_jwk(private_key.public_key())
