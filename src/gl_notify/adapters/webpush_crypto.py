"""Web Push message encryption (RFC 8291) and VAPID authorization (RFC 8292).

The encrypted body uses the ``aes128gcm`` content coding (RFC 8188) with a
single record::

    salt(16) ‖ rs(4, big endian) ‖ idlen(1) ‖ keyid(65) ‖ ciphertext ‖ tag(16)

where *keyid* is the ephemeral application server public key.
"""

from __future__ import annotations

import base64
import os
import time
from urllib.parse import urlsplit

import jwt
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

RECORD_SIZE = 4096
_SALT_SIZE = 16
_TAG_SIZE = 16
_PADDING_DELIMITER = b"\x02"
# largest plaintext that fits into one record
MAX_PLAINTEXT_SIZE = RECORD_SIZE - _TAG_SIZE - len(_PADDING_DELIMITER)


def b64url_decode(value: str) -> bytes:
    """Decode URL-safe base64, tolerating missing padding."""
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


def b64url_encode(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).rstrip(b"=").decode("ascii")


def _public_bytes(key: ec.EllipticCurvePublicKey) -> bytes:
    return key.public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )


def _hkdf(salt: bytes, info: bytes, length: int, ikm: bytes) -> bytes:
    return HKDF(algorithm=hashes.SHA256(), length=length, salt=salt, info=info).derive(ikm)


def encrypt_payload(
    plaintext: bytes,
    p256dh: str,
    auth: str,
    *,
    salt: bytes | None = None,
    server_key: ec.EllipticCurvePrivateKey | None = None,
) -> bytes:
    """Encrypt ``plaintext`` for the subscription identified by ``p256dh``/``auth``.

    Raises:
        ValueError: the subscription keys are malformed or the payload does
            not fit into a single record.
    """
    if len(plaintext) > MAX_PLAINTEXT_SIZE:
        raise ValueError(f"payload of {len(plaintext)} bytes exceeds {MAX_PLAINTEXT_SIZE} bytes")
    ua_public = b64url_decode(p256dh)
    auth_secret = b64url_decode(auth)
    if len(auth_secret) != 16:
        raise ValueError("auth secret must be 16 bytes")
    ua_key = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), ua_public)

    server_key = server_key or ec.generate_private_key(ec.SECP256R1())
    as_public = _public_bytes(server_key.public_key())
    salt = salt or os.urandom(_SALT_SIZE)

    ecdh_secret = server_key.exchange(ec.ECDH(), ua_key)
    ikm = _hkdf(auth_secret, b"WebPush: info\x00" + ua_public + as_public, 32, ecdh_secret)
    cek = _hkdf(salt, b"Content-Encoding: aes128gcm\x00", 16, ikm)
    nonce = _hkdf(salt, b"Content-Encoding: nonce\x00", 12, ikm)

    ciphertext = AESGCM(cek).encrypt(nonce, plaintext + _PADDING_DELIMITER, None)
    header = salt + RECORD_SIZE.to_bytes(4, "big") + bytes([len(as_public)]) + as_public
    return header + ciphertext


def load_vapid_key(value: str) -> ec.EllipticCurvePrivateKey:
    """Load a VAPID private key from PEM or URL-safe base64 (raw 32 bytes or DER).

    Raises:
        ValueError: the key cannot be parsed or is not a P-256 key.
    """
    value = value.strip()
    if value.startswith("-----BEGIN"):
        key = serialization.load_pem_private_key(value.encode("ascii"), password=None)
    else:
        raw = b64url_decode("".join(value.split()))
        if len(raw) == 32:
            key = ec.derive_private_key(int.from_bytes(raw, "big"), ec.SECP256R1())
        else:
            key = serialization.load_der_private_key(raw, password=None)
    if not isinstance(key, ec.EllipticCurvePrivateKey) or not isinstance(key.curve, ec.SECP256R1):
        raise ValueError("VAPID key must be a P-256 EC private key")
    return key


def vapid_authorization(
    key: ec.EllipticCurvePrivateKey,
    endpoint: str,
    subject: str,
    *,
    expires_in: int = 12 * 60 * 60,
) -> str:
    """Build the ``Authorization: vapid t=..., k=...`` header value for ``endpoint``."""
    parts = urlsplit(endpoint)
    claims = {
        "aud": f"{parts.scheme}://{parts.netloc}",
        "exp": int(time.time()) + expires_in,
        "sub": subject,
    }
    token = jwt.encode(claims, key, algorithm="ES256")
    return f"vapid t={token}, k={b64url_encode(_public_bytes(key.public_key()))}"
