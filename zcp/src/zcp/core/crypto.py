"""
Cryptographic Primitives for ZCP

This module provides the operations attestation verification is built on:
- Canonical JSON encoding of attested payloads
- SHA-256 digests of that encoding
- secp256k1 public key decoding and ECDSA (DER) verification
- Key generation and signing, used to build test vectors

The canonical encoding is part of the wire contract. An enclave must sign
exactly the bytes produced by canonicalize_payload(), otherwise every
verification fails in a way that is indistinguishable from tampering.
"""

import hashlib
import json
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

CURVE = ec.SECP256K1()

# Every error the decode/verify path can raise for hostile input.
CRYPTO_ERRORS = (InvalidSignature, UnsupportedAlgorithm, ValueError, TypeError)


@dataclass(frozen=True)
class KeyPair:
    """A secp256k1 keypair for signing and verification."""
    private_key_bytes: bytes
    public_key_bytes: bytes

    @property
    def private_key_hex(self) -> str:
        return self.private_key_bytes.hex()

    @property
    def public_key_hex(self) -> str:
        """Uncompressed SEC1 point, the format enclaves publish."""
        return self.public_key_bytes.hex()

    @property
    def compressed_public_key_hex(self) -> str:
        point = _private_key_from_bytes(self.private_key_bytes).public_key()
        return point.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.CompressedPoint,
        ).hex()

    @classmethod
    def from_private_key_hex(cls, private_key_hex: str) -> "KeyPair":
        """Reconstruct keypair from a 32-byte private scalar in hex."""
        private_bytes = bytes.fromhex(private_key_hex)
        private_key = _private_key_from_bytes(private_bytes)
        return cls(
            private_key_bytes=private_bytes,
            public_key_bytes=_uncompressed_point(private_key.public_key()),
        )


def generate_keypair() -> KeyPair:
    """
    Generate a new secp256k1 keypair.

    Returns:
        KeyPair with the private scalar and uncompressed public point
    """
    private_key = ec.generate_private_key(CURVE)
    private_bytes = private_key.private_numbers().private_value.to_bytes(32, "big")
    return KeyPair(
        private_key_bytes=private_bytes,
        public_key_bytes=_uncompressed_point(private_key.public_key()),
    )


def canonicalize_payload(obj: Any) -> str:
    """
    Produce the canonical JSON text of an attested payload.

    Rules:
    - Keys are sorted at every level
    - No whitespace between tokens
    - Non-ASCII characters are emitted as UTF-8, not escaped
    - NaN and Infinity are rejected (ValueError)

    Args:
        obj: JSON-compatible Python value

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def payload_digest(payload: Any) -> bytes:
    """SHA-256 over the UTF-8 canonical encoding of a payload."""
    return hashlib.sha256(canonicalize_payload(payload).encode("utf-8")).digest()


def hash_data(data: bytes) -> str:
    """
    Compute SHA-256 hash of bytes.

    Returns:
        Hex-encoded SHA-256 hash with 'sha256:' prefix
    """
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


def hash_json(obj: Any) -> str:
    """SHA-256 of the canonical encoding, with 'sha256:' prefix."""
    return hash_data(canonicalize_payload(obj).encode("utf-8"))


def decode_hex(value: str) -> bytes:
    """Decode a hex string, tolerating an optional 0x prefix."""
    if not isinstance(value, str):
        raise TypeError(f"expected hex string, got {type(value).__name__}")
    if value[:2] in ("0x", "0X"):
        value = value[2:]
    return bytes.fromhex(value)


def decode_public_key(public_key_hex: str) -> ec.EllipticCurvePublicKey:
    """
    Decode a hex SEC1 point (compressed or uncompressed) on secp256k1.

    Raises:
        ValueError: if the bytes are not a valid point on the curve
    """
    return ec.EllipticCurvePublicKey.from_encoded_point(CURVE, decode_hex(public_key_hex))


def normalize_public_key(public_key_hex: str) -> str:
    """Return the uncompressed hex form of a public key."""
    return _uncompressed_point(decode_public_key(public_key_hex)).hex()


def sign_digest(digest: bytes, private_key: bytes) -> bytes:
    """
    Sign a 32-byte SHA-256 digest with ECDSA over secp256k1.

    Returns:
        DER-encoded signature
    """
    key = _private_key_from_bytes(private_key)
    return key.sign(digest, ec.ECDSA(Prehashed(hashes.SHA256())))


def sign_payload(payload: Any, private_key: bytes) -> str:
    """Sign the canonical digest of a payload, returning hex DER."""
    return sign_digest(payload_digest(payload), private_key).hex()


def verify_digest(digest: bytes, signature: bytes, public_key: ec.EllipticCurvePublicKey) -> bool:
    """
    Verify a DER signature over a pre-computed SHA-256 digest.

    Returns:
        True if the signature is valid, False otherwise
    """
    try:
        public_key.verify(signature, digest, ec.ECDSA(Prehashed(hashes.SHA256())))
        return True
    except CRYPTO_ERRORS:
        return False


def _private_key_from_bytes(private_key: bytes) -> ec.EllipticCurvePrivateKey:
    return ec.derive_private_key(int.from_bytes(private_key, "big"), CURVE)


def _uncompressed_point(public_key: ec.EllipticCurvePublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
