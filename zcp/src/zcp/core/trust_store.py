"""
Trusted enclave keys.

A TrustStore is the explicit set of enclave public keys a deployment
accepts. It is built once (usually from configuration) and handed to the
verifier; keys are compared on their uncompressed encoding so compressed
and uncompressed forms of the same point are interchangeable.
"""

import logging
from typing import FrozenSet, Iterable, Optional

from zcp.core.crypto import CRYPTO_ERRORS, normalize_public_key

logger = logging.getLogger(__name__)


class TrustStore:
    """Immutable set of trusted secp256k1 public keys."""

    def __init__(self, public_keys: Iterable[str] = ()):
        normalized = set()
        for key in public_keys:
            try:
                normalized.add(normalize_public_key(key))
            except CRYPTO_ERRORS as e:
                raise ValueError(f"Invalid trusted public key {key!r}: {e}") from e
        self._keys: FrozenSet[str] = frozenset(normalized)

    @property
    def keys(self) -> FrozenSet[str]:
        return self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, public_key_hex: object) -> bool:
        return self.is_trusted(public_key_hex)

    def __repr__(self) -> str:
        return f"TrustStore({len(self._keys)} keys)"

    def is_trusted(self, public_key_hex: object) -> bool:
        """True if the key decodes and is in the store; never raises."""
        normalized = self._normalize(public_key_hex)
        return normalized is not None and normalized in self._keys

    def with_key(self, public_key_hex: str) -> "TrustStore":
        """A new store with one more key."""
        return TrustStore(list(self._keys) + [public_key_hex])

    @staticmethod
    def _normalize(public_key_hex: object) -> Optional[str]:
        try:
            return normalize_public_key(public_key_hex)  # type: ignore[arg-type]
        except CRYPTO_ERRORS:
            logger.debug("Public key does not decode to a secp256k1 point")
            return None
