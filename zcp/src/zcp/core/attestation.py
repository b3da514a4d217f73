"""
ZCP Attestation Records

The `.zcp` attestation format produced by ZeroCopy enclaves:
- Attestation: a signed payload plus the signer's public key
- PolicyProof: optional receipt asserting the enclave's decision was
  checked against a declared trading policy

Records are immutable values. Decoding accepts unknown fields and keeps
them in `extra` so newer producers do not break older verifiers, but no
check ever looks at them.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from zcp.core.crypto import hash_json
from zcp.core.errors import AttestationFormatError


@dataclass(frozen=True)
class PolicyProof:
    """Proof that an enclave decision satisfied declared policy properties."""
    receipt_hex: str
    image_id: str
    checked_properties: Tuple[str, ...] = ()
    timestamp_ms: int = 0
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    FIELDS = ("receipt_hex", "image_id", "checked_properties", "timestamp_ms")

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = dict(self.extra)
        d.update({
            "receipt_hex": self.receipt_hex,
            "image_id": self.image_id,
            "checked_properties": list(self.checked_properties),
            "timestamp_ms": self.timestamp_ms,
        })
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PolicyProof":
        if not isinstance(data, Mapping):
            raise AttestationFormatError("policy_proof must be an object", "policy_proof")
        properties = _require(data, "checked_properties", list, "policy_proof.")
        for i, prop in enumerate(properties):
            if not isinstance(prop, str):
                raise AttestationFormatError(
                    f"policy_proof.checked_properties[{i}] must be a string",
                    "policy_proof.checked_properties",
                )
        return cls(
            receipt_hex=_require(data, "receipt_hex", str, "policy_proof."),
            image_id=_require(data, "image_id", str, "policy_proof."),
            checked_properties=tuple(properties),
            timestamp_ms=_require(data, "timestamp_ms", int, "policy_proof."),
            extra={k: v for k, v in data.items() if k not in cls.FIELDS},
        )


@dataclass(frozen=True)
class Attestation:
    """A statement signed by an enclave key."""
    version: str
    timestamp: int
    payload: Any
    signature: str
    enclave_pubkey: str
    policy_proof: Optional[PolicyProof] = None
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    FIELDS = ("version", "timestamp", "payload", "signature", "enclave_pubkey", "policy_proof")

    @property
    def has_policy_proof(self) -> bool:
        return self.policy_proof is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire format (policy_proof omitted when absent)."""
        d: Dict[str, Any] = dict(self.extra)
        d.update({
            "version": self.version,
            "timestamp": self.timestamp,
            "payload": self.payload,
            "signature": self.signature,
            "enclave_pubkey": self.enclave_pubkey,
        })
        if self.policy_proof is not None:
            d["policy_proof"] = self.policy_proof.to_dict()
        return d

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Attestation":
        """
        Decode an attestation from its wire representation.

        Raises:
            AttestationFormatError: if a required field is missing or has
                the wrong type
        """
        if not isinstance(data, Mapping):
            raise AttestationFormatError("attestation must be a JSON object")
        if "payload" not in data:
            raise AttestationFormatError("missing required field: payload", "payload")

        proof_data = data.get("policy_proof")
        return cls(
            version=_require(data, "version", str),
            timestamp=_require(data, "timestamp", int),
            payload=data["payload"],
            signature=_require(data, "signature", str),
            enclave_pubkey=_require(data, "enclave_pubkey", str),
            policy_proof=PolicyProof.from_dict(proof_data) if proof_data is not None else None,
            extra={k: v for k, v in data.items() if k not in cls.FIELDS},
        )

    @classmethod
    def from_json(cls, text: str) -> "Attestation":
        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as e:
            raise AttestationFormatError(f"Failed to parse attestation: {e}") from e
        return cls.from_dict(data)


def attestation_fingerprint(attestation: Attestation) -> str:
    """
    Stable identifier of an attestation for logs and de-duplication.

    SHA-256 of the canonical encoding of every recognized field (policy
    proof fields included) except the signature, so re-encoded signatures
    of the same statement collide.
    """
    record = attestation.to_dict()
    for key in attestation.extra:
        record.pop(key, None)
    if attestation.policy_proof is not None:
        for key in attestation.policy_proof.extra:
            record["policy_proof"].pop(key, None)
    record.pop("signature", None)
    return hash_json(record)


def _require(data: Mapping[str, Any], name: str, expected: type, prefix: str = "") -> Any:
    if name not in data:
        raise AttestationFormatError(f"missing required field: {prefix}{name}", prefix + name)
    value = data[name]
    # bool is an int subclass but never a valid timestamp
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise AttestationFormatError(
            f"field {prefix}{name} must be of type {expected.__name__}, "
            f"got {type(value).__name__}",
            prefix + name,
        )
    return value
