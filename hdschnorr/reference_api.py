"""
Stable reference API for hdschnorr test vectors.

Wraps the derivation and signing primitives into a flat, hex-in/hex-out
surface that the vector generator and tests depend on, so other
implementations can be checked against the same JSON.
"""

import hashlib
from typing import Any, Dict, List, Sequence

from hdschnorr.core import (
    build_derivation_path,
    derive_child_private,
    derive_child_public,
    master_key,
    public_key_from_private,
)
from hdschnorr.signer import sign, verify

# (name, seed, tenant, extra path segments, message)
SCENARIOS = [
    ("tenant-abc", b"\x01" * 64, b"abc", [bytes([1, 2, 3, 4])], b"Test message"),
    ("tenant-abc-root", b"\x01" * 64, b"abc", [], b"Test message"),
    ("multi-segment", bytes(range(64)), b"\x00\x00\x00\x00\x01\x00\x00\x01\x01\x01",
     [b"wallet", b"", b"\xff" * 40], b"hello"),
]


def digest_message(message: bytes) -> bytes:
    """SHA-256 of the message; the signer itself never hashes."""
    return hashlib.sha256(message).digest()


def master_public_key(seed: bytes) -> bytes:
    return public_key_from_private(master_key(seed).key)


def derive_public(seed: bytes, path: Sequence[bytes]):
    master = master_key(seed)
    return derive_child_public(public_key_from_private(master.key), path, master.chain_code)


def derive_private(seed: bytes, path: Sequence[bytes]):
    master = master_key(seed)
    return derive_child_private(master.key, path, master.chain_code)


def build_vector(
    name: str,
    seed: bytes,
    tenant: bytes,
    segments: Sequence[bytes],
    message: bytes,
) -> Dict[str, Any]:
    path = build_derivation_path(tenant, segments)
    pub = derive_public(seed, path)
    priv = derive_private(seed, path)
    digest = digest_message(message)
    signature = sign(priv.key, digest)

    if not verify(pub.key, digest, signature):
        raise ValueError(f"vector {name!r} does not verify")

    return {
        "id": name,
        "seed_hex": seed.hex(),
        "path_hex": [segment.hex() for segment in path],
        "message_hex": message.hex(),
        "digest_hex": digest.hex(),
        "master_public_key_hex": master_public_key(seed).hex(),
        "private_key_hex": priv.key.hex(),
        "public_key_hex": pub.key.hex(),
        "chain_code_hex": pub.chain_code.hex(),
        "signature_hex": signature.hex(),
    }


def build_vectors() -> List[Dict[str, Any]]:
    return [build_vector(*scenario) for scenario in SCENARIOS]
