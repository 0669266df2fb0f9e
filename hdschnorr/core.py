# hdschnorr/core.py

import hashlib
import hmac
from typing import Iterable, List, NamedTuple, Sequence

from coincurve import PrivateKey, PublicKey

from .errors import DerivationFailure

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

MASTER_HMAC_KEY = b"Bitcoin seed"

# The seed alone is the trust root: the master chain code is always zero.
MASTER_CHAIN_CODE = b"\x00" * 32


class ExtendedKey(NamedTuple):
    """
    A derived key plus its chain code.

    `key` is a 32-byte scalar for private derivation and a 33-byte
    compressed SEC1 point for public derivation.
    """

    key: bytes
    chain_code: bytes


# ---------- HMAC (SHA-512) ----------

def hmac_sha512(key: bytes, data: bytes) -> bytes:
    return hmac.new(key, data, hashlib.sha512).digest()


# ---------- Paths ----------

def build_derivation_path(tenant: bytes, segments: Iterable[bytes]) -> List[bytes]:
    """
    The tenant identity is always the first segment, so two tenants asking
    for the same remaining segments end up on disjoint subtrees.
    """
    return [bytes(tenant)] + [bytes(s) for s in segments]


# ---------- Key helpers ----------

def _private_key(secret: bytes) -> PrivateKey:
    try:
        return PrivateKey(bytes(secret))
    except ValueError as e:
        raise DerivationFailure(f"invalid private key: {e}") from e


def _public_key(data: bytes) -> PublicKey:
    try:
        return PublicKey(bytes(data))
    except ValueError as e:
        raise DerivationFailure(f"invalid public key: {e}") from e


def _check_chain_code(chain_code: bytes) -> None:
    if len(chain_code) != 32:
        raise DerivationFailure("chain code must be 32 bytes")


def public_key_from_private(secret: bytes) -> bytes:
    """33-byte compressed SEC1 public key for a 32-byte scalar."""
    return _private_key(secret).public_key.format(compressed=True)


def master_key(seed: bytes) -> ExtendedKey:
    """
    Expand a root seed into the master extended private key.

    The private half is the left 32 bytes of HMAC-SHA512("Bitcoin seed", seed).
    The right half is thrown away and replaced by MASTER_CHAIN_CODE.
    """
    if not 16 <= len(seed) <= 64:
        raise DerivationFailure("seed must be between 16 and 64 bytes")

    i = hmac_sha512(MASTER_HMAC_KEY, seed)
    key_int = int.from_bytes(i[:32], "big")
    if key_int == 0 or key_int >= SECP256K1_ORDER:
        raise DerivationFailure("seed does not produce a valid master key")

    return ExtendedKey(i[:32], MASTER_CHAIN_CODE)


# ---------- Non-hardened derivation ----------

def _child_tweak(parent_public: bytes, chain_code: bytes, index: bytes):
    """
    One derivation step: I = HMAC-SHA512(chain_code, parent_public || index).
    Returns (IL, IR); IL is the tweak, IR the child chain code.
    """
    i = hmac_sha512(chain_code, parent_public + index)
    tweak, child_chain_code = i[:32], i[32:]
    if int.from_bytes(tweak, "big") >= SECP256K1_ORDER:
        raise DerivationFailure("derivation tweak is not a valid scalar")
    return tweak, child_chain_code


def derive_child_public(
    public_key: bytes,
    path: Sequence[bytes],
    chain_code: bytes = MASTER_CHAIN_CODE,
) -> ExtendedKey:
    """
    Walk `path` from a parent public key. Never needs the private scalar.
    """
    _check_chain_code(chain_code)
    point = _public_key(public_key)

    for index in path:
        tweak, chain_code = _child_tweak(
            point.format(compressed=True), chain_code, bytes(index)
        )
        try:
            point = point.add(tweak)
        except ValueError as e:
            raise DerivationFailure("derived public key is invalid") from e

    return ExtendedKey(point.format(compressed=True), chain_code)


def derive_child_private(
    private_key: bytes,
    path: Sequence[bytes],
    chain_code: bytes = MASTER_CHAIN_CODE,
) -> ExtendedKey:
    """
    Same walk as derive_child_public, carried on the private scalar.
    The public key of the result equals the derive_child_public result.
    """
    _check_chain_code(chain_code)
    key = _private_key(private_key)

    for index in path:
        tweak, chain_code = _child_tweak(
            key.public_key.format(compressed=True), chain_code, bytes(index)
        )
        try:
            key = key.add(tweak)
        except ValueError as e:
            raise DerivationFailure("derived private key is invalid") from e

    return ExtendedKey(key.secret, chain_code)
