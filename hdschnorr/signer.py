# hdschnorr/signer.py

from coincurve import PrivateKey, PublicKeyXOnly

from .errors import SigningFailure

DIGEST_SIZE = 32


def sign(private_key: bytes, digest: bytes) -> bytes:
    """
    BIP-340 Schnorr signature over a 32-byte digest.

    No auxiliary randomness is mixed into the nonce, so the signature is a
    pure function of (private_key, digest). The digest is signed as given;
    hashing the actual message is the caller's job.
    """
    if len(digest) != DIGEST_SIZE:
        raise SigningFailure("message must be a 32-byte digest")

    try:
        key = PrivateKey(bytes(private_key))
        return key.sign_schnorr(bytes(digest), aux_randomness=None)
    except ValueError as e:
        raise SigningFailure(f"cannot sign with this key: {e}") from e


def verify(public_key: bytes, digest: bytes, signature: bytes) -> bool:
    """
    Verify a Schnorr signature.

    public_key may be a 33-byte compressed SEC1 key or a 32-byte x-only key.

    Returns:
        True if valid, False otherwise.
    """
    if len(public_key) == 33:
        public_key = public_key[1:]
    if len(public_key) != 32 or len(signature) != 64:
        return False

    try:
        xonly = PublicKeyXOnly(bytes(public_key))
        return xonly.verify(bytes(signature), bytes(digest))
    except ValueError:
        return False
