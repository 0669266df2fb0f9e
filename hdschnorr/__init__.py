# hdschnorr/__init__.py

from .config import Config, KeyName
from .core import (
    MASTER_CHAIN_CODE,
    ExtendedKey,
    build_derivation_path,
    derive_child_private,
    derive_child_public,
    master_key,
    public_key_from_private,
)
from .errors import (
    DerivationFailure,
    HDSchnorrError,
    NotFound,
    PersistenceFailure,
    RandomnessUnavailable,
    SigningFailure,
)
from .service import (
    AppState,
    SchnorrPublicKeyArgs,
    SignWithSchnorrArgs,
    http_request,
    initialize,
    metrics,
    schnorr_public_key,
    sign_with_schnorr,
    start,
)
from .signer import sign, verify
from .store import SeedStore, UsageCounter

__all__ = [
    "Config",
    "KeyName",
    "MASTER_CHAIN_CODE",
    "ExtendedKey",
    "build_derivation_path",
    "derive_child_private",
    "derive_child_public",
    "master_key",
    "public_key_from_private",
    "DerivationFailure",
    "HDSchnorrError",
    "NotFound",
    "PersistenceFailure",
    "RandomnessUnavailable",
    "SigningFailure",
    "AppState",
    "SchnorrPublicKeyArgs",
    "SignWithSchnorrArgs",
    "http_request",
    "initialize",
    "metrics",
    "schnorr_public_key",
    "sign_with_schnorr",
    "start",
    "sign",
    "verify",
    "SeedStore",
    "UsageCounter",
]
