# hdschnorr/service.py
"""
Request-level operations.

All process state lives in an AppState that callers own and pass in; the
caller's identity arrives as raw bytes from whatever transport sits on top.
"""

import asyncio
import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

from .config import Config, KeyName
from .core import (
    ExtendedKey,
    build_derivation_path,
    derive_child_private,
    derive_child_public,
    master_key,
    public_key_from_private,
)
from .errors import HDSchnorrError
from .signer import sign
from .store import (
    FileCell,
    FileMap,
    MemoryCell,
    MemoryMap,
    RandomnessSource,
    SeedStore,
    UsageCounter,
    nacl_randomness,
)

logger = logging.getLogger(__name__)


@dataclass
class SchnorrPublicKeyArgs:
    key_id: Union[KeyName, str]
    derivation_path: List[bytes] = field(default_factory=list)
    # Query another tenant's key; defaults to the caller.
    tenant: Optional[bytes] = None


@dataclass
class SchnorrPublicKeyReply:
    public_key: bytes
    chain_code: bytes


@dataclass
class SignWithSchnorrArgs:
    key_id: Union[KeyName, str]
    message: bytes
    derivation_path: List[bytes] = field(default_factory=list)


@dataclass
class SignWithSchnorrReply:
    signature: bytes


@dataclass
class Metrics:
    balance: int
    sig_count: int


@dataclass
class HttpResponse:
    status_code: int
    headers: List[Tuple[str, str]]
    body: bytes


class AppState:
    """Seeds, signature counter and balance probe for one process."""

    def __init__(
        self,
        seeds: SeedStore,
        counter: UsageCounter,
        balance: Callable[[], int] = lambda: 0,
    ):
        self.seeds = seeds
        self.counter = counter
        self.balance = balance

    @classmethod
    def in_memory(cls, randomness: RandomnessSource = nacl_randomness) -> "AppState":
        return cls(SeedStore(MemoryMap(), randomness), UsageCounter(MemoryCell()))

    @classmethod
    def on_disk(
        cls, config: Config, randomness: RandomnessSource = nacl_randomness
    ) -> "AppState":
        return cls(
            SeedStore(FileMap(config.seeds_path), randomness),
            UsageCounter(FileCell(config.sig_count_path)),
        )


# ---------- Initialization ----------

def start(state: AppState) -> List["asyncio.Task[bytes]"]:
    """
    Kick off seed provisioning for every declared key, one task per key.
    Must be called from a running event loop. Completion order is not
    defined; await the returned tasks before relying on a seed.
    """
    return [
        asyncio.create_task(state.seeds.get_or_create(key), name=f"seed:{key.value}")
        for key in KeyName.variants()
    ]


async def initialize(state: AppState) -> Dict[str, Optional[HDSchnorrError]]:
    """
    Provision every declared key and wait for all of them.

    Returns key name -> None on success, or the error that left that key
    unseeded. Errors outside the hdschnorr taxonomy are re-raised.
    """
    keys = KeyName.variants()
    results = await asyncio.gather(*start(state), return_exceptions=True)

    outcome: Dict[str, Optional[HDSchnorrError]] = {}
    for key, result in zip(keys, results):
        if isinstance(result, HDSchnorrError):
            logger.error("could not provision %s: %s", key.value, result)
            outcome[key.value] = result
        elif isinstance(result, BaseException):
            raise result
        else:
            outcome[key.value] = None
    return outcome


# ---------- Requests ----------

def _master_key(state: AppState, key_id: Union[KeyName, str]) -> ExtendedKey:
    key = KeyName.parse(key_id)
    return master_key(state.seeds.get(key))


def schnorr_public_key(
    state: AppState, caller: bytes, args: SchnorrPublicKeyArgs
) -> SchnorrPublicKeyReply:
    master = _master_key(state, args.key_id)

    tenant = args.tenant if args.tenant is not None else caller
    path = build_derivation_path(tenant, args.derivation_path)

    res = derive_child_public(
        public_key_from_private(master.key), path, master.chain_code
    )
    return SchnorrPublicKeyReply(public_key=res.key, chain_code=res.chain_code)


def sign_with_schnorr(
    state: AppState, caller: bytes, args: SignWithSchnorrArgs
) -> SignWithSchnorrReply:
    """
    Sign a 32-byte digest with the key derived for the caller.

    The signer is always bound to the calling tenant. The counter moves
    only once derivation and signing have both succeeded, and a failed
    counter write fails the whole call.
    """
    master = _master_key(state, args.key_id)

    path = build_derivation_path(caller, args.derivation_path)
    derived = derive_child_private(master.key, path, master.chain_code)

    signature = sign(derived.key, args.message)

    count = state.counter.increment()
    logger.debug("signature %d issued", count)

    return SignWithSchnorrReply(signature=signature)


# ---------- Metrics ----------

def metrics(state: AppState) -> Metrics:
    return Metrics(balance=state.balance(), sig_count=state.counter.value)


def http_request(state: AppState) -> HttpResponse:
    body = json.dumps(asdict(metrics(state))).encode("utf-8")
    return HttpResponse(
        status_code=200,
        headers=[("content-type", "application/json")],
        body=body,
    )
