# hdschnorr/store.py
"""
Durable state: root seeds and the signature counter.

Storage is reached through two small interfaces so the substrate can be
swapped out:

- an ordered map:  get(name) -> Optional[bytes], insert_if_absent(name, value) -> bool
- a scalar cell:   get() -> int, set(int)

Both are synchronous, so within one event loop a call never interleaves
with another task. The file-backed versions also take an exclusive lock on
a sidecar `.lock` file around insert_if_absent and around the counter's
read-add-write, so several processes sharing one state directory cannot
overwrite a seed or lose an increment.
"""

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Union

import nacl.utils

from .config import MAX_KEY_NAME_SIZE, SEED_SIZE, KeyName
from .errors import NotFound, PersistenceFailure, RandomnessUnavailable

logger = logging.getLogger(__name__)

U128_MAX = (1 << 128) - 1

RandomnessSource = Callable[[], Awaitable[bytes]]


# ---------- Randomness ----------

async def nacl_randomness() -> bytes:
    """Default randomness source: 32 bytes from libsodium's CSPRNG."""
    return nacl.utils.random(32)


async def fetch_seed(source: RandomnessSource) -> bytes:
    """
    Build a 64-byte seed from whatever the source returns, repeating its
    output when it yields fewer bytes.
    """
    try:
        raw = await source()
    except RandomnessUnavailable:
        raise
    except Exception as e:
        raise RandomnessUnavailable(f"Error getting random seed: {e!r}") from e

    if not raw:
        raise RandomnessUnavailable("randomness source returned no bytes")

    seed = bytes(raw)
    while len(seed) < SEED_SIZE:
        seed += bytes(raw)
    return seed[:SEED_SIZE]


# ---------- Ordered maps ----------

def _key_name(name: Union[KeyName, str]) -> str:
    name = getattr(name, "value", name)
    if len(name.encode("utf-8")) > MAX_KEY_NAME_SIZE:
        raise PersistenceFailure(f"key name longer than {MAX_KEY_NAME_SIZE} bytes")
    return name


class MemoryMap:
    """Process-lifetime map; the default for tests."""

    def __init__(self):
        self._data: Dict[str, bytes] = {}

    def get(self, name: str) -> Optional[bytes]:
        return self._data.get(name)

    def insert_if_absent(self, name: str, value: bytes) -> bool:
        if name in self._data:
            return False
        self._data[name] = bytes(value)
        return True

    def keys(self) -> List[str]:
        return sorted(self._data)


def _atomic_write(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=path.name + ".")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except BaseException:
            os.unlink(tmp)
            raise
    except OSError as e:
        raise PersistenceFailure(f"could not write {path}: {e}") from e


def _acquire(f) -> None:
    if os.name == "nt":
        import msvcrt
        f.seek(0)
        msvcrt.locking(f.fileno(), msvcrt.LK_LOCK, 1)
    else:
        import fcntl
        fcntl.flock(f, fcntl.LOCK_EX)


def _release(f) -> None:
    if os.name == "nt":
        import msvcrt
        f.seek(0)
        msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl
        fcntl.flock(f, fcntl.LOCK_UN)


@contextlib.contextmanager
def file_lock(path: Path):
    """
    Exclusive cross-process lock on `<path>.lock`. Blocks until it is free.
    Not reentrant: a second file_lock on the same path in one process waits
    on itself.
    """
    lockpath = path.with_name(path.name + ".lock")
    try:
        lockpath.parent.mkdir(parents=True, exist_ok=True)
        f = open(lockpath, "a+b")
    except OSError as e:
        raise PersistenceFailure(f"could not open lock {lockpath}: {e}") from e

    with f:
        try:
            _acquire(f)
        except OSError as e:
            raise PersistenceFailure(f"could not lock {lockpath}: {e}") from e
        try:
            yield
        finally:
            _release(f)


class FileMap:
    """
    Map persisted as one JSON document of hex-encoded values. Every write
    replaces the file atomically, so readers never see a torn entry, and
    insert_if_absent holds the file lock from load to write.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceFailure(f"could not read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceFailure(f"{self.path} does not hold a JSON object")
        return data

    def get(self, name: str) -> Optional[bytes]:
        value = self._load().get(name)
        if value is None:
            return None
        try:
            return bytes.fromhex(value)
        except (TypeError, ValueError) as e:
            raise PersistenceFailure(f"corrupt entry for {name!r} in {self.path}") from e

    def insert_if_absent(self, name: str, value: bytes) -> bool:
        with file_lock(self.path):
            data = self._load()
            if name in data:
                return False
            data[name] = bytes(value).hex()
            _atomic_write(self.path, json.dumps(data, indent=2, sort_keys=True) + "\n")
            return True

    def keys(self) -> List[str]:
        return sorted(self._load())


# ---------- Scalar cells ----------

def _check_u128(value: int) -> int:
    if not 0 <= value <= U128_MAX:
        raise PersistenceFailure(f"value {value} does not fit in an unsigned 128-bit cell")
    return value


class MemoryCell:
    def __init__(self, value: int = 0):
        self._value = _check_u128(value)

    def get(self) -> int:
        return self._value

    def set(self, value: int) -> None:
        self._value = _check_u128(value)

    def lock(self):
        return contextlib.nullcontext()


class FileCell:
    """Unsigned 128-bit integer stored as decimal text. Missing file reads as 0."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def get(self) -> int:
        if not self.path.exists():
            return 0
        try:
            return _check_u128(int(self.path.read_text(encoding="utf-8").strip()))
        except (OSError, ValueError) as e:
            raise PersistenceFailure(f"could not read {self.path}: {e}") from e

    def set(self, value: int) -> None:
        _atomic_write(self.path, f"{_check_u128(value)}\n")

    def lock(self):
        """Hold across get() and set() to make a read-modify-write atomic."""
        return file_lock(self.path)


# ---------- Seed store ----------

def _checked_seed(key: str, seed: bytes) -> bytes:
    if len(seed) != SEED_SIZE:
        raise PersistenceFailure(f"stored seed for {key!r} is {len(seed)} bytes, expected {SEED_SIZE}")
    return seed


class SeedStore:
    """Root seeds by key name. A stored seed is never replaced."""

    def __init__(self, durable_map, randomness: RandomnessSource = nacl_randomness):
        self._map = durable_map
        self._randomness = randomness

    def get(self, name: Union[KeyName, str]) -> bytes:
        key = _key_name(name)
        seed = self._map.get(key)
        if seed is None:
            raise NotFound(f"No key with name {key!r}")
        return _checked_seed(key, seed)

    async def get_or_create(self, name: Union[KeyName, str]) -> bytes:
        """
        Return the seed for `name`, provisioning it on first use.

        Two tasks racing here may both draw randomness, but insert_if_absent
        lets only the first write land and both return the stored value.
        """
        key = _key_name(name)
        seed = self._map.get(key)
        if seed is not None:
            return _checked_seed(key, seed)

        fresh = await fetch_seed(self._randomness)
        if self._map.insert_if_absent(key, fresh):
            logger.info("provisioned root seed for %s", key)
        else:
            logger.debug("root seed for %s already provisioned, keeping it", key)

        stored = self._map.get(key)
        if stored is None:
            raise PersistenceFailure(f"seed for {key!r} was not persisted")
        return _checked_seed(key, stored)

    def names(self) -> List[str]:
        return self._map.keys()


# ---------- Usage counter ----------

class UsageCounter:
    def __init__(self, cell):
        self._cell = cell

    @property
    def value(self) -> int:
        return self._cell.get()

    def increment(self) -> int:
        with self._cell.lock():
            new_value = self._cell.get() + 1
            self._cell.set(new_value)
        return new_value
