# hdschnorr/config.py

import enum
import os
from pathlib import Path
from typing import List

from .errors import NotFound

# Encoded key names longer than this cannot be stored.
MAX_KEY_NAME_SIZE = 100

SEED_SIZE = 64


class KeyName(str, enum.Enum):
    """The fixed set of root secrets this process knows about."""

    DFX_TEST_KEY = "dfx_test_key"
    TEST_KEY_1 = "test_key_1"

    @classmethod
    def variants(cls) -> List["KeyName"]:
        return list(cls)

    @classmethod
    def parse(cls, name: str) -> "KeyName":
        try:
            return cls(name)
        except ValueError:
            raise NotFound(f"No key with name {name!r}") from None


class Config:
    """
    Runtime settings, read from the environment.

      HDSCHNORR_STATE_DIR   directory holding seeds.json and sig_count
      HDSCHNORR_LOG_LEVEL   logging level name (default WARNING)
    """

    def __init__(self, state_dir: Path, log_level: str = "WARNING"):
        self.state_dir = Path(state_dir)
        self.log_level = log_level.upper()

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            state_dir=Path(os.getenv("HDSCHNORR_STATE_DIR", "") or "hdschnorr-state"),
            log_level=os.getenv("HDSCHNORR_LOG_LEVEL", "WARNING"),
        )

    @property
    def seeds_path(self) -> Path:
        return self.state_dir / "seeds.json"

    @property
    def sig_count_path(self) -> Path:
        return self.state_dir / "sig_count"
