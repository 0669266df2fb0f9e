#!/usr/bin/env python3
import json
from pathlib import Path
from typing import Any, Dict
import sys

# Add repo root so Python can import hdschnorr.*
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

# Project imports: use the stable reference API
from hdschnorr.reference_api import build_vectors

VECTORS_PATH = ROOT / "tests" / "vectors" / "hdschnorr.v1.json"


def save_vectors(data: Dict[str, Any], path: Path = VECTORS_PATH) -> None:
    # Pretty-print and keep key order stable
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=False)
        f.write("\n")


def generate(path: Path = VECTORS_PATH) -> Dict[str, Any]:
    data = {
        "version": 1,
        "curve": "secp256k1",
        "signature": "bip340-no-aux-rand",
        "vectors": build_vectors(),
    }
    save_vectors(data, path)
    return data


def main() -> None:
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else VECTORS_PATH
    generate(path)
    print(f"Updated vectors written to {path}")


if __name__ == "__main__":
    main()
