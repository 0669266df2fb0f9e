import json
from pathlib import Path
import sys

# Add repo root so we can import hdschnorr.* and scripts.*
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from hdschnorr.reference_api import build_vector, build_vectors, derive_public, digest_message
from hdschnorr.signer import verify
from scripts.generate_vectors import VECTORS_PATH, generate


def load_vectors():
    with VECTORS_PATH.open("r", encoding="utf-8") as f:
        return json.load(f)


def frozen(vector_id):
    return next(v for v in load_vectors()["vectors"] if v["id"] == vector_id)


def test_tenant_abc_vector():
    expected = frozen("tenant-abc")

    actual = build_vector(
        "tenant-abc", b"\x01" * 64, b"abc", [bytes([1, 2, 3, 4])], b"Test message"
    )

    # Compare against frozen vectors
    assert actual == expected
    assert actual["path_hex"] == ["616263", "01020304"]
    assert actual["digest_hex"] == digest_message(b"Test message").hex()


def test_tenant_abc_signature_rejected_for_other_path():
    expected = frozen("tenant-abc")
    digest = bytes.fromhex(expected["digest_hex"])
    sig = bytes.fromhex(expected["signature_hex"])

    # Same scenario with the last path byte changed to 0x05
    moved = derive_public(b"\x01" * 64, [b"abc", bytes([1, 2, 3, 5])])

    assert moved.key.hex() == "023d697ded32d76fae74431878eafa11286eee73967a1e2563d084e9f087afea8a"
    assert verify(bytes.fromhex(expected["public_key_hex"]), digest, sig)
    assert not verify(moved.key, digest, sig)


def test_all_vectors_match_frozen_file():
    data = load_vectors()

    assert data["version"] == 1
    assert build_vectors() == data["vectors"]


def test_generated_file_matches_frozen_file(tmp_path):
    path = tmp_path / "vectors" / "hdschnorr.v1.json"

    generate(path)

    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    assert data == load_vectors()
