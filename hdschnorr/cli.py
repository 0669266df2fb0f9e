#!/usr/bin/env python3
import argparse
import asyncio
import binascii
import hashlib
import json
import logging
import sys
from pathlib import Path

from .config import Config, KeyName
from .errors import HDSchnorrError
from .service import (
    AppState,
    SchnorrPublicKeyArgs,
    SignWithSchnorrArgs,
    http_request,
    initialize,
    schnorr_public_key,
    sign_with_schnorr,
)
from .signer import verify


def _hex(value):
    try:
        return binascii.unhexlify(value)
    except (binascii.Error, ValueError):
        raise argparse.ArgumentTypeError(f"not valid hex: {value!r}")


def _state(args) -> AppState:
    return AppState.on_disk(args.config)


def cmd_init(args):
    """
    hdschnorr init
    """
    outcome = asyncio.run(initialize(_state(args)))
    print(json.dumps(
        {name: "ok" if err is None else str(err) for name, err in outcome.items()},
        indent=2,
    ))
    if any(err is not None for err in outcome.values()):
        sys.exit(1)


def cmd_public_key(args):
    """
    hdschnorr public-key --key-name test_key_1 --caller app --path 01020304
    """
    tenant = args.tenant.encode("utf-8") if args.tenant is not None else None
    reply = schnorr_public_key(
        _state(args),
        args.caller.encode("utf-8"),
        SchnorrPublicKeyArgs(key_id=args.key_name, derivation_path=args.path or [], tenant=tenant),
    )
    out = {
        "public_key": reply.public_key.hex(),
        "chain_code": reply.chain_code.hex(),
    }
    print(json.dumps(out, indent=2))


def cmd_sign(args):
    """
    hdschnorr sign --key-name test_key_1 --caller app --message "Test message"
    """
    if args.digest is not None:
        digest = args.digest
    else:
        digest = hashlib.sha256(args.message.encode("utf-8")).digest()

    state = _state(args)
    reply = sign_with_schnorr(
        state,
        args.caller.encode("utf-8"),
        SignWithSchnorrArgs(key_id=args.key_name, message=digest, derivation_path=args.path or []),
    )
    out = {
        "digest": digest.hex(),
        "signature": reply.signature.hex(),
        "sig_count": state.counter.value,
    }
    print(json.dumps(out, indent=2))


def cmd_verify(args):
    """
    hdschnorr verify --public-key <hex> --digest <hex> --signature <hex>
    """
    if verify(args.public_key, args.digest, args.signature):
        print("valid")
    else:
        print("invalid")
        sys.exit(1)


def cmd_metrics(args):
    response = http_request(_state(args))
    print(json.dumps(json.loads(response.body), indent=2))


def build_parser():
    p = argparse.ArgumentParser(prog="hdschnorr", description="HD Schnorr signing CLI")
    p.add_argument("--state-dir", help="directory holding seeds and the signature counter")
    p.add_argument("--log-level", help="logging level, e.g. INFO or DEBUG")
    sub = p.add_subparsers(dest="cmd")

    key_names = [k.value for k in KeyName.variants()]

    # init
    i = sub.add_parser("init", help="provision root seeds for all declared keys")
    i.set_defaults(func=cmd_init)

    # public-key
    k = sub.add_parser("public-key", help="derive a tenant public key")
    k.add_argument("--key-name", required=True, choices=key_names)
    k.add_argument("--caller", required=True, help="calling tenant identity")
    k.add_argument("--tenant", help="derive for this tenant instead of the caller")
    k.add_argument("--path", action="append", type=_hex,
                   help="extra path segment in hex, repeatable")
    k.set_defaults(func=cmd_public_key)

    # sign
    s = sub.add_parser("sign", help="sign a 32-byte digest")
    s.add_argument("--key-name", required=True, choices=key_names)
    s.add_argument("--caller", required=True, help="calling tenant identity")
    s.add_argument("--path", action="append", type=_hex,
                   help="extra path segment in hex, repeatable")
    m = s.add_mutually_exclusive_group(required=True)
    m.add_argument("--digest", type=_hex, help="32-byte digest in hex")
    m.add_argument("--message", help="text message, SHA-256 hashed before signing")
    s.set_defaults(func=cmd_sign)

    # verify
    v = sub.add_parser("verify", help="verify a Schnorr signature")
    v.add_argument("--public-key", required=True, type=_hex)
    v.add_argument("--digest", required=True, type=_hex)
    v.add_argument("--signature", required=True, type=_hex)
    v.set_defaults(func=cmd_verify)

    # metrics
    me = sub.add_parser("metrics", help="show signature count and balance")
    me.set_defaults(func=cmd_metrics)

    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    config = Config.from_env()
    if args.state_dir:
        config.state_dir = Path(args.state_dir)
    if args.log_level:
        config.log_level = args.log_level.upper()
    args.config = config

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        args.func(args)
    except HDSchnorrError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
