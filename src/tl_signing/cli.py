"""tl-signing command line interface."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from tl_signing.keys import load_identity, load_public_key, write_key_pair
from tl_signing.signer import Signer
from tl_signing.types import SigningError
from tl_signing.verifier import Verifier


def _header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Header must look like NAME:VALUE, got {raw!r}")
    return name.strip(), value.strip()


def _add_request_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--method", default="POST")
    parser.add_argument("--path", required=True)
    parser.add_argument("--header", dest="headers", action="append", type=_header, default=[], metavar="NAME:VALUE")
    body = parser.add_mutually_exclusive_group()
    body.add_argument("--body", default=None)
    body.add_argument("--body-file", default=None)
    parser.add_argument("--json", action="store_true")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tl-signing", description="Sign and verify Tl-Signature tokens")
    parser.add_argument("--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    keygen_parser = subparsers.add_parser("keygen", help="Generate an EC P-521 key pair")
    keygen_parser.add_argument("--out", default=".")
    keygen_parser.add_argument("--force", action="store_true")
    keygen_parser.add_argument("--json", action="store_true")

    sign_parser = subparsers.add_parser("sign", help="Sign a request")
    sign_parser.add_argument("--kid", default=None)
    sign_parser.add_argument("--private-key", default=None)
    sign_parser.add_argument("--jku", default=None)
    _add_request_arguments(sign_parser)

    verify_parser = subparsers.add_parser("verify", help="Verify a request signature")
    verify_parser.add_argument("--public-key", default=None)
    verify_parser.add_argument("--require-header", dest="required", action="append", default=[])
    _add_request_arguments(verify_parser)
    verify_parser.add_argument("token")

    return parser


def _read_body(args: argparse.Namespace) -> bytes | str:
    if args.body_file is not None:
        return Path(args.body_file).read_bytes()
    return args.body or ""


def _fail(args: argparse.Namespace, payload: dict[str, object], reason: str) -> int:
    if args.json:
        print(json.dumps(payload, sort_keys=True))
    else:
        print(reason, file=sys.stderr)
    return 1


def _keygen(args: argparse.Namespace) -> int:
    try:
        private_path, public_path = write_key_pair(args.out, force=args.force)
    except ValueError as error:
        return _fail(args, {"command": "keygen", "ok": False, "reason": str(error)}, str(error))

    if args.json:
        print(
            json.dumps(
                {
                    "command": "keygen",
                    "ok": True,
                    "private_key": str(private_path),
                    "public_key": str(public_path),
                },
                sort_keys=True,
            )
        )
        return 0
    print(f"privateKey: {private_path}")
    print(f"publicKey: {public_path}")
    return 0


def _sign(args: argparse.Namespace) -> int:
    try:
        identity = load_identity(kid=args.kid, private_key_path=args.private_key)
        signer = Signer(identity).set_method(args.method).set_path(args.path)
    except SigningError as error:
        payload = {"command": "sign", "ok": False, "error": error.kind.value, "reason": error.message}
        return _fail(args, payload, error.message)

    for name, value in args.headers:
        signer.add_header(name, value)
    if args.jku:
        signer.set_jku(args.jku)
    result = signer.set_body(_read_body(args)).sign()

    if not result.ok:
        payload = {
            "command": "sign",
            "ok": False,
            "error": result.error.value if result.error else None,
            "reason": result.reason,
        }
        return _fail(args, payload, result.reason or "Signing failed")

    if args.json:
        print(json.dumps({"command": "sign", "ok": True, "kid": identity.kid, "token": result.token}, sort_keys=True))
        return 0
    print(result.token)
    return 0


def _verify(args: argparse.Namespace) -> int:
    try:
        verifier = Verifier(load_public_key(args.public_key)).set_method(args.method).set_path(args.path)
    except SigningError as error:
        payload = {"command": "verify", "valid": False, "error": error.kind.value, "reason": error.message}
        return _fail(args, payload, error.message)

    for name, value in args.headers:
        verifier.add_header(name, value)
    for name in args.required:
        verifier.require_header(name)
    result = verifier.set_body(_read_body(args)).verify(args.token)

    if not result.valid:
        payload = {
            "command": "verify",
            "valid": False,
            "error": result.error.value if result.error else None,
            "reason": result.reason,
        }
        return _fail(args, payload, result.reason or "Signature verification failed")

    signing_string = (result.signing_string or b"").decode("utf-8", errors="replace")
    if args.json:
        print(
            json.dumps(
                {
                    "command": "verify",
                    "valid": True,
                    "kid": result.header.kid if result.header else None,
                    "path": result.path,
                    "signing_string": signing_string,
                },
                sort_keys=True,
            )
        )
        return 0
    print("Signature valid")
    print(signing_string)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if args.command == "keygen":
        return _keygen(args)
    if args.command == "sign":
        return _sign(args)
    if args.command == "verify":
        return _verify(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
