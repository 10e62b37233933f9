"""Compact JWS envelope and ES512 primitives.

A token is ``header.payload.signature`` where every segment is unpadded
base64url. The header is a JSON object (see :class:`ProtectedHeader`),
the payload is the signing string and the signature is the raw
``r || s`` ECDSA P-521/SHA-512 value (RFC 7518 section 3.4).

Decoding reports problems in a fixed order: segment count, then the
header segment, then the signature segment. Nothing here compares
signatures against request data; that is the verifier's job.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, utils

from tl_signing.types import ALGORITHM, TL_VERSION, ErrorKind, JsonDict, ProtectedHeader, SigningError

_B64URL_PATTERN = re.compile(r"[A-Za-z0-9_-]*")

_P521_COMPONENT_BYTES = 66
"""Length of each of ``r`` and ``s`` in an ES512 signature."""

INVALID_FORMAT = "Invalid signature format"
INVALID_HEADER_BASE64 = "Invalid base64 for header"
INVALID_SIGNATURE_BASE64 = "Invalid base64 for signature"


def b64url(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).decode("ascii").rstrip("=")


def from_b64url(value: str) -> bytes:
    """Strict unpadded base64url decode.

    Stray characters, padding and impossible lengths raise ``ValueError``
    instead of being skipped the way :func:`base64.urlsafe_b64decode` does.
    """
    if not _B64URL_PATTERN.fullmatch(value) or len(value) % 4 == 1:
        raise ValueError("Not valid unpadded base64url")
    pad = len(value) % 4
    padded = value if pad == 0 else value + ("=" * (4 - pad))
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except binascii.Error as error:
        raise ValueError(str(error)) from error


def encode_protected_header(header: ProtectedHeader) -> str:
    return b64url(json.dumps(header.to_dict(), separators=(",", ":")).encode("utf-8"))


def _parse_tl_headers(raw: object) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        return tuple(name for name in raw.split(",") if name)
    if isinstance(raw, list) and all(isinstance(name, str) for name in raw):
        return tuple(raw)
    raise SigningError(ErrorKind.MALFORMED_TOKEN, INVALID_FORMAT)


def parse_protected_header(raw: JsonDict) -> ProtectedHeader:
    if raw.get("alg") != ALGORITHM:
        raise SigningError(ErrorKind.MALFORMED_TOKEN, "Unsupported signature algorithm")
    if raw.get("tl_version") != TL_VERSION:
        raise SigningError(ErrorKind.MALFORMED_TOKEN, "Unsupported tl_version")

    kid = raw.get("kid", "")
    jku = raw.get("jku")
    if not isinstance(kid, str) or (jku is not None and not isinstance(jku, str)):
        raise SigningError(ErrorKind.MALFORMED_TOKEN, INVALID_FORMAT)

    return ProtectedHeader(
        alg=ALGORITHM,
        kid=kid,
        tl_version=TL_VERSION,
        tl_headers=_parse_tl_headers(raw.get("tl_headers")),
        jku=jku,
    )


@dataclass(frozen=True)
class DecodedToken:
    header: ProtectedHeader
    header_segment: str
    payload_segment: str
    signature: bytes


def _split(token: str) -> list[str]:
    segments = token.split(".")
    if len(segments) != 3 or not all(segments):
        raise SigningError(ErrorKind.MALFORMED_TOKEN, INVALID_FORMAT)
    return segments


def _decode_header_segment(segment: str) -> ProtectedHeader:
    try:
        raw_bytes = from_b64url(segment)
    except ValueError as error:
        raise SigningError(ErrorKind.MALFORMED_TOKEN, INVALID_HEADER_BASE64) from error

    try:
        raw = json.loads(raw_bytes.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as error:
        raise SigningError(ErrorKind.MALFORMED_TOKEN, INVALID_FORMAT) from error

    if not isinstance(raw, dict):
        raise SigningError(ErrorKind.MALFORMED_TOKEN, INVALID_FORMAT)
    return parse_protected_header(raw)


def decode_token(token: str) -> DecodedToken:
    """Split and decode ``token``; raises :class:`SigningError` on bad format."""
    header_segment, payload_segment, signature_segment = _split(token)
    header = _decode_header_segment(header_segment)

    try:
        signature = from_b64url(signature_segment)
    except ValueError as error:
        raise SigningError(ErrorKind.INVALID_SIGNATURE_ENCODING, INVALID_SIGNATURE_BASE64) from error

    return DecodedToken(
        header=header,
        header_segment=header_segment,
        payload_segment=payload_segment,
        signature=signature,
    )


def extract_protected_header(token: str) -> ProtectedHeader:
    """Read the protected header without checking the signature.

    Useful for choosing a verification key by ``kid`` or ``jku``. The
    returned values are untrusted until :meth:`Verifier.verify` succeeds.
    """
    header_segment, _, _ = _split(token)
    return _decode_header_segment(header_segment)


def _is_p521(key: object) -> bool:
    return isinstance(getattr(key, "curve", None), ec.SECP521R1)


def es512_sign(private_key: ec.EllipticCurvePrivateKey, message: bytes) -> bytes:
    if not isinstance(private_key, ec.EllipticCurvePrivateKey) or not _is_p521(private_key):
        raise SigningError(ErrorKind.CRYPTO_FAILURE, "Signing key must be an EC P-521 private key")

    der = private_key.sign(message, ec.ECDSA(hashes.SHA512()))
    r, s = utils.decode_dss_signature(der)
    return r.to_bytes(_P521_COMPONENT_BYTES, "big") + s.to_bytes(_P521_COMPONENT_BYTES, "big")


def es512_verify(public_key: ec.EllipticCurvePublicKey, message: bytes, signature: bytes) -> bool:
    if not isinstance(public_key, ec.EllipticCurvePublicKey) or not _is_p521(public_key):
        raise SigningError(ErrorKind.CRYPTO_FAILURE, "Verification key must be an EC P-521 public key")
    if len(signature) != 2 * _P521_COMPONENT_BYTES:
        return False

    r = int.from_bytes(signature[:_P521_COMPONENT_BYTES], "big")
    s = int.from_bytes(signature[_P521_COMPONENT_BYTES:], "big")
    try:
        public_key.verify(utils.encode_dss_signature(r, s), message, ec.ECDSA(hashes.SHA512()))
    except InvalidSignature:
        return False
    return True


def encode_token(header: ProtectedHeader, signing_string: bytes, private_key: ec.EllipticCurvePrivateKey) -> str:
    header_segment = encode_protected_header(header)
    payload_segment = b64url(signing_string)
    signature = es512_sign(private_key, f"{header_segment}.{payload_segment}".encode("ascii"))
    return f"{header_segment}.{payload_segment}.{b64url(signature)}"
