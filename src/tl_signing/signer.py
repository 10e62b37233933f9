"""Request signing builder."""

from __future__ import annotations

import logging

from cryptography.exceptions import UnsupportedAlgorithm

from tl_signing.canonical import build_signing_string
from tl_signing.headers import HeaderSet, require_utf8
from tl_signing.jws import encode_token
from tl_signing.keys import SigningIdentity
from tl_signing.types import ALGORITHM, TL_VERSION, ErrorKind, HeaderInput, ProtectedHeader, SignResult, SigningError

log = logging.getLogger(__name__)

PATH_FORMAT_MESSAGE = "Path must start with '/'"


def normalize_body(body: bytes | str | None) -> bytes:
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    raise ValueError("Unsupported body type. Use bytes, str, or None.")


def validate_path(path: str) -> str:
    if not path.startswith("/"):
        raise SigningError(ErrorKind.PATH_FORMAT, PATH_FORMAT_MESSAGE)
    try:
        return require_utf8(path, "Path")
    except ValueError as error:
        raise SigningError(ErrorKind.PATH_FORMAT, str(error)) from error


class Signer:
    """Accumulates a request and produces a ``Tl-Signature`` token.

    Every header added is declared in ``tl_headers`` and covered by the
    signature, in the order it was first added.
    """

    def __init__(self, identity: SigningIdentity | None = None) -> None:
        self._identity = identity
        self._method = ""
        self._path = ""
        self._headers = HeaderSet()
        self._body = b""
        self._jku: str | None = None

    def set_method(self, method: str) -> Signer:
        self._method = require_utf8(str(method), "Method").upper()
        return self

    def set_path(self, path: str) -> Signer:
        self._path = validate_path(path)
        return self

    def add_header(self, name: str, value: str) -> Signer:
        self._headers.add(name, value)
        return self

    def add_headers(self, headers: HeaderInput) -> Signer:
        self._headers.update(headers)
        return self

    def set_body(self, body: bytes | str | None) -> Signer:
        self._body = normalize_body(body)
        return self

    def set_jku(self, jku: str) -> Signer:
        self._jku = jku
        return self

    def sign(self, identity: SigningIdentity | None = None) -> SignResult:
        signing_identity = identity or self._identity
        if signing_identity is None:
            return SignResult(ok=False, error=ErrorKind.CRYPTO_FAILURE, reason="No signing identity configured")

        header_names = self._headers.names()
        header = ProtectedHeader(
            alg=ALGORITHM,
            kid=signing_identity.kid,
            tl_version=TL_VERSION,
            tl_headers=tuple(header_names),
            jku=self._jku,
        )
        signing_string = build_signing_string(
            method=self._method,
            path=self._path,
            header_names=header_names,
            headers=self._headers,
            body=self._body,
        )

        try:
            token = encode_token(header, signing_string, signing_identity.private_key)
        except SigningError as error:
            return SignResult(ok=False, error=error.kind, reason=error.message)
        except (ValueError, TypeError, UnsupportedAlgorithm) as error:
            return SignResult(ok=False, error=ErrorKind.CRYPTO_FAILURE, reason=f"Signing failed: {error}")

        log.debug(
            "signed %s %s kid=%s tl_headers=%s",
            self._method,
            self._path,
            signing_identity.kid,
            ",".join(header_names),
        )
        return SignResult(ok=True, token=token)
