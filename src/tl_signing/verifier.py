"""Request verification builder."""

from __future__ import annotations

import logging

from cryptography.hazmat.primitives.asymmetric import ec

from tl_signing.canonical import build_signing_string
from tl_signing.headers import HeaderSet, require_utf8
from tl_signing.jws import DecodedToken, b64url, decode_token, es512_verify
from tl_signing.signer import normalize_body, validate_path
from tl_signing.types import ErrorKind, HeaderInput, SigningError, VerifyResult

log = logging.getLogger(__name__)

MISSING_REQUIRED_MESSAGE = "Signature missing required header(s)"
MISSING_DECLARED_MESSAGE = "Missing header(s) declared in signature"
MISMATCH_MESSAGE = "Signature verification failed"


def toggle_trailing_slash(path: str) -> str | None:
    """Return ``path`` with one trailing ``/`` added or removed.

    ``None`` when removing it would leave an empty path.
    """
    if path.endswith("/"):
        stripped = path[:-1]
        return stripped or None
    return f"{path}/"


class Verifier:
    """Checks a token against the request as it was actually received.

    Headers added here are the ones the receiver saw; only those named in
    the token's ``tl_headers`` are used. ``require_header`` names headers
    the token itself must declare.
    """

    def __init__(self, public_key: ec.EllipticCurvePublicKey) -> None:
        self._public_key = public_key
        self._method = ""
        self._path = ""
        self._headers = HeaderSet()
        self._required: dict[str, str] = {}
        self._body = b""

    def set_method(self, method: str) -> Verifier:
        self._method = require_utf8(str(method), "Method").upper()
        return self

    def set_path(self, path: str) -> Verifier:
        self._path = validate_path(path)
        return self

    def add_header(self, name: str, value: str) -> Verifier:
        self._headers.add(name, value)
        return self

    def add_headers(self, headers: HeaderInput) -> Verifier:
        self._headers.update(headers)
        return self

    def require_header(self, name: str) -> Verifier:
        self._required.setdefault(name.lower(), name)
        return self

    def set_body(self, body: bytes | str | None) -> Verifier:
        self._body = normalize_body(body)
        return self

    def _attempt(self, decoded: DecodedToken, path: str) -> bytes | None:
        signing_string = build_signing_string(
            method=self._method,
            path=path,
            header_names=decoded.header.tl_headers,
            headers=self._headers,
            body=self._body,
        )
        message = f"{decoded.header_segment}.{b64url(signing_string)}".encode("ascii")
        if es512_verify(self._public_key, message, decoded.signature):
            return signing_string
        return None

    def _verify(self, token: str) -> VerifyResult:
        decoded = decode_token(token)
        header = decoded.header

        declared = {name.lower() for name in header.tl_headers}
        missing_required = [name for key, name in self._required.items() if key not in declared]
        if missing_required:
            log.debug("token does not declare required header(s): %s", ", ".join(missing_required))
            return VerifyResult.failure(ErrorKind.MISSING_REQUIRED_HEADER, MISSING_REQUIRED_MESSAGE)

        missing_declared = [name for name in header.tl_headers if name not in self._headers]
        if missing_declared:
            log.debug("declared header(s) not supplied: %s", ", ".join(missing_declared))
            return VerifyResult.failure(ErrorKind.MISSING_DECLARED_HEADER, MISSING_DECLARED_MESSAGE)

        candidates = [self._path]
        toggled = toggle_trailing_slash(self._path)
        if toggled is not None:
            candidates.append(toggled)

        for attempt, path in enumerate(candidates):
            signing_string = self._attempt(decoded, path)
            if signing_string is not None:
                if attempt > 0:
                    log.debug("signature matched with trailing slash toggled: %s", path)
                return VerifyResult(valid=True, signing_string=signing_string, header=header, path=path)

        return VerifyResult.failure(ErrorKind.SIGNATURE_MISMATCH, MISMATCH_MESSAGE)

    def verify(self, token: str) -> VerifyResult:
        try:
            result = self._verify(token.strip())
        except SigningError as error:
            result = VerifyResult.failure(error.kind, error.message)

        if result.valid:
            log.debug("verified %s %s kid=%s", self._method, result.path, result.header.kid if result.header else "")
        else:
            log.debug("verification failed (%s): %s", result.error.value if result.error else "", result.reason)
        return result
