"""Shared datatypes and error vocabulary for tl-signing."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Tuple, Union

ALGORITHM = "ES512"
TL_VERSION = "2"


class ErrorKind(str, Enum):
    PATH_FORMAT = "path_format"
    MALFORMED_TOKEN = "malformed_token"
    INVALID_SIGNATURE_ENCODING = "invalid_signature_encoding"
    MISSING_REQUIRED_HEADER = "missing_required_header"
    MISSING_DECLARED_HEADER = "missing_declared_header"
    SIGNATURE_MISMATCH = "signature_mismatch"
    CRYPTO_FAILURE = "crypto_failure"


class SigningError(ValueError):
    """Raised by eager builder checks, key loading and ``unwrap()``."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class ProtectedHeader:
    alg: str
    kid: str
    tl_version: str
    tl_headers: Tuple[str, ...] = ()
    jku: str | None = None

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {
            "alg": self.alg,
            "kid": self.kid,
            "tl_version": self.tl_version,
            "tl_headers": list(self.tl_headers),
        }
        if self.jku is not None:
            out["jku"] = self.jku
        return out


@dataclass(frozen=True)
class SignResult:
    ok: bool
    token: str | None = None
    error: ErrorKind | None = None
    reason: str | None = None

    def unwrap(self) -> str:
        if not self.ok or self.token is None:
            raise SigningError(self.error or ErrorKind.CRYPTO_FAILURE, self.reason or "Signing failed")
        return self.token


@dataclass(frozen=True)
class VerifyResult:
    valid: bool
    signing_string: bytes | None = None
    header: ProtectedHeader | None = None
    error: ErrorKind | None = None
    reason: str | None = None
    path: str | None = field(default=None, compare=False)

    def unwrap(self) -> VerifyResult:
        if not self.valid:
            raise SigningError(
                self.error or ErrorKind.SIGNATURE_MISMATCH,
                self.reason or "Signature verification failed",
            )
        return self

    @classmethod
    def failure(cls, error: ErrorKind, reason: str) -> VerifyResult:
        return cls(valid=False, error=error, reason=reason)


HeaderInput = Union[Mapping[str, str], List[Tuple[str, str]], List[List[str]]]
JsonDict = Dict[str, object]
