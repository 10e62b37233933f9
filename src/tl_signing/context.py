"""Explicit default-identity context and PEM convenience constructors."""

from __future__ import annotations

from types import TracebackType

from tl_signing.keys import SigningIdentity, load_identity, load_private_key_pem, load_public_key_pem
from tl_signing.signer import Signer
from tl_signing.verifier import Verifier


class SigningContext:
    """Holds a default signing identity between ``open()`` and ``close()``.

    Builders handed out by :meth:`signer` keep their identity after the
    context closes; only new builders are refused.
    """

    def __init__(self, identity: SigningIdentity) -> None:
        self._identity = identity
        self._open = False

    @classmethod
    def from_config(cls, kid: str | None = None, private_key_path: str | None = None) -> SigningContext:
        return cls(load_identity(kid=kid, private_key_path=private_key_path))

    @property
    def kid(self) -> str:
        return self._identity.kid

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> SigningContext:
        self._open = True
        return self

    def close(self) -> None:
        self._open = False

    def signer(self) -> Signer:
        if not self._open:
            raise RuntimeError("SigningContext is not open")
        return Signer(self._identity)

    def __enter__(self) -> SigningContext:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()


def sign_with_pem(kid: str, private_key_pem: str | bytes) -> Signer:
    return Signer(SigningIdentity(kid=kid, private_key=load_private_key_pem(private_key_pem)))


def verify_with_pem(public_key_pem: str | bytes) -> Verifier:
    return Verifier(load_public_key_pem(public_key_pem))
