"""EC P-521 key material: PEM loading, generation and signing identity config."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from tl_signing.types import ErrorKind, SigningError

PRIVATE_KEY_FILENAME = "ec512-private.pem"
PUBLIC_KEY_FILENAME = "ec512-public.pem"

KID_ENV = "TL_SIGNING_KID"
PRIVATE_KEY_PATH_ENV = "TL_SIGNING_PRIVATE_KEY_PATH"
PUBLIC_KEY_PATH_ENV = "TL_SIGNING_PUBLIC_KEY_PATH"


@dataclass(frozen=True)
class SigningIdentity:
    kid: str
    private_key: ec.EllipticCurvePrivateKey

    def __repr__(self) -> str:
        return f"SigningIdentity(kid={self.kid!r})"


def _to_bytes(pem: str | bytes) -> bytes:
    return pem.encode("utf-8") if isinstance(pem, str) else pem


def _require_p521(key: object, expected: type, label: str) -> None:
    if not isinstance(key, expected) or not isinstance(getattr(key, "curve", None), ec.SECP521R1):
        raise SigningError(ErrorKind.CRYPTO_FAILURE, f"{label} must be an EC P-521 key")


def load_private_key_pem(pem: str | bytes) -> ec.EllipticCurvePrivateKey:
    try:
        key = serialization.load_pem_private_key(_to_bytes(pem), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as error:
        raise SigningError(ErrorKind.CRYPTO_FAILURE, f"Invalid private key PEM: {error}") from error
    _require_p521(key, ec.EllipticCurvePrivateKey, "Private key")
    return key  # type: ignore[return-value]


def load_public_key_pem(pem: str | bytes) -> ec.EllipticCurvePublicKey:
    try:
        key = serialization.load_pem_public_key(_to_bytes(pem))
    except (ValueError, TypeError, UnsupportedAlgorithm) as error:
        raise SigningError(ErrorKind.CRYPTO_FAILURE, f"Invalid public key PEM: {error}") from error
    _require_p521(key, ec.EllipticCurvePublicKey, "Public key")
    return key  # type: ignore[return-value]


def generate_key_pair() -> tuple[ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey]:
    private_key = ec.generate_private_key(ec.SECP521R1())
    return private_key, private_key.public_key()


def private_key_to_pem(private_key: ec.EllipticCurvePrivateKey) -> bytes:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def public_key_to_pem(public_key: ec.EllipticCurvePublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def write_key_pair(directory: str | Path, force: bool = False) -> tuple[Path, Path]:
    """Generate a key pair into ``directory``; returns (private, public) paths."""
    root = Path(directory)
    private_path = root / PRIVATE_KEY_FILENAME
    public_path = root / PUBLIC_KEY_FILENAME

    if not force and (private_path.exists() or public_path.exists()):
        raise ValueError(f"Key files already exist in {root}. Pass force=True to overwrite.")

    private_key, public_key = generate_key_pair()
    if not root.exists():
        root.mkdir(parents=True)
        os.chmod(root, 0o700)

    fd = os.open(private_path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as handle:
        handle.write(private_key_to_pem(private_key))
    os.chmod(private_path, 0o600)
    public_path.write_bytes(public_key_to_pem(public_key))

    return private_path, public_path


def _read_pem(path: str | Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as error:
        raise SigningError(ErrorKind.CRYPTO_FAILURE, f"Failed to read key file {path}: {error}") from error


def load_identity(kid: str | None = None, private_key_path: str | None = None) -> SigningIdentity:
    resolved_kid = kid or os.environ.get(KID_ENV)
    if not resolved_kid:
        raise SigningError(ErrorKind.CRYPTO_FAILURE, f"No key id configured. Pass kid or set {KID_ENV}.")

    resolved_path = private_key_path or os.environ.get(PRIVATE_KEY_PATH_ENV)
    if not resolved_path:
        raise SigningError(
            ErrorKind.CRYPTO_FAILURE,
            f"No private key configured. Pass private_key_path or set {PRIVATE_KEY_PATH_ENV}.",
        )

    return SigningIdentity(kid=resolved_kid, private_key=load_private_key_pem(_read_pem(resolved_path)))


def load_public_key(path: str | None = None) -> ec.EllipticCurvePublicKey:
    resolved_path = path or os.environ.get(PUBLIC_KEY_PATH_ENV)
    if not resolved_path:
        raise SigningError(
            ErrorKind.CRYPTO_FAILURE,
            f"No public key configured. Pass a path or set {PUBLIC_KEY_PATH_ENV}.",
        )
    return load_public_key_pem(_read_pem(resolved_path))
