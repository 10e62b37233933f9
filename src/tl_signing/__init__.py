"""tl-signing: ES512 request signatures over method, path, headers and body."""

from tl_signing.canonical import build_signing_string
from tl_signing.context import SigningContext, sign_with_pem, verify_with_pem
from tl_signing.headers import HeaderSet
from tl_signing.jws import extract_protected_header
from tl_signing.keys import (
    SigningIdentity,
    generate_key_pair,
    load_identity,
    load_private_key_pem,
    load_public_key,
    load_public_key_pem,
    write_key_pair,
)
from tl_signing.signer import Signer
from tl_signing.types import (
    ErrorKind,
    ProtectedHeader,
    SignResult,
    SigningError,
    VerifyResult,
)
from tl_signing.verifier import Verifier

__all__ = [
    "ErrorKind",
    "HeaderSet",
    "ProtectedHeader",
    "SignResult",
    "Signer",
    "SigningContext",
    "SigningError",
    "SigningIdentity",
    "Verifier",
    "VerifyResult",
    "build_signing_string",
    "extract_protected_header",
    "generate_key_pair",
    "load_identity",
    "load_private_key_pem",
    "load_public_key",
    "load_public_key_pem",
    "sign_with_pem",
    "verify_with_pem",
    "write_key_pair",
]

__version__ = "0.1.0"
