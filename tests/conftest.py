from __future__ import annotations

import pytest

from tl_signing.keys import SigningIdentity, generate_key_pair, private_key_to_pem, public_key_to_pem

KID = "45fc75cf-5649-4134-84b3-192c2c78e990"


@pytest.fixture(scope="session")
def key_pair():
    return generate_key_pair()


@pytest.fixture(scope="session")
def identity(key_pair) -> SigningIdentity:
    return SigningIdentity(kid=KID, private_key=key_pair[0])


@pytest.fixture(scope="session")
def public_key(key_pair):
    return key_pair[1]


@pytest.fixture(scope="session")
def private_pem(key_pair) -> bytes:
    return private_key_to_pem(key_pair[0])


@pytest.fixture(scope="session")
def public_pem(key_pair) -> bytes:
    return public_key_to_pem(key_pair[1])
