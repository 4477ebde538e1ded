"""Pytest fixtures for App Store Connect bridge tests."""
from typing import Callable

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from asc_bridge.api.client import PacedApiClient
from asc_bridge.auth.jwt import Credentials, TokenAuthenticator
from asc_bridge.core.logging_config import configure_logging

# structlog defaults to stdout, which the stdio server tests capture
configure_logging("DEBUG")


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _private_pem(key) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


# --- Key Fixtures ---

@pytest.fixture(scope="session")
def ec_private_key():
    """A P-256 key like the .p8 files App Store Connect hands out."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def private_key_pem(ec_private_key) -> str:
    return _private_pem(ec_private_key)


@pytest.fixture(scope="session")
def public_key_pem(ec_private_key) -> str:
    return ec_private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")


@pytest.fixture(scope="session")
def p384_private_key_pem() -> str:
    return _private_pem(ec.generate_private_key(ec.SECP384R1()))


# --- Authentication Fixtures ---

@pytest.fixture
def credentials(private_key_pem: str) -> Credentials:
    return Credentials(
        key_id="ABC123DEFG",
        issuer_id="57246542-96fe-1a63-e053-0824d011072a",
        private_key=private_key_pem,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def authenticator(credentials: Credentials) -> TokenAuthenticator:
    return TokenAuthenticator(credentials)


# --- Client Fixtures ---

@pytest.fixture
def make_client(authenticator: TokenAuthenticator) -> Callable[..., PacedApiClient]:
    """Factory fixture wiring a PacedApiClient to an httpx.MockTransport handler."""
    def _make_client(
        handler: Callable[[httpx.Request], httpx.Response],
        min_request_interval_ms: int = 0,
    ) -> PacedApiClient:
        return PacedApiClient(
            authenticator,
            min_request_interval_ms=min_request_interval_ms,
            transport=httpx.MockTransport(handler),
        )
    return _make_client


# --- Sample Data Fixtures ---

@pytest.fixture
def sample_app() -> dict:
    return {
        "type": "apps",
        "id": "1234567890",
        "attributes": {
            "name": "Sample App",
            "bundleId": "com.example.sample",
            "sku": "SAMPLE001",
            "primaryLocale": "en-US",
        },
    }


@pytest.fixture
def sample_build() -> dict:
    return {
        "type": "builds",
        "id": "b-1",
        "attributes": {
            "version": "42",
            "uploadedDate": "2024-05-01T10:00:00-07:00",
            "processingState": "VALID",
        },
    }
