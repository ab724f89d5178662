"""Shared fixtures: stores, key pairs and self-signed certificates."""

from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.x509.oid import NameOID

from keysmith.domain.states import KeyAlgorithm
from keysmith.errors import StoreError
from keysmith.identity.certificate import Certificate
from keysmith.keys.generator import KeyPairConfiguration, KeyPairGenerator
from keysmith.keys.key_pair import KeyPair
from keysmith.store.memory import InMemoryCredentialStore


class FlakyStore(InMemoryCredentialStore):
    """In-memory store that fails saves or deletes for chosen item classes."""

    def __init__(self, fail_save=(), fail_delete=()):
        super().__init__()
        self.fail_save = set(fail_save)
        self.fail_delete = set(fail_delete)

    def save(self, record, accessibility):
        if record.item_class in self.fail_save:
            raise StoreError(f"injected save failure for {record.item_class}")
        super().save(record, accessibility)

    def delete(self, label, item_class):
        if item_class in self.fail_delete:
            raise StoreError(f"injected delete failure for {item_class}")
        super().delete(label, item_class)


def build_certificate(
    key_pair: KeyPair,
    common_name: str | None = "device-1",
    organization: str | None = None,
) -> Certificate:
    """Self-sign a certificate over the pair's public key."""
    attributes = []
    if common_name is not None:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    if organization is not None:
        attributes.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
    subject = issuer = x509.Name(attributes)
    now = datetime.now(timezone.utc)

    with key_pair.private_key.provider_key() as private_key:
        cert = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer)
            .public_key(private_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now)
            .not_valid_after(now + timedelta(days=30))
            .sign(private_key, hashes.SHA256())  # type: ignore[arg-type]
        )
    return Certificate(cert)


@pytest.fixture
def store():
    return InMemoryCredentialStore()


@pytest.fixture
def flaky_store():
    """Factory for stores with injected failures."""
    return FlakyStore


@pytest.fixture
def make_certificate():
    return build_certificate


@pytest.fixture
def generate():
    """Generate an ephemeral key pair of the given algorithm and size."""

    def _generate(algorithm: KeyAlgorithm, key_size: int) -> KeyPair:
        return KeyPairGenerator().generate(KeyPairConfiguration(algorithm, key_size))

    return _generate


@pytest.fixture(scope="module")
def rsa_key_pair():
    """Ephemeral RSA-2048 pair shared by a test module. Do not persist it."""
    return KeyPairGenerator().generate(KeyPairConfiguration(KeyAlgorithm.RSA, 2048))


@pytest.fixture(scope="module")
def ec_key_pair():
    """Ephemeral EC-256 pair shared by a test module. Do not persist it."""
    return KeyPairGenerator().generate(KeyPairConfiguration(KeyAlgorithm.EC, 256))
