"""Certificate wrapper exposing the attributes identities depend on."""

import hashlib

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID

from keysmith.domain.models import StoreRecord
from keysmith.domain.states import Accessibility, ItemClass
from keysmith.errors import MalformedEncodingError
from keysmith.keys.key import Key


class Certificate:
    """An X.509 certificate with a store label.

    The label defaults to the subject common name, falling back to the full
    RFC 4514 subject.
    """

    def __init__(self, certificate: x509.Certificate, label: str | None = None) -> None:
        self._certificate = certificate
        self._label = label

    @classmethod
    def from_pem(cls, data: bytes, label: str | None = None) -> "Certificate":
        try:
            return cls(x509.load_pem_x509_certificate(data), label=label)
        except ValueError as e:
            raise MalformedEncodingError(f"Invalid PEM certificate: {e}") from e

    @classmethod
    def from_der(cls, data: bytes, label: str | None = None) -> "Certificate":
        try:
            return cls(x509.load_der_x509_certificate(data), label=label)
        except ValueError as e:
            raise MalformedEncodingError(f"Invalid DER certificate: {e}") from e

    @classmethod
    def from_record(cls, record: StoreRecord) -> "Certificate":
        return cls.from_der(record.data, label=record.label)

    @property
    def x509(self) -> x509.Certificate:
        return self._certificate

    @property
    def label(self) -> str:
        if self._label:
            return self._label
        common_names = self._certificate.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        if common_names:
            return str(common_names[0].value)
        return self._certificate.subject.rfc4514_string()

    def encode(self) -> bytes:
        """DER encoding."""
        return self._certificate.public_bytes(serialization.Encoding.DER)

    def thumbprint(self) -> str:
        """Lowercase hexadecimal SHA-256 over the DER encoding."""
        return hashlib.sha256(self.encode()).hexdigest().lower()

    def public_key(self) -> Key:
        """Extract the subject public key.

        Raises:
            UnsupportedAlgorithmError: If the key is neither RSA nor a supported curve.
        """
        return Key.from_provider_key(self._certificate.public_key())  # type: ignore[arg-type]

    def to_record(self, accessibility: Accessibility) -> StoreRecord:
        return StoreRecord(
            label=self.label,
            item_class=ItemClass.CERTIFICATE,
            data=self.encode(),
            accessibility=accessibility,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Certificate):
            return NotImplemented
        return self.encode() == other.encode()

    def __hash__(self) -> int:
        return hash(self.encode())

    def __repr__(self) -> str:
        return f"Certificate(label={self.label!r}, thumbprint={self.thumbprint()[:16]})"
