"""Key pair and identity management over pluggable credential stores.

This package provides:
- RSA and EC key pair generation, persistence and export
- Standard key encodings (PKCS#1, SEC1, X9.62 points)
- Encrypt/decrypt and sign/verify over resident or stored keys
- Identities binding a certificate to its stored private key
"""

from keysmith.domain.states import (
    Accessibility,
    DigestAlgorithm,
    ItemClass,
    KeyAlgorithm,
    KeyClass,
    Padding,
)
from keysmith.identity.certificate import Certificate
from keysmith.identity.identity import Identity
from keysmith.keys.generator import KeyPairConfiguration, KeyPairGenerator
from keysmith.keys.key import Key
from keysmith.keys.key_pair import KeyPair

__all__ = [
    "Accessibility",
    "Certificate",
    "DigestAlgorithm",
    "Identity",
    "ItemClass",
    "Key",
    "KeyAlgorithm",
    "KeyClass",
    "KeyPair",
    "KeyPairConfiguration",
    "KeyPairGenerator",
    "Padding",
]
