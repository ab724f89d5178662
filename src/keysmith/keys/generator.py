"""Key pair generation.

Generates RSA and EC key pairs in software, or EC keys inside a secure
element, and optionally persists both halves under one label.
"""

import logging
import time
from dataclasses import dataclass
from typing import assert_never

from cryptography.hazmat.primitives.asymmetric import ec, rsa
from opentelemetry import trace

from keysmith.domain.algorithms import (
    RSA_PUBLIC_EXPONENT,
    curve_for_size,
    validate_key_size,
)
from keysmith.domain.states import Accessibility, ItemClass, KeyAlgorithm, KeyClass
from keysmith.errors import (
    GenerationFailedError,
    InvalidConfigurationError,
    StoreError,
    UnsupportedStoreTargetError,
)
from keysmith.keys import codec
from keysmith.keys.key import Key
from keysmith.keys.key_pair import KeyPair, save_key_halves
from keysmith.metrics import keysmith_metrics
from keysmith.store.base import CredentialStore
from keysmith.store.rollback import Rollback
from shared.config import settings

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass(frozen=True)
class KeyPairConfiguration:
    """What to generate and where to keep it.

    A label requests persistence; without one the pair is ephemeral.
    """

    algorithm: KeyAlgorithm
    key_size: int
    label: str | None = None
    accessibility: Accessibility = Accessibility.WHEN_UNLOCKED
    store_in_secure_element: bool = False

    @classmethod
    def default(cls, algorithm: KeyAlgorithm, label: str | None = None) -> "KeyPairConfiguration":
        """Configuration with key size and accessibility from settings."""
        algorithm = KeyAlgorithm(algorithm)
        if algorithm is KeyAlgorithm.RSA:
            key_size = settings.DEFAULT_RSA_KEY_SIZE
        elif algorithm is KeyAlgorithm.EC:
            key_size = settings.DEFAULT_EC_KEY_SIZE
        else:
            assert_never(algorithm)

        return cls(
            algorithm=algorithm,
            key_size=key_size,
            label=label,
            accessibility=Accessibility(settings.DEFAULT_ACCESSIBILITY),
        )

    def validate(self) -> None:
        """Raises InvalidConfigurationError for a bad size or label."""
        try:
            algorithm = KeyAlgorithm(self.algorithm)
        except ValueError:
            raise InvalidConfigurationError(f"Unknown algorithm {self.algorithm!r}") from None

        validate_key_size(algorithm, self.key_size)

        if self.label is not None and not self.label.strip():
            raise InvalidConfigurationError("Label must not be empty")
        if self.store_in_secure_element and self.label is None:
            raise InvalidConfigurationError("Secure element keys require a label")


class KeyPairGenerator:
    """Generates key pairs per a ``KeyPairConfiguration``.

    Persistence order is private key, then public key. A failure part way
    deletes the entries written by this call before raising.
    """

    def __init__(self, store: CredentialStore | None = None) -> None:
        self._store = store

    def generate(self, configuration: KeyPairConfiguration) -> KeyPair:
        """Generate a fresh key pair.

        Raises:
            InvalidConfigurationError: If size or label is invalid.
            UnsupportedStoreTargetError: If the secure element cannot hold the key.
            GenerationFailedError: If generation or persistence fails.
        """
        configuration.validate()
        algorithm = KeyAlgorithm(configuration.algorithm)

        with tracer.start_as_current_span("KeyPairGenerator.generate") as span:
            span.set_attribute("algorithm", str(algorithm))
            span.set_attribute("key_size", configuration.key_size)
            span.set_attribute("secure_element", configuration.store_in_secure_element)

            start_time = time.time()

            if configuration.store_in_secure_element:
                key_pair = self._generate_in_secure_element(configuration)
            else:
                if configuration.label is not None and self._store is None:
                    raise InvalidConfigurationError(
                        "Persisting a key pair requires a credential store"
                    )
                key_pair = self._generate_in_software(configuration)
                if configuration.label is not None:
                    self._persist(key_pair, configuration)

            generation_time = time.time() - start_time
            keysmith_metrics.record_key_pair_generated(
                algorithm, configuration.key_size, generation_time
            )

            logger.info(
                "key_pair_generated",
                extra={
                    "algorithm": str(algorithm),
                    "key_size": configuration.key_size,
                    "label": configuration.label,
                    "secure_element": configuration.store_in_secure_element,
                    "duration_seconds": generation_time,
                },
            )

            return key_pair

    def _generate_in_software(self, configuration: KeyPairConfiguration) -> KeyPair:
        algorithm = KeyAlgorithm(configuration.algorithm)

        try:
            if algorithm is KeyAlgorithm.RSA:
                provider_key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey = (
                    rsa.generate_private_key(
                        public_exponent=RSA_PUBLIC_EXPONENT,
                        key_size=configuration.key_size,
                    )
                )
            elif algorithm is KeyAlgorithm.EC:
                provider_key = ec.generate_private_key(curve_for_size(configuration.key_size))
            else:
                assert_never(algorithm)
        except (ValueError, TypeError) as e:
            logger.error(
                "key_generation_failed",
                extra={"algorithm": str(algorithm), "key_size": configuration.key_size, "error": str(e)},
            )
            raise GenerationFailedError(f"Failed to generate key pair: {e}") from e

        private_key = Key.from_provider_key(provider_key, accessibility=configuration.accessibility)
        public_key = Key.from_provider_key(
            provider_key.public_key(), accessibility=configuration.accessibility
        )
        return KeyPair(public_key, private_key, store=self._store)

    def _generate_in_secure_element(self, configuration: KeyPairConfiguration) -> KeyPair:
        store = self._store
        algorithm = KeyAlgorithm(configuration.algorithm)
        if store is None or not store.supports_secure_element(algorithm, configuration.key_size):
            raise UnsupportedStoreTargetError(
                f"Secure element storage is not available for "
                f"{algorithm.value.upper()}-{configuration.key_size} keys"
            )

        label = configuration.label
        assert label is not None

        try:
            with Rollback(store, "generator") as rollback:
                public_bytes = store.generate_secure_element_key(
                    label, algorithm, configuration.key_size, configuration.accessibility
                )
                rollback.track(label, ItemClass.PRIVATE_KEY)
                public_key = codec.decode(public_bytes, algorithm, KeyClass.PUBLIC)
                public_key.accessibility = configuration.accessibility
                save_key_halves(
                    store,
                    [public_key],
                    label,
                    configuration.accessibility,
                    rollback,
                    tolerate_duplicates=False,
                )
        except StoreError as e:
            logger.error("key_generation_failed", extra={"label": label, "error": str(e)})
            raise GenerationFailedError(f"Failed to generate key pair {label!r}: {e}") from e

        private_key = Key(
            algorithm,
            KeyClass.PRIVATE,
            configuration.key_size,
            store=store,
            label=label,
            accessibility=configuration.accessibility,
            extractable=False,
            secure_element=True,
        )
        return KeyPair(public_key, private_key, store=store)

    def _persist(self, key_pair: KeyPair, configuration: KeyPairConfiguration) -> None:
        store = self._store
        label = configuration.label
        assert store is not None and label is not None

        try:
            with Rollback(store, "generator") as rollback:
                save_key_halves(
                    store,
                    [key_pair.private_key, key_pair.public_key],
                    label,
                    configuration.accessibility,
                    rollback,
                    tolerate_duplicates=False,
                )
        except StoreError as e:
            logger.error("key_generation_failed", extra={"label": label, "error": str(e)})
            raise GenerationFailedError(f"Failed to persist generated key pair {label!r}: {e}") from e
