"""Unit tests for KeyPairConfiguration and KeyPairGenerator."""

from unittest.mock import ANY, patch

import pytest

from keysmith.domain.states import Accessibility, ItemClass, KeyAlgorithm
from keysmith.errors import (
    GenerationFailedError,
    InvalidConfigurationError,
    NotExtractableError,
    StoreError,
    UnsupportedStoreTargetError,
)
from keysmith.keys import operations
from keysmith.keys.generator import KeyPairConfiguration, KeyPairGenerator
from keysmith.store.memory import SecureElementCredentialStore


class TestKeyPairConfiguration:
    """Tests for configuration defaults and validation."""

    def test_default_rsa_configuration(self):
        """Test RSA defaults come from settings."""
        configuration = KeyPairConfiguration.default(KeyAlgorithm.RSA)

        assert configuration.key_size == 2048
        assert configuration.accessibility is Accessibility.WHEN_UNLOCKED
        assert configuration.label is None

    def test_default_ec_configuration(self):
        """Test EC defaults come from settings."""
        assert KeyPairConfiguration.default(KeyAlgorithm.EC, label="k").key_size == 256

    @pytest.mark.parametrize(
        "algorithm,key_size",
        [
            (KeyAlgorithm.RSA, 512),
            (KeyAlgorithm.RSA, 2047),
            (KeyAlgorithm.EC, 128),
            (KeyAlgorithm.EC, 0),
            (KeyAlgorithm.EC, True),
        ],
    )
    def test_validate_rejects_unsupported_sizes(self, algorithm, key_size):
        """Test that sizes outside the algorithm's domain are rejected."""
        with pytest.raises(InvalidConfigurationError):
            KeyPairConfiguration(algorithm, key_size).validate()

    def test_validate_rejects_unknown_algorithm(self):
        """Test that an unknown algorithm name is rejected."""
        with pytest.raises(InvalidConfigurationError, match="Unknown algorithm"):
            KeyPairConfiguration("dsa", 2048).validate()  # type: ignore[arg-type]

    def test_validate_rejects_blank_label(self):
        """Test that a whitespace label is rejected."""
        with pytest.raises(InvalidConfigurationError, match="Label"):
            KeyPairConfiguration(KeyAlgorithm.EC, 256, label="  ").validate()

    def test_validate_requires_label_for_secure_element(self):
        """Test that secure element keys must be labelled."""
        with pytest.raises(InvalidConfigurationError, match="require a label"):
            KeyPairConfiguration(KeyAlgorithm.EC, 256, store_in_secure_element=True).validate()


class TestSoftwareGeneration:
    """Tests for generating key pairs in software."""

    @pytest.mark.parametrize("key_size", [192, 256, 384, 521])
    def test_generate_ec_sizes(self, key_size):
        """Test EC generation for every supported curve."""
        key_pair = KeyPairGenerator().generate(KeyPairConfiguration(KeyAlgorithm.EC, key_size))

        assert key_pair.algorithm is KeyAlgorithm.EC
        assert key_pair.key_size == key_size
        assert key_pair.public_key.key_size == key_size

    def test_generate_unsupported_ec_size_raises(self):
        """Test that a 128-bit EC key is an invalid configuration."""
        with pytest.raises(InvalidConfigurationError):
            KeyPairGenerator().generate(KeyPairConfiguration(KeyAlgorithm.EC, 128))

    def test_generate_rsa(self):
        """Test RSA generation at the minimum size."""
        key_pair = KeyPairGenerator().generate(KeyPairConfiguration(KeyAlgorithm.RSA, 1024))

        assert key_pair.algorithm is KeyAlgorithm.RSA
        assert key_pair.key_size == 1024
        assert key_pair.private_key.is_resident

    def test_generate_without_label_is_ephemeral(self, store):
        """Test that no label means nothing is written."""
        key_pair = KeyPairGenerator(store).generate(KeyPairConfiguration(KeyAlgorithm.EC, 256))

        assert key_pair.label is None
        assert len(store) == 0

    def test_generate_label_without_store_raises(self):
        """Test that persistence needs a store."""
        with pytest.raises(InvalidConfigurationError, match="credential store"):
            KeyPairGenerator().generate(KeyPairConfiguration(KeyAlgorithm.EC, 256, label="k"))

    def test_generate_with_label_persists_both_halves(self, store):
        """Test that a labelled pair is saved private then public."""
        configuration = KeyPairConfiguration(
            KeyAlgorithm.EC, 256, label="device", accessibility=Accessibility.AFTER_FIRST_UNLOCK
        )

        key_pair = KeyPairGenerator(store).generate(configuration)

        assert key_pair.label == "device"
        assert ("device", ItemClass.PRIVATE_KEY) in store
        assert ("device", ItemClass.PUBLIC_KEY) in store
        record = store.load("device", ItemClass.PRIVATE_KEY)
        assert record.algorithm is KeyAlgorithm.EC
        assert record.key_size == 256
        assert record.accessibility is Accessibility.AFTER_FIRST_UNLOCK

    def test_generate_duplicate_label_fails_and_keeps_existing(self, store):
        """Test that a taken label fails without touching the existing entries."""
        generator = KeyPairGenerator(store)
        first = generator.generate(KeyPairConfiguration(KeyAlgorithm.EC, 256, label="taken"))
        existing = store.load("taken", ItemClass.PRIVATE_KEY).data

        with pytest.raises(GenerationFailedError):
            generator.generate(KeyPairConfiguration(KeyAlgorithm.EC, 256, label="taken"))

        assert store.load("taken", ItemClass.PRIVATE_KEY).data == existing
        assert ("taken", ItemClass.PUBLIC_KEY) in store
        assert first.export_public_key() == store.load("taken", ItemClass.PUBLIC_KEY).data

    def test_public_save_failure_rolls_back_private(self, flaky_store):
        """Test that a failing public save leaves no private entry behind."""
        store = flaky_store(fail_save={ItemClass.PUBLIC_KEY})

        with pytest.raises(GenerationFailedError):
            KeyPairGenerator(store).generate(KeyPairConfiguration(KeyAlgorithm.EC, 256, label="k"))

        assert ("k", ItemClass.PRIVATE_KEY) not in store
        assert len(store) == 0

    def test_rollback_failure_is_logged_not_raised(self, flaky_store, caplog):
        """Test that a failed rollback delete is logged and the save error surfaces."""
        store = flaky_store(fail_save={ItemClass.PUBLIC_KEY}, fail_delete={ItemClass.PRIVATE_KEY})

        with pytest.raises(GenerationFailedError, match="injected save failure"):
            KeyPairGenerator(store).generate(KeyPairConfiguration(KeyAlgorithm.EC, 256, label="k"))

        assert ("k", ItemClass.PRIVATE_KEY) in store
        assert "rollback_delete_failed" in caplog.text

    def test_generate_records_metrics(self):
        """Test that generation is counted with algorithm and size."""
        with patch("keysmith.keys.generator.keysmith_metrics") as mock_metrics:
            KeyPairGenerator().generate(KeyPairConfiguration(KeyAlgorithm.EC, 384))

        mock_metrics.record_key_pair_generated.assert_called_once_with(KeyAlgorithm.EC, 384, ANY)


class TestSecureElementGeneration:
    """Tests for generating keys inside the secure element."""

    @pytest.fixture
    def secure_store(self):
        return SecureElementCredentialStore()

    def test_generate_ec_256_in_secure_element(self, secure_store):
        """Test that the private key stays in the element and still signs."""
        configuration = KeyPairConfiguration(
            KeyAlgorithm.EC, 256, label="se", store_in_secure_element=True
        )

        key_pair = KeyPairGenerator(secure_store).generate(configuration)

        assert key_pair.private_key.secure_element is True
        assert key_pair.private_key.extractable is False
        assert key_pair.private_key.is_resident is False
        assert ("se", ItemClass.PUBLIC_KEY) in secure_store

        signature = operations.sign(key_pair.private_key, b"message")
        assert operations.verify(key_pair.public_key, b"message", signature) is True

        with pytest.raises(NotExtractableError):
            key_pair.export_private_key()

    @pytest.mark.parametrize(
        "algorithm,key_size", [(KeyAlgorithm.RSA, 2048), (KeyAlgorithm.EC, 384)]
    )
    def test_unsupported_secure_element_key_raises(self, secure_store, algorithm, key_size):
        """Test that only EC-256 keys can live in the element."""
        configuration = KeyPairConfiguration(
            algorithm, key_size, label="se", store_in_secure_element=True
        )

        with pytest.raises(UnsupportedStoreTargetError):
            KeyPairGenerator(secure_store).generate(configuration)

        assert len(secure_store) == 0

    def test_store_without_secure_element_raises(self, store):
        """Test that a plain store rejects secure element generation."""
        configuration = KeyPairConfiguration(
            KeyAlgorithm.EC, 256, label="se", store_in_secure_element=True
        )

        with pytest.raises(UnsupportedStoreTargetError):
            KeyPairGenerator(store).generate(configuration)

    def test_secure_element_without_store_raises(self):
        """Test that secure element generation needs a store."""
        configuration = KeyPairConfiguration(
            KeyAlgorithm.EC, 256, label="se", store_in_secure_element=True
        )

        with pytest.raises(UnsupportedStoreTargetError):
            KeyPairGenerator().generate(configuration)

    def test_secure_element_public_save_failure_rolls_back(self, secure_store):
        """Test that the element key is removed when the public save fails."""
        original_save = secure_store.save

        def failing_save(record, accessibility):
            if record.item_class is ItemClass.PUBLIC_KEY:
                raise StoreError("public key save failed")
            original_save(record, accessibility)

        configuration = KeyPairConfiguration(
            KeyAlgorithm.EC, 256, label="se", store_in_secure_element=True
        )
        with patch.object(secure_store, "save", side_effect=failing_save):
            with pytest.raises(GenerationFailedError):
                KeyPairGenerator(secure_store).generate(configuration)

        assert len(secure_store) == 0
