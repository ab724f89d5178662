"""OpenTelemetry metrics for key management."""

from opentelemetry import metrics

meter = metrics.get_meter("keysmith")

# Key generation
key_pairs_generated_total = meter.create_counter(
    name="keysmith_key_pairs_generated_total",
    description="Total key pairs generated",
    unit="1",
)

key_generation_duration = meter.create_histogram(
    name="keysmith_key_generation_duration_seconds",
    description="Key pair generation duration in seconds",
    unit="s",
)

# Credential store
store_operations_total = meter.create_counter(
    name="keysmith_store_operations_total",
    description="Total credential store calls",
    unit="1",
)

rollbacks_total = meter.create_counter(
    name="keysmith_rollbacks_total",
    description="Total rollbacks of partially written entries",
    unit="1",
)

# Cryptographic operations
crypto_operations_total = meter.create_counter(
    name="keysmith_crypto_operations_total",
    description="Total encrypt/decrypt/sign/verify operations",
    unit="1",
)

# Identities
identities_created_total = meter.create_counter(
    name="keysmith_identities_created_total",
    description="Total identities created",
    unit="1",
)


class KeysmithMetrics:
    """Facade for keysmith metrics with proper labels."""

    def record_key_pair_generated(
        self, algorithm: str, key_size: int, duration_seconds: float
    ) -> None:
        """Record key pair generation. Labels: algorithm=rsa|ec"""
        attributes = {"algorithm": algorithm, "key_size": key_size}
        key_pairs_generated_total.add(1, attributes)
        key_generation_duration.record(duration_seconds, attributes)

    def record_store_operation(self, operation: str, item_class: str, result: str) -> None:
        """Record store call. Labels: operation=save|load|delete, result=ok|duplicate|not_found|error"""
        store_operations_total.add(
            1, {"operation": operation, "item_class": item_class, "result": result}
        )

    def record_rollback(self, component: str) -> None:
        """Record rollback. Labels: component=generator|key_pair|identity"""
        rollbacks_total.add(1, {"component": component})

    def record_crypto_operation(self, operation: str, algorithm: str, result: str) -> None:
        """Record crypto operation. Labels: result=ok|failed|rejected"""
        crypto_operations_total.add(
            1, {"operation": operation, "algorithm": algorithm, "result": result}
        )

    def record_identity_created(self) -> None:
        identities_created_total.add(1)


# Singleton instance
keysmith_metrics = KeysmithMetrics()
