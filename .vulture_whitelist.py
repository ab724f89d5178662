from src.keysmith.domain.models import CredentialItem, StoreRecord
from src.keysmith.domain.states import Accessibility
from src.keysmith.errors import KeysmithError
from src.keysmith.identity.certificate import Certificate
from src.keysmith.keys.key import Key
from src.keysmith.keys.key_pair import KeyPair
from src.keysmith.keys.operations import max_plaintext_size, verify_digest
from src.keysmith.store.crypto import generate_encryption_key
from src.keysmith.store.database import DatabaseCredentialStore
from src.shared.config import Settings
from src.shared.logging import setup_logging
from src.shared.metrics import setup_metrics
from src.shared.tracing import setup_tracing

# Pydantic Settings
Settings.model_config
Settings.APP_ENV
Settings.STORE_ENCRYPTION_KEY

# Domain Models (columns read back through SQLAlchemy)
CredentialItem.item_id
CredentialItem.created_at
StoreRecord.created_at

# Enums (values passed through to the store)
Accessibility.ALWAYS
Accessibility.WHEN_PASSCODE_SET_THIS_DEVICE_ONLY
Accessibility.WHEN_UNLOCKED_THIS_DEVICE_ONLY
Accessibility.AFTER_FIRST_UNLOCK_THIS_DEVICE_ONLY
Accessibility.ALWAYS_THIS_DEVICE_ONLY

# Public API
KeysmithError
Certificate.from_pem
Key.fingerprint
Key.destroy
KeyPair.export
KeyPair.import_pkcs8
KeyPair.matches_certificate
max_plaintext_size
verify_digest
generate_encryption_key
DatabaseCredentialStore.from_settings
DatabaseCredentialStore.engine

# Process setup, called by embedding applications
setup_logging
setup_metrics
setup_tracing
