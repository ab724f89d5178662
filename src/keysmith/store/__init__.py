"""Credential store clients.

This module provides:
- The CredentialStore interface
- In-memory and simulated secure element stores
- A SQLAlchemy-backed software store with at-rest encryption
"""

from keysmith.store.base import CredentialStore
from keysmith.store.database import DatabaseCredentialStore
from keysmith.store.memory import InMemoryCredentialStore, SecureElementCredentialStore

__all__ = [
    "CredentialStore",
    "DatabaseCredentialStore",
    "InMemoryCredentialStore",
    "SecureElementCredentialStore",
]
