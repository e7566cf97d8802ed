# src/tickety/services/__init__.py
"""Business logic services for the Tickety application."""

from .admins import AdminRegistry
from .nonce_store import MemoryNonceStore, NonceStore, RedisNonceStore
from .sessions import SessionIssuer
from .siwe import SignatureVerifier
from .sweeper import NonceSweeper

__all__ = [
    "AdminRegistry",
    "MemoryNonceStore",
    "NonceStore",
    "NonceSweeper",
    "RedisNonceStore",
    "SessionIssuer",
    "SignatureVerifier",
]
