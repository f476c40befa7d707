"""
Cryptographic primitives for SweepWars.

Provides SHA-256 hashing for the audit trail and secp256k1 ECDSA
signatures for capability tokens.
"""

from .hashing import Hash, SHA256Hasher
from .signatures import PrivateKey, PublicKey, Signature

__all__ = [
    "Hash",
    "SHA256Hasher",
    "PrivateKey",
    "PublicKey",
    "Signature",
]
