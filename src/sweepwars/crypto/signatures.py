"""
Digital signature implementation using ECDSA with secp256k1 curve.

Capabilities for privileged ledger operations are signed by an issuer key
and verified against the issuer's public key.
"""

import logging

logger = logging.getLogger(__name__)
from dataclasses import dataclass
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .hashing import Hash, SHA256Hasher

# secp256k1 group order
CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def _to_bytes(message: Union[bytes, str, Hash]) -> bytes:
    if isinstance(message, str):
        return message.encode("utf-8")
    if isinstance(message, Hash):
        return message.value
    return message


@dataclass(frozen=True)
class PrivateKey:
    """Immutable private key with cryptographic operations."""

    _key: ec.EllipticCurvePrivateKey

    def __post_init__(self) -> None:
        if not isinstance(self._key.curve, ec.SECP256K1):
            raise ValueError("Private key must use secp256k1 curve")

    @classmethod
    def generate(cls) -> "PrivateKey":
        """Generate a new random private key."""
        return cls(ec.generate_private_key(ec.SECP256K1()))

    @classmethod
    def from_bytes(cls, key_bytes: bytes) -> "PrivateKey":
        """Create a private key from raw bytes."""
        if len(key_bytes) != 32:
            raise ValueError("Private key must be exactly 32 bytes")

        key = ec.derive_private_key(
            int.from_bytes(key_bytes, byteorder="big"), ec.SECP256K1()
        )
        return cls(key)

    @classmethod
    def from_hex(cls, hex_string: str) -> "PrivateKey":
        """Create a private key from hexadecimal string."""
        return cls.from_bytes(bytes.fromhex(hex_string))

    def to_bytes(self) -> bytes:
        """Convert private key to raw bytes."""
        private_numbers = self._key.private_numbers()
        return private_numbers.private_value.to_bytes(32, byteorder="big")

    def to_hex(self) -> str:
        """Convert private key to hexadecimal string."""
        return self.to_bytes().hex()

    def get_public_key(self) -> "PublicKey":
        """Get the corresponding public key."""
        return PublicKey(self._key.public_key())

    def sign(self, message: Union[bytes, str, Hash]) -> "Signature":
        """Sign a message with this private key."""
        message = _to_bytes(message)
        der_signature = self._key.sign(message, ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der_signature)
        return Signature(r, s)

    def __str__(self) -> str:
        return f"PrivateKey('{self.to_hex()[:8]}...')"

    def __repr__(self) -> str:
        return "PrivateKey(<secp256k1>)"


@dataclass(frozen=True)
class PublicKey:
    """Immutable public key with cryptographic operations."""

    _key: ec.EllipticCurvePublicKey

    def __post_init__(self) -> None:
        if not isinstance(self._key.curve, ec.SECP256K1):
            raise ValueError("Public key must use secp256k1 curve")

    @classmethod
    def from_bytes(cls, key_bytes: bytes) -> "PublicKey":
        """Create a public key from raw bytes (compressed or uncompressed)."""
        if len(key_bytes) == 33:
            if key_bytes[0] not in (0x02, 0x03):
                raise ValueError("Invalid compressed public key format")
        elif len(key_bytes) == 65:
            if key_bytes[0] != 0x04:
                raise ValueError("Invalid uncompressed public key format")
        else:
            raise ValueError(
                "Public key must be 33 (compressed) or 65 (uncompressed) bytes"
            )

        try:
            key = ec.EllipticCurvePublicKey.from_encoded_point(
                ec.SECP256K1(), key_bytes
            )
        except ValueError as e:
            raise ValueError(f"Invalid public key: {e}") from e
        return cls(key)

    @classmethod
    def from_hex(cls, hex_string: str) -> "PublicKey":
        """Create a public key from hexadecimal string."""
        return cls.from_bytes(bytes.fromhex(hex_string))

    def to_bytes(self, compressed: bool = True) -> bytes:
        """Convert public key to raw bytes."""
        encoding = (
            PublicFormat.CompressedPoint
            if compressed
            else PublicFormat.UncompressedPoint
        )
        return self._key.public_bytes(Encoding.X962, encoding)

    def to_hex(self, compressed: bool = True) -> str:
        """Convert public key to hexadecimal string."""
        return self.to_bytes(compressed).hex()

    def to_address(self) -> str:
        """Convert public key to address (first 20 bytes of hash)."""
        pub_key_hash = SHA256Hasher.hash(self.to_bytes(compressed=True))
        address_hash = SHA256Hasher.hash(pub_key_hash.value)
        return "0x" + address_hash.value[:20].hex()

    def verify(self, signature: "Signature", message: Union[bytes, str, Hash]) -> bool:
        """Verify a signature against a message."""
        message = _to_bytes(message)
        try:
            self._key.verify(signature.to_der(), message, ec.ECDSA(hashes.SHA256()))
            return True
        except InvalidSignature:
            logger.debug("Signature verification failed for %s", self)
            return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PublicKey):
            return False
        return self.to_bytes() == other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __str__(self) -> str:
        return f"PublicKey('{self.to_hex()[:8]}...')"

    def __repr__(self) -> str:
        return f"PublicKey.from_hex('{self.to_hex()}')"


@dataclass(frozen=True)
class Signature:
    """Immutable ECDSA signature as raw (r, s) components."""

    r: int
    s: int

    def __post_init__(self) -> None:
        if self.r <= 0 or self.s <= 0:
            raise ValueError("Signature components must be positive")

        if self.r >= CURVE_ORDER or self.s >= CURVE_ORDER:
            raise ValueError("Signature components must be less than curve order")

    @classmethod
    def from_bytes(cls, signature_bytes: bytes) -> "Signature":
        """Create a signature from raw bytes."""
        if len(signature_bytes) != 64:
            raise ValueError("Signature must be exactly 64 bytes")

        r = int.from_bytes(signature_bytes[:32], byteorder="big")
        s = int.from_bytes(signature_bytes[32:], byteorder="big")
        return cls(r, s)

    @classmethod
    def from_hex(cls, hex_string: str) -> "Signature":
        """Create a signature from hexadecimal string."""
        return cls.from_bytes(bytes.fromhex(hex_string))

    def to_bytes(self) -> bytes:
        """Convert signature to raw bytes."""
        return self.r.to_bytes(32, byteorder="big") + self.s.to_bytes(
            32, byteorder="big"
        )

    def to_hex(self) -> str:
        """Convert signature to hexadecimal string."""
        return self.to_bytes().hex()

    def to_der(self) -> bytes:
        """Convert signature to DER format."""
        return encode_dss_signature(self.r, self.s)

    def __str__(self) -> str:
        return f"Signature('{self.to_hex()[:16]}...')"
