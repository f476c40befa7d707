"""
Capability-based authorization for privileged gauge-vote operations.

Privileged calls (bulk revocation, snapshots, sample size changes, epoch
advancement, collection approval) take an explicit ``Capability`` token.
Tokens are signed by a ``CapabilityIssuer`` and checked at the call
boundary by an ``AuthorizationPolicy`` holding the issuer's public key.
"""

import logging

logger = logging.getLogger(__name__)
import secrets
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from ..crypto.hashing import SHA256Hasher
from ..crypto.signatures import PrivateKey, PublicKey, Signature
from ..errors.exceptions import AuthorizationError, ValidationError


class Role(Enum):
    """Privileged roles."""

    GOVERNOR = "governor"
    TREASURY_MANAGER = "treasury_manager"
    VOTE_MANAGER = "vote_manager"
    EPOCH_TRIGGER = "epoch_trigger"


@dataclass(frozen=True)
class Capability:
    """A signed grant of one role to one holder."""

    role: Role
    holder: str
    nonce: str
    signature: Signature
    issued_at: float = field(default_factory=time.time, compare=False)

    @staticmethod
    def signing_message(role: Role, holder: str, nonce: str) -> str:
        """Canonical message covered by the issuer signature."""
        return f"sweepwars-capability:{role.value}:{holder}:{nonce}"

    @property
    def message(self) -> str:
        return self.signing_message(self.role, self.holder, self.nonce)

    @property
    def capability_id(self) -> str:
        """Stable identifier used for revocation."""
        return SHA256Hasher.hash(self.message).to_hex()

    def to_dict(self) -> Dict[str, Any]:
        """Convert capability to dictionary."""
        return {
            "capability_id": self.capability_id,
            "role": self.role.value,
            "holder": self.holder,
            "nonce": self.nonce,
            "signature": self.signature.to_hex(),
            "issued_at": self.issued_at,
        }


class CapabilityIssuer:
    """Holds the signing key and issues capabilities."""

    def __init__(self, private_key: Optional[PrivateKey] = None):
        """Initialize issuer, generating a key if none is supplied."""
        self._private_key = private_key or PrivateKey.generate()
        self.public_key = self._private_key.get_public_key()
        self.issued: List[Capability] = []

    @property
    def address(self) -> str:
        return self.public_key.to_address()

    def issue(self, role: Role, holder: str) -> Capability:
        """Issue a capability granting ``role`` to ``holder``."""
        if not holder:
            raise ValidationError("Capability holder must be set", field="holder")

        nonce = secrets.token_hex(16)
        signature = self._private_key.sign(Capability.signing_message(role, holder, nonce))
        capability = Capability(role=role, holder=holder, nonce=nonce, signature=signature)
        self.issued.append(capability)

        logger.info("Issued %s capability to %s", role.value, holder)
        return capability


class AuthorizationPolicy:
    """Verifies capabilities presented to privileged operations."""

    def __init__(self, issuer_public_key: PublicKey):
        """Initialize policy trusting a single issuer key."""
        self.issuer_public_key = issuer_public_key
        self.revoked: Set[str] = set()
        self.denied_attempts = 0
        self.granted_attempts = 0

    @classmethod
    def for_issuer(cls, issuer: CapabilityIssuer) -> "AuthorizationPolicy":
        """Create a policy trusting ``issuer``."""
        return cls(issuer.public_key)

    def revoke(self, capability: Capability) -> None:
        """Revoke a single capability."""
        self.revoked.add(capability.capability_id)
        logger.info(
            "Revoked %s capability of %s", capability.role.value, capability.holder
        )

    def is_revoked(self, capability: Capability) -> bool:
        return capability.capability_id in self.revoked

    def verify(self, capability: Capability) -> bool:
        """Check signature and revocation status."""
        if self.is_revoked(capability):
            return False
        return self.issuer_public_key.verify(capability.signature, capability.message)

    def require(
        self,
        capability: Optional[Capability],
        role: Role,
        operation: str = "",
    ) -> Capability:
        """Raise ``AuthorizationError`` unless ``capability`` grants ``role``."""
        if capability is None:
            self._deny(f"{operation or 'operation'} requires a {role.value} capability", role, None)

        if capability.role is not role:
            self._deny(
                f"{operation or 'operation'} requires {role.value}, got {capability.role.value}",
                role,
                capability.holder,
            )

        if self.is_revoked(capability):
            self._deny(f"Capability of {capability.holder} has been revoked", role, capability.holder)

        if not self.issuer_public_key.verify(capability.signature, capability.message):
            self._deny(f"Capability of {capability.holder} has an invalid signature", role, capability.holder)

        self.granted_attempts += 1
        return capability

    def _deny(self, message: str, role: Role, holder: Optional[str]) -> None:
        self.denied_attempts += 1
        logger.warning("Authorization denied: %s", message)
        raise AuthorizationError(message, required_role=role.value, holder=holder)

    def get_statistics(self) -> Dict[str, Any]:
        """Get authorization statistics."""
        return {
            "granted_attempts": self.granted_attempts,
            "denied_attempts": self.denied_attempts,
            "revoked_capabilities": len(self.revoked),
        }
