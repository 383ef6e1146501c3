"""
In-memory signing capabilities and the lease that guards their use.

Security:
- Capabilities arrive already decrypted from an external vault; this module
  never reads ciphertext or passwords and never persists key material
- Key material is held in a ``bytearray`` so it can be zero-filled on wipe
- Never logs secrets (addresses only)

A capability is only reachable through ``CredentialSlot.lease()``, a guard
object whose exit drops the reference and, for single-use retention, wipes
and unloads the capability on every exit path, including errors.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

from nacl.encoding import HexEncoder
from nacl.signing import SigningKey

from dealer.execution.errors import NotReadyError, SigningError
from dealer.types import CredentialRetention


logger = logging.getLogger(__name__)


class SigningCapability(Protocol):
    """Something able to sign for one account while it is loaded in memory."""

    @property
    def address(self) -> str:
        """Public account identifier bound to the key."""

    @property
    def wiped(self) -> bool:
        """True once key material has been destroyed."""

    def sign(self, message: bytes) -> str:
        """Return a hex signature over ``message``."""

    def wipe(self) -> None:
        """Destroy key material. Idempotent."""


def _zero_fill(buffer: bytearray) -> None:
    for i in range(len(buffer)):
        buffer[i] = 0


class Ed25519Capability:
    """ED25519 signing capability built from a 32-byte seed.

    The signing key is derived once. ``wipe()`` zero-fills the seed buffer and
    drops the key object; Python may still hold copies elsewhere, so wiping is
    best-effort.
    """

    SEED_LENGTH = 32

    def __init__(self, seed: bytes | bytearray) -> None:
        if len(seed) != self.SEED_LENGTH:
            raise ValueError(f"ED25519 seed must be {self.SEED_LENGTH} bytes, got {len(seed)}")
        self._seed = bytearray(seed)
        self._wiped = False
        self._signing_key: Optional[SigningKey] = SigningKey(bytes(self._seed))
        self._address = self._signing_key.verify_key.encode(encoder=HexEncoder).decode("ascii")

    @property
    def address(self) -> str:
        return self._address

    @property
    def wiped(self) -> bool:
        return self._wiped

    def sign(self, message: bytes) -> str:
        if self._wiped or self._signing_key is None:
            raise SigningError("Capability has been wiped")
        signed = self._signing_key.sign(message)
        return signed.signature.hex()

    def wipe(self) -> None:
        _zero_fill(self._seed)
        self._signing_key = None
        self._wiped = True


def hmac_sha384(secret: bytes | bytearray, message: bytes) -> str:
    """Hex-encoded HMAC-SHA384 (48 bytes = 96 hex chars)."""
    return hmac.new(secret, message, hashlib.sha384).hexdigest()


class HmacCapability:
    """API-key style capability: HMAC-SHA384 over the message with the API secret.

    The API key is public and doubles as the account address. The secret lives
    in a mutable buffer that ``wipe()`` zero-fills (best-effort in Python).
    """

    def __init__(self, api_key: str, api_secret: str | bytes) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("api_key must not be empty")
        if not api_secret:
            raise ValueError("api_secret must not be empty")
        secret = api_secret.encode("utf-8") if isinstance(api_secret, str) else api_secret
        self._api_key = api_key
        self._secret = bytearray(secret)
        self._wiped = False

    @property
    def address(self) -> str:
        return self._api_key

    @property
    def wiped(self) -> bool:
        return self._wiped

    def sign(self, message: bytes) -> str:
        if self._wiped:
            raise SigningError("Capability has been wiped")
        return hmac_sha384(self._secret, message)

    def wipe(self) -> None:
        _zero_fill(self._secret)
        self._wiped = True


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialSlot:
    """Holds at most one capability on behalf of an execution adapter."""

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._capability: Optional[SigningCapability] = None
        self._retention = CredentialRetention.SINGLE_USE
        self._expires_at: Optional[datetime] = None
        self._address: Optional[str] = None

    @property
    def retention(self) -> CredentialRetention:
        return self._retention

    @property
    def expires_at(self) -> Optional[datetime]:
        return self._expires_at

    def load(
        self,
        capability: SigningCapability,
        *,
        retention: CredentialRetention = CredentialRetention.SINGLE_USE,
        session_ttl: Optional[timedelta] = None,
    ) -> None:
        """Load a decrypted capability, wiping any previously loaded one."""
        if capability.wiped:
            raise ValueError("Cannot load a wiped capability")
        if session_ttl is not None and retention is not CredentialRetention.SESSION:
            raise ValueError("session_ttl only applies to session retention")

        self.clear()
        self._capability = capability
        self._retention = retention
        self._address = capability.address
        self._expires_at = self._clock() + session_ttl if session_ttl is not None else None
        logger.info("Signing capability loaded for %s (retention=%s)", self._address, retention.value)

    def clear(self) -> None:
        """Wipe and drop the loaded capability, if any."""
        capability, self._capability = self._capability, None
        self._address = None
        self._expires_at = None
        if capability is not None:
            capability.wipe()
            logger.info("Signing capability wiped")

    def _expire_if_due(self) -> None:
        if self._expires_at is not None and self._clock() >= self._expires_at:
            logger.info("Signing session expired at %s", self._expires_at.isoformat())
            self.clear()

    def is_loaded(self) -> bool:
        self._expire_if_due()
        return self._capability is not None

    @property
    def address(self) -> Optional[str]:
        self._expire_if_due()
        return self._address

    def lease(self) -> SigningLease:
        return SigningLease(self)

    def _checkout(self) -> SigningCapability:
        self._expire_if_due()
        if self._capability is None:
            raise NotReadyError()
        return self._capability

    def _release(self) -> None:
        if self._retention is CredentialRetention.SINGLE_USE:
            self.clear()


class SigningLease:
    """Scoped access to the slot's capability for one signing operation.

    Usage:
        with slot.lease() as capability:
            signature = capability.sign(message)
    """

    def __init__(self, slot: CredentialSlot) -> None:
        self._slot = slot
        self._capability: Optional[SigningCapability] = None

    def __enter__(self) -> SigningCapability:
        self._capability = self._slot._checkout()
        return self._capability

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._capability = None
        self._slot._release()
        return False
