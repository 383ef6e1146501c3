"""Execution boundary: signing capabilities, nonces and exchange adapters."""

from .credentials import (
    CredentialRetention,
    CredentialSlot,
    Ed25519Capability,
    HmacCapability,
    SigningCapability,
    SigningLease,
)
from .errors import ExecutionError, InvalidOrderError, NotReadyError, SigningError
from .hyperliquid import (
    MAINNET_URL,
    TESTNET_URL,
    HyperliquidExecutionAdapter,
    build_cancel_action,
    build_order_action,
    create_hyperliquid_execution_adapter,
    signing_message,
)
from .interfaces import ExecutionAdapter
from .nonce import NonceIssuer
from .paper import PaperExecutionAdapter

__all__ = [
    # Credentials
    "CredentialRetention",
    "CredentialSlot",
    "Ed25519Capability",
    "HmacCapability",
    "SigningCapability",
    "SigningLease",
    # Errors
    "ExecutionError",
    "InvalidOrderError",
    "NotReadyError",
    "SigningError",
    # Adapters
    "ExecutionAdapter",
    "HyperliquidExecutionAdapter",
    "PaperExecutionAdapter",
    "create_hyperliquid_execution_adapter",
    "build_order_action",
    "build_cancel_action",
    "signing_message",
    "MAINNET_URL",
    "TESTNET_URL",
    "NonceIssuer",
]
