"""
Hyperliquid execution adapter.

Builds exchange-native order/cancel actions from intents, signs them with the
loaded in-memory capability and posts ``{action, nonce, signature}`` to the
exchange endpoint.

Per attempt: IDLE -> BUILDING -> SIGNING -> SUBMITTED -> CONFIRMED | REJECTED | NETWORK_FAILED.
The capability is only reachable in SIGNING, through a lease that is released
before the request leaves the process.

Usage:
    adapter = HyperliquidExecutionAdapter(testnet=True)
    adapter.set_capability(Ed25519Capability(seed))
    result = await adapter.execute(intent, timeout=5.0)
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional

import httpx

from dealer.config import ExecutionSettings
from dealer.execution.credentials import CredentialRetention, CredentialSlot, SigningCapability
from dealer.execution.errors import InvalidOrderError, NotReadyError, SigningError
from dealer.execution.nonce import NonceIssuer
from dealer.types import ExecutionIntent, ExecutionState, OrderResult


logger = logging.getLogger(__name__)

MAINNET_URL = "https://api.hyperliquid.xyz/exchange"
TESTNET_URL = "https://api.hyperliquid-testnet.xyz/exchange"

DEFAULT_TIMEOUT_SECONDS = 10.0


def _wire_decimal(value: Decimal) -> str:
    """Decimal as a plain string without exponent or trailing zeros."""
    return format(value.normalize(), "f")


def build_order_action(intent: ExecutionIntent) -> dict[str, Any]:
    """Build the order action for an intent (price "0" for market orders)."""
    tif = "Gtc" if intent.order_type == "limit" else "Ioc"
    order: dict[str, Any] = {
        "a": intent.asset_index,
        "b": intent.is_buy,
        "p": _wire_decimal(intent.price) if intent.price is not None else "0",
        "s": _wire_decimal(intent.size),
        "r": intent.reduce_only,
        "t": {"limit": {"tif": tif}},
    }
    if intent.client_order_id:
        order["c"] = intent.client_order_id
    return {"type": "order", "orders": [order], "grouping": "na"}


def build_cancel_action(asset_index: int, order_id: int) -> dict[str, Any]:
    return {"type": "cancel", "cancels": [{"a": asset_index, "o": order_id}]}


def signing_message(action: Mapping[str, Any], nonce: int) -> bytes:
    """Canonical bytes covered by the signature: sorted, compact JSON of action + nonce."""
    return json.dumps({"action": action, "nonce": nonce}, sort_keys=True, separators=(",", ":")).encode("utf-8")


def _first_status(payload: Mapping[str, Any]) -> Any:
    response = payload.get("response")
    if not isinstance(response, Mapping):
        return None
    data = response.get("data")
    if not isinstance(data, Mapping):
        return None
    statuses = data.get("statuses")
    if isinstance(statuses, list) and statuses:
        return statuses[0]
    return None


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def parse_order_response(
    payload: Any,
    *,
    nonce: int,
    client_order_id: Optional[str] = None,
) -> OrderResult:
    if not isinstance(payload, Mapping) or payload.get("status") != "ok":
        reason = payload.get("response") if isinstance(payload, Mapping) else payload
        return OrderResult(
            success=False,
            state=ExecutionState.REJECTED,
            client_order_id=client_order_id,
            error=str(reason or "Order execution failed"),
            nonce=nonce,
        )

    status = _first_status(payload)
    if isinstance(status, Mapping) and "error" in status:
        return OrderResult(
            success=False,
            state=ExecutionState.REJECTED,
            client_order_id=client_order_id,
            error=str(status["error"]),
            nonce=nonce,
        )

    order_id: Optional[str] = None
    filled_size: Optional[Decimal] = None
    filled_price: Optional[Decimal] = None
    if isinstance(status, Mapping):
        filled = status.get("filled")
        resting = status.get("resting")
        if isinstance(filled, Mapping):
            order_id = str(filled["oid"]) if filled.get("oid") is not None else None
            filled_size = _to_decimal(filled.get("totalSz"))
            filled_price = _to_decimal(filled.get("avgPx"))
        elif isinstance(resting, Mapping) and resting.get("oid") is not None:
            order_id = str(resting["oid"])

    return OrderResult(
        success=True,
        state=ExecutionState.CONFIRMED,
        order_id=order_id,
        client_order_id=client_order_id,
        filled_size=filled_size,
        filled_price=filled_price,
        nonce=nonce,
    )


def parse_cancel_response(payload: Any, *, nonce: int, order_id: str) -> OrderResult:
    if not isinstance(payload, Mapping) or payload.get("status") != "ok":
        reason = payload.get("response") if isinstance(payload, Mapping) else payload
        return OrderResult(
            success=False,
            state=ExecutionState.REJECTED,
            order_id=order_id,
            error=str(reason or "Cancel failed"),
            nonce=nonce,
        )

    status = _first_status(payload)
    if isinstance(status, Mapping) and "error" in status:
        return OrderResult(
            success=False,
            state=ExecutionState.REJECTED,
            order_id=order_id,
            error=str(status["error"]),
            nonce=nonce,
        )

    return OrderResult(success=True, state=ExecutionState.CONFIRMED, order_id=order_id, nonce=nonce)


class HyperliquidExecutionAdapter:
    """Execution adapter for Hyperliquid.

    Nonce issuance and signing are serialized per adapter by an asyncio lock;
    submission happens after the lock and the signing lease are released.
    Network failures are reported, never retried.
    """

    def __init__(
        self,
        *,
        testnet: bool = False,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
        asset_indices: Optional[Mapping[str, int]] = None,
        nonce_issuer: Optional[NonceIssuer] = None,
        credential_slot: Optional[CredentialSlot] = None,
        retention: CredentialRetention = CredentialRetention.SINGLE_USE,
        session_ttl: Optional[timedelta] = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            testnet: Post to the testnet endpoint instead of mainnet
            timeout_seconds: Default bound for each network call
            client: Optional pre-built HTTP client (owned by the caller)
            asset_indices: Coin -> asset index map used to address cancels
            nonce_issuer: Optional nonce source (one per signing account)
            credential_slot: Optional slot holding the signing capability
            retention: Default retention for capabilities loaded via set_capability
            session_ttl: Default lifetime of a session capability
        """
        self.testnet = testnet
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._owns_client = client is None
        self._asset_indices: dict[str, int] = dict(asset_indices or {})
        self._nonces = nonce_issuer or NonceIssuer()
        self._credentials = credential_slot or CredentialSlot()
        self._signing_lock = asyncio.Lock()
        self.retention = retention
        self.session_ttl = session_ttl

    @classmethod
    def from_settings(cls, settings: ExecutionSettings, **kwargs: Any) -> HyperliquidExecutionAdapter:
        kwargs.setdefault("retention", settings.credential_retention)
        kwargs.setdefault("session_ttl", settings.session_ttl)
        return cls(testnet=settings.testnet, timeout_seconds=settings.timeout_seconds, **kwargs)

    @property
    def api_url(self) -> str:
        return TESTNET_URL if self.testnet else MAINNET_URL

    # ==================== Credential boundary ====================

    def set_capability(
        self,
        capability: SigningCapability,
        *,
        retention: Optional[CredentialRetention] = None,
        session_ttl: Optional[timedelta] = None,
    ) -> None:
        """Load an already-decrypted signing capability supplied by the vault."""
        retention = retention or self.retention
        if session_ttl is None and retention is CredentialRetention.SESSION:
            session_ttl = self.session_ttl
        self._credentials.load(capability, retention=retention, session_ttl=session_ttl)

    def clear_capability(self) -> None:
        self._credentials.clear()

    def is_ready(self) -> bool:
        return self._credentials.is_loaded()

    def get_address(self) -> Optional[str]:
        return self._credentials.address

    # ==================== Execution ====================

    async def execute(self, intent: ExecutionIntent, *, timeout: Optional[float] = None) -> OrderResult:
        if not self.is_ready():
            raise NotReadyError("Signing capability not loaded. Cannot execute order without signing capability.")

        self._transition(ExecutionState.BUILDING, intent.coin)
        action = build_order_action(intent)
        self._asset_indices[intent.coin] = intent.asset_index

        logger.info(
            "Submitting %s %s %s order for %s",
            intent.order_type,
            intent.side,
            _wire_decimal(intent.size),
            intent.coin,
        )
        return await self._sign_and_submit(
            action,
            timeout=timeout,
            parse=lambda payload, nonce: parse_order_response(
                payload, nonce=nonce, client_order_id=intent.client_order_id
            ),
        )

    async def cancel_order(
        self,
        coin: str,
        order_id: str,
        *,
        timeout: Optional[float] = None,
        asset_index: Optional[int] = None,
    ) -> OrderResult:
        if not self.is_ready():
            raise NotReadyError("Signing capability not loaded. Cannot cancel order without signing capability.")

        if asset_index is None:
            asset_index = self._asset_indices.get(coin)
        if asset_index is None:
            raise InvalidOrderError(f"Unknown asset index for {coin}; pass asset_index explicitly")
        try:
            oid = int(order_id)
        except (TypeError, ValueError) as exc:
            raise InvalidOrderError(f"order_id must be numeric, got {order_id!r}") from exc

        self._transition(ExecutionState.BUILDING, coin)
        action = build_cancel_action(asset_index, oid)

        logger.info("Submitting cancel for %s order %s", coin, order_id)
        return await self._sign_and_submit(
            action,
            timeout=timeout,
            parse=lambda payload, nonce: parse_cancel_response(payload, nonce=nonce, order_id=str(order_id)),
        )

    async def _sign_and_submit(
        self,
        action: dict[str, Any],
        *,
        timeout: Optional[float],
        parse: Callable[[Any, int], OrderResult],
    ) -> OrderResult:
        # A task cancelled while waiting here never reaches the signing step
        async with self._signing_lock:
            nonce, signature = self._sign(action)

        self._transition(ExecutionState.SUBMITTED, str(nonce))
        bound = timeout if timeout is not None else self.timeout_seconds
        try:
            payload = await asyncio.wait_for(
                self._post({"action": action, "nonce": nonce, "signature": signature}, bound),
                timeout=bound,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("Submission timed out after %ss (nonce=%s)", bound, nonce)
            self._transition(ExecutionState.NETWORK_FAILED, str(nonce))
            return OrderResult.failure(
                ExecutionState.NETWORK_FAILED, f"Network error: request timed out after {bound}s", nonce=nonce
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Submission failed (nonce=%s): %s", nonce, exc)
            self._transition(ExecutionState.NETWORK_FAILED, str(nonce))
            return OrderResult.failure(ExecutionState.NETWORK_FAILED, f"Network error: {exc}", nonce=nonce)

        result = parse(payload, nonce)
        self._transition(result.state, str(nonce))
        if not result.success:
            logger.warning("Exchange rejected action (nonce=%s): %s", nonce, result.error)
        return result

    def _sign(self, action: Mapping[str, Any]) -> tuple[int, str]:
        with self._credentials.lease() as capability:
            self._transition(ExecutionState.SIGNING, capability.address)
            nonce = self._nonces.next()
            try:
                signature = capability.sign(signing_message(action, nonce))
            except SigningError:
                raise
            except Exception as exc:
                raise SigningError(f"Signing failed: {exc}") from exc
        return nonce, signature

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_seconds)
        return self._client

    async def _post(self, body: dict[str, Any], timeout: float) -> Any:
        client = await self._get_client()
        response = await client.post(self.api_url, json=body, timeout=timeout)
        response.raise_for_status()
        return response.json()

    async def aclose(self) -> None:
        """Wipe any loaded capability and close the HTTP client if we created it."""
        self._credentials.clear()
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _transition(state: ExecutionState, context: str) -> None:
        logger.debug("Execution attempt -> %s (%s)", state.value, context)


def create_hyperliquid_execution_adapter(
    *,
    settings: Optional[ExecutionSettings] = None,
    **kwargs: Any,
) -> HyperliquidExecutionAdapter:
    """Convenience factory reading defaults from the environment."""
    return HyperliquidExecutionAdapter.from_settings(settings or ExecutionSettings.from_env(), **kwargs)
