from __future__ import annotations

from typing import Optional, Protocol

from dealer.types import ExecutionIntent, OrderResult


class ExecutionAdapter(Protocol):
    """The one interface an exchange integration must implement.

    Implementations own the only code path that touches a signing capability.
    ``execute`` and ``cancel_order`` raise ``NotReadyError`` before any network
    or cryptographic work when no capability is loaded, and ``SigningError``
    when signing fails. Network and exchange failures are returned as
    ``OrderResult`` data, never raised.
    """

    def is_ready(self) -> bool:
        """True iff a signing capability is currently loaded."""

    def get_address(self) -> Optional[str]:
        """Public account bound to the loaded capability, or None."""

    async def execute(self, intent: ExecutionIntent, *, timeout: Optional[float] = None) -> OrderResult:
        """Build, sign and submit an order for ``intent``."""

    async def cancel_order(self, coin: str, order_id: str, *, timeout: Optional[float] = None) -> OrderResult:
        """Build, sign and submit a cancel for ``order_id``."""
