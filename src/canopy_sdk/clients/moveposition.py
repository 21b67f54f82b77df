"""MovePosition lending API client (portfolio state and signed packets)."""

from __future__ import annotations

import asyncio
from typing import Any, TypedDict

import requests

from ..constants import (
    MOVEPOSITION_LEND_PATH,
    MOVEPOSITION_PORTFOLIOS_PATH,
    MOVEPOSITION_REDEEM_PATH,
)
from ..domain import Operation
from ..logger import get_logger

logger = get_logger(__name__)


class PortfolioEntry(TypedDict):
    instrumentId: str
    amount: str


class PortfolioState(TypedDict):
    collaterals: list[PortfolioEntry]
    liabilities: list[PortfolioEntry]


class CreatePacketRequest(TypedDict):
    amount: str
    network: str
    signerPubkey: str
    currentPortfolioState: PortfolioState
    brokerName: str


class MovePositionAPIError(Exception):
    """Raised when the MovePosition API answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int, body: str):
        super().__init__(f"{message} (status {status_code}): {body}")
        self.status_code = status_code
        self.body = body


class MovePositionClient:
    def __init__(
        self,
        api_url: str,
        *,
        request_timeout: float = 15.0,
        session: requests.Session | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self._request_timeout = request_timeout
        self._session = session or requests.Session()

    async def _request(self, method: str, url: str, context: str, **kwargs: Any) -> Any:
        response = await asyncio.to_thread(
            self._session.request,
            method,
            url,
            headers={"Content-Type": "application/json"},
            timeout=self._request_timeout,
            **kwargs,
        )
        if not response.ok:
            raise MovePositionAPIError(context, response.status_code, response.text)
        return response.json()

    async def get_portfolio(self, address: str) -> PortfolioState:
        """Fetch ``address``'s portfolio, reduced to instrument ids and amounts."""
        portfolio = await self._request(
            "GET",
            f"{self.api_url}{MOVEPOSITION_PORTFOLIOS_PATH}{address}",
            "Failed to fetch portfolio data",
        )
        return {
            "collaterals": [
                {"instrumentId": c["instrument"]["name"], "amount": c["amount"]}
                for c in portfolio.get("collaterals") or []
            ],
            "liabilities": [
                {"instrumentId": lb["instrument"]["name"], "amount": lb["amount"]}
                for lb in portfolio.get("liabilities") or []
            ],
        }

    async def create_packet(
        self, operation: Operation, request: CreatePacketRequest
    ) -> str:
        """Request a signed packet; returns the packet as a hex string."""
        path = MOVEPOSITION_LEND_PATH if operation == "deposit" else MOVEPOSITION_REDEEM_PATH
        logger.debug(
            "Requesting %s packet for %s (broker=%s, amount=%s)",
            operation,
            request["signerPubkey"],
            request["brokerName"],
            request["amount"],
        )
        body = await self._request(
            "POST", f"{self.api_url}{path}", "Failed to create packet", json=request
        )
        packet = body.get("packet") if isinstance(body, dict) else None
        if not isinstance(packet, str):
            raise ValueError(f"MovePosition response has no packet: {body!r}")
        return packet
