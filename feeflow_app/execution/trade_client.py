"""
Trade-execution API client.

Requests a signable transaction from the trade API (HTTP form POST), hands
it to the settlement client for signing and submission, and reports the
outcome. Every submission goes through the rate limiter and the retry
policy; only transient failures are retried.
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable, Optional

import aiohttp
import structlog

from ..config.defaults import RetryParams, TradeParams
from ..errors import (
    BusinessRejection,
    ExecutionError,
    TradeRequestError,
    TransientNetworkError,
)
from ..models.distribution import ClaimResult
from .rate_limit import RateLimiter
from .retry import RetryPolicy, retry_async
from .settlement import SettlementClient

logger = structlog.get_logger(__name__)

ALREADY_PROCESSED = "already been processed"
NO_FEES = "no fees"


@dataclass(frozen=True)
class TradeResult:
    """
    Outcome of a trade submission.

    A business rejection is a success with no signature: nothing happened
    and nothing should be retried.
    """
    success: bool
    signature: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def executed(self) -> bool:
        return self.success and self.signature is not None


def to_ui_amount(amount: int, decimals: int) -> str:
    """Convert smallest units to the decimal string the trade API expects."""
    return format(Decimal(amount).scaleb(-decimals).normalize(), "f")


def classify_http_error(status: int, body: str, operation: str) -> ExecutionError:
    """Map a non-200 trade API response to the execution error taxonomy."""
    lowered = body.lower()
    if ALREADY_PROCESSED in lowered:
        return BusinessRejection(body or "Already processed", reason="already_processed",
                                 operation=operation)
    if status == 404 or NO_FEES in lowered:
        return BusinessRejection(body or "Nothing to claim", reason="nothing_to_claim",
                                 operation=operation)
    if status == 429 or status >= 500:
        return TransientNetworkError(f"Trade API returned {status}: {body[:200]}",
                                     operation=operation, status_code=status)
    return TradeRequestError(f"Trade API returned {status}: {body[:200]}",
                             operation=operation, status_code=status)


class TradeClient:
    """Rate-limited, retrying client for trades and fee claims."""

    def __init__(
        self,
        settlement: SettlementClient,
        params: Optional[TradeParams] = None,
        retry_policy: Optional[RetryPolicy] = None,
        session: Optional[aiohttp.ClientSession] = None,
        rate_limiter: Optional[RateLimiter] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settlement = settlement
        self.params = params or TradeParams()
        self.retry_policy = retry_policy or RetryPolicy.from_params(RetryParams())
        self.rate_limiter = rate_limiter or RateLimiter(self.params.min_call_interval, sleep=sleep)
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep

    @property
    def wallet_address(self) -> str:
        return self.settlement.wallet_address

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.params.request_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "TradeClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _request_transaction(self, fields: dict[str, str], operation: str) -> bytes:
        """POST the form to the trade API and return the raw transaction payload."""
        url = f"{self.params.api_url}/trade-local"
        try:
            async with self._get_session().post(url, data=fields) as response:
                if response.status != 200:
                    body = await response.text()
                    raise classify_http_error(response.status, body, operation)
                return await response.read()
        except aiohttp.ClientError as e:
            raise TransientNetworkError(f"Network error: {e}", operation=operation) from e
        except asyncio.TimeoutError as e:
            raise TransientNetworkError("Request timeout", operation=operation) from e

    def _trade_fields(self, action: str, mint: str, amount: int) -> dict[str, str]:
        is_buy = action == "buy"
        decimals = self.params.quote_decimals if is_buy else self.params.token_decimals
        return {
            "publicKey": self.wallet_address,
            "action": action,
            "mint": mint,
            "amount": to_ui_amount(amount, decimals),
            "denominatedInSol": "true" if is_buy else "false",
            "slippage": str(self.params.slippage_pct),
            "priorityFee": str(self.params.priority_fee),
            "pool": self.params.pool,
        }

    async def trade(self, action: str, mint: str, amount: int) -> TradeResult:
        """
        Submit a buy or sell.

        Args:
            action: "buy" (amount in quote units) or "sell" (amount in token units)
            mint: Token mint address
            amount: Amount in smallest units

        Returns:
            TradeResult; never raises for execution failures
        """
        if action not in ("buy", "sell"):
            raise ValueError(f"Unsupported trade action: {action}")

        fields = self._trade_fields(action, mint, amount)
        operation = f"trade:{action}"

        async def attempt() -> str:
            await self.rate_limiter.wait()
            payload = await self._request_transaction(fields, operation)
            signature = await self.settlement.send_transaction(payload)
            await self._sleep(self.params.settle_delay)
            return signature

        try:
            signature = await retry_async(attempt, self.retry_policy, operation=operation,
                                          sleep=self._sleep)
        except BusinessRejection as e:
            logger.info("Trade rejected without effect", action=action, mint=mint,
                        amount=amount, reason=e.reason)
            return TradeResult(success=True, reason=e.reason)
        except ExecutionError as e:
            logger.warning("Trade failed", action=action, mint=mint, amount=amount,
                           error=str(e), error_type=type(e).__name__,
                           retries=getattr(e, "retry_count", 0))
            return TradeResult(success=False, error=str(e))

        logger.info("Trade submitted", action=action, mint=mint, amount=amount,
                    signature=signature)
        return TradeResult(success=True, signature=signature)

    async def buy(self, mint: str, quote_amount: int) -> TradeResult:
        return await self.trade("buy", mint, quote_amount)

    async def sell(self, mint: str, token_amount: int) -> TradeResult:
        return await self.trade("sell", mint, token_amount)

    async def claim_fees(self, mint: str) -> ClaimResult:
        """
        Claim accumulated creator fees for ``mint``.

        The claimed amount is the balance delta across the claim plus the
        estimated network fee, floored at 0. "Already processed" and "nothing
        to claim" outcomes are successful claims of 0.
        """
        fields = {
            "publicKey": self.wallet_address,
            "action": "collectCreatorFee",
            "mint": mint,
            "priorityFee": str(self.params.claim_priority_fee),
        }

        async def attempt() -> bytes:
            await self.rate_limiter.wait()
            return await self._request_transaction(fields, "claim")

        try:
            payload = await retry_async(
                attempt,
                self.retry_policy,
                operation="claim",
                sleep=self._sleep,
            )
            if not payload:
                logger.info("No claim transaction returned", mint=mint)
                return ClaimResult(claimed=0, reason="nothing_to_claim")

            balance_before = await self.settlement.get_balance()
            signature = await self.settlement.send_transaction(payload)
            await self._sleep(self.params.claim_settle_delay)
            balance_after = await self.settlement.get_balance()

        except BusinessRejection as e:
            reason = "already_claimed" if e.reason == "already_processed" else e.reason
            logger.info("Claim produced no fees", mint=mint, reason=reason)
            return ClaimResult(claimed=0, reason=reason)
        except ExecutionError as e:
            logger.error("Claim failed", mint=mint, error=str(e), error_type=type(e).__name__)
            return ClaimResult(claimed=0, error=str(e))

        claimed = max(0, balance_after - balance_before + self.params.claim_tx_fee)
        if claimed == 0:
            logger.info("Claim landed without balance change", mint=mint, signature=signature)
        else:
            logger.info("Fees claimed", mint=mint, claimed=claimed, signature=signature)

        return ClaimResult(claimed=claimed, signature=signature)
