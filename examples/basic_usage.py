#!/usr/bin/env python3
"""
Basic Usage Example - Feeflow Fee Distribution Engine

This script demonstrates the basic usage of the fee distribution engine
against a paper wallet. It shows how to:
- Initialize the engine with a settlement client
- Feed price ticks into the market analyzer
- Change allocations and toggle channels
- Distribute a claimed amount and inspect the results

No network access is needed: the trade API is replaced by a paper client
that returns a dummy transaction.

Run: python examples/basic_usage.py
"""

import asyncio
import json
import math

from feeflow_app.engine import FeeEngine
from feeflow_app.execution.settlement import SettlementClient
from feeflow_app.execution.trade_client import TradeClient
from feeflow_app.logging.config import configure_logging

MINT = "ExampleMint1111111111111111111111111111111111"


class PaperSettlement(SettlementClient):
    """Settlement client that only counts what it was asked to do."""

    def __init__(self):
        self.submitted = 0
        self.burned = 0
        self.tokens = 0

    @property
    def wallet_address(self) -> str:
        return "PaperWallet11111111111111111111111111111111"

    async def get_balance(self) -> int:
        return 5_000_000_000

    async def send_transaction(self, payload: bytes) -> str:
        self.submitted += 1
        self.tokens += 1_000_000
        return f"paper-{self.submitted}"

    async def confirm_transaction(self, signature: str) -> bool:
        return True

    async def transfer(self, destination: str, amount: int) -> str:
        return f"paper-transfer-{amount}"

    async def get_token_account_balance(self, mint: str) -> int:
        return self.tokens

    async def burn(self, mint: str, amount: int) -> str:
        self.tokens -= amount
        self.burned += amount
        return f"paper-burn-{amount}"


class PaperTradeClient(TradeClient):
    """Trade client that skips the HTTP round trip."""

    async def _request_transaction(self, fields: dict[str, str], operation: str) -> bytes:
        return f"{fields['action']}:{fields.get('amount', '')}".encode()


async def no_wait(seconds: float) -> None:
    return None


def print_section(title: str) -> None:
    print(f"\n=== {title} ===")


async def main() -> None:
    configure_logging(level="WARNING")

    settlement = PaperSettlement()
    engine = FeeEngine(
        MINT,
        settlement=settlement,
        trade_client=PaperTradeClient(settlement, sleep=no_wait),
        sleep=no_wait,
    )

    print_section("Feeding price ticks")
    for i in range(40):
        price = 0.002 * (1 + 0.05 * math.sin(i / 4))
        engine.analyzer.add_data_point(price=price, volume=1_000 + 50 * i)
    analysis = engine.analyzer.get_analysis().to_dict()
    print(f"RSI: {analysis['metrics']['rsi']:.1f}")
    print(f"Buy score: {analysis['buy_score']}  confidence: {analysis['confidence']}")
    print(f"Recommendation: {analysis['recommendation']['action']}")

    print_section("Allocations")
    engine.set_allocations({"market_making": 40, "buyback_burn": 30,
                            "liquidity": 20, "creator_revenue": 10})
    engine.set_feature_enabled("liquidity", False)
    print(json.dumps(engine.get_status()["allocations"], indent=2))

    print_section("Distributing 1 SOL")
    result = await engine.distribute_fees(1_000_000_000)
    print(json.dumps(result.to_dict(), indent=2))
    print(f"Transactions submitted: {settlement.submitted}, tokens burned: {settlement.burned}")

    print_section("Cumulative stats")
    stats = engine.get_status()["stats"]
    print(f"Distributed: {stats['total_distributed']}  pending retry: {stats['pending_retry']}")

    await engine.close()


if __name__ == "__main__":
    asyncio.run(main())
