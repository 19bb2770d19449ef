"""Pytest configuration and shared fixtures."""

import json
from typing import Any, Callable, Optional, Union

import pytest

from feeflow_app.distribution.pool import PoolClient, PoolSnapshot, PoolState, PreBond
from feeflow_app.errors import SettlementFailure
from feeflow_app.execution.settlement import SettlementClient
from feeflow_app.execution.trade_client import TradeResult

TOKEN_MINT = "TestMint11111111111111111111111111111111111"
WALLET = "OperatingWallet1111111111111111111111111111"

CLAIM_PAYLOAD = b"claim-tx"
TRADE_PAYLOAD = b"trade-tx"


class SleepRecorder:
    """Awaitable stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeClock:
    """Manual monotonic clock whose sleep advances time."""

    def __init__(self, now: float = 100.0):
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSettlementClient(SettlementClient):
    """
    In-memory settlement network.

    ``send_errors`` is consumed one entry per send: None lets the send
    succeed, an exception instance is raised. Sending the claim payload
    credits ``claim_credit`` to the quote balance. ``token_balances`` is a
    queue of token balance reads; once empty ``token_balance`` is returned.
    """

    def __init__(self, balance: int = 10_000_000_000, token_balance: int = 0,
                 claim_credit: int = 0):
        self.balance = balance
        self.token_balance = token_balance
        self.token_balances: list[int] = []
        self.claim_credit = claim_credit
        self.send_errors: list[Optional[Exception]] = []
        self.transfer_error: Optional[Exception] = None
        self.burn_error: Optional[Exception] = None
        self.confirm = True

        self.sent: list[bytes] = []
        self.transfers: list[tuple[str, int]] = []
        self.burns: list[tuple[str, int]] = []
        self._counter = 0

    @property
    def wallet_address(self) -> str:
        return WALLET

    def _signature(self, kind: str) -> str:
        self._counter += 1
        return f"{kind}-sig-{self._counter}"

    async def get_balance(self) -> int:
        return self.balance

    async def send_transaction(self, payload: bytes) -> str:
        if self.send_errors:
            error = self.send_errors.pop(0)
            if error is not None:
                raise error
        self.sent.append(payload)
        if payload == CLAIM_PAYLOAD:
            self.balance += self.claim_credit
        return self._signature("tx")

    async def confirm_transaction(self, signature: str) -> bool:
        return self.confirm

    async def transfer(self, destination: str, amount: int) -> str:
        if self.transfer_error is not None:
            raise self.transfer_error
        self.transfers.append((destination, amount))
        self.balance -= amount
        return self._signature("transfer")

    async def get_token_account_balance(self, mint: str) -> int:
        if self.token_balances:
            return self.token_balances.pop(0)
        return self.token_balance

    async def burn(self, mint: str, amount: int) -> str:
        if self.burn_error is not None:
            raise self.burn_error
        self.burns.append((mint, amount))
        self.token_balance = max(0, self.token_balance - amount)
        return self._signature("burn")


class FakePoolClient(PoolClient):
    """Pool client returning a fixed state and recording deposits."""

    def __init__(self, state: Optional[PoolState] = None):
        self.state = state if state is not None else PreBond()
        self.state_reads = 0
        self.deposits: list[dict[str, Any]] = []
        self.deposit_error: Optional[Exception] = None
        self.state_error: Optional[Exception] = None

    async def get_pool_state(self, mint: str) -> PoolState:
        self.state_reads += 1
        if self.state_error is not None:
            raise self.state_error
        return self.state

    async def deposit(self, snapshot: PoolSnapshot, base_amount: int,
                      max_quote_amount: int, lp_amount: int) -> str:
        if self.deposit_error is not None:
            raise self.deposit_error
        self.deposits.append({
            "pool": snapshot.pool_address,
            "base_amount": base_amount,
            "max_quote_amount": max_quote_amount,
            "lp_amount": lp_amount,
        })
        return f"deposit-sig-{len(self.deposits)}"


class StubTradeClient:
    """
    Trade client double for channel tests.

    ``results`` is consumed one entry per buy or sell: a TradeResult is
    returned, an exception is raised. ``on_buy`` runs after every
    successful buy (e.g. to simulate tokens arriving).
    """

    def __init__(self):
        self.results: list[Union[TradeResult, Exception]] = []
        self.buys: list[int] = []
        self.sells: list[int] = []
        self.on_buy: Optional[Callable[[int], None]] = None
        self._counter = 0

    def _next(self) -> TradeResult:
        if self.results:
            result = self.results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        self._counter += 1
        return TradeResult(success=True, signature=f"trade-sig-{self._counter}")

    async def buy(self, mint: str, quote_amount: int) -> TradeResult:
        self.buys.append(quote_amount)
        result = self._next()
        if result.executed and self.on_buy is not None:
            self.on_buy(quote_amount)
        return result

    async def sell(self, mint: str, token_amount: int) -> TradeResult:
        self.sells.append(token_amount)
        return self._next()


class FakeResponse:
    """Minimal aiohttp response usable as an async context manager."""

    def __init__(self, status: int = 200, body: bytes = b"", json_data: Any = None):
        self.status = status
        self._body = body
        self._json = json_data

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def read(self) -> bytes:
        return self._body

    async def text(self) -> str:
        return self._body.decode()

    async def json(self, content_type: Optional[str] = None) -> Any:
        if self._json is not None:
            return self._json
        return json.loads(self._body.decode())


class FakeSession:
    """
    aiohttp.ClientSession double.

    ``post_handler`` maps (url, form fields) to a response. GET responses
    are looked up by URL; an exception in either place is raised from the
    request call. Unknown GET URLs answer 404.
    """

    def __init__(self, post_handler: Optional[Callable[[str, dict], Any]] = None,
                 get_routes: Optional[dict[str, Any]] = None):
        self.post_handler = post_handler or (lambda url, data: FakeResponse(body=TRADE_PAYLOAD))
        self.get_routes = get_routes or {}
        self.posts: list[tuple[str, dict]] = []
        self.gets: list[tuple[str, Optional[dict]]] = []
        self.closed = False

    def post(self, url: str, data: Optional[dict] = None, **kwargs: Any) -> FakeResponse:
        self.posts.append((url, dict(data or {})))
        response = self.post_handler(url, dict(data or {}))
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url: str, params: Optional[dict] = None, **kwargs: Any) -> FakeResponse:
        self.gets.append((url, params))
        response = self.get_routes.get(url, FakeResponse(status=404))
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


def trade_api_handler(claim_body: bytes = CLAIM_PAYLOAD) -> Callable[[str, dict], FakeResponse]:
    """Trade API answering claims with ``claim_body`` and trades with a payload."""
    def handler(url: str, data: dict) -> FakeResponse:
        if data.get("action") == "collectCreatorFee":
            return FakeResponse(body=claim_body)
        return FakeResponse(body=TRADE_PAYLOAD)
    return handler


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settlement() -> FakeSettlementClient:
    return FakeSettlementClient()


@pytest.fixture
def trade_stub() -> StubTradeClient:
    return StubTradeClient()


@pytest.fixture
def rising_prices() -> list[float]:
    """Fifteen strictly increasing prices."""
    return [1.0 + i * 0.01 for i in range(15)]


@pytest.fixture
def falling_prices() -> list[float]:
    """Fifteen strictly decreasing prices."""
    return [2.0 - i * 0.01 for i in range(15)]
