"""
Settlement network client interface.

The engine never holds keys: signing and submission are delegated to an
implementation of this interface supplied by the host application.
"""

from abc import ABC, abstractmethod


class SettlementClient(ABC):
    """Abstract client for the settlement network the operating wallet lives on."""

    @property
    @abstractmethod
    def wallet_address(self) -> str:
        """Public address of the operating wallet."""

    @abstractmethod
    async def get_balance(self) -> int:
        """Spendable quote balance of the operating wallet, in smallest units."""

    @abstractmethod
    async def send_transaction(self, payload: bytes) -> str:
        """
        Sign and submit a serialized transaction.

        Returns:
            Transaction signature

        Raises:
            SettlementFailure: The network rejected the transaction
            TransientNetworkError: The network could not be reached
        """

    @abstractmethod
    async def confirm_transaction(self, signature: str) -> bool:
        """Wait for confirmation; False when the transaction did not land."""

    @abstractmethod
    async def transfer(self, destination: str, amount: int) -> str:
        """Transfer ``amount`` quote units to ``destination``; returns the signature."""

    @abstractmethod
    async def get_token_account_balance(self, mint: str) -> int:
        """Token balance held by the operating wallet, 0 when no account exists."""

    @abstractmethod
    async def burn(self, mint: str, amount: int) -> str:
        """Burn ``amount`` tokens of ``mint``; returns the signature."""
