"""
Account and Transfer Records

Accounts hold a signed integer balance: a negative balance is credit drawn
from the pool. Transfers are immutable once recorded and reference the two
accounts by id only.
"""

from dataclasses import dataclass, replace

from .storage import StorageRecord


ACCOUNTS_TABLE = "accounts"
TRANSFERS_TABLE = "transfers"


@dataclass
class Account(StorageRecord):
    """
    Member account of a mutual-credit domain
    """
    display_name: str
    balance: int = 0
    transfers_received_count: int = 0
    transfers_sent_count: int = 0
    credential_digest: str = ""
    permission_tier: int = 1

    def __post_init__(self):
        if self.transfers_received_count < 0 or self.transfers_sent_count < 0:
            raise ValueError("Transfer counters cannot be negative")

    @property
    def record_key(self) -> str:
        return str(self.id)

    def debited(self, amount: int) -> 'Account':
        """Copy of this account after sending ``amount``"""
        return replace(
            self,
            balance=self.balance - amount,
            transfers_sent_count=self.transfers_sent_count + 1
        )

    def credited(self, amount: int) -> 'Account':
        """Copy of this account after receiving ``amount``"""
        return replace(
            self,
            balance=self.balance + amount,
            transfers_received_count=self.transfers_received_count + 1
        )


@dataclass
class Transfer(StorageRecord):
    """
    Committed movement of value from payer to payee
    """
    payer_id: int
    payee_id: int
    amount: int
    message: str = ""

    def __post_init__(self):
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise TypeError("Transfer amount must be an integer")
        if self.amount <= 0:
            raise ValueError("Transfer amount must be positive")
        if self.payer_id == self.payee_id:
            raise ValueError("Transfer sides must differ")

    @property
    def record_key(self) -> str:
        return str(self.id)

    def involves(self, account_id: int) -> bool:
        return account_id in (self.payer_id, self.payee_id)
