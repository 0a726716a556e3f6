"""
Ledger Error Types

One exception class per failure kind. Each carries exactly the data a
caller needs to build a precise message, never a preformatted string only.
"""

from typing import Union


class LedgerError(Exception):
    """Base class for all errors raised by the ledger core"""


class PolicyViolation(LedgerError):
    """A transfer request breaks a domain rule; expected and user-facing"""


class BelowMinimum(PolicyViolation):
    def __init__(self, min_amount: int):
        self.min_amount = min_amount
        super().__init__(f"Transfer amount is below the minimum of {min_amount}")


class SelfTransfer(PolicyViolation):
    def __init__(self):
        super().__init__("Payer and payee must be different accounts")


class SendLimitExceeded(PolicyViolation):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Payer can send at most {limit}")


class ReceiveLimitExceeded(PolicyViolation):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Payee can receive at most {limit}")


class MessageTooLong(PolicyViolation):
    def __init__(self, max_length: int):
        self.max_length = max_length
        super().__init__(f"Transfer message is longer than {max_length} characters")


class AccountNotFound(LedgerError):
    def __init__(self, account_id: Union[int, str]):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class AuthError(LedgerError):
    """Unknown account name or wrong credential; deliberately indistinct"""

    def __init__(self):
        super().__init__("Invalid credentials")


class StorageFailure(LedgerError):
    """The storage collaborator failed; nothing was committed"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Storage failure: {detail}")


class InvariantViolation(LedgerError):
    """Must not happen: an internal consistency rule was broken"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Invariant violated: {detail}")
