"""
Mutual-Credit Ledger Engine

A Domain is one closed pool of accounts whose balances always sum to zero.
Every transfer debits the payer, credits the payee and appends the transfer
record as a single atomic batch, so no reader can ever observe a state where
only part of a transfer has been applied.

All operations on a Domain are serialized through one re-entrant lock held
for the whole logical operation.
"""

from datetime import datetime, timezone
from dataclasses import dataclass, field, replace
from typing import List, Optional
import threading

from .accounts import Account, Transfer, ACCOUNTS_TABLE, TRANSFERS_TABLE
from .config import SimpletsConfig, get_config
from .credentials import hash_credential, verify_credential
from .errors import (
    AccountNotFound, AuthError, InvariantViolation, MessageTooLong, StorageFailure
)
from .limits import LimitFormula, AccountLimits, account_limits, receive_limit, DEFAULT_FORMULA
from .logging_config import get_logger, log_action
from .storage import (
    AtomicBatch, DuplicateRecordError, StorageError, StorageInterface, create_storage
)
from .validation import validate_transfer


@dataclass
class HealthReport:
    """Pool-wide integrity snapshot"""
    total_balance: int
    account_count: int
    over_receive_limit: List[Account] = field(default_factory=list)

    @property
    def is_balanced(self) -> bool:
        return self.total_balance == 0


class Domain:
    """
    Handle to the shared state of one mutual-credit ledger
    """

    def __init__(
        self,
        storage: StorageInterface,
        name: str = "clets",
        description: str = "",
        minimal_amount: int = 10,
        max_message_length: int = 140,
        formula: LimitFormula = DEFAULT_FORMULA,
        default_permission_tier: int = 1
    ):
        self.storage = storage
        self.name = name
        self.description = description
        self.minimal_amount = minimal_amount
        self.max_message_length = max_message_length
        self.formula = formula
        self.default_permission_tier = default_permission_tier
        self._lock = threading.RLock()
        self._last_account_id = 0
        self.logger = get_logger("simplets.ledger")

    @classmethod
    def from_config(
        cls,
        cfg: Optional[SimpletsConfig] = None,
        storage: Optional[StorageInterface] = None
    ) -> 'Domain':
        """Build a domain from configuration, opening its storage backend"""
        cfg = cfg or get_config()
        return cls(
            storage=storage or create_storage(cfg.database_url),
            name=cfg.domain_name,
            description=cfg.domain_description,
            minimal_amount=cfg.minimal_amount,
            max_message_length=cfg.max_message_length,
            formula=LimitFormula.from_preset(cfg.limit_preset),
            default_permission_tier=cfg.default_permission_tier,
        )

    def close(self) -> None:
        with self._lock:
            self.storage.close()

    # Accounts

    def create_account(
        self,
        display_name: str,
        credential_secret: str,
        permission_tier: Optional[int] = None
    ) -> int:
        """
        Create an account with zero balance and counters

        Args:
            display_name: Label shown to other members
            credential_secret: Secret used later by authenticate()
            permission_tier: Reserved authorization flag

        Returns:
            The new account id

        Raises:
            StorageFailure: If the store rejects the insert
        """
        digest = hash_credential(credential_secret)
        with self._lock:
            now = datetime.now(timezone.utc)
            account = Account(
                id=self._next_account_id(now),
                created_at=now,
                display_name=display_name,
                credential_digest=digest,
                permission_tier=(
                    self.default_permission_tier if permission_tier is None else permission_tier
                ),
            )
            try:
                self.storage.insert(ACCOUNTS_TABLE, account.record_key, account.to_dict())
            except DuplicateRecordError as e:
                raise StorageFailure(f"account id {account.id} already taken") from e
            except StorageError as e:
                raise StorageFailure(str(e)) from e

        log_action(
            self.logger, "info", "Account created",
            account_id=account.id, action="create_account",
            resource=f"account:{account.id}",
            extra={"display_name": display_name}
        )
        return account.id

    def authenticate(self, display_name: str, credential_secret: str) -> int:
        """Return the id of the named account if the secret matches"""
        with self._lock:
            try:
                account = self.get_account_by_name(display_name)
            except AccountNotFound:
                raise AuthError() from None
        if not verify_credential(credential_secret, account.credential_digest):
            raise AuthError()
        return account.id

    def change_credential(self, account_id: int, old_secret: str, new_secret: str) -> None:
        """Replace the credential digest after checking the old secret"""
        with self._lock:
            account = self.get_account(account_id)
            if not verify_credential(old_secret, account.credential_digest):
                raise AuthError()
            updated = replace(account, credential_digest=hash_credential(new_secret))
            try:
                self.storage.save(ACCOUNTS_TABLE, updated.record_key, updated.to_dict())
            except StorageError as e:
                raise StorageFailure(str(e)) from e

        log_action(
            self.logger, "info", "Credential changed",
            account_id=account_id, action="change_credential",
            resource=f"account:{account_id}"
        )

    def get_account(self, account_id: int) -> Account:
        with self._lock:
            data = self._query(lambda: self.storage.load(ACCOUNTS_TABLE, str(account_id)))
        if not data:
            raise AccountNotFound(account_id)
        return Account.from_dict(data)

    def get_account_by_name(self, display_name: str) -> Account:
        """First account (by creation order) carrying ``display_name``"""
        with self._lock:
            found = self._query(
                lambda: self.storage.find(ACCOUNTS_TABLE, {"display_name": display_name})
            )
        if not found:
            raise AccountNotFound(display_name)
        return min((Account.from_dict(data) for data in found), key=lambda a: a.id)

    def list_accounts(self) -> List[Account]:
        with self._lock:
            rows = self._query(lambda: self.storage.load_all(ACCOUNTS_TABLE))
        return sorted((Account.from_dict(data) for data in rows), key=lambda a: a.id)

    def account_limits(self, account_id: int) -> AccountLimits:
        return account_limits(self.get_account(account_id), self.formula)

    # Transfers

    def list_transfers(self) -> List[Transfer]:
        with self._lock:
            rows = self._query(lambda: self.storage.load_all(TRANSFERS_TABLE))
        return sorted((Transfer.from_dict(data) for data in rows), key=lambda t: t.id)

    def list_transfers_for(self, account_id: int) -> List[Transfer]:
        """All transfers touching the account, newest first"""
        transfers = [t for t in self.list_transfers() if t.involves(account_id)]
        transfers.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return transfers

    def transfer(self, payer_id: int, payee_id: int, amount: int, message: str = "") -> Transfer:
        """
        Move ``amount`` from payer to payee

        Loads both accounts, validates the transfer against the domain's
        minimum and both parties' limits, checks the message bound, then
        applies the payer debit, the payee credit and the transfer record as
        one atomic batch.

        Args:
            payer_id: Sending account
            payee_id: Receiving account
            amount: Quantity to move
            message: Free text shown with the transfer

        Returns:
            The committed Transfer

        Raises:
            AccountNotFound: payer or payee does not exist
            PolicyViolation: the validator rejected the transfer
            MessageTooLong: message exceeds max_message_length
            StorageFailure: the store failed; nothing was written
        """
        with self._lock:
            try:
                with self.storage.atomic():
                    transfer = self._apply_transfer(payer_id, payee_id, amount, message)
            except StorageError as e:
                raise StorageFailure(str(e)) from e

        log_action(
            self.logger, "info", "Transfer committed",
            account_id=payer_id, action="transfer",
            resource=f"transfer:{transfer.id}",
            extra={
                "payer_id": payer_id,
                "payee_id": payee_id,
                "amount": amount,
            }
        )
        return transfer

    def _apply_transfer(self, payer_id: int, payee_id: int, amount: int, message: str) -> Transfer:
        payer = self._load_account(payer_id)
        payee = self._load_account(payee_id)

        validate_transfer(payer, payee, amount, self.minimal_amount, self.formula)
        if len(message) > self.max_message_length:
            raise MessageTooLong(self.max_message_length)

        debited = payer.debited(amount)
        credited = payee.credited(amount)

        transfer = Transfer(
            id=self.storage.count(TRANSFERS_TABLE) + 1,
            created_at=datetime.now(timezone.utc),
            payer_id=payer.id,
            payee_id=payee.id,
            amount=amount,
            message=message,
        )

        batch = AtomicBatch()
        batch.save(ACCOUNTS_TABLE, debited.record_key, debited.to_dict())
        batch.save(ACCOUNTS_TABLE, credited.record_key, credited.to_dict())
        batch.insert(TRANSFERS_TABLE, transfer.record_key, transfer.to_dict())
        self.storage.apply_batch(batch)
        return transfer

    def _load_account(self, account_id: int) -> Account:
        data = self.storage.load(ACCOUNTS_TABLE, str(account_id))
        if not data:
            raise AccountNotFound(account_id)
        return Account.from_dict(data)

    # Integrity

    def total_balance(self) -> int:
        return sum(account.balance for account in self.list_accounts())

    def check_integrity(self) -> None:
        """Raise InvariantViolation unless the pool sums to zero"""
        total = self.total_balance()
        if total != 0:
            raise InvariantViolation(f"account balances sum to {total}, expected 0")

    def healthcheck(self) -> HealthReport:
        """
        Pool-wide report: balance sum and accounts already holding more
        than their receive ceiling allows
        """
        with self._lock:
            accounts = self.list_accounts()
        return HealthReport(
            total_balance=sum(account.balance for account in accounts),
            account_count=len(accounts),
            over_receive_limit=[
                account for account in accounts
                if receive_limit(account, self.formula) < 0
            ],
        )

    def _next_account_id(self, now: datetime) -> int:
        # Microseconds since the epoch, strictly increasing within this process
        candidate = int(now.timestamp() * 1_000_000)
        self._last_account_id = max(candidate, self._last_account_id + 1)
        return self._last_account_id

    def _query(self, load):
        try:
            return load()
        except StorageError as e:
            raise StorageFailure(str(e)) from e
