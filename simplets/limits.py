"""
Limit Calculator

Pure functions deriving how much an account may send or receive right now
from its balance and transfer counters. Limits are never clamped at zero:
a negative limit means the account is already beyond its ceiling and any
transfer in that direction must be rejected.

    receive_limit = floor(sqrt(sent + receive_offset) * receive_scale)
                    + receive_base - balance
    credit_limit  = floor((received * credit_multiplier + credit_offset)
                          ** credit_exponent * credit_scale) - credit_base
    send_limit    = credit_limit + balance
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict

from .accounts import Account


@dataclass(frozen=True)
class LimitFormula:
    """Parameters of the receive and credit curves"""
    receive_scale: float = 2500
    receive_base: int = 2500
    receive_offset: int = 0
    credit_multiplier: int = 2
    credit_offset: int = 0
    credit_exponent: float = 0.65
    credit_scale: float = 200
    credit_base: int = 0

    @classmethod
    def standard(cls) -> 'LimitFormula':
        return cls()

    @classmethod
    def legacy(cls) -> 'LimitFormula':
        """Square-root curves used by the first deployments"""
        return cls(
            receive_scale=2500,
            receive_base=0,
            receive_offset=1,
            credit_multiplier=1,
            credit_offset=1,
            credit_exponent=0.5,
            credit_scale=1000,
            credit_base=1000,
        )

    @classmethod
    def from_preset(cls, name: str) -> 'LimitFormula':
        try:
            return LIMIT_PRESETS[name.lower()]()
        except KeyError:
            raise ValueError(
                f"Unknown limit preset {name!r}; expected one of {sorted(LIMIT_PRESETS)}"
            ) from None


LIMIT_PRESETS: Dict[str, Callable[[], LimitFormula]] = {
    "standard": LimitFormula.standard,
    "legacy": LimitFormula.legacy,
}

DEFAULT_FORMULA = LimitFormula()


class LimitKind(Enum):
    """Which side of a transfer binds the amount"""
    SEND = "send"
    RECEIVE = "receive"


@dataclass(frozen=True)
class PaymentLimit:
    """The tighter of the payer's send limit and the payee's receive limit"""
    kind: LimitKind
    bound: int


@dataclass(frozen=True)
class AccountLimits:
    send_limit: int
    receive_limit: int
    credit_limit: int


def receive_limit(account: Account, formula: LimitFormula = DEFAULT_FORMULA) -> int:
    """Maximum amount the account may still accept"""
    ceiling = math.floor(
        math.sqrt(account.transfers_sent_count + formula.receive_offset) * formula.receive_scale
    )
    return ceiling + formula.receive_base - account.balance


def credit_limit(account: Account, formula: LimitFormula = DEFAULT_FORMULA) -> int:
    """Credit line earned from the account's history of receiving transfers"""
    history = account.transfers_received_count * formula.credit_multiplier + formula.credit_offset
    return math.floor(math.pow(history, formula.credit_exponent) * formula.credit_scale) - formula.credit_base


def send_limit(account: Account, formula: LimitFormula = DEFAULT_FORMULA) -> int:
    """Maximum amount the account may send right now"""
    return credit_limit(account, formula) + account.balance


def payment_limit(payer: Account, payee: Account, formula: LimitFormula = DEFAULT_FORMULA) -> PaymentLimit:
    payer_send = send_limit(payer, formula)
    payee_receive = receive_limit(payee, formula)
    if payer_send <= payee_receive:
        return PaymentLimit(LimitKind.SEND, payer_send)
    return PaymentLimit(LimitKind.RECEIVE, payee_receive)


def account_limits(account: Account, formula: LimitFormula = DEFAULT_FORMULA) -> AccountLimits:
    return AccountLimits(
        send_limit=send_limit(account, formula),
        receive_limit=receive_limit(account, formula),
        credit_limit=credit_limit(account, formula),
    )
