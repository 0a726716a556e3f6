"""
Transfer Validator

Checks a proposed transfer against the domain's minimum amount, the
self-transfer rule and both parties' current limits. Checks run in a fixed
order and the first failure wins, because each failure is reported to the
user with a different message.
"""

from .accounts import Account
from .errors import (
    BelowMinimum, SelfTransfer, SendLimitExceeded,
    ReceiveLimitExceeded, InvariantViolation
)
from .limits import LimitFormula, LimitKind, PaymentLimit, payment_limit, DEFAULT_FORMULA


def validate_transfer(
    payer: Account,
    payee: Account,
    amount: int,
    min_amount: int,
    formula: LimitFormula = DEFAULT_FORMULA
) -> PaymentLimit:
    """
    Validate a transfer of ``amount`` from ``payer`` to ``payee``

    Args:
        payer: Current snapshot of the sending account
        payee: Current snapshot of the receiving account
        amount: Quantity to move
        min_amount: Smallest amount the domain accepts
        formula: Limit curve parameters

    Returns:
        The binding PaymentLimit the amount was checked against

    Raises:
        BelowMinimum: amount is below min_amount (or not positive)
        SelfTransfer: payer and payee are the same account
        SendLimitExceeded: payer's send limit is binding and too small
        ReceiveLimitExceeded: payee's receive limit is binding and too small
        TypeError: amount is not an integer
    """
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError(f"amount must be an integer, got {type(amount).__name__}")

    if amount < min_amount or amount <= 0:
        raise BelowMinimum(min_amount)

    if payer.id == payee.id:
        raise SelfTransfer()

    limit = payment_limit(payer, payee, formula)
    if limit.kind is LimitKind.SEND:
        if amount > limit.bound:
            raise SendLimitExceeded(limit.bound)
    elif limit.kind is LimitKind.RECEIVE:
        if amount > limit.bound:
            raise ReceiveLimitExceeded(limit.bound)
    else:
        raise InvariantViolation(f"unknown limit kind {limit.kind!r}")

    return limit
