"""Payment reconciliation against a single installment

A payment is allocated to one installment only. Shortfalls stay on that
installment; nothing rolls over to later EMIs.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from microlend.engine.calculator import to_decimal
from microlend.engine.exceptions import PaymentValidationError
from microlend.engine.penalty import overdue_penalty

logger = logging.getLogger(__name__)

PAYMENT_MODES = ('cash', 'online', 'cheque')


@dataclass(frozen=True)
class PaymentOutcome:
    """What one reconciled payment did to its installment"""

    installment: object
    payment_amount: Decimal
    penalty: Decimal
    discount: Decimal
    collected: Decimal
    balance_after: Decimal
    status: str


def reconcile_payment(installment, payment_amount, penalty=None, discount=0,
                      payment_mode='cash', today=None, penalty_settings=None):
    """Apply a payment to an installment and describe the result

    Args:
        installment: Object with ``amount``, ``balance``, ``paid_amount``,
                     ``penalty``, ``status`` and ``due_date``; mutated in place
        payment_amount: Amount applied against the installment balance
        penalty: Operator-entered penalty; computed from ``penalty_settings``
                 when None
        discount: Goodwill reduction of the amount collected
        payment_mode: 'cash', 'online' or 'cheque'
        today: Payment date (defaults to today)
        penalty_settings: PenaltySettings used when ``penalty`` is None

    Raises:
        PaymentValidationError: the payment is rejected and the installment
        is left untouched
    """
    if today is None:
        today = date.today()

    amount = to_decimal(payment_amount)
    discount = to_decimal(discount)
    if penalty is None:
        penalty = overdue_penalty(installment, penalty_settings, today)
    penalty = to_decimal(penalty)
    balance = to_decimal(installment.balance)

    if installment.status == 'paid':
        raise PaymentValidationError('This installment is already paid.')
    if payment_mode not in PAYMENT_MODES:
        raise PaymentValidationError(f'Unsupported payment mode: {payment_mode}', 'payment_mode')
    if penalty < 0:
        raise PaymentValidationError('Penalty cannot be negative.', 'penalty')

    total_due = balance + penalty
    if amount <= 0:
        raise PaymentValidationError('Payment amount must be greater than zero.', 'payment_amount')
    if amount > total_due:
        raise PaymentValidationError(
            f'Payment amount cannot exceed {total_due} (balance plus penalty).', 'payment_amount')
    if discount < 0:
        raise PaymentValidationError('Discount cannot be negative.', 'discount')
    if discount > amount + penalty:
        raise PaymentValidationError('Discount cannot exceed the amount collected.', 'discount')

    collected = amount + penalty - discount
    new_balance = max(Decimal('0'), balance - amount)
    status = 'paid' if amount >= balance else 'partial'

    installment.balance = new_balance
    installment.status = status
    installment.paid_amount = to_decimal(installment.paid_amount) + amount
    installment.penalty = to_decimal(installment.penalty) + penalty
    if hasattr(installment, 'discount'):
        installment.discount = to_decimal(installment.discount) + discount
    if hasattr(installment, 'collected_amount'):
        installment.collected_amount = to_decimal(installment.collected_amount) + collected
    installment.payment_date = today
    installment.payment_mode = payment_mode

    logger.info('Installment %s: paid %s (penalty %s, discount %s), balance %s -> %s, status %s',
                getattr(installment, 'emi_number', '?'), amount, penalty, discount,
                balance, new_balance, status)

    return PaymentOutcome(
        installment=installment,
        payment_amount=amount,
        penalty=penalty,
        discount=discount,
        collected=collected,
        balance_after=new_balance,
        status=status,
    )


def apply_payment(installment, payment_amount, penalty=None, discount=0,
                  payment_mode='cash', today=None, penalty_settings=None):
    """Apply a payment and return the updated installment"""
    return reconcile_payment(installment, payment_amount, penalty, discount,
                             payment_mode, today, penalty_settings).installment
