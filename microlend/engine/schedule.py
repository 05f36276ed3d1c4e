"""Repayment schedule generation"""
import logging
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from microlend.engine.calculator import to_decimal

logger = logging.getLogger(__name__)


def due_date_for(disbursed_date, emi_number):
    """Due date of installment ``emi_number``: the disbursement date plus that many calendar months"""
    return disbursed_date + relativedelta(months=emi_number)


def generate_schedule(loan):
    """Generate the installment schedule for a disbursed loan

    Installments fall due monthly from the disbursement date, one per stored
    (month-normalised) period, each for the loan's frozen EMI.

    Args:
        loan: Any object exposing ``approved_amount``, ``disbursed_date``,
              ``period`` and ``emi``

    Returns:
        List of installment dicts ordered by ``emi_number``. Empty when the
        loan has no approved amount or disbursement date.
    """
    if not loan.approved_amount or not loan.disbursed_date:
        logger.warning('Schedule skipped for loan %s: missing approved amount or disbursement date',
                       getattr(loan, 'loan_number', None) or getattr(loan, 'id', None))
        return []

    emi = to_decimal(loan.emi)
    schedule = []
    for emi_number in range(1, int(loan.period or 0) + 1):
        schedule.append({
            'emi_number': emi_number,
            'due_date': due_date_for(loan.disbursed_date, emi_number),
            'amount': emi,
            'paid_amount': Decimal('0'),
            'balance': emi,
            'penalty': Decimal('0'),
            'status': 'pending',
        })
    return schedule
