"""Simple-interest EMI calculator

Interest is charged once on the principal for the whole tenor
(P x r x t) and spread evenly over one installment per period unit.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, ROUND_CEILING

from microlend.engine.exceptions import LoanValidationError, InvalidPeriodError

logger = logging.getLogger(__name__)

PERIOD_UNITS = ('days', 'weeks', 'months')

DAYS_PER_MONTH = Decimal('30')
WEEKS_PER_MONTH = Decimal('4.33')


def to_decimal(value):
    """Convert a form/model value to Decimal, treating None as zero"""
    if value is None or value == '':
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_currency(value):
    """Round to whole currency units (half up)"""
    return to_decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class EmiResult:
    """Result of an EMI computation"""

    emi: Decimal
    total_interest: Decimal
    total_amount: Decimal
    installment_count: int
    period_in_months: Decimal

    @classmethod
    def zero(cls):
        return cls(
            emi=Decimal('0'),
            total_interest=Decimal('0'),
            total_amount=Decimal('0'),
            installment_count=0,
            period_in_months=Decimal('0'),
        )

    def to_dict(self):
        return {
            'emi': float(self.emi),
            'total_interest': float(self.total_interest),
            'total_amount': float(self.total_amount),
            'installment_count': self.installment_count,
            'period_in_months': float(self.period_in_months),
        }


def _check_unit(period_unit):
    if period_unit not in PERIOD_UNITS:
        raise LoanValidationError(
            f'Unknown period unit: {period_unit}',
            {'period_unit': 'Period unit must be days, weeks or months.'},
        )


def period_in_months(period, period_unit):
    """Fractional number of months covered by ``period`` units"""
    _check_unit(period_unit)
    period = to_decimal(period)
    if period_unit == 'days':
        return period / DAYS_PER_MONTH
    if period_unit == 'weeks':
        return period / WEEKS_PER_MONTH
    return period


def normalize_period_to_months(period, period_unit):
    """Whole months stored for a loan (days and weeks round up)"""
    months = period_in_months(period, period_unit)
    return int(months.to_integral_value(rounding=ROUND_CEILING))


def validate_loan_terms(principal, interest_rate, period, period_unit):
    """Validate loan application terms, raising LoanValidationError with field messages"""
    errors = {}
    if to_decimal(principal) <= 0:
        errors['principal'] = 'Loan amount must be greater than zero.'
    if to_decimal(interest_rate) <= 0:
        errors['interest_rate'] = 'Interest rate must be greater than zero.'
    if period is None or int(period) < 1:
        errors['period'] = 'Loan period must be at least 1.'
    if period_unit not in PERIOD_UNITS:
        errors['period_unit'] = 'Period unit must be days, weeks or months.'
    if errors:
        raise LoanValidationError('Invalid loan terms', errors)


def compute_schedule(principal, rate_percent_per_month, period, period_unit='months'):
    """Compute EMI, total interest and total repayable for a simple-interest loan

    Args:
        principal: Requested loan amount
        rate_percent_per_month: Flat monthly interest rate in percent (10 means 10%)
        period: Tenor in ``period_unit`` units; also the number of installments
        period_unit: 'days', 'weeks' or 'months'

    Returns:
        EmiResult. Any of principal, rate or period being zero/unset yields
        ``EmiResult.zero()``.
    """
    principal = to_decimal(principal)
    rate = to_decimal(rate_percent_per_month)
    if not principal or not rate or not period:
        return EmiResult.zero()

    _check_unit(period_unit)
    if principal < 0:
        raise LoanValidationError('Loan amount cannot be negative', {'principal': 'Loan amount cannot be negative.'})
    if rate < 0:
        raise LoanValidationError('Interest rate cannot be negative', {'interest_rate': 'Interest rate cannot be negative.'})

    installment_count = int(period)
    if installment_count < 1:
        raise InvalidPeriodError()

    months = period_in_months(installment_count, period_unit)
    total_interest = principal * (rate / Decimal('100')) * months
    total_amount = principal + total_interest
    emi = round_currency(total_amount / Decimal(installment_count))

    result = EmiResult(
        emi=emi,
        total_interest=round_currency(total_interest),
        total_amount=round_currency(total_amount),
        installment_count=installment_count,
        period_in_months=months,
    )
    logger.debug('EMI for %s at %s%% over %s %s: %s', principal, rate, period, period_unit, result)
    return result
