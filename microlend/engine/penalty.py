"""Overdue detection and late-payment penalties"""
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_CEILING

from microlend.engine.calculator import to_decimal, round_currency

PENALTY_TYPES = ('per_day', 'per_week', 'fixed_total')

DEFAULT_PENALTY_RATE = Decimal('2.0')
DEFAULT_PENALTY_TYPE = 'per_day'

OPEN_STATUSES = ('pending', 'partial')

AGING_BUCKETS = ('1-30', '31-60', '61-90', '90+')


@dataclass(frozen=True)
class PenaltySettings:
    """Late-payment penalty configuration

    ``rate`` is a percentage of the installment amount, applied per day,
    per started week, or once (fixed_total).
    """

    rate: Decimal = DEFAULT_PENALTY_RATE
    penalty_type: str = DEFAULT_PENALTY_TYPE

    @classmethod
    def from_settings(cls, settings):
        """Build from a settings object; missing values fall back to the defaults"""
        if settings is None:
            return cls()
        rate = getattr(settings, 'late_payment_penalty_percentage', None)
        penalty_type = getattr(settings, 'penalty_type', None)
        return cls(
            rate=DEFAULT_PENALTY_RATE if rate is None else to_decimal(rate),
            penalty_type=penalty_type or DEFAULT_PENALTY_TYPE,
        )


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    return value


def is_overdue(status, due_date, today=None):
    """An open installment whose due date has passed"""
    if today is None:
        today = date.today()
    if status not in OPEN_STATUSES or due_date is None:
        return False
    return _as_date(due_date) < _as_date(today)


def display_status(status, due_date, today=None):
    """Stored status, or 'overdue' for open installments past their due date"""
    if is_overdue(status, due_date, today):
        return 'overdue'
    return status


def days_overdue(due_date, today=None):
    """Whole days between due date and today, never negative"""
    if today is None:
        today = date.today()
    if due_date is None:
        return 0
    return max(0, (_as_date(today) - _as_date(due_date)).days)


def calculate_penalty(amount, days_late, settings=None):
    """Penalty for an installment ``amount`` that is ``days_late`` days overdue"""
    settings = settings or PenaltySettings()
    amount = to_decimal(amount)
    rate = to_decimal(settings.rate) / Decimal('100')

    if settings.penalty_type == 'fixed_total':
        return round_currency(amount * rate)
    if settings.penalty_type == 'per_week':
        weeks = (Decimal(days_late) / Decimal('7')).to_integral_value(rounding=ROUND_CEILING)
        return round_currency(amount * rate * weeks)
    # per_day, and the fallback for unknown types
    return round_currency(amount * rate * Decimal(days_late))


def overdue_penalty(installment, settings=None, today=None):
    """Penalty due on an installment right now; zero unless it is overdue"""
    if not is_overdue(installment.status, installment.due_date, today):
        return Decimal('0')
    return calculate_penalty(installment.amount, days_overdue(installment.due_date, today), settings)


def aging_bucket(days_late):
    if days_late <= 30:
        return '1-30'
    if days_late <= 60:
        return '31-60'
    if days_late <= 90:
        return '61-90'
    return '90+'


def aging_buckets(installments, today=None):
    """Group overdue installments by lateness

    Returns a dict of bucket name -> {'count': int, 'amount': Decimal}
    where amount is the outstanding balance.
    """
    buckets = {name: {'count': 0, 'amount': Decimal('0')} for name in AGING_BUCKETS}
    for installment in installments:
        if not is_overdue(installment.status, installment.due_date, today):
            continue
        bucket = buckets[aging_bucket(days_overdue(installment.due_date, today))]
        bucket['count'] += 1
        bucket['amount'] += to_decimal(installment.balance)
    return buckets
