"""Loan amortization and repayment engine

Pure, synchronous computations: EMI sizing, schedule generation and
payment reconciliation. Callers own persistence.
"""
from microlend.engine.calculator import (
    EmiResult,
    PERIOD_UNITS,
    compute_schedule,
    normalize_period_to_months,
    period_in_months,
    round_currency,
    to_decimal,
    validate_loan_terms,
)
from microlend.engine.exceptions import (
    InvalidLoanStateError,
    InvalidPeriodError,
    LendingError,
    LoanValidationError,
    PaymentValidationError,
)
from microlend.engine.penalty import (
    PENALTY_TYPES,
    PenaltySettings,
    aging_buckets,
    calculate_penalty,
    days_overdue,
    display_status,
    is_overdue,
    overdue_penalty,
)
from microlend.engine.reconcile import PAYMENT_MODES, PaymentOutcome, apply_payment, reconcile_payment
from microlend.engine.schedule import due_date_for, generate_schedule

__all__ = [
    'EmiResult', 'PERIOD_UNITS', 'compute_schedule', 'normalize_period_to_months',
    'period_in_months', 'round_currency', 'to_decimal', 'validate_loan_terms',
    'InvalidLoanStateError', 'InvalidPeriodError', 'LendingError', 'LoanValidationError',
    'PaymentValidationError',
    'PENALTY_TYPES', 'PenaltySettings', 'aging_buckets', 'calculate_penalty', 'days_overdue',
    'display_status', 'is_overdue', 'overdue_penalty',
    'PAYMENT_MODES', 'PaymentOutcome', 'apply_payment', 'reconcile_payment',
    'due_date_for', 'generate_schedule',
]
