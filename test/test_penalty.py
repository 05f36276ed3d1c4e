"""Overdue detection, late-payment penalties and aging"""
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from microlend.engine import (
    PenaltySettings,
    aging_buckets,
    calculate_penalty,
    days_overdue,
    display_status,
    is_overdue,
    overdue_penalty,
)

TODAY = date(2026, 3, 20)


def installment(status='pending', due_date=date(2026, 3, 10), amount=1000, balance=None):
    return SimpleNamespace(status=status, due_date=due_date, amount=Decimal(amount),
                           balance=Decimal(amount if balance is None else balance))


def test_per_day_penalty():
    settings = PenaltySettings(Decimal('2'), 'per_day')

    assert calculate_penalty(1000, 10, settings) == Decimal('200')


def test_per_week_penalty_counts_started_weeks():
    settings = PenaltySettings(Decimal('2'), 'per_week')

    assert calculate_penalty(1000, 7, settings) == Decimal('20')
    assert calculate_penalty(1000, 10, settings) == Decimal('40')


def test_fixed_total_penalty_ignores_lateness():
    settings = PenaltySettings(Decimal('2'), 'fixed_total')

    assert calculate_penalty(1000, 1, settings) == Decimal('20')
    assert calculate_penalty(1000, 90, settings) == Decimal('20')


def test_unknown_penalty_type_charges_per_day():
    settings = PenaltySettings(Decimal('2'), 'per_fortnight')

    assert calculate_penalty(1000, 10, settings) == Decimal('200')


def test_default_settings_are_two_percent_per_day():
    assert calculate_penalty(1000, 10) == Decimal('200')


def test_settings_from_stored_values():
    stored = SimpleNamespace(late_payment_penalty_percentage=Decimal('1.5'), penalty_type='per_week')

    assert PenaltySettings.from_settings(stored) == PenaltySettings(Decimal('1.5'), 'per_week')


def test_settings_fall_back_to_defaults():
    stored = SimpleNamespace(late_payment_penalty_percentage=None, penalty_type=None)

    assert PenaltySettings.from_settings(stored) == PenaltySettings()
    assert PenaltySettings.from_settings(None) == PenaltySettings()


@pytest.mark.parametrize('status,due_date,expected', [
    ('pending', date(2026, 3, 19), True),
    ('partial', date(2026, 3, 1), True),
    ('pending', TODAY, False),
    ('pending', date(2026, 4, 1), False),
    ('paid', date(2026, 3, 1), False),
])
def test_overdue_is_derived_from_status_and_due_date(status, due_date, expected):
    assert is_overdue(status, due_date, TODAY) is expected


def test_display_status_reports_overdue_without_storing_it():
    inst = installment(status='partial')

    assert display_status(inst.status, inst.due_date, TODAY) == 'overdue'
    assert inst.status == 'partial'
    assert display_status('paid', inst.due_date, TODAY) == 'paid'


def test_days_overdue_is_never_negative():
    assert days_overdue(date(2026, 3, 10), TODAY) == 10
    assert days_overdue(date(2026, 4, 10), TODAY) == 0
    assert days_overdue(None, TODAY) == 0


def test_overdue_penalty_uses_installment_amount():
    inst = installment(amount=1000, balance=400, status='partial')

    assert overdue_penalty(inst, PenaltySettings(), TODAY) == Decimal('200')


def test_no_penalty_before_due_date():
    inst = installment(due_date=date(2026, 3, 25))

    assert overdue_penalty(inst, PenaltySettings(), TODAY) == Decimal('0')


def test_aging_buckets():
    installments = [
        installment(due_date=date(2026, 3, 10), balance=1000),   # 10 days
        installment(due_date=date(2026, 2, 18), balance=500),    # 30 days
        installment(due_date=date(2026, 1, 20), balance=700),    # 59 days
        installment(due_date=date(2025, 12, 1), balance=900),    # 109 days
        installment(due_date=date(2025, 12, 1), status='paid'),
        installment(due_date=date(2026, 4, 1)),
    ]

    buckets = aging_buckets(installments, TODAY)

    assert buckets['1-30'] == {'count': 2, 'amount': Decimal('1500')}
    assert buckets['31-60'] == {'count': 1, 'amount': Decimal('700')}
    assert buckets['61-90'] == {'count': 0, 'amount': Decimal('0')}
    assert buckets['90+'] == {'count': 1, 'amount': Decimal('900')}
