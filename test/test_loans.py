"""Loan lifecycle: creation, approval, disbursement and schedule persistence"""
from datetime import date
from decimal import Decimal

import pytest

from microlend import db
from microlend.engine import InvalidLoanStateError, LoanValidationError
from microlend.loans.services import approve_loan, create_loan, disburse_loan, reject_loan, update_loan_terms
from microlend.models import Installment


def test_new_loan_freezes_emi_on_entered_tenor(customer):
    loan = create_loan('26/LN/00001', customer.id, 50000, 10, 60, 'days')
    db.session.commit()

    assert loan.status == 'pending'
    assert loan.emi == Decimal('1000')
    assert loan.total_interest == Decimal('10000')
    assert loan.total_payable == Decimal('60000')
    assert loan.original_period == 60
    assert loan.period_unit == 'days'
    assert loan.period == 2


def test_invalid_terms_are_reported_by_field(customer):
    with pytest.raises(LoanValidationError) as excinfo:
        create_loan('26/LN/00001', customer.id, 0, 10, 12, 'months')

    assert list(excinfo.value.errors) == ['principal']


def test_pending_loan_terms_can_be_edited(make_loan):
    loan = make_loan()

    result = update_loan_terms(loan, 60000, 10, 12, 'weeks')

    assert loan.period == 3
    assert loan.emi == result.emi


def test_edit_after_approval_is_refused(make_loan):
    loan = make_loan(status='approved')

    with pytest.raises(InvalidLoanStateError):
        update_loan_terms(loan, 60000, 10, 12, 'months')


def test_approval_defaults_to_requested_amount(make_loan):
    loan = make_loan()

    approve_loan(loan, date(2026, 1, 5))

    assert loan.status == 'approved'
    assert loan.approved_amount == Decimal('50000')


def test_approval_above_requested_amount_is_refused(make_loan):
    loan = make_loan()

    with pytest.raises(LoanValidationError):
        approve_loan(loan, date(2026, 1, 5), approved_amount=60000)
    assert loan.status == 'pending'


def test_rejection_needs_reason(make_loan):
    loan = make_loan()

    with pytest.raises(LoanValidationError):
        reject_loan(loan, '  ')

    reject_loan(loan, 'Insufficient income')
    assert loan.status == 'rejected'
    assert loan.rejection_reason == 'Insufficient income'


@pytest.mark.parametrize('current,target,allowed', [
    ('pending', 'approved', True),
    ('pending', 'rejected', True),
    ('pending', 'disbursed', False),
    ('approved', 'disbursed', True),
    ('approved', 'pending', False),
    ('disbursed', 'active', True),
    ('active', 'completed', True),
    ('active', 'disbursed', False),
    ('completed', 'active', False),
    ('rejected', 'approved', False),
])
def test_status_only_moves_forward(make_loan, current, target, allowed):
    loan = make_loan()
    loan.status = current

    assert loan.can_transition_to(target) is allowed
    if not allowed:
        with pytest.raises(InvalidLoanStateError):
            loan.transition_to(target)


def test_disbursement_generates_schedule(make_loan):
    loan = make_loan(status='approved')

    installments = disburse_loan(loan, date(2026, 1, 10))
    db.session.commit()

    assert loan.status == 'disbursed'
    assert loan.disbursed_amount == Decimal('50000')
    assert len(installments) == 3
    stored = loan.installments.all()
    assert [inst.emi_number for inst in stored] == [1, 2, 3]
    assert [inst.due_date for inst in stored] == [date(2026, 2, 10), date(2026, 3, 10), date(2026, 4, 10)]
    assert all(inst.amount == Decimal('21667') for inst in stored)


def test_pending_loan_cannot_be_disbursed(make_loan):
    loan = make_loan()

    with pytest.raises(InvalidLoanStateError):
        disburse_loan(loan, date(2026, 1, 10))


@pytest.mark.parametrize('kwargs,field', [
    ({'disbursed_amount': 60000}, 'disbursed_amount'),
    ({'method': 'bank_transfer', 'bank_name': 'BOC'}, 'bank_name'),
    ({'method': 'cheque'}, 'cheque_number'),
    ({'method': 'crypto'}, 'disbursement_method'),
])
def test_disbursement_validation(make_loan, kwargs, field):
    loan = make_loan(status='approved')

    with pytest.raises(LoanValidationError) as excinfo:
        disburse_loan(loan, date(2026, 1, 10), **kwargs)

    assert field in excinfo.value.errors
    assert loan.status == 'approved'
    assert loan.installments.count() == 0


def test_regeneration_replaces_installments(disbursed_loan):
    first = [(inst.emi_number, inst.due_date, inst.amount) for inst in disbursed_loan.installments]

    disbursed_loan.generate_installments()
    db.session.commit()

    second = [(inst.emi_number, inst.due_date, inst.amount) for inst in disbursed_loan.installments]
    assert second == first
    assert Installment.query.filter_by(loan_id=disbursed_loan.id).count() == 3


def test_no_installments_for_undisbursed_loan(make_loan):
    loan = make_loan(status='approved')

    assert loan.generate_installments() == []
    assert loan.installments.count() == 0


def test_arrears_details(disbursed_loan):
    details = disbursed_loan.get_arrears_details(today=date(2026, 3, 20))

    assert details['overdue_installments'] == 2
    assert details['total_overdue_amount'] == Decimal('43334')
    assert details['oldest_overdue_date'] == date(2026, 2, 10)
    assert details['days_overdue'] == 38


def test_outstanding_balance(disbursed_loan):
    assert disbursed_loan.get_outstanding_balance() == Decimal('65001')
    assert disbursed_loan.get_total_paid() == 0
