"""Loan origination, approval and disbursement workflow"""
import logging
from microlend import db
from microlend.engine import (
    InvalidLoanStateError,
    LoanValidationError,
    normalize_period_to_months,
    to_decimal,
    validate_loan_terms,
)
from microlend.models import Loan

logger = logging.getLogger(__name__)

def create_loan(loan_number, customer_id, principal, interest_rate, period, period_unit,
                loan_type='personal', purpose=None, notes=None, created_by=None):
    """Create a pending loan with its EMI frozen from the terms as entered"""
    validate_loan_terms(principal, interest_rate, period, period_unit)

    loan = Loan(
        loan_number=loan_number,
        customer_id=customer_id,
        loan_type=loan_type,
        principal=to_decimal(principal),
        interest_rate=to_decimal(interest_rate),
        original_period=int(period),
        period_unit=period_unit,
        period=normalize_period_to_months(period, period_unit),
        status='pending',
        purpose=purpose,
        notes=notes,
        created_by=created_by
    )
    result = loan.calculate_emi()
    db.session.add(loan)
    logger.info('Loan %s created: %s at %s%%/month over %s %s, EMI %s x %d',
                loan_number, loan.principal, loan.interest_rate, period, period_unit,
                result.emi, result.installment_count)
    return loan

def update_loan_terms(loan, principal, interest_rate, period, period_unit):
    """Edit the terms of a pending loan and re-freeze its EMI"""
    if loan.status != 'pending':
        raise InvalidLoanStateError('Only pending loans can be edited.')
    validate_loan_terms(principal, interest_rate, period, period_unit)
    loan.principal = to_decimal(principal)
    loan.interest_rate = to_decimal(interest_rate)
    loan.original_period = int(period)
    loan.period_unit = period_unit
    loan.period = normalize_period_to_months(period, period_unit)
    return loan.calculate_emi()

def approve_loan(loan, approval_date, approved_amount=None, approved_by=None, notes=None):
    """Approve a pending loan for ``approved_amount`` (defaults to the requested principal)"""
    amount = to_decimal(approved_amount) if approved_amount else to_decimal(loan.principal)
    if amount <= 0 or amount > to_decimal(loan.principal):
        raise LoanValidationError('Invalid approved amount',
                                  {'approved_amount': 'Approved amount must be between 0 and the requested amount.'})
    loan.transition_to('approved')
    loan.approved_amount = amount
    loan.approval_date = approval_date
    loan.approved_by = approved_by
    loan.approval_notes = notes
    return loan

def reject_loan(loan, reason, rejected_by=None, rejection_date=None):
    if not (reason or '').strip():
        raise LoanValidationError('Rejection reason required',
                                  {'rejection_reason': 'Please give a reason for rejecting the loan.'})
    loan.transition_to('rejected')
    loan.rejection_reason = reason
    loan.approved_by = rejected_by
    loan.approval_date = rejection_date
    return loan

def disburse_loan(loan, disbursed_date, disbursed_amount=None, method='cash', reference=None,
                  bank_name=None, bank_account_number=None, cheque_number=None, disbursed_by=None):
    """Release funds for an approved loan and generate its installment schedule

    Returns the generated Installment rows.
    """
    if loan.status != 'approved':
        raise InvalidLoanStateError('Only approved loans can be disbursed.')

    amount = to_decimal(disbursed_amount) if disbursed_amount else to_decimal(loan.approved_amount)
    errors = {}
    if amount <= 0 or amount > to_decimal(loan.approved_amount):
        errors['disbursed_amount'] = 'Disbursed amount must be between 0 and the approved amount.'
    if method == 'bank_transfer' and not (bank_name and bank_account_number):
        errors['bank_name'] = 'Bank name and account number are required for bank transfers.'
    if method == 'cheque' and not cheque_number:
        errors['cheque_number'] = 'Cheque number is required.'
    if method not in ('cash', 'bank_transfer', 'cheque'):
        errors['disbursement_method'] = 'Unsupported disbursement method.'
    if errors:
        raise LoanValidationError('Invalid disbursement', errors)

    loan.disbursed_amount = amount
    loan.disbursed_date = disbursed_date
    loan.disbursement_method = method
    loan.disbursement_reference = reference
    loan.bank_name = bank_name
    loan.bank_account_number = bank_account_number
    loan.cheque_number = cheque_number
    loan.disbursed_by = disbursed_by
    loan.transition_to('disbursed')
    db.session.flush()

    return loan.generate_installments()
