"""Helper functions"""
from datetime import datetime
from flask import request
from flask_login import current_user
from microlend import db
from microlend.models import Customer, Loan, LoanPayment, ActivityLog

def generate_customer_id(prefix='C'):
    """Generate unique customer ID in format C/0001"""
    last_customer = Customer.query.filter(
        Customer.customer_id.like(f'{prefix}/%')
    ).order_by(Customer.id.desc()).first()

    new_number = 1
    if last_customer:
        try:
            new_number = int(last_customer.customer_id.split('/')[-1]) + 1
        except (ValueError, IndexError):
            new_number = 1

    return f"{prefix}/{new_number:04d}"

def generate_loan_number(prefix='LN'):
    """Generate unique loan number in format YY/LN/#####

    Returns:
        Loan number such as 26/LN/00001, numbered sequentially per year.
    """
    year = datetime.now().strftime('%y')
    pattern = f"{year}/{prefix}/%"
    last_loan = Loan.query.filter(
        Loan.loan_number.like(pattern)
    ).order_by(Loan.id.desc()).first()

    new_number = 1
    if last_loan:
        try:
            parts = last_loan.loan_number.split('/')
            new_number = int(parts[-1]) + 1
        except (ValueError, IndexError):
            new_number = 1

    return f"{year}/{prefix}/{new_number:05d}"

def generate_receipt_number():
    """Generate a unique sequential receipt number for payments

    Returns:
        A sequential receipt number as string (e.g., '000001', '000002', etc.)
    """
    highest_number = 0
    last_payment = LoanPayment.query.filter(
        LoanPayment.receipt_number.isnot(None),
        LoanPayment.receipt_number != ''
    ).order_by(LoanPayment.id.desc()).first()

    if last_payment:
        try:
            highest_number = int(last_payment.receipt_number)
        except ValueError:
            highest_number = LoanPayment.query.count()

    return f"{highest_number + 1:06d}"

def format_currency(amount, currency_symbol='Rs.'):
    """Format amount as currency in whole units"""
    if amount is None:
        return f"{currency_symbol} 0"
    return f"{currency_symbol} {amount:,.0f}"

def log_activity(action, entity_type=None, entity_id=None, description=None):
    """Add an ActivityLog row for the current user to the session"""
    log = ActivityLog(
        user_id=current_user.id if current_user.is_authenticated else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
        ip_address=request.remote_addr if request else None
    )
    db.session.add(log)
    return log
