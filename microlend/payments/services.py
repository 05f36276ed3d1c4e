"""Installment collection: reconcile, record a receipt, advance the loan"""
import logging
from datetime import date, datetime
from sqlalchemy.exc import SQLAlchemyError
from microlend import db
from microlend.engine import LendingError, PaymentValidationError, reconcile_payment
from microlend.models import Installment, LoanPayment, SystemSettings
from microlend.utils.helpers import generate_receipt_number

logger = logging.getLogger(__name__)

def collect_payment(installment, payment_amount, penalty=None, discount=0, payment_mode='cash',
                    payment_date=None, reference_number=None, remarks=None, receipt_number=None,
                    collected_by=None, penalty_settings=None):
    """Apply a payment to one installment and record it as a LoanPayment

    When ``penalty`` is None the overdue penalty is computed from
    ``penalty_settings`` (or the saved system settings). The caller commits.

    Raises:
        PaymentValidationError: nothing was changed
        InvalidLoanStateError: the loan is not accepting payments
    """
    loan = installment.loan
    if loan.status not in loan.SCHEDULED_STATUSES:
        raise PaymentValidationError(f'Loan {loan.loan_number} is {loan.status} and cannot take payments.')

    if receipt_number and LoanPayment.query.filter_by(receipt_number=receipt_number).first():
        raise PaymentValidationError(f'Receipt number {receipt_number} is already in use.', 'receipt_number')

    payment_date = payment_date or date.today()
    if penalty is None and penalty_settings is None:
        penalty_settings = SystemSettings.get_settings().penalty_settings()

    try:
        outcome = reconcile_payment(installment, payment_amount, penalty=penalty, discount=discount,
                                    payment_mode=payment_mode, today=payment_date,
                                    penalty_settings=penalty_settings)
    except PaymentValidationError as e:
        logger.warning('Payment rejected for %s EMI %s: %s', loan.loan_number, installment.emi_number, e)
        raise

    receipt_number = receipt_number or generate_receipt_number()
    installment.receipt_number = receipt_number
    if remarks:
        installment.remarks = remarks

    payment = LoanPayment(
        loan_id=loan.id,
        installment_id=installment.id,
        payment_date=payment_date,
        payment_amount=outcome.payment_amount,
        penalty_amount=outcome.penalty,
        discount_amount=outcome.discount,
        collected_amount=outcome.collected,
        balance_after=outcome.balance_after,
        payment_mode=payment_mode,
        reference_number=reference_number,
        receipt_number=receipt_number,
        notes=remarks,
        collected_by=collected_by
    )
    db.session.add(payment)

    if loan.status == 'disbursed':
        loan.transition_to('active')
    db.session.flush()
    if loan.refresh_completion(payment_date):
        logger.info('Loan %s completed on %s', loan.loan_number, payment_date)

    return payment

def _parse_date(value):
    if not value:
        return date.today()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()

def process_bulk_payments(entries, collected_by=None):
    """Collect a batch of payments; each entry succeeds or fails on its own

    Each entry names an installment by ``loan_id`` and ``emi_number`` and
    carries ``amount``, ``payment_mode`` and optionally ``payment_date``,
    ``penalty``, ``discount``, ``receipt_number`` and ``remarks``.

    Returns:
        Dictionary with ``success`` and ``failed`` lists
    """
    results = {'success': [], 'failed': []}
    settings = SystemSettings.get_settings().penalty_settings()

    for entry in entries:
        if not isinstance(entry, dict):
            results['failed'].append({'entry': entry, 'error': 'Invalid payment entry'})
            continue

        if any(entry.get(key) in (None, '') for key in ('loan_id', 'emi_number', 'amount', 'payment_mode')):
            results['failed'].append({**entry, 'error': 'Missing required fields'})
            continue

        installment = Installment.query.filter_by(
            loan_id=entry['loan_id'], emi_number=entry['emi_number']
        ).first()
        if installment is None:
            results['failed'].append({**entry, 'error': 'Installment not found'})
            continue

        try:
            # Savepoint per entry: a failed flush undoes only this entry
            with db.session.begin_nested():
                payment = collect_payment(
                    installment,
                    entry['amount'],
                    penalty=entry.get('penalty'),
                    discount=entry.get('discount') or 0,
                    payment_mode=entry['payment_mode'],
                    payment_date=_parse_date(entry.get('payment_date')),
                    remarks=entry.get('remarks'),
                    receipt_number=entry.get('receipt_number'),
                    collected_by=collected_by,
                    penalty_settings=settings
                )
        except (LendingError, ValueError, ArithmeticError) as e:
            results['failed'].append({**entry, 'error': str(e)})
            continue
        except SQLAlchemyError as e:
            logger.warning('Bulk payment for loan %s EMI %s not saved: %s',
                           entry['loan_id'], entry['emi_number'], e)
            results['failed'].append({**entry, 'error': 'Payment could not be saved'})
            continue

        results['success'].append({
            'loan_id': installment.loan_id,
            'emi_number': installment.emi_number,
            'receipt_number': payment.receipt_number,
            'status': installment.status,
            'balance': float(installment.balance),
            'collected_amount': float(payment.collected_amount)
        })

    logger.info('Bulk payments: %d succeeded, %d failed', len(results['success']), len(results['failed']))
    return results
