"""Payment collection routes"""
from flask import render_template, redirect, url_for, flash, request, jsonify
from flask_login import login_required, current_user
from microlend import db
from microlend.payments import payments_bp
from microlend.models import Installment, SystemSettings
from microlend.payments.forms import InstallmentPaymentForm
from microlend.payments.services import collect_payment, process_bulk_payments
from microlend.engine import LendingError, overdue_penalty, days_overdue
from microlend.utils.decorators import permission_required
from microlend.utils.helpers import log_activity

@payments_bp.route('/installment/<int:id>', methods=['GET', 'POST'])
@login_required
@permission_required('collect_payments')
def pay_installment(id):
    """Record a payment against one installment"""
    installment = db.get_or_404(Installment, id)
    loan = installment.loan

    if installment.status == 'paid':
        flash('This installment is already paid.', 'warning')
        return redirect(url_for('loans.view_loan', id=loan.id))

    if loan.status not in loan.SCHEDULED_STATUSES:
        flash('Cannot add payment for this loan! Loan must be disbursed or active.', 'warning')
        return redirect(url_for('loans.view_loan', id=loan.id))

    form = InstallmentPaymentForm()
    penalty_settings = SystemSettings.get_settings().penalty_settings()
    suggested_penalty = overdue_penalty(installment, penalty_settings)

    if request.method == 'GET':
        form.payment_amount.data = installment.balance
        form.penalty.data = suggested_penalty

    if form.validate_on_submit():
        try:
            payment = collect_payment(
                installment,
                form.payment_amount.data,
                penalty=form.penalty.data or 0,
                discount=form.discount.data or 0,
                payment_mode=form.payment_mode.data,
                payment_date=form.payment_date.data,
                reference_number=form.reference_number.data,
                remarks=form.remarks.data,
                collected_by=current_user.id
            )
        except LendingError as e:
            db.session.rollback()
            flash(str(e), 'danger')
            return render_template('payments/pay.html', title='Record Payment', form=form,
                                   installment=installment, loan=loan,
                                   suggested_penalty=suggested_penalty,
                                   days_late=days_overdue(installment.due_date))

        log_activity('collect_payment', 'installment', installment.id,
                     f'Receipt {payment.receipt_number}: {payment.collected_amount} for '
                     f'{loan.loan_number} EMI {installment.emi_number}')
        db.session.commit()

        flash(f'Payment recorded. Receipt #{payment.receipt_number}', 'success')
        return redirect(url_for('loans.view_loan', id=loan.id))

    return render_template('payments/pay.html', title='Record Payment', form=form,
                           installment=installment, loan=loan,
                           suggested_penalty=suggested_penalty,
                           days_late=days_overdue(installment.due_date))

@payments_bp.route('/bulk', methods=['POST'])
@login_required
@permission_required('collect_payments')
def bulk_payments():
    """Collect many installment payments from a JSON body"""
    data = request.get_json(silent=True) or {}
    entries = data.get('payments')
    if not isinstance(entries, list):
        return jsonify({'success': False, 'error': 'Please provide an array of payments'}), 400

    results = process_bulk_payments(entries, collected_by=current_user.id)
    log_activity('bulk_payments', 'installment', None,
                 f"Bulk payments: {len(results['success'])} succeeded, {len(results['failed'])} failed")
    db.session.commit()

    return jsonify({
        'success': True,
        'message': f"Processed {len(results['success'])} payments successfully, {len(results['failed'])} failed",
        'data': results
    })
