"""Loan management routes"""
from flask import render_template, redirect, url_for, flash, request, current_app, jsonify
from flask_login import login_required, current_user
from microlend import db
from microlend.loans import loans_bp
from microlend.models import Loan, LoanPayment, Customer, SystemSettings
from microlend.loans.forms import LoanForm, LoanApprovalForm, DisbursementForm
from microlend.loans.services import create_loan, approve_loan, reject_loan, disburse_loan
from microlend.engine import LendingError, LoanValidationError, compute_schedule
from microlend.utils.decorators import permission_required
from microlend.utils.helpers import generate_loan_number, log_activity


def _flash_errors(error):
    """Flash a LendingError, field by field when it carries field errors"""
    errors = getattr(error, 'errors', None)
    if errors:
        for message in errors.values():
            flash(message, 'danger')
    else:
        flash(str(error), 'danger')

@loans_bp.route('/')
@login_required
@permission_required('manage_loans')
def list_loans():
    """List all loans"""
    page = request.args.get('page', 1, type=int)
    search = request.args.get('search', '')
    status = request.args.get('status', '')

    query = Loan.query

    if search:
        query = query.join(Customer).filter(
            db.or_(
                Loan.loan_number.ilike(f'%{search}%'),
                Customer.full_name.ilike(f'%{search}%'),
                Customer.customer_id.ilike(f'%{search}%')
            )
        )

    if status:
        query = query.filter_by(status=status)

    loans = query.order_by(Loan.created_at.desc()).paginate(
        page=page, per_page=current_app.config['ITEMS_PER_PAGE'], error_out=False
    )

    return render_template('loans/list.html',
                         title='Loans',
                         loans=loans,
                         search=search,
                         status=status)

@loans_bp.route('/add', methods=['GET', 'POST'])
@login_required
@permission_required('manage_loans')
def add_loan():
    """Add new loan"""
    form = LoanForm()

    customers = Customer.query.filter_by(status='active').order_by(Customer.full_name).all()
    form.customer_id.choices = [(0, 'Select Customer')] + [(c.id, f'{c.customer_id} - {c.full_name}') for c in customers]

    if request.method == 'GET':
        settings = SystemSettings.get_settings()
        form.interest_rate.data = settings.default_loan_interest_rate

    if form.validate_on_submit():
        if form.customer_id.data == 0:
            flash('Please select a customer!', 'error')
            return render_template('loans/add.html', title='Add Loan', form=form)

        settings = SystemSettings.get_settings()
        try:
            loan = create_loan(
                loan_number=generate_loan_number(settings.loan_number_prefix),
                customer_id=form.customer_id.data,
                principal=form.principal.data,
                interest_rate=form.interest_rate.data,
                period=form.period.data,
                period_unit=form.period_unit.data,
                loan_type=form.loan_type.data,
                purpose=form.purpose.data,
                notes=form.notes.data,
                created_by=current_user.id
            )
            db.session.flush()
        except LendingError as e:
            db.session.rollback()
            _flash_errors(e)
            return render_template('loans/add.html', title='Add Loan', form=form)

        log_activity('create_loan', 'loan', loan.id, f'Created loan {loan.loan_number}')
        db.session.commit()

        flash(f'Loan {loan.loan_number} created successfully!', 'success')
        return redirect(url_for('loans.view_loan', id=loan.id))

    return render_template('loans/add.html', title='Add Loan', form=form)

@loans_bp.route('/api/emi', methods=['GET', 'POST'])
@login_required
def emi_preview():
    """Preview EMI for the terms being entered on the loan form"""
    data = request.get_json(silent=True) or request.values
    try:
        result = compute_schedule(
            data.get('principal'),
            data.get('interest_rate'),
            data.get('period'),
            data.get('period_unit') or 'months'
        )
    except LoanValidationError as e:
        return jsonify({'success': False, 'error': e.message, 'errors': e.errors}), 400
    except (ValueError, ArithmeticError):
        return jsonify({'success': False, 'error': 'Invalid loan terms'}), 400

    return jsonify({'success': True, **result.to_dict()})

@loans_bp.route('/<int:id>')
@login_required
@permission_required('manage_loans')
def view_loan(id):
    """View loan details"""
    loan = db.get_or_404(Loan, id)
    installments = loan.installments.all()
    payments = loan.payments.order_by(LoanPayment.payment_date.desc()).all()

    return render_template('loans/view.html',
                         title=f'Loan: {loan.loan_number}',
                         loan=loan,
                         installments=installments,
                         payments=payments,
                         arrears=loan.get_arrears_details(),
                         total_paid=loan.get_total_paid(),
                         outstanding=loan.get_outstanding_balance())

@loans_bp.route('/<int:id>/approve', methods=['GET', 'POST'])
@login_required
@permission_required('approve_loans')
def approve_loan_view(id):
    """Approve or reject loan"""
    loan = db.get_or_404(Loan, id)

    if loan.status != 'pending':
        flash('Only pending loans can be approved or rejected!', 'warning')
        return redirect(url_for('loans.view_loan', id=id))

    form = LoanApprovalForm(principal=loan.principal)
    if request.method == 'GET':
        form.approved_amount.data = loan.principal

    if form.validate_on_submit():
        try:
            if form.approval_status.data == 'approved':
                approve_loan(loan, form.approval_date.data, form.approved_amount.data,
                             approved_by=current_user.id, notes=form.approval_notes.data)
                log_activity('approve_loan', 'loan', loan.id,
                             f'Approved loan {loan.loan_number} for {loan.approved_amount}')
                message = f'Loan {loan.loan_number} approved!'
            else:
                reject_loan(loan, form.rejection_reason.data, rejected_by=current_user.id,
                            rejection_date=form.approval_date.data)
                log_activity('reject_loan', 'loan', loan.id, f'Rejected loan {loan.loan_number}')
                message = f'Loan {loan.loan_number} rejected.'
        except LendingError as e:
            db.session.rollback()
            _flash_errors(e)
            return render_template('loans/approve.html', title='Approve Loan', form=form, loan=loan)

        db.session.commit()
        flash(message, 'success')
        return redirect(url_for('loans.view_loan', id=id))

    return render_template('loans/approve.html', title='Approve Loan', form=form, loan=loan)

@loans_bp.route('/<int:id>/disburse', methods=['GET', 'POST'])
@login_required
@permission_required('disburse_loans')
def disburse_loan_view(id):
    """Disburse an approved loan and generate its EMI schedule"""
    loan = db.get_or_404(Loan, id)

    if loan.status != 'approved':
        flash('Only approved loans can be disbursed!', 'warning')
        return redirect(url_for('loans.view_loan', id=id))

    form = DisbursementForm(approved_amount=loan.approved_amount)
    if request.method == 'GET':
        form.disbursed_amount.data = loan.approved_amount
        form.bank_name.data = loan.customer.bank_name
        form.bank_account_number.data = loan.customer.bank_account_number

    if form.validate_on_submit():
        try:
            installments = disburse_loan(
                loan,
                disbursed_date=form.disbursed_date.data,
                disbursed_amount=form.disbursed_amount.data,
                method=form.disbursement_method.data,
                reference=form.disbursement_reference.data,
                bank_name=form.bank_name.data,
                bank_account_number=form.bank_account_number.data,
                cheque_number=form.cheque_number.data,
                disbursed_by=current_user.id
            )
        except LendingError as e:
            db.session.rollback()
            _flash_errors(e)
            return render_template('loans/disburse.html', title='Disburse Loan', form=form, loan=loan)

        log_activity('disburse_loan', 'loan', loan.id,
                     f'Disbursed loan {loan.loan_number}: {loan.disbursed_amount}, {len(installments)} installments')
        db.session.commit()

        flash(f'Loan {loan.loan_number} disbursed with {len(installments)} installments.', 'success')
        return redirect(url_for('loans.view_loan', id=id))

    return render_template('loans/disburse.html', title='Disburse Loan', form=form, loan=loan)

@loans_bp.route('/<int:id>/regenerate-schedule', methods=['POST'])
@login_required
@permission_required('disburse_loans')
def regenerate_schedule(id):
    """Rebuild the installment schedule of a disbursed loan"""
    loan = db.get_or_404(Loan, id)

    if loan.payments.count() > 0:
        flash('Cannot regenerate the schedule of a loan that already has payments.', 'error')
        return redirect(url_for('loans.view_loan', id=id))

    installments = loan.generate_installments()
    if not installments:
        flash('Schedule can only be generated for disbursed loans with an approved amount.', 'warning')
        return redirect(url_for('loans.view_loan', id=id))

    log_activity('regenerate_schedule', 'loan', loan.id,
                 f'Regenerated {len(installments)} installments for {loan.loan_number}')
    db.session.commit()

    flash(f'Schedule regenerated with {len(installments)} installments.', 'success')
    return redirect(url_for('loans.view_loan', id=id))
