"""Database models for microlend"""
import logging
from datetime import datetime, date
from decimal import Decimal
from sqlalchemy import func
from microlend import db, login_manager
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from microlend.engine import (
    InvalidLoanStateError,
    PenaltySettings,
    compute_schedule,
    days_overdue,
    display_status,
    generate_schedule,
    is_overdue,
    to_decimal,
)

logger = logging.getLogger(__name__)

@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))

# User and Authentication Models
class User(UserMixin, db.Model):
    """User model for staff members"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(20))
    role = db.Column(db.String(50), nullable=False, default='staff')  # admin, manager, staff, loan_collector
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)

    # Permissions
    can_add_customers = db.Column(db.Boolean, default=True)
    can_manage_loans = db.Column(db.Boolean, default=True)
    can_approve_loans = db.Column(db.Boolean, default=False)
    can_disburse_loans = db.Column(db.Boolean, default=False)
    can_collect_payments = db.Column(db.Boolean, default=True)
    can_manage_settings = db.Column(db.Boolean, default=False)

    ROLE_PERMISSIONS = {
        'staff': {
            'can_add_customers': True,
            'can_manage_loans': True,
            'can_approve_loans': False,
            'can_disburse_loans': False,
            'can_collect_payments': True,
            'can_manage_settings': False,
        },
        'loan_collector': {
            'can_add_customers': False,
            'can_manage_loans': False,
            'can_approve_loans': False,
            'can_disburse_loans': False,
            'can_collect_payments': True,
            'can_manage_settings': False,
        },
        'manager': {
            'can_add_customers': True,
            'can_manage_loans': True,
            'can_approve_loans': True,
            'can_disburse_loans': True,
            'can_collect_payments': True,
            'can_manage_settings': True,
        },
        'admin': {
            'can_add_customers': True,
            'can_manage_loans': True,
            'can_approve_loans': True,
            'can_disburse_loans': True,
            'can_collect_payments': True,
            'can_manage_settings': True,
        },
    }

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def has_permission(self, permission):
        """Check if user has specific permission"""
        if self.role == 'admin':
            return True
        return bool(getattr(self, f'can_{permission}', False))

    def set_role_permissions(self, role=None):
        """Set default permissions based on role"""
        if role is None:
            role = self.role
        for permission, value in self.ROLE_PERMISSIONS.get(role, {}).items():
            setattr(self, permission, value)

    def __repr__(self):
        return f'<User {self.username}>'

class Customer(db.Model):
    """Borrower"""
    __tablename__ = 'customers'

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(200), nullable=False, index=True)
    nic_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=False)
    email = db.Column(db.String(120))
    address = db.Column(db.Text)
    occupation = db.Column(db.String(100))

    # Bank Information (used for bank transfer disbursements)
    bank_name = db.Column(db.String(100))
    bank_account_number = db.Column(db.String(30))

    status = db.Column(db.String(20), default='active')  # active, inactive, blacklisted
    notes = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    loans = db.relationship('Loan', backref='customer', lazy='dynamic')

    def __repr__(self):
        return f'<Customer {self.customer_id}>'

class Loan(db.Model):
    """Simple-interest loan

    ``period`` is stored in whole months; ``original_period`` and
    ``period_unit`` keep the tenor as entered, which is what the EMI was
    sized on.
    """
    __tablename__ = 'loans'

    # Status flow: pending -> approved -> disbursed/active -> completed, or pending -> rejected
    STATUS_TRANSITIONS = {
        'pending': ('approved', 'rejected'),
        'approved': ('disbursed', 'active'),
        'disbursed': ('active', 'completed'),
        'active': ('completed',),
        'rejected': (),
        'completed': (),
    }
    SCHEDULED_STATUSES = ('disbursed', 'active')

    id = db.Column(db.Integer, primary_key=True)
    loan_number = db.Column(db.String(50), unique=True, nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False, index=True)

    # Loan Details
    loan_type = db.Column(db.String(50), default='personal')
    principal = db.Column(db.Numeric(15, 2), nullable=False)
    approved_amount = db.Column(db.Numeric(15, 2))
    interest_rate = db.Column(db.Numeric(5, 2), nullable=False)  # Percent per month, simple interest
    period = db.Column(db.Integer, nullable=False)  # Months
    period_unit = db.Column(db.String(10), nullable=False, default='months')  # days, weeks, months
    original_period = db.Column(db.Integer, nullable=False)
    emi = db.Column(db.Numeric(15, 2), nullable=False)
    total_interest = db.Column(db.Numeric(15, 2))
    total_payable = db.Column(db.Numeric(15, 2))

    status = db.Column(db.String(30), default='pending', index=True)

    # Approval
    approval_date = db.Column(db.Date)
    approved_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    approval_notes = db.Column(db.Text)
    rejection_reason = db.Column(db.Text)

    # Disbursement
    disbursed_amount = db.Column(db.Numeric(15, 2))
    disbursed_date = db.Column(db.Date)
    disbursement_method = db.Column(db.String(30))  # cash, bank_transfer, cheque
    disbursement_reference = db.Column(db.String(100))
    bank_name = db.Column(db.String(100))
    bank_account_number = db.Column(db.String(30))
    cheque_number = db.Column(db.String(30))
    disbursed_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    closing_date = db.Column(db.Date)

    purpose = db.Column(db.Text)
    notes = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    installments = db.relationship('Installment', backref='loan', lazy='dynamic',
                                   cascade='all, delete-orphan', order_by='Installment.emi_number')
    payments = db.relationship('LoanPayment', backref='loan', lazy='dynamic', cascade='all, delete-orphan')

    def calculate_emi(self):
        """Size the EMI on the tenor as entered and freeze it on the loan"""
        result = compute_schedule(self.principal, self.interest_rate,
                                  self.original_period, self.period_unit)
        self.emi = result.emi
        self.total_interest = result.total_interest
        self.total_payable = result.total_amount
        return result

    def can_transition_to(self, status):
        return status in self.STATUS_TRANSITIONS.get(self.status, ())

    def transition_to(self, status):
        """Move the loan forward; statuses never go backwards"""
        if not self.can_transition_to(status):
            raise InvalidLoanStateError(f'Loan {self.loan_number} cannot move from {self.status} to {status}')
        logger.info('Loan %s: %s -> %s', self.loan_number, self.status, status)
        self.status = status

    def generate_installments(self):
        """Replace this loan's installments with a freshly generated schedule

        Returns the new Installment rows; an empty list when the loan is not
        disbursed or lacks an approved amount or disbursement date.
        """
        if self.status not in self.SCHEDULED_STATUSES:
            logger.warning('Loan %s: no schedule for status %s', self.loan_number, self.status)
            return []

        schedule = generate_schedule(self)
        if not schedule:
            return []

        Installment.query.filter_by(loan_id=self.id).delete()
        rows = [Installment(loan_id=self.id, **entry) for entry in schedule]
        db.session.add_all(rows)
        logger.info('Loan %s: generated %d installments from %s', self.loan_number, len(rows), self.disbursed_date)
        return rows

    def get_total_paid(self):
        total = db.session.query(func.sum(Installment.paid_amount)).filter_by(loan_id=self.id).scalar()
        return to_decimal(total)

    def get_outstanding_balance(self):
        total = db.session.query(func.sum(Installment.balance)).filter(
            Installment.loan_id == self.id,
            Installment.status.in_(['pending', 'partial'])
        ).scalar()
        return to_decimal(total)

    def open_installments_count(self):
        return self.installments.filter(Installment.status.in_(['pending', 'partial'])).count()

    def refresh_completion(self, today=None):
        """Close the loan once no installment is left pending or partial"""
        if self.status not in self.SCHEDULED_STATUSES or self.installments.count() == 0:
            return False
        if self.open_installments_count() == 0:
            self.transition_to('completed')
            self.closing_date = today or date.today()
            return True
        return False

    def get_arrears_details(self, today=None):
        """Calculate arrears details for overdue installments"""
        today = today or date.today()
        total_overdue = Decimal('0')
        overdue_count = 0
        oldest_overdue_date = None

        for installment in self.installments:
            if installment.is_overdue(today):
                total_overdue += to_decimal(installment.balance)
                overdue_count += 1
                if oldest_overdue_date is None or installment.due_date < oldest_overdue_date:
                    oldest_overdue_date = installment.due_date

        return {
            'total_overdue_amount': total_overdue,
            'overdue_installments': overdue_count,
            'days_overdue': days_overdue(oldest_overdue_date, today) if oldest_overdue_date else 0,
            'oldest_overdue_date': oldest_overdue_date
        }

    def __repr__(self):
        return f'<Loan {self.loan_number}>'

class Installment(db.Model):
    """One EMI of a disbursed loan"""
    __tablename__ = 'installments'
    __table_args__ = (db.UniqueConstraint('loan_id', 'emi_number', name='uq_installment_loan_emi'),)

    id = db.Column(db.Integer, primary_key=True)
    loan_id = db.Column(db.Integer, db.ForeignKey('loans.id'), nullable=False, index=True)
    emi_number = db.Column(db.Integer, nullable=False)
    due_date = db.Column(db.Date, nullable=False, index=True)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    paid_amount = db.Column(db.Numeric(15, 2), default=0)
    balance = db.Column(db.Numeric(15, 2), nullable=False)
    penalty = db.Column(db.Numeric(15, 2), default=0)
    discount = db.Column(db.Numeric(15, 2), default=0)
    collected_amount = db.Column(db.Numeric(15, 2), default=0)
    status = db.Column(db.String(20), default='pending')  # pending, partial, paid; overdue is derived
    payment_date = db.Column(db.Date)
    payment_mode = db.Column(db.String(20))  # cash, online, cheque
    receipt_number = db.Column(db.String(100))
    remarks = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def is_overdue(self, today=None):
        return is_overdue(self.status, self.due_date, today)

    @property
    def display_status(self):
        return display_status(self.status, self.due_date)

    @property
    def days_overdue(self):
        return days_overdue(self.due_date) if self.is_overdue() else 0

    def __repr__(self):
        return f'<Installment {self.loan_id}#{self.emi_number}>'

class LoanPayment(db.Model):
    """Receipt for one payment applied to an installment"""
    __tablename__ = 'loan_payments'

    id = db.Column(db.Integer, primary_key=True)
    loan_id = db.Column(db.Integer, db.ForeignKey('loans.id'), nullable=False, index=True)
    installment_id = db.Column(db.Integer, db.ForeignKey('installments.id'), nullable=False, index=True)

    payment_date = db.Column(db.Date, nullable=False, index=True)
    payment_amount = db.Column(db.Numeric(15, 2), nullable=False)
    penalty_amount = db.Column(db.Numeric(15, 2), default=0)
    discount_amount = db.Column(db.Numeric(15, 2), default=0)
    collected_amount = db.Column(db.Numeric(15, 2), nullable=False)
    balance_after = db.Column(db.Numeric(15, 2))  # Installment balance after this payment

    payment_mode = db.Column(db.String(20))  # cash, online, cheque
    reference_number = db.Column(db.String(100))
    receipt_number = db.Column(db.String(100), unique=True)
    notes = db.Column(db.Text)

    collected_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    installment = db.relationship('Installment', backref=db.backref('payments', lazy='dynamic'))

    def __repr__(self):
        return f'<LoanPayment {self.receipt_number}>'

# System Settings Model
class SystemSettings(db.Model):
    """System-wide settings and configurations"""
    __tablename__ = 'system_settings'

    id = db.Column(db.Integer, primary_key=True)

    app_name = db.Column(db.String(100), default='microlend')
    currency = db.Column(db.String(10), default='LKR')
    currency_symbol = db.Column(db.String(10), default='Rs.')

    # Loan Settings
    default_loan_interest_rate = db.Column(db.Numeric(5, 2), default=10.0)
    late_payment_penalty_percentage = db.Column(db.Numeric(5, 2), default=2.0)
    penalty_type = db.Column(db.String(20), default='per_day')  # per_day, per_week, fixed_total
    loan_number_prefix = db.Column(db.String(10), default='LN')

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @staticmethod
    def get_settings():
        """Get system settings, create default if not exists"""
        settings = SystemSettings.query.first()
        if not settings:
            from flask import current_app
            settings = SystemSettings(
                late_payment_penalty_percentage=current_app.config.get('DEFAULT_PENALTY_RATE', 2.0),
                penalty_type=current_app.config.get('DEFAULT_PENALTY_TYPE', 'per_day')
            )
            db.session.add(settings)
            db.session.commit()
        return settings

    def penalty_settings(self):
        return PenaltySettings.from_settings(self)

    def __repr__(self):
        return f'<SystemSettings {self.app_name}>'

# Activity Log Model
class ActivityLog(db.Model):
    """Activity log for audit trail"""
    __tablename__ = 'activity_logs'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), index=True)
    action = db.Column(db.String(100), nullable=False)
    entity_type = db.Column(db.String(50))  # customer, loan, installment, settings
    entity_id = db.Column(db.Integer)
    description = db.Column(db.Text)
    ip_address = db.Column(db.String(50))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f'<ActivityLog {self.action}>'
