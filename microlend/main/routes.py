"""Main routes"""
from datetime import date
from flask import render_template
from flask_login import login_required
from sqlalchemy import func
from microlend import db
from microlend.main import main_bp
from microlend.models import Customer, Loan, Installment
from microlend.engine import aging_buckets

@main_bp.route('/')
@main_bp.route('/dashboard')
@login_required
def dashboard():
    """Main dashboard"""
    today = date.today()

    stats = {
        'total_customers': Customer.query.filter_by(status='active').count(),
        'pending_loans': Loan.query.filter_by(status='pending').count(),
        'approved_loans': Loan.query.filter_by(status='approved').count(),
        'active_loans': Loan.query.filter(Loan.status.in_(Loan.SCHEDULED_STATUSES)).count(),
        'completed_loans': Loan.query.filter_by(status='completed').count(),
    }
    stats['total_loan_disbursed'] = db.session.query(func.sum(Loan.disbursed_amount)).filter(
        Loan.status.in_(['disbursed', 'active', 'completed'])
    ).scalar() or 0
    stats['total_outstanding'] = db.session.query(func.sum(Installment.balance)).filter(
        Installment.status.in_(['pending', 'partial'])
    ).scalar() or 0

    overdue = Installment.query.filter(
        Installment.status.in_(['pending', 'partial']),
        Installment.due_date < today
    ).order_by(Installment.due_date).all()
    aging = aging_buckets(overdue, today)

    due_today = Installment.query.filter(
        Installment.status.in_(['pending', 'partial']),
        Installment.due_date == today
    ).all()

    return render_template('main/dashboard.html',
                         title='Dashboard',
                         stats=stats,
                         aging=aging,
                         overdue=overdue[:10],
                         due_today=due_today)
