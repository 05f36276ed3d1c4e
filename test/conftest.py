"""Shared fixtures: an in-memory app, users, customers and loans"""
from datetime import date
from decimal import Decimal

import pytest

from microlend import create_app, db
from microlend.models import User, Customer, SystemSettings
from microlend.loans.services import create_loan, approve_loan, disburse_loan


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def settings(app):
    return SystemSettings.get_settings()


@pytest.fixture
def admin(app):
    user = User(username='admin', email='admin@example.com', full_name='Admin User', role='admin')
    user.set_password('secret')
    user.set_role_permissions()
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def collector(app):
    user = User(username='collector', email='collector@example.com', full_name='Field Collector',
                role='loan_collector')
    user.set_password('secret')
    user.set_role_permissions()
    db.session.add(user)
    db.session.commit()
    return user


def login(client, username, password='secret'):
    return client.post('/auth/login', data={'username': username, 'password': password})


@pytest.fixture
def auth_client(client, admin):
    login(client, 'admin')
    return client


@pytest.fixture
def customer(app):
    customer = Customer(customer_id='C/0001', full_name='Nimal Perera', nic_number='901234567V',
                        phone='0771234567', bank_name='People\'s Bank', bank_account_number='1234567890')
    db.session.add(customer)
    db.session.commit()
    return customer


@pytest.fixture
def make_loan(customer, admin):
    """Build a loan and move it as far as ``status`` (pending, approved or disbursed)"""
    counter = {'n': 0}

    def _make(principal=50000, rate=10, period=3, period_unit='months', status='pending',
              disbursed_date=date(2026, 1, 10)):
        counter['n'] += 1
        loan = create_loan(f'26/LN/{counter["n"]:05d}', customer.id, principal, rate, period, period_unit,
                           created_by=admin.id)
        db.session.flush()
        if status in ('approved', 'disbursed'):
            approve_loan(loan, date(2026, 1, 5), approved_by=admin.id)
        if status == 'disbursed':
            disburse_loan(loan, disbursed_date, disbursed_by=admin.id)
        db.session.commit()
        return loan

    return _make


@pytest.fixture
def disbursed_loan(make_loan):
    return make_loan(status='disbursed')


def decimal(value):
    return Decimal(str(value))
