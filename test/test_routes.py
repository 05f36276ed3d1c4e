"""HTTP flows through the back office"""
from decimal import Decimal

from microlend import db
from microlend.models import ActivityLog, Customer, Installment, Loan, LoanPayment, SystemSettings
from conftest import login


def test_pages_require_login(client):
    response = client.get('/loans/')

    assert response.status_code == 302
    assert '/auth/login' in response.headers['Location']


def test_login_rejects_wrong_password(client, admin):
    response = login(client, 'admin', 'wrong')

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/auth/login')
    assert ActivityLog.query.filter_by(action='login').count() == 0


def test_dashboard_shows_aging(auth_client, disbursed_loan):
    response = auth_client.get('/dashboard')

    assert response.status_code == 200
    assert b'Overdue aging' in response.data
    assert b'90+' in response.data


def test_collector_cannot_approve_loans(client, collector, make_loan):
    loan = make_loan()
    login(client, 'collector')

    response = client.post(f'/loans/{loan.id}/approve', data={
        'approval_status': 'approved', 'approval_date': '2026-01-05', 'approved_amount': '50000'})

    assert response.status_code == 302
    assert '/auth/login' not in response.headers['Location']
    assert db.session.get(Loan, loan.id).status == 'pending'


def test_collector_sees_which_permission_is_missing(client, collector, make_loan):
    loan = make_loan()
    login(client, 'collector')

    response = client.post(f'/loans/{loan.id}/approve', data={}, follow_redirects=True)

    assert b'Your role cannot approve loans.' in response.data


def test_emi_preview(auth_client):
    response = auth_client.get('/loans/api/emi', query_string={
        'principal': '50000', 'interest_rate': '10', 'period': '60', 'period_unit': 'days'})

    assert response.status_code == 200
    assert response.get_json()['emi'] == 1000.0
    assert response.get_json()['installment_count'] == 60


def test_emi_preview_rejects_bad_unit(auth_client):
    response = auth_client.post('/loans/api/emi', json={
        'principal': 50000, 'interest_rate': 10, 'period': 2, 'period_unit': 'years'})

    assert response.status_code == 400
    assert response.get_json()['success'] is False
    assert 'period_unit' in response.get_json()['errors']


def test_add_approve_disburse_and_pay(auth_client):
    response = auth_client.post('/customers/add', data={
        'full_name': 'Kamala Silva', 'nic_number': '856543210v', 'phone': '0719876543', 'status': 'active'})
    assert response.status_code == 302
    customer = Customer.query.filter_by(nic_number='856543210V').one()
    assert customer.customer_id == 'C/0001'

    response = auth_client.post('/loans/add', data={
        'customer_id': customer.id, 'loan_type': 'business', 'principal': '50000',
        'interest_rate': '10', 'period': '3', 'period_unit': 'months'})
    assert response.status_code == 302
    loan = Loan.query.one()
    assert loan.status == 'pending'
    assert loan.emi == Decimal('21667')

    response = auth_client.post(f'/loans/{loan.id}/approve', data={
        'approval_status': 'approved', 'approval_date': '2026-01-05', 'approved_amount': '45000'})
    assert response.status_code == 302
    assert loan.status == 'approved'
    assert loan.approved_amount == Decimal('45000')

    response = auth_client.post(f'/loans/{loan.id}/disburse', data={
        'disbursed_date': '2026-01-10', 'disbursed_amount': '45000', 'disbursement_method': 'cash'})
    assert response.status_code == 302
    assert loan.status == 'disbursed'
    assert loan.installments.count() == 3

    installment = loan.installments.first()
    response = auth_client.post(f'/payments/installment/{installment.id}', data={
        'payment_date': '2026-02-10', 'payment_amount': '21667', 'penalty': '0', 'discount': '0',
        'payment_mode': 'cash'})
    assert response.status_code == 302
    assert installment.status == 'paid'
    assert loan.status == 'active'
    assert LoanPayment.query.one().receipt_number == '000001'

    response = auth_client.get(f'/loans/{loan.id}')
    assert response.status_code == 200
    assert b'000001' in response.data

    actions = {log.action for log in ActivityLog.query.all()}
    assert {'create_customer', 'create_loan', 'approve_loan', 'disburse_loan', 'collect_payment'} <= actions


def test_reject_without_reason_keeps_loan_pending(auth_client, make_loan):
    loan = make_loan()

    response = auth_client.post(f'/loans/{loan.id}/approve', data={
        'approval_status': 'rejected', 'approval_date': '2026-01-05'})

    assert response.status_code == 200
    assert b'reason' in response.data
    assert loan.status == 'pending'


def test_bank_transfer_needs_account_details(auth_client, make_loan):
    loan = make_loan(status='approved')

    response = auth_client.post(f'/loans/{loan.id}/disburse', data={
        'disbursed_date': '2026-01-10', 'disbursed_amount': '50000', 'disbursement_method': 'bank_transfer'})

    assert response.status_code == 200
    assert b'Bank name is required' in response.data
    assert loan.status == 'approved'
    assert loan.installments.count() == 0


def test_overpayment_is_refused(auth_client, disbursed_loan):
    installment = disbursed_loan.installments.first()

    response = auth_client.post(f'/payments/installment/{installment.id}', data={
        'payment_date': '2026-02-10', 'payment_amount': '30000', 'penalty': '0', 'payment_mode': 'cash'})

    assert response.status_code == 200
    assert b'cannot exceed' in response.data
    assert db.session.get(Installment, installment.id).balance == Decimal('21667')
    assert LoanPayment.query.count() == 0


def test_regenerate_schedule(auth_client, disbursed_loan):
    response = auth_client.post(f'/loans/{disbursed_loan.id}/regenerate-schedule')

    assert response.status_code == 302
    assert Installment.query.filter_by(loan_id=disbursed_loan.id).count() == 3


def test_bulk_api(auth_client, disbursed_loan):
    response = auth_client.post('/payments/bulk', json={'payments': [
        {'loan_id': disbursed_loan.id, 'emi_number': 1, 'amount': 21667, 'payment_mode': 'cash',
         'payment_date': '2026-02-10'},
        {'loan_id': disbursed_loan.id, 'emi_number': 7, 'amount': 100, 'payment_mode': 'cash'},
    ]})

    data = response.get_json()
    assert response.status_code == 200
    assert len(data['data']['success']) == 1
    assert data['data']['failed'][0]['error'] == 'Installment not found'


def test_bulk_api_needs_a_list(auth_client):
    response = auth_client.post('/payments/bulk', json={'payments': 'all of them'})

    assert response.status_code == 400


def test_penalty_settings_page(auth_client):
    response = auth_client.post('/settings/', data={
        'app_name': 'microlend', 'currency': 'LKR', 'currency_symbol': 'Rs.',
        'default_loan_interest_rate': '10', 'loan_number_prefix': 'LN',
        'late_payment_penalty_percentage': '0', 'penalty_type': 'per_week'})

    assert response.status_code == 302
    settings = SystemSettings.get_settings()
    assert settings.late_payment_penalty_percentage == 0
    assert settings.penalty_type == 'per_week'
    assert settings.penalty_settings().penalty_type == 'per_week'
