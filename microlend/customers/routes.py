"""Customer management routes"""
from flask import render_template, redirect, url_for, flash, request, current_app
from flask_login import login_required, current_user
from microlend import db
from microlend.customers import customers_bp
from microlend.models import Customer
from microlend.customers.forms import CustomerForm
from microlend.utils.decorators import permission_required
from microlend.utils.helpers import generate_customer_id, log_activity

@customers_bp.route('/')
@login_required
@permission_required('add_customers')
def list_customers():
    """List all customers"""
    page = request.args.get('page', 1, type=int)
    search = request.args.get('search', '', type=str)
    status = request.args.get('status', '', type=str)

    query = Customer.query

    if search:
        query = query.filter(
            db.or_(
                Customer.full_name.ilike(f'%{search}%'),
                Customer.customer_id.ilike(f'%{search}%'),
                Customer.nic_number.ilike(f'%{search}%'),
                Customer.phone.ilike(f'%{search}%')
            )
        )

    if status:
        query = query.filter_by(status=status)

    customers = query.order_by(Customer.created_at.desc()).paginate(
        page=page, per_page=current_app.config['ITEMS_PER_PAGE'], error_out=False
    )

    return render_template('customers/list.html',
                         title='Customers',
                         customers=customers,
                         search=search,
                         status=status)

@customers_bp.route('/add', methods=['GET', 'POST'])
@login_required
@permission_required('add_customers')
def add_customer():
    """Add new customer"""
    form = CustomerForm()

    if form.validate_on_submit():
        customer = Customer(
            customer_id=generate_customer_id(),
            full_name=form.full_name.data,
            nic_number=form.nic_number.data.strip().upper(),
            phone=form.phone.data,
            email=form.email.data,
            address=form.address.data,
            occupation=form.occupation.data,
            bank_name=form.bank_name.data,
            bank_account_number=form.bank_account_number.data,
            status=form.status.data,
            notes=form.notes.data,
            created_by=current_user.id
        )
        db.session.add(customer)
        db.session.flush()

        log_activity('create_customer', 'customer', customer.id, f'Created customer: {customer.full_name}')
        db.session.commit()

        flash(f'Customer {customer.full_name} added successfully!', 'success')
        return redirect(url_for('customers.list_customers'))

    return render_template('customers/add.html', title='Add Customer', form=form)
