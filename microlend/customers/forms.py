"""Customer forms"""
from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, TextAreaField, SubmitField
from wtforms.validators import DataRequired, Optional, Length, ValidationError
from microlend.models import Customer

class CustomerForm(FlaskForm):
    """Borrower registration form"""
    full_name = StringField('Full Name', validators=[DataRequired(), Length(max=200)])
    nic_number = StringField('NIC Number', validators=[DataRequired(), Length(max=20)])
    phone = StringField('Phone', validators=[DataRequired(), Length(max=20)])
    email = StringField('Email', validators=[Optional(), Length(max=120)])
    address = TextAreaField('Address', validators=[Optional()])
    occupation = StringField('Occupation', validators=[Optional(), Length(max=100)])

    # Used to pre-fill bank transfer disbursements
    bank_name = StringField('Bank Name', validators=[Optional(), Length(max=100)])
    bank_account_number = StringField('Account Number', validators=[Optional(), Length(max=30)])

    status = SelectField('Status', choices=[
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('blacklisted', 'Blacklisted')
    ], default='active')
    notes = TextAreaField('Notes', validators=[Optional()])
    submit = SubmitField('Save Customer')

    def validate_nic_number(self, field):
        if Customer.query.filter_by(nic_number=field.data.strip().upper()).first():
            raise ValidationError('NIC number already registered.')
