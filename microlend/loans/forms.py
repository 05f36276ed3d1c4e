"""Loan forms"""
from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, DecimalField, IntegerField, DateField, TextAreaField, SubmitField
from wtforms.validators import DataRequired, Optional, NumberRange, Length
from datetime import datetime

class LoanForm(FlaskForm):
    """Loan application form"""
    customer_id = SelectField('Customer', coerce=int, choices=[], validators=[DataRequired()])
    loan_type = SelectField('Loan Type', choices=[
        ('personal', 'Personal Loan'),
        ('business', 'Business Loan'),
        ('agriculture', 'Agriculture Loan'),
        ('education', 'Education Loan'),
        ('other', 'Other')
    ], validators=[DataRequired()])
    principal = DecimalField('Loan Amount', validators=[DataRequired(), NumberRange(min=0.01)], places=2)
    interest_rate = DecimalField('Interest Rate (% per month)', validators=[DataRequired(), NumberRange(min=0.01, max=100)], places=2)
    period = IntegerField('Loan Period', validators=[DataRequired(), NumberRange(min=1, max=3650)])
    period_unit = SelectField('Period Unit', choices=[
        ('days', 'Days'),
        ('weeks', 'Weeks'),
        ('months', 'Months')
    ], default='months', validators=[DataRequired()])
    purpose = TextAreaField('Purpose of Loan', validators=[Optional()])
    notes = TextAreaField('Notes', validators=[Optional()])
    submit = SubmitField('Save Loan')

class LoanApprovalForm(FlaskForm):
    """Loan approval form"""
    approval_status = SelectField('Approval Status', choices=[
        ('', 'Select'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected')
    ], validators=[DataRequired()])
    approval_date = DateField('Approval Date', validators=[DataRequired()], default=datetime.now)
    approved_amount = DecimalField('Approved Amount', validators=[Optional(), NumberRange(min=0.01)], places=2)
    approval_notes = TextAreaField('Approval Notes', validators=[Optional()])
    rejection_reason = TextAreaField('Rejection Reason', validators=[Optional()])
    submit = SubmitField('Submit')

    def __init__(self, *args, principal=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.principal = principal

    def validate(self, extra_validators=None):
        if not super().validate(extra_validators):
            return False
        if self.approval_status.data == 'approved':
            amount = self.approved_amount.data
            if amount is not None and self.principal is not None and amount > self.principal:
                self.approved_amount.errors.append('Approved amount cannot exceed the requested amount.')
                return False
        elif not (self.rejection_reason.data or '').strip():
            self.rejection_reason.errors.append('Please give a reason for rejecting the loan.')
            return False
        return True

class DisbursementForm(FlaskForm):
    """Loan disbursement form"""
    disbursed_date = DateField('Disbursement Date', validators=[DataRequired()], default=datetime.now)
    disbursed_amount = DecimalField('Disbursed Amount', validators=[DataRequired(), NumberRange(min=0.01)], places=2)
    disbursement_method = SelectField('Disbursement Method', choices=[
        ('cash', 'Cash'),
        ('bank_transfer', 'Bank Transfer'),
        ('cheque', 'Cheque')
    ], validators=[DataRequired()])
    disbursement_reference = StringField('Disbursement Reference', validators=[Optional(), Length(max=100)])
    bank_name = StringField('Bank Name', validators=[Optional(), Length(max=100)])
    bank_account_number = StringField('Account Number', validators=[Optional(), Length(max=30)])
    cheque_number = StringField('Cheque Number', validators=[Optional(), Length(max=30)])
    submit = SubmitField('Disburse Loan')

    def __init__(self, *args, approved_amount=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.approved_amount = approved_amount

    def validate(self, extra_validators=None):
        if not super().validate(extra_validators):
            return False
        valid = True
        if self.approved_amount is not None and self.disbursed_amount.data > self.approved_amount:
            self.disbursed_amount.errors.append('Disbursed amount cannot exceed the approved amount.')
            valid = False
        if self.disbursement_method.data == 'bank_transfer':
            if not self.bank_name.data:
                self.bank_name.errors.append('Bank name is required for bank transfers.')
                valid = False
            if not self.bank_account_number.data:
                self.bank_account_number.errors.append('Account number is required for bank transfers.')
                valid = False
        if self.disbursement_method.data == 'cheque' and not self.cheque_number.data:
            self.cheque_number.errors.append('Cheque number is required.')
            valid = False
        return valid
