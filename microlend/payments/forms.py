"""Payment forms"""
from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, DecimalField, DateField, TextAreaField, SubmitField
from wtforms.validators import DataRequired, Optional, NumberRange, Length
from datetime import datetime

class InstallmentPaymentForm(FlaskForm):
    """Payment against a single installment"""
    payment_date = DateField('Payment Date', validators=[DataRequired()], default=datetime.now)
    payment_amount = DecimalField('Payment Amount', validators=[DataRequired(), NumberRange(min=0.01)], places=2)
    penalty = DecimalField('Penalty', validators=[Optional(), NumberRange(min=0)], places=2, default=0)
    discount = DecimalField('Discount', validators=[Optional(), NumberRange(min=0)], places=2, default=0)
    payment_mode = SelectField('Payment Mode', choices=[
        ('cash', 'Cash'),
        ('online', 'Online Payment'),
        ('cheque', 'Cheque')
    ], default='cash', validators=[DataRequired()])
    reference_number = StringField('Reference Number', validators=[Optional(), Length(max=100)])
    remarks = TextAreaField('Remarks', validators=[Optional()])
    submit = SubmitField('Record Payment')
