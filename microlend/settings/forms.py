"""Settings forms"""
from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, DecimalField, SubmitField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Length

class SystemSettingsForm(FlaskForm):
    """System settings form"""
    # General
    app_name = StringField('Application Name', validators=[DataRequired(), Length(max=100)])
    currency = StringField('Currency Code', validators=[DataRequired(), Length(max=10)])
    currency_symbol = StringField('Currency Symbol', validators=[DataRequired(), Length(max=10)])

    # Loans
    default_loan_interest_rate = DecimalField('Default Interest Rate (% per month)', validators=[InputRequired(), NumberRange(min=0, max=100)], places=2)
    loan_number_prefix = StringField('Loan Number Prefix', validators=[DataRequired(), Length(max=10)])

    # Late payment penalty
    late_payment_penalty_percentage = DecimalField('Penalty Rate (%)', validators=[InputRequired(), NumberRange(min=0, max=100)], places=2)
    penalty_type = SelectField('Penalty Type', choices=[
        ('per_day', 'Per Day'),
        ('per_week', 'Per Week'),
        ('fixed_total', 'Fixed (once per installment)')
    ], validators=[DataRequired()])

    submit = SubmitField('Save Settings')
