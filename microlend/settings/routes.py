"""Settings routes"""
import logging
from flask import render_template, redirect, url_for, flash
from flask_login import login_required
from microlend import db
from microlend.settings import settings_bp
from microlend.models import SystemSettings
from microlend.settings.forms import SystemSettingsForm
from microlend.utils.decorators import permission_required
from microlend.utils.helpers import log_activity

logger = logging.getLogger(__name__)

@settings_bp.route('/', methods=['GET', 'POST'])
@login_required
@permission_required('manage_settings')
def system_settings():
    """System and late payment penalty settings"""
    settings = SystemSettings.get_settings()
    form = SystemSettingsForm(obj=settings)

    if form.validate_on_submit():
        settings.app_name = form.app_name.data
        settings.currency = form.currency.data
        settings.currency_symbol = form.currency_symbol.data
        settings.default_loan_interest_rate = form.default_loan_interest_rate.data
        settings.loan_number_prefix = form.loan_number_prefix.data
        settings.late_payment_penalty_percentage = form.late_payment_penalty_percentage.data
        settings.penalty_type = form.penalty_type.data

        log_activity('update_settings', 'settings', settings.id,
                     f'Penalty set to {settings.late_payment_penalty_percentage}% {settings.penalty_type}')
        db.session.commit()
        logger.info('Penalty settings changed: %s%% %s',
                    settings.late_payment_penalty_percentage, settings.penalty_type)

        flash('Settings updated successfully!', 'success')
        return redirect(url_for('settings.system_settings'))

    return render_template('settings/system.html', title='System Settings', form=form)
