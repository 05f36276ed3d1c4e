"""Route guards for role permissions"""
from functools import wraps
from flask import flash, redirect, url_for
from flask_login import current_user

def permission_required(permission):
    """Redirect to the dashboard unless the user's role grants ``permission``"""
    def decorator(view):
        @wraps(view)
        def guarded(*args, **kwargs):
            if not current_user.is_authenticated:
                flash('Please log in to access this page.', 'warning')
                return redirect(url_for('auth.login'))
            if not current_user.has_permission(permission):
                flash(f'Your role cannot {permission.replace("_", " ")}.', 'danger')
                return redirect(url_for('main.dashboard'))
            return view(*args, **kwargs)
        return guarded
    return decorator
