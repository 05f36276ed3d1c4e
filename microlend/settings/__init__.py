from flask import Blueprint

settings_bp = Blueprint('settings', __name__)

from microlend.settings import routes
