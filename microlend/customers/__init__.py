from flask import Blueprint

customers_bp = Blueprint('customers', __name__)

from microlend.customers import routes
