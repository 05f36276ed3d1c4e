from flask import Blueprint

loans_bp = Blueprint('loans', __name__)

from microlend.loans import routes
