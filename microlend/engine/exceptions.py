"""Exception hierarchy for the lending engine"""


class LendingError(Exception):
    """Base exception for all lending engine errors"""


class LoanValidationError(LendingError):
    """Raised when loan terms fail validation

    ``errors`` maps a form field name to the message shown to the operator.
    """

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class InvalidPeriodError(LoanValidationError):
    """Raised when a loan period cannot produce at least one installment"""

    def __init__(self, message='invalid period'):
        super().__init__(message, {'period': message})


class PaymentValidationError(LendingError):
    """Raised when a payment cannot be applied to an installment"""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field


class InvalidLoanStateError(LendingError):
    """Raised when a loan is not in a valid state for the operation"""
