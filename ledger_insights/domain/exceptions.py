"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidTransactionDataError(DomainException):
    """Transaction data is malformed (wrong type or shape, not a data degeneracy)"""

    pass


class InvalidForecastRequestError(DomainException):
    """Forecast parameters outside the supported contract"""

    pass
